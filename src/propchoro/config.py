"""Typed configuration loader for the layer YAML file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .errors import ConfigurationError


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _optional_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    return _mapping(value, field_name)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _optional_str(value: Any, field_name: str) -> str | None:
    return None if value is None else _str(value, field_name)


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ConfigurationError(f"Expected float for '{field_name}'")


def _optional_float(value: Any, field_name: str) -> float | None:
    return None if value is None else _float(value, field_name)


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"Expected bool for '{field_name}'")
    return value


def _float_list(value: Any, field_name: str) -> tuple[float, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigurationError(f"Expected list for '{field_name}'")
    return tuple(_float(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


def _str_list(value: Any, field_name: str) -> tuple[str, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ConfigurationError(f"Expected list for '{field_name}'")
    return tuple(_str(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


def _position(value: Any, field_name: str) -> str | tuple[float, float]:
    if isinstance(value, list):
        if len(value) != 2:
            raise ConfigurationError(f"Expected [x, y] pair for '{field_name}'")
        return (_float(value[0], f"{field_name}[0]"), _float(value[1], f"{field_name}[1]"))
    return _str(value, field_name)


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


def _optional_path(value: Any, field_name: str, root_dir: Path) -> Path | None:
    return None if value is None else _path_from_cfg(value, field_name, root_dir)


@dataclass(frozen=True, slots=True)
class InputConfig:
    path: Path
    var: str
    var2: str
    id_field: str | None
    data_path: Path | None
    data_id_field: str | None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> InputConfig:
        return cls(
            path=_path_from_cfg(raw.get("path"), "input.path", root_dir),
            var=_str(raw.get("var"), "input.var"),
            var2=_str(raw.get("var2"), "input.var2"),
            id_field=_optional_str(raw.get("id_field"), "input.id_field"),
            data_path=_optional_path(raw.get("data_path"), "input.data_path", root_dir),
            data_id_field=_optional_str(raw.get("data_id_field"), "input.data_id_field"),
        )


@dataclass(frozen=True, slots=True)
class OutputConfig:
    path: Path
    summary_json: Path | None
    logs_dir: Path

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> OutputConfig:
        path = _path_from_cfg(raw.get("path"), "output.path", root_dir)
        logs_raw = raw.get("logs_dir")
        return cls(
            path=path,
            summary_json=_optional_path(raw.get("summary_json"), "output.summary_json", root_dir),
            logs_dir=(
                path.parent / "logs"
                if logs_raw is None
                else _path_from_cfg(logs_raw, "output.logs_dir", root_dir)
            ),
        )


@dataclass(frozen=True, slots=True)
class ImageConfig:
    width_px: int = 1200
    height_px: int = 900
    dpi: int = 150
    background: str = "white"
    format: str = "png"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ImageConfig:
        default = cls()
        width_px = _int(raw.get("width_px", default.width_px), "image.width_px")
        height_px = _int(raw.get("height_px", default.height_px), "image.height_px")
        dpi = _int(raw.get("dpi", default.dpi), "image.dpi")
        if width_px <= 0 or height_px <= 0 or dpi <= 0:
            raise ConfigurationError("image.width_px, image.height_px and image.dpi must be > 0")
        return cls(
            width_px=width_px,
            height_px=height_px,
            dpi=dpi,
            background=_str(raw.get("background", default.background), "image.background"),
            format=_str(raw.get("format", default.format), "image.format"),
        )


@dataclass(frozen=True, slots=True)
class BaseMapConfig:
    draw: bool = True
    fill: str = "#999999"
    border: str = "white"
    line_width: float = 0.4

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BaseMapConfig:
        default = cls()
        return cls(
            draw=_bool(raw.get("draw", default.draw), "base.draw"),
            fill=_str(raw.get("fill", default.fill), "base.fill"),
            border=_str(raw.get("border", default.border), "base.border"),
            line_width=_float(raw.get("line_width", default.line_width), "base.line_width"),
        )


@dataclass(frozen=True, slots=True)
class SymbolsConfig:
    kind: str = "circle"
    inches: float = 0.3
    fixmax: float | None = None
    border: str = "#333333"
    lwd: float = 1.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SymbolsConfig:
        default = cls()
        kind = _str(raw.get("kind", default.kind), "symbols.kind").casefold()
        allowed = {"circle", "square", "bar"}
        if kind not in allowed:
            raise ConfigurationError("symbols.kind must be one of: " + ", ".join(sorted(allowed)))
        inches = _float(raw.get("inches", default.inches), "symbols.inches")
        if inches <= 0:
            raise ConfigurationError("symbols.inches must be > 0")
        fixmax = _optional_float(raw.get("fixmax"), "symbols.fixmax")
        if fixmax is not None and fixmax <= 0:
            raise ConfigurationError("symbols.fixmax must be > 0 when provided")
        return cls(
            kind=kind,
            inches=inches,
            fixmax=fixmax,
            border=_str(raw.get("border", default.border), "symbols.border"),
            lwd=_float(raw.get("lwd", default.lwd), "symbols.lwd"),
        )


@dataclass(frozen=True, slots=True)
class ClassificationConfig:
    method: str = "quantile"
    nclass: int | None = None
    breaks: tuple[float, ...] | None = None
    colors: tuple[str, ...] | None = None
    palette: str = "Blues"
    no_data_color: str = "white"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ClassificationConfig:
        default = cls()
        nclass_raw = raw.get("nclass")
        nclass = None if nclass_raw is None else _int(nclass_raw, "classification.nclass")
        if nclass is not None and nclass < 1:
            raise ConfigurationError("classification.nclass must be >= 1")
        return cls(
            method=_str(raw.get("method", default.method), "classification.method").casefold(),
            nclass=nclass,
            breaks=_float_list(raw.get("breaks"), "classification.breaks"),
            colors=_str_list(raw.get("colors"), "classification.colors"),
            palette=_str(raw.get("palette", default.palette), "classification.palette"),
            no_data_color=_str(
                raw.get("no_data_color", default.no_data_color), "classification.no_data_color"
            ),
        )


@dataclass(frozen=True, slots=True)
class SizeLegendConfig:
    pos: str | tuple[float, float] = "right"
    title: str | None = None
    values_rnd: int = 0
    style: str = "c"
    frame: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SizeLegendConfig:
        default = cls()
        style = _str(raw.get("style", default.style), "legend.size.style").casefold()
        if style not in {"c", "e"}:
            raise ConfigurationError("legend.size.style must be 'c' or 'e'")
        return cls(
            pos=_position(raw.get("pos", default.pos), "legend.size.pos"),
            title=_optional_str(raw.get("title"), "legend.size.title"),
            values_rnd=_int(raw.get("values_rnd", default.values_rnd), "legend.size.values_rnd"),
            style=style,
            frame=_bool(raw.get("frame", default.frame), "legend.size.frame"),
        )


@dataclass(frozen=True, slots=True)
class ColorLegendConfig:
    pos: str | tuple[float, float] = "topright"
    title: str | None = None
    values_rnd: int = 2
    nodata_label: str = "no data"
    frame: bool = False
    border: str = "black"
    horiz: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ColorLegendConfig:
        default = cls()
        return cls(
            pos=_position(raw.get("pos", default.pos), "legend.color.pos"),
            title=_optional_str(raw.get("title"), "legend.color.title"),
            values_rnd=_int(raw.get("values_rnd", default.values_rnd), "legend.color.values_rnd"),
            nodata_label=_str(
                raw.get("nodata_label", default.nodata_label), "legend.color.nodata_label"
            ),
            frame=_bool(raw.get("frame", default.frame), "legend.color.frame"),
            border=_str(raw.get("border", default.border), "legend.color.border"),
            horiz=_bool(raw.get("horiz", default.horiz), "legend.color.horiz"),
        )


@dataclass(frozen=True, slots=True)
class LegendConfig:
    title_cex: float
    values_cex: float
    size: SizeLegendConfig
    color: ColorLegendConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LegendConfig:
        return cls(
            title_cex=_float(raw.get("title_cex", 0.8), "legend.title_cex"),
            values_cex=_float(raw.get("values_cex", 0.6), "legend.values_cex"),
            size=SizeLegendConfig.from_mapping(_optional_mapping(raw.get("size"), "legend.size")),
            color=ColorLegendConfig.from_mapping(_optional_mapping(raw.get("color"), "legend.color")),
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    input: InputConfig
    output: OutputConfig
    image: ImageConfig
    base: BaseMapConfig
    symbols: SymbolsConfig
    classification: ClassificationConfig
    legend: LegendConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            input=InputConfig.from_mapping(_mapping(raw.get("input"), "input"), root_dir),
            output=OutputConfig.from_mapping(_mapping(raw.get("output"), "output"), root_dir),
            image=ImageConfig.from_mapping(_optional_mapping(raw.get("image"), "image")),
            base=BaseMapConfig.from_mapping(_optional_mapping(raw.get("base"), "base")),
            symbols=SymbolsConfig.from_mapping(_optional_mapping(raw.get("symbols"), "symbols")),
            classification=ClassificationConfig.from_mapping(
                _optional_mapping(raw.get("classification"), "classification")
            ),
            legend=LegendConfig.from_mapping(_optional_mapping(raw.get("legend"), "legend")),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ConfigurationError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
