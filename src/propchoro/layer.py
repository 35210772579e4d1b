"""Proportional symbols layer colored by a choropleth classification."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Sequence

from .binder import LayerDataRepository, bind_frame
from .classify import classify_colors
from .config import AppConfig, BaseMapConfig, ImageConfig
from .errors import ConfigurationError
from .legend_render import (
    SIZE_LEGEND_STYLES,
    ColorLegendStyle,
    SizeLegendStyle,
    draw_color_legend,
    draw_size_legend,
    normalize_legend_position,
)
from .legends import reconcile_color_legend, reconcile_size_legend
from .models import (
    ClassificationRequest,
    ClassificationResult,
    ColorLegendSpec,
    Record,
    RecordSet,
    SizeLegendSpec,
    SizeResult,
    SymbolGeometry,
)
from .shapes import resolve_symbol_shape
from .sizing import scale_sizes
from .symbols import draw_symbols, symbol_geometries, units_per_inch
from .util import ensure_output_dirs, file_digest, write_summary

_LOGGER = logging.getLogger("propchoro.layer")

_CANVAS_PADDING_RATIO = 0.05


@dataclass(frozen=True, slots=True)
class LayerRequest:
    """Every parameter of one layer call, defaults already resolved."""

    symbols: str = "circle"
    inches: float = 0.3
    fixmax: float | None = None
    border: str = "#333333"
    lwd: float = 1.0
    classification: ClassificationRequest = field(default_factory=ClassificationRequest)
    no_data_color: str = "white"
    size_legend: SizeLegendStyle = field(default_factory=SizeLegendStyle)
    color_legend: ColorLegendStyle = field(default_factory=ColorLegendStyle)

    @classmethod
    def for_fields(cls, var: str, var2: str, **overrides: Any) -> LayerRequest:
        """Request whose legend titles default to the mapped field names."""
        request = cls(**overrides)
        size_legend = request.size_legend
        color_legend = request.color_legend
        if not size_legend.title:
            size_legend = replace(size_legend, title=var)
        if not color_legend.title:
            color_legend = replace(color_legend, title=var2)
        return replace(request, size_legend=size_legend, color_legend=color_legend)


@dataclass(frozen=True, slots=True)
class LayerResult:
    size_result: SizeResult
    classification: ClassificationResult
    size_legend: SizeLegendSpec
    color_legend: ColorLegendSpec
    geometries: tuple[SymbolGeometry, ...]

    @property
    def visible_count(self) -> int:
        return sum(1 for geometry in self.geometries if not geometry.is_reference)


def _validate_request(request: LayerRequest) -> None:
    normalize_legend_position(request.size_legend.pos)
    normalize_legend_position(request.color_legend.pos)
    if request.size_legend.style not in SIZE_LEGEND_STYLES:
        raise ConfigurationError(f"Size legend style must be one of {SIZE_LEGEND_STYLES}")
    if request.lwd < 0:
        raise ConfigurationError("Border width must be >= 0")


def _check_colors(request: LayerRequest, classification: ClassificationResult) -> None:
    from matplotlib.colors import to_rgba

    named = {
        "border": request.border,
        "no_data_color": request.no_data_color,
        "size_legend.color": request.size_legend.color,
        "size_legend.border": request.size_legend.border,
        "color_legend.border": request.color_legend.border,
    }
    named.update({f"class {idx + 1}": color for idx, color in enumerate(classification.palette_colors)})
    for name, color in named.items():
        try:
            to_rgba(color)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid color for {name}: {color!r}") from exc


def setup_canvas(ax: Any, bounds: tuple[float, float, float, float]) -> None:
    """Blank map canvas: equal aspect, no axes, limits on `bounds`."""
    xmin, ymin, xmax, ymax = bounds
    pad_x = (xmax - xmin) * _CANVAS_PADDING_RATIO or 1.0
    pad_y = (ymax - ymin) * _CANVAS_PADDING_RATIO or 1.0
    ax.set_xlim(xmin - pad_x, xmax + pad_x)
    ax.set_ylim(ymin - pad_y, ymax + pad_y)
    ax.set_aspect("equal", adjustable="datalim")
    ax.axis("off")


def _freeze_limits(ax: Any) -> None:
    ax.apply_aspect()
    ax.set_xlim(*ax.get_xlim())
    ax.set_ylim(*ax.get_ylim())
    ax.set_autoscale_on(False)


def prop_symbols_choro_layer(
    ax: Any,
    records: RecordSet | Sequence[Record],
    request: LayerRequest,
    *,
    add: bool = True,
    bounds: tuple[float, float, float, float] | None = None,
) -> LayerResult:
    """Draw proportional symbols colored by class, then both legends.

    Everything that can fail on input is resolved before the canvas is set up
    or the first artist is added: a rejected call leaves `ax` untouched.
    """
    items = tuple(records.records if isinstance(records, RecordSet) else records)
    shape = resolve_symbol_shape(request.symbols)
    _validate_request(request)

    classification = classify_colors(
        [record.color_value for record in items],
        request.classification,
    )
    _check_colors(request, classification)
    size_result = scale_sizes(items, inches=request.inches, fixmax=request.fixmax, symbols=shape)
    size_spec = reconcile_size_legend(size_result)
    color_spec = reconcile_color_legend(
        classification,
        no_data_label=request.color_legend.nodata_label,
        no_data_color=request.no_data_color,
    )

    if not add:
        if bounds is None:
            bounds = RecordSet(records=items).bounds
        setup_canvas(ax, bounds)
    _freeze_limits(ax)
    units = units_per_inch(ax)

    geometries = symbol_geometries(
        items,
        size_result,
        classification,
        shape=shape,
        no_data_color=request.no_data_color,
        border_color=request.border,
        border_width=request.lwd,
        units=units,
    )
    _LOGGER.debug(
        "Layer: %d symbols (%s), fixmax=%s, reference=%s, classes=%d, no_data=%s",
        len(items),
        shape.name,
        size_result.fixmax,
        size_result.reference_inserted,
        classification.nclass,
        color_spec.no_data,
    )

    draw_symbols(ax, geometries)
    draw_size_legend(ax, size_spec, request.size_legend, units=units)
    draw_color_legend(ax, color_spec, request.color_legend, units=units)
    return LayerResult(
        size_result=size_result,
        classification=classification,
        size_legend=size_spec,
        color_legend=color_spec,
        geometries=geometries,
    )


def request_from_config(cfg: AppConfig) -> LayerRequest:
    cls_cfg = cfg.classification
    legend = cfg.legend
    return LayerRequest.for_fields(
        cfg.input.var,
        cfg.input.var2,
        symbols=cfg.symbols.kind,
        inches=cfg.symbols.inches,
        fixmax=cfg.symbols.fixmax,
        border=cfg.symbols.border,
        lwd=cfg.symbols.lwd,
        classification=ClassificationRequest(
            method=cls_cfg.method,
            nclass=cls_cfg.nclass,
            breaks=cls_cfg.breaks,
            colors=cls_cfg.colors,
            palette=cls_cfg.palette,
        ),
        no_data_color=cls_cfg.no_data_color,
        size_legend=SizeLegendStyle(
            pos=legend.size.pos,
            title=legend.size.title or "",
            title_cex=legend.title_cex,
            values_cex=legend.values_cex,
            values_rnd=legend.size.values_rnd,
            style=legend.size.style,
            frame=legend.size.frame,
        ),
        color_legend=ColorLegendStyle(
            pos=legend.color.pos,
            title=legend.color.title or "",
            title_cex=legend.title_cex,
            values_cex=legend.values_cex,
            values_rnd=legend.color.values_rnd,
            nodata_label=legend.color.nodata_label,
            frame=legend.color.frame,
            border=legend.color.border,
            horiz=legend.color.horiz,
        ),
    )


def render_layer_figure(
    frame: Any,
    records: RecordSet,
    request: LayerRequest,
    *,
    image: ImageConfig,
    base: BaseMapConfig,
    output_path: Path,
) -> LayerResult:
    """Render base geometry plus the layer into an image file."""
    plt = _require_matplotlib()
    fig, ax = plt.subplots(
        figsize=(image.width_px / image.dpi, image.height_px / image.dpi),
        dpi=image.dpi,
    )
    fig.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
    transparent = image.background.casefold() == "transparent"
    try:
        if not transparent:
            fig.patch.set_facecolor(image.background)
            ax.set_facecolor(image.background)
        bounds = tuple(float(v) for v in frame.total_bounds)
        setup_canvas(ax, bounds)  # type: ignore[arg-type]
        if base.draw:
            frame.plot(
                ax=ax,
                color=base.fill,
                edgecolor=base.border,
                linewidth=base.line_width,
                aspect="equal",
                zorder=1,
            )
        result = prop_symbols_choro_layer(ax, records, request, add=True)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=image.dpi, format=image.format, transparent=transparent)
        return result
    finally:
        plt.close(fig)


@dataclass(slots=True)
class RenderLayerReport:
    output_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def layer_summary(result: LayerResult) -> dict[str, Any]:
    size = result.size_result
    return {
        "symbols": size.symbols,
        "inches": size.inches,
        "fixmax": size.fixmax,
        "reference_inserted": size.reference_inserted,
        "symbols_drawn": result.visible_count,
        "size_legend": [
            {"value": value, "size_in": size_in} for value, size_in in result.size_legend.ticks
        ],
        "breaks": list(result.color_legend.breaks),
        "palette": list(result.color_legend.palette_colors),
        "no_data": result.color_legend.no_data,
    }


def run_render_layer(cfg: AppConfig) -> RenderLayerReport:
    """Load the configured dataset, render the layer and write its summary."""
    report = RenderLayerReport(output_path=cfg.output.path)
    t0 = time.perf_counter()

    repo = LayerDataRepository(cfg.input.path, cfg.input.data_path)
    try:
        frame = repo.load_geometry()
        table = repo.load_table()
    except Exception as exc:
        report.add_error(f"Failed loading layer data '{cfg.input.path}': {exc}")
        return report
    report.add_info(f"Loaded {len(frame)} features from {cfg.input.path}")

    try:
        records = bind_frame(
            frame,
            var=cfg.input.var,
            var2=cfg.input.var2,
            df=table,
            frame_id=cfg.input.id_field,
            df_id=cfg.input.data_id_field,
        )
    except Exception as exc:
        report.add_error(f"Attribute binding failed: {exc}")
        return report
    report.add_info(f"Bound {len(records)} records ({cfg.input.var} x {cfg.input.var2})")
    if len(records) < len(frame):
        report.add_warning(
            f"{len(frame) - len(records)} features omitted (missing or zero '{cfg.input.var}')"
        )

    try:
        request = request_from_config(cfg)
        result = render_layer_figure(
            frame,
            records,
            request,
            image=cfg.image,
            base=cfg.base,
            output_path=cfg.output.path,
        )
    except Exception as exc:
        report.add_error(f"Layer rendering failed: {exc}")
        return report

    summary = layer_summary(result)
    summary["output_sha256"] = file_digest(cfg.output.path)
    report.summary = summary
    if result.size_result.fixmax < max(records.size_values):
        report.add_warning(
            f"fixmax={result.size_result.fixmax} is below the data maximum; "
            "some symbols exceed the nominal maximum size"
        )
    if cfg.output.summary_json is not None:
        ensure_output_dirs(cfg.output.summary_json)
        write_summary(cfg.output.summary_json, summary)
        report.add_info(f"Layer summary written to {cfg.output.summary_json}")

    elapsed = time.perf_counter() - t0
    _LOGGER.info("[render] built %s in %.2fs", cfg.output.path.name, elapsed)
    report.add_info(f"Layer written to {cfg.output.path}")
    return report


def format_render_lines(report: RenderLayerReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Layer rendering completed with no errors.")
    return lines


def _require_matplotlib() -> Any:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for layer rendering") from exc
    return plt
