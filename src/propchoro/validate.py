"""Validation layer for config and input datasets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from .binder import LayerDataRepository
from .classify import BREAK_METHODS, palette
from .config import AppConfig
from .errors import ConfigurationError
from .legend_render import normalize_legend_position


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Top-level config and input dataset validator."""

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg

    def run(self, *, strict_data_files: bool = False) -> ValidationReport:
        report = ValidationReport()
        self._validate_paths(report)
        self._validate_classification(report)
        self._validate_legends(report)
        self._validate_dataset(report, strict_data_files=strict_data_files)
        return report

    def _validate_paths(self, report: ValidationReport) -> None:
        if not self.cfg.input.path.exists():
            report.add_error(f"Missing input dataset: {self.cfg.input.path}")
        data_path = self.cfg.input.data_path
        if data_path is not None and not data_path.exists():
            report.add_error(f"Missing attribute table: {data_path}")

    def _validate_classification(self, report: ValidationReport) -> None:
        cls_cfg = self.cfg.classification
        if cls_cfg.breaks is None and cls_cfg.method not in BREAK_METHODS:
            report.add_error(
                f"Unknown classification method '{cls_cfg.method}'; expected one of: "
                + ", ".join(sorted(BREAK_METHODS))
            )
        if cls_cfg.breaks is not None:
            breaks = cls_cfg.breaks
            if len(breaks) < 2:
                report.add_error("classification.breaks needs at least two values")
            elif any(right < left for left, right in zip(breaks, breaks[1:])):
                report.add_error("classification.breaks must be sorted in non-decreasing order")
            if cls_cfg.colors is not None and len(cls_cfg.colors) != len(breaks) - 1:
                report.add_error(
                    f"classification.colors has {len(cls_cfg.colors)} entries; "
                    f"{len(breaks) - 1} expected for {len(breaks)} breaks"
                )

        colors_to_check = [cls_cfg.no_data_color, self.cfg.symbols.border]
        if cls_cfg.colors is not None:
            colors_to_check.extend(cls_cfg.colors)
        else:
            try:
                palette(cls_cfg.palette, 1)
            except ConfigurationError as exc:
                report.add_error(str(exc))
        bad = [color for color in colors_to_check if not _is_color_like(color)]
        if bad:
            report.add_error("Invalid color values: " + ", ".join(bad))

    def _validate_legends(self, report: ValidationReport) -> None:
        for name, pos in (
            ("legend.size.pos", self.cfg.legend.size.pos),
            ("legend.color.pos", self.cfg.legend.color.pos),
        ):
            try:
                resolved = normalize_legend_position(pos)
            except ConfigurationError as exc:
                report.add_error(f"{name}: {exc}")
                continue
            if resolved is None:
                report.add_info(f"{name} is 'n'; legend will not be drawn")

    def _validate_dataset(self, report: ValidationReport, *, strict_data_files: bool) -> None:
        if not self.cfg.input.path.exists():
            return
        data_path = self.cfg.input.data_path
        if data_path is not None and not data_path.exists():
            return
        repo = LayerDataRepository(self.cfg.input.path, data_path)
        try:
            frame = repo.load_geometry()
            table = repo.load_table()
        except Exception as exc:
            report.add_error(f"Failed loading layer data: {exc}")
            return
        report.add_info(f"Loaded {len(frame)} features from {self.cfg.input.path}")

        source = table if table is not None else frame
        var = self.cfg.input.var
        var2 = self.cfg.input.var2
        missing_fields = [name for name in (var, var2) if name not in source.columns]
        if missing_fields:
            cols = ", ".join(str(c) for c in source.columns)
            report.add_error(
                f"Fields not found: {', '.join(missing_fields)}. Available columns: {cols}"
            )
            return

        null_geometry = int(frame.geometry.isna().sum())
        if null_geometry:
            self._add_quality_issue(
                report,
                f"{null_geometry} features have no geometry and will be omitted",
                strict_data_files=strict_data_files,
            )

        size_values = _numeric(source[var])
        color_values = _numeric(source[var2])
        size_missing = int(size_values.isna().sum())
        size_zero = int((size_values == 0).sum())
        size_negative = int((size_values < 0).sum())
        if size_missing or size_zero:
            report.add_info(
                f"'{var}': {size_missing} missing and {size_zero} zero values will be omitted"
            )
        if size_negative:
            self._add_quality_issue(
                report,
                f"'{var}': {size_negative} negative values will be drawn with size 0",
                strict_data_files=strict_data_files,
            )
        if int(size_values.notna().sum()) == 0 or not (size_values > 0).any():
            if self.cfg.symbols.fixmax is None:
                report.add_error(f"'{var}' has no positive values and no fixmax is configured")

        color_missing = int(color_values.isna().sum())
        if color_missing:
            report.add_info(
                f"'{var2}': {color_missing} missing values will use the no-data color"
            )
        if int(color_values.notna().sum()) == 0 and self.cfg.classification.breaks is None:
            report.add_error(f"'{var2}' has no numeric values to classify")

        fixmax = self.cfg.symbols.fixmax
        if fixmax is not None and size_values.notna().any() and fixmax < float(size_values.max()):
            report.add_warning(
                f"symbols.fixmax={fixmax} is below the maximum of '{var}' ({float(size_values.max())}); "
                "symbols above the nominal size will be drawn"
            )

    def _add_quality_issue(
        self,
        report: ValidationReport,
        msg: str,
        *,
        strict_data_files: bool,
    ) -> None:
        if strict_data_files:
            report.add_error(msg)
        else:
            report.add_warning(msg)


def _numeric(series: Any) -> Any:
    import pandas as pd

    return pd.to_numeric(series, errors="coerce")


def _is_color_like(value: str) -> bool:
    from matplotlib.colors import is_color_like

    return bool(is_color_like(value))


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    if report.infos:
        for info in report.infos:
            yield f"[INFO] {info}"
    if report.warnings:
        for warning in report.warnings:
            yield f"[WARN] {warning}"
    if report.errors:
        for error in report.errors:
            yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."
