"""Legend reconciliation for the size and color encodings."""

from __future__ import annotations

import numpy as np

from .models import ClassificationResult, ColorLegendSpec, SizeLegendSpec, SizeResult

SIZE_LEGEND_TICKS = 4


def reconcile_size_legend(size_result: SizeResult) -> SizeLegendSpec:
    """Four ticks evenly spaced by value, from `fixmax` down to zero.

    Tick sizes run from `inches` down to the smallest plotted symbol, so the
    top tick always reads (`fixmax`, `inches`) and the bottom tick is never a
    degenerate zero-size symbol unless a plotted symbol is.
    """
    min_size = min(size_result.plotted_sizes)
    values = np.linspace(size_result.fixmax, 0.0, SIZE_LEGEND_TICKS)
    sizes = np.linspace(size_result.inches, min_size, SIZE_LEGEND_TICKS)
    return SizeLegendSpec(
        symbols=size_result.symbols,
        inches=size_result.inches,
        values=tuple(float(v) for v in values),
        sizes=tuple(float(s) for s in sizes),
    )


def reconcile_color_legend(
    classification: ClassificationResult,
    *,
    no_data_label: str = "no data",
    no_data_color: str = "white",
) -> ColorLegendSpec:
    return ColorLegendSpec(
        breaks=classification.breaks,
        palette_colors=classification.palette_colors,
        no_data=classification.has_unclassified,
        no_data_label=no_data_label,
        no_data_color=no_data_color,
    )
