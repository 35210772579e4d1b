"""Symbol geometry emission and drawing."""

from __future__ import annotations

from typing import Any, Sequence

from .models import ClassificationResult, Record, SizeResult, SymbolGeometry
from .shapes import SymbolShape

NO_FILL = "none"
SYMBOL_ZORDER = 3


def units_per_inch(ax: Any) -> tuple[float, float]:
    """Map units covered by one inch on the axes, along x and y."""
    ax.apply_aspect()
    bbox = ax.get_position()
    fig_w, fig_h = ax.figure.get_size_inches()
    width_in = bbox.width * fig_w
    height_in = bbox.height * fig_h
    x0, x1 = ax.get_xlim()
    y0, y1 = ax.get_ylim()
    return (abs(x1 - x0) / width_in, abs(y1 - y0) / height_in)


def symbol_geometries(
    records: Sequence[Record],
    size_result: SizeResult,
    classification: ClassificationResult,
    *,
    shape: SymbolShape,
    no_data_color: str,
    border_color: str,
    border_width: float,
    units: tuple[float, float],
) -> tuple[SymbolGeometry, ...]:
    """Resolve every drawn symbol to a patch, the reference symbol first."""
    out: list[SymbolGeometry] = []
    inches = size_result.inches

    ref = size_result.reference
    if ref is not None:
        patch, cx, cy, width, height = shape.emit(ref.x, ref.y, ref.size, inches, units)
        out.append(
            SymbolGeometry(
                patch=patch,
                x=cx,
                y=cy,
                width=width,
                height=height,
                fill=NO_FILL,
                border=NO_FILL,
                line_width=0.0,
                is_reference=True,
            )
        )

    for record, size, color in zip(records, size_result.record_sizes, classification.record_colors):
        patch, cx, cy, width, height = shape.emit(record.x, record.y, size, inches, units)
        out.append(
            SymbolGeometry(
                patch=patch,
                x=cx,
                y=cy,
                width=width,
                height=height,
                fill=color if color is not None else no_data_color,
                border=border_color,
                line_width=border_width,
            )
        )
    return tuple(out)


def make_patch(geometry: SymbolGeometry, *, zorder: float = SYMBOL_ZORDER) -> Any:
    from matplotlib.patches import Circle, Rectangle

    style = {
        "facecolor": geometry.fill,
        "edgecolor": geometry.border,
        "linewidth": geometry.line_width,
        "zorder": zorder,
    }
    if geometry.patch == "circle":
        return Circle((geometry.x, geometry.y), radius=geometry.width, **style)
    return Rectangle(
        (geometry.x - geometry.width / 2.0, geometry.y - geometry.height / 2.0),
        geometry.width,
        geometry.height,
        **style,
    )


def draw_symbols(ax: Any, geometries: Sequence[SymbolGeometry]) -> list[Any]:
    """Add patches to `ax` in order. Later symbols draw over earlier ones."""
    # Build everything first so a bad color fails before the axes is touched.
    patches = [make_patch(geometry) for geometry in geometries]
    for patch in patches:
        ax.add_patch(patch)
    return patches
