"""Legend drawing for the size and color encodings.

Legends are laid out in inches (fonts, boxes, symbols) and placed in map
units, so they keep the same physical size as the symbols they describe.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .errors import ConfigurationError
from .models import ColorLegendSpec, SizeLegendSpec
from .shapes import BAR_WIDTH_DIVISOR

NO_LEGEND = "n"
LEGEND_POSITIONS = (
    "topleft",
    "top",
    "topright",
    "right",
    "bottomright",
    "bottom",
    "bottomleft",
    "left",
)
SIZE_LEGEND_STYLES = ("c", "e")

_POINTS_PER_CEX = 12.0
_PAD_IN = 0.08
_GAP_IN = 0.06
_LEADER_IN = 0.1
_MARGIN_RATIO = 0.02
_SIZE_LEGEND_ZORDER = 10
_COLOR_LEGEND_ZORDER = 12

LegendPosition = str | tuple[float, float]


@dataclass(frozen=True, slots=True)
class SizeLegendStyle:
    pos: LegendPosition = "right"
    title: str = ""
    title_cex: float = 0.8
    values_cex: float = 0.6
    values_rnd: int = 0
    style: str = "c"
    frame: bool = False
    color: str = "grey"
    border: str = "#333333"
    line_width: float = 0.7


@dataclass(frozen=True, slots=True)
class ColorLegendStyle:
    pos: LegendPosition = "topright"
    title: str = ""
    title_cex: float = 0.8
    values_cex: float = 0.6
    values_rnd: int = 2
    nodata_label: str = "no data"
    frame: bool = False
    border: str = "black"
    horiz: bool = False


@dataclass(frozen=True, slots=True)
class _Box:
    """Legend box in inches: content size plus padding."""

    width: float
    height: float


def normalize_legend_position(pos: Any) -> LegendPosition | None:
    """Validate a legend position; None means the legend is not drawn."""
    if isinstance(pos, str):
        key = pos.strip().casefold()
        if key == NO_LEGEND:
            return None
        if key not in LEGEND_POSITIONS:
            raise ConfigurationError(
                f"Invalid legend position '{pos}'; expected one of: "
                + ", ".join(LEGEND_POSITIONS)
                + f", '{NO_LEGEND}' or an (x, y) pair"
            )
        return key
    if isinstance(pos, Sequence) and len(pos) == 2:
        try:
            return (float(pos[0]), float(pos[1]))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid legend coordinates: {pos!r}") from exc
    raise ConfigurationError(f"Invalid legend position: {pos!r}")


def format_value(value: float, rnd: int) -> str:
    """Round like R's `round(x, digits)`; negative digits round to tens, hundreds..."""
    rounded = round(float(value), rnd)
    if rnd <= 0:
        return f"{int(rounded)}"
    return f"{rounded:.{rnd}f}"


def _points(cex: float) -> float:
    return cex * _POINTS_PER_CEX


class _TextMetrics:
    """Rendered text extents in inches, measured on the figure renderer."""

    def __init__(self, ax: Any) -> None:
        self._fig = ax.figure
        self._renderer = self._fig.canvas.get_renderer()
        self._to_inches = self._fig.dpi_scale_trans.inverted()

    def size(self, text: str, cex: float) -> tuple[float, float]:
        from matplotlib.text import Text

        if not text:
            return (0.0, 0.0)
        artist = Text(0.0, 0.0, text, fontsize=_points(cex))
        artist.set_figure(self._fig)
        bbox = artist.get_window_extent(renderer=self._renderer).transformed(self._to_inches)
        return (bbox.width, bbox.height)

    def width(self, text: str, cex: float) -> float:
        return self.size(text, cex)[0]

    def height(self, text: str, cex: float) -> float:
        return self.size(text, cex)[1]


def _anchor(
    ax: Any,
    pos: LegendPosition,
    box: _Box,
    units: tuple[float, float],
) -> tuple[float, float]:
    """Lower-left corner of the legend box in map units."""
    width = box.width * units[0]
    height = box.height * units[1]
    if isinstance(pos, tuple):
        # explicit coordinates give the top-left corner
        return (pos[0], pos[1] - height)

    x0, x1 = sorted(ax.get_xlim())
    y0, y1 = sorted(ax.get_ylim())
    mx = (x1 - x0) * _MARGIN_RATIO
    my = (y1 - y0) * _MARGIN_RATIO
    if "left" in pos:
        x = x0 + mx
    elif "right" in pos:
        x = x1 - mx - width
    else:
        x = (x0 + x1 - width) / 2.0
    if pos.startswith("top"):
        y = y1 - my - height
    elif pos.startswith("bottom"):
        y = y0 + my
    else:
        y = (y0 + y1 - height) / 2.0
    return (x, y)


def _draw_frame(ax: Any, origin: tuple[float, float], box: _Box, units: tuple[float, float], zorder: int) -> None:
    from matplotlib.patches import Rectangle

    ax.add_patch(
        Rectangle(
            origin,
            box.width * units[0],
            box.height * units[1],
            facecolor="white",
            edgecolor="black",
            linewidth=0.6,
            zorder=zorder - 0.5,
            clip_on=False,
        )
    )


def _draw_title(
    ax: Any,
    text: str,
    cex: float,
    origin: tuple[float, float],
    box: _Box,
    units: tuple[float, float],
    zorder: int,
) -> None:
    if not text:
        return
    ax.text(
        origin[0] + _PAD_IN * units[0],
        origin[1] + (box.height - _PAD_IN) * units[1],
        text,
        fontsize=_points(cex),
        ha="left",
        va="top",
        zorder=zorder,
        clip_on=False,
    )


def _symbol_extent_in(symbols: str, size: float, inches: float) -> tuple[float, float]:
    """(width, height) in inches of one legend symbol of `size`."""
    if symbols == "circle":
        return (2.0 * size, 2.0 * size)
    if symbols == "square":
        return (size, size)
    return (inches / BAR_WIDTH_DIVISOR, size)


def _size_legend_patch(
    symbols: str,
    left: float,
    bottom: float,
    size: float,
    column_width: float,
    inches: float,
    units: tuple[float, float],
    style: SizeLegendStyle,
    zorder: int,
) -> Any:
    from matplotlib.patches import Circle, Rectangle

    kwargs = {
        "facecolor": style.color,
        "edgecolor": style.border,
        "linewidth": style.line_width,
        "zorder": zorder,
        "clip_on": False,
    }
    width_in, height_in = _symbol_extent_in(symbols, size, inches)
    cx = left + column_width / 2.0 * units[0]
    if symbols == "circle":
        return Circle((cx, bottom + size * units[1]), radius=size * units[0], **kwargs)
    return Rectangle(
        (cx - width_in / 2.0 * units[0], bottom),
        width_in * units[0],
        height_in * units[1],
        **kwargs,
    )


def draw_size_legend(
    ax: Any,
    spec: SizeLegendSpec,
    style: SizeLegendStyle,
    *,
    units: tuple[float, float],
) -> None:
    """Draw the graduated-size key: nested symbols ("c") or a stacked list ("e")."""
    pos = normalize_legend_position(style.pos)
    if pos is None:
        return
    if style.style not in SIZE_LEGEND_STYLES:
        raise ConfigurationError(f"Size legend style must be one of {SIZE_LEGEND_STYLES}")

    zorder = _SIZE_LEGEND_ZORDER
    metrics = _TextMetrics(ax)
    labels = [format_value(value, style.values_rnd) for value in spec.values]
    label_w = max(metrics.width(label, style.values_cex) for label in labels)
    label_h = metrics.height("0", style.values_cex)
    extents = [_symbol_extent_in(spec.symbols, size, spec.inches) for size in spec.sizes]
    column_w = max(width for width, _ in extents)
    title_h = metrics.height(style.title, style.title_cex)

    if style.style == "c":
        body_h = max(max(height for _, height in extents), label_h)
        body_w = column_w + _LEADER_IN + _GAP_IN + label_w
    else:
        body_h = sum(max(height, label_h) for _, height in extents) + _GAP_IN * (len(extents) - 1)
        body_w = column_w + _GAP_IN + label_w
    box = _Box(
        width=max(body_w, metrics.width(style.title, style.title_cex)) + 2 * _PAD_IN,
        height=body_h + title_h + (_GAP_IN if title_h else 0.0) + 2 * _PAD_IN,
    )

    origin = _anchor(ax, pos, box, units)
    if style.frame:
        _draw_frame(ax, origin, box, units, zorder)
    _draw_title(ax, style.title, style.title_cex, origin, box, units, zorder)

    left = origin[0] + _PAD_IN * units[0]
    base = origin[1] + _PAD_IN * units[1]
    fontsize = _points(style.values_cex)

    if style.style == "c":
        # nested symbols share the baseline; leaders point at each symbol top
        label_x = left + (column_w + _LEADER_IN + _GAP_IN) * units[0]
        for label, size, (width_in, height_in) in zip(labels, spec.sizes, extents):
            ax.add_patch(
                _size_legend_patch(
                    spec.symbols, left, base, size, column_w, spec.inches, units, style, zorder
                )
            )
            top = base + height_in * units[1]
            if spec.symbols == "circle":
                x_from = left + column_w / 2.0 * units[0]
            else:
                x_from = left + (column_w + width_in) / 2.0 * units[0]
            ax.plot(
                [x_from, left + (column_w + _LEADER_IN) * units[0]],
                [top, top],
                color=style.border,
                linewidth=0.5,
                zorder=zorder,
                clip_on=False,
            )
            ax.text(label_x, top, label, fontsize=fontsize, ha="left", va="center", zorder=zorder, clip_on=False)
        return

    label_x = left + (column_w + _GAP_IN) * units[0]
    cursor = base + body_h * units[1]
    for label, size, (_, height_in) in zip(labels, spec.sizes, extents):
        row_h = max(height_in, label_h)
        row_bottom = cursor - row_h * units[1]
        sym_bottom = row_bottom + (row_h - height_in) / 2.0 * units[1]
        ax.add_patch(
            _size_legend_patch(
                spec.symbols, left, sym_bottom, size, column_w, spec.inches, units, style, zorder
            )
        )
        ax.text(
            label_x,
            row_bottom + row_h / 2.0 * units[1],
            label,
            fontsize=fontsize,
            ha="left",
            va="center",
            zorder=zorder,
            clip_on=False,
        )
        cursor = row_bottom - _GAP_IN * units[1]


def draw_color_legend(
    ax: Any,
    spec: ColorLegendSpec,
    style: ColorLegendStyle,
    *,
    units: tuple[float, float],
) -> None:
    """Draw classed color boxes with break labels and an optional no-data box."""
    from matplotlib.patches import Rectangle

    pos = normalize_legend_position(style.pos)
    if pos is None:
        return

    zorder = _COLOR_LEGEND_ZORDER
    metrics = _TextMetrics(ax)
    fontsize = _points(style.values_cex)
    labels = [format_value(value, style.values_rnd) for value in spec.breaks]
    label_w = max(metrics.width(label, style.values_cex) for label in labels)
    label_h = metrics.height("0", style.values_cex)
    nodata_w = metrics.width(spec.no_data_label, style.values_cex) if spec.no_data else 0.0
    title_h = metrics.height(style.title, style.title_cex)
    nclass = len(spec.palette_colors)
    cell_h = label_h * 1.4

    if style.horiz:
        cell_w = max(label_w + _GAP_IN, 0.3)
        body_w = nclass * cell_w + label_w / 2.0
        if spec.no_data:
            body_w += 2 * _GAP_IN + max(cell_w, nodata_w)
        body_h = cell_h + _GAP_IN + label_h
    else:
        cell_w = 0.25
        body_w = cell_w + _GAP_IN + max(label_w, nodata_w)
        body_h = nclass * cell_h + label_h / 2.0
        if spec.no_data:
            body_h += 2 * _GAP_IN + cell_h
    box = _Box(
        width=max(body_w, metrics.width(style.title, style.title_cex)) + 2 * _PAD_IN,
        height=body_h + title_h + (_GAP_IN if title_h else 0.0) + 2 * _PAD_IN,
    )

    origin = _anchor(ax, pos, box, units)
    if style.frame:
        _draw_frame(ax, origin, box, units, zorder)
    _draw_title(ax, style.title, style.title_cex, origin, box, units, zorder)

    left = origin[0] + _PAD_IN * units[0]
    base = origin[1] + _PAD_IN * units[1]
    cell = (cell_w * units[0], cell_h * units[1])

    def add_cell(x: float, y: float, color: str) -> None:
        ax.add_patch(
            Rectangle(
                (x, y),
                cell[0],
                cell[1],
                facecolor=color,
                edgecolor=style.border,
                linewidth=0.5,
                zorder=zorder,
                clip_on=False,
            )
        )

    def add_label(x: float, y: float, text: str, ha: str, va: str) -> None:
        ax.text(x, y, text, fontsize=fontsize, ha=ha, va=va, zorder=zorder, clip_on=False)

    if style.horiz:
        cells_bottom = base + (label_h + _GAP_IN) * units[1]
        for idx, color in enumerate(spec.palette_colors):
            add_cell(left + idx * cell[0], cells_bottom, color)
        for idx, label in enumerate(labels):
            add_label(left + idx * cell[0], cells_bottom - _GAP_IN * units[1], label, "center", "top")
        if spec.no_data:
            nd_x = left + nclass * cell[0] + 2 * _GAP_IN * units[0]
            add_cell(nd_x, cells_bottom, spec.no_data_color)
            add_label(nd_x + cell[0] / 2.0, cells_bottom - _GAP_IN * units[1], spec.no_data_label, "center", "top")
        return

    # lowest class at the bottom, labels on the class boundaries
    label_x = left + cell[0] + _GAP_IN * units[0]
    cells_bottom = base + label_h / 4.0 * units[1]
    if spec.no_data:
        add_cell(left, cells_bottom, spec.no_data_color)
        add_label(label_x, cells_bottom + cell[1] / 2.0, spec.no_data_label, "left", "center")
        cells_bottom += cell[1] + 2 * _GAP_IN * units[1]
    for idx, color in enumerate(spec.palette_colors):
        add_cell(left, cells_bottom + idx * cell[1], color)
    for idx, label in enumerate(labels):
        add_label(label_x, cells_bottom + idx * cell[1], label, "left", "center")
