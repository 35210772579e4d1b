"""Domain models shared across pipeline modules."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


def is_missing(value: Any) -> bool:
    """True for None and NaN color/size values."""
    if value is None:
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


@dataclass(frozen=True, slots=True)
class Record:
    """One feature anchored at a point, carrying the two mapped values."""

    x: float
    y: float
    size_value: float
    color_value: float | None = None
    key: str | None = None

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def has_color_value(self) -> bool:
        return not is_missing(self.color_value)


@dataclass(frozen=True, slots=True)
class RecordSet:
    """Ordered, immutable set of bound records."""

    records: tuple[Record, ...]
    size_field: str = "size"
    color_field: str = "color"

    def __len__(self) -> int:
        return len(self.records)

    @property
    def size_values(self) -> tuple[float, ...]:
        return tuple(record.size_value for record in self.records)

    @property
    def color_values(self) -> tuple[float | None, ...]:
        return tuple(record.color_value for record in self.records)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(xmin, ymin, xmax, ymax) of the record anchors."""
        xs = [record.x for record in self.records]
        ys = [record.y for record in self.records]
        return (min(xs), min(ys), max(xs), max(ys))


@dataclass(frozen=True, slots=True)
class ReferenceRecord:
    """Invisible symbol standing for `fixmax` when no real symbol reaches `inches`."""

    x: float
    y: float
    size_value: float
    size: float


@dataclass(frozen=True, slots=True)
class ClassificationRequest:
    """Opaque classification parameters forwarded to the classifier."""

    method: str = "quantile"
    nclass: int | None = None
    breaks: tuple[float, ...] | None = None
    colors: tuple[str, ...] | None = None
    palette: str = "Blues"


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    breaks: tuple[float, ...]
    palette_colors: tuple[str, ...]
    record_colors: tuple[str | None, ...]
    no_data_mask: tuple[bool, ...]

    def __post_init__(self) -> None:
        if len(self.palette_colors) != len(self.breaks) - 1:
            raise ValueError(
                f"Expected {len(self.breaks) - 1} palette colors for {len(self.breaks)} breaks, "
                f"got {len(self.palette_colors)}"
            )
        if len(self.record_colors) != len(self.no_data_mask):
            raise ValueError("record_colors and no_data_mask must be aligned")

    @property
    def nclass(self) -> int:
        return len(self.palette_colors)

    @property
    def has_no_data(self) -> bool:
        return any(self.no_data_mask)

    @property
    def has_unclassified(self) -> bool:
        """Some record got no palette color: missing, or outside explicit breaks."""
        return any(color is None for color in self.record_colors)


@dataclass(frozen=True, slots=True)
class SizeResult:
    """Per-record physical sizes (inches) computed with one scale factor."""

    symbols: str
    inches: float
    fixmax: float
    record_sizes: tuple[float, ...]
    reference: ReferenceRecord | None = None

    @property
    def reference_inserted(self) -> bool:
        return self.reference is not None

    @property
    def max_requested_size(self) -> float:
        return self.inches

    @property
    def plotted_sizes(self) -> tuple[float, ...]:
        """Sizes of every drawn symbol, the reference first when present."""
        if self.reference is None:
            return self.record_sizes
        return (self.reference.size, *self.record_sizes)


@dataclass(frozen=True, slots=True)
class SizeLegendSpec:
    symbols: str
    inches: float
    values: tuple[float, ...]
    sizes: tuple[float, ...]

    @property
    def ticks(self) -> tuple[tuple[float, float], ...]:
        return tuple(zip(self.values, self.sizes))


@dataclass(frozen=True, slots=True)
class ColorLegendSpec:
    breaks: tuple[float, ...]
    palette_colors: tuple[str, ...]
    no_data: bool
    no_data_label: str
    no_data_color: str


@dataclass(frozen=True, slots=True)
class SymbolGeometry:
    """A drawable patch in map units.

    `width` is the radius for circles. `(x, y)` is always the patch centre.
    """

    patch: str
    x: float
    y: float
    width: float
    height: float
    fill: str
    border: str
    line_width: float
    is_reference: bool = False

    @property
    def visible(self) -> bool:
        return self.fill != "none" or (self.border != "none" and self.line_width > 0)
