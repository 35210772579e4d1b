"""Proportional symbol sizing."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from .errors import ConfigurationError, DataAlignmentError
from .models import Record, ReferenceRecord, SizeResult
from .shapes import SymbolShape, resolve_symbol_shape

_LOGGER = logging.getLogger("propchoro.sizing")


def resolve_fixmax(size_values: Sequence[float], fixmax: float | None) -> float:
    """Return the value mapped to the full `inches` size."""
    if fixmax is None:
        if not size_values:
            raise ConfigurationError("Cannot derive fixmax from an empty record set")
        fixmax = max(float(value) for value in size_values)
    fixmax = float(fixmax)
    if not fixmax > 0:
        raise ConfigurationError(f"fixmax must be > 0 (got {fixmax})")
    return fixmax


def _size_value(record: Record, idx: int) -> float:
    value = float(record.size_value)
    if not math.isfinite(value):
        name = record.key if record.key is not None else f"#{idx}"
        raise DataAlignmentError(f"Record {name} has no finite size value (got {value})")
    return value


def scale_sizes(
    records: Sequence[Record],
    *,
    inches: float,
    fixmax: float | None = None,
    symbols: str | SymbolShape = "circle",
) -> SizeResult:
    """Map each record's size value to a symbol size in inches.

    Circles and squares are area-true, bars are length-true. When no real
    record reaches `inches` (explicit `fixmax` above the data), an invisible
    reference entry of size `inches` is attached to the result so that the
    legend can still show `fixmax`.
    """
    shape = resolve_symbol_shape(symbols)
    inches = float(inches)
    if not inches > 0:
        raise ConfigurationError(f"inches must be > 0 (got {inches})")

    if not records:
        raise ConfigurationError("No records to size")

    values = [_size_value(record, idx) for idx, record in enumerate(records)]
    data_max = max(values)
    fixmax = resolve_fixmax(values, fixmax)
    if fixmax < data_max:
        _LOGGER.warning(
            "fixmax=%s is below the data maximum %s; symbols larger than %.3f in will be drawn",
            fixmax,
            data_max,
            inches,
        )

    sizes = tuple(shape.scale(value, fixmax, inches) for value in values)
    size_max = max(sizes)

    reference: ReferenceRecord | None = None
    if inches > size_max:
        first = records[0]
        reference = ReferenceRecord(x=first.x, y=first.y, size_value=fixmax, size=inches)
        _LOGGER.debug(
            "Largest symbol %.4f in < %.4f in; reference symbol added for fixmax=%s",
            size_max,
            inches,
            fixmax,
        )

    return SizeResult(
        symbols=shape.name,
        inches=inches,
        fixmax=fixmax,
        record_sizes=sizes,
        reference=reference,
    )
