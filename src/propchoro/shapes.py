"""Closed set of proportional symbol kinds.

Each kind carries its scale law (value -> size in inches) and its geometry
emitter (anchor + size -> patch in map units). The kind is resolved once per
layer call and reused for every record.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

from .errors import ConfigurationError

# (patch, centre_x, centre_y, width, height) in map units
PatchBox = tuple[str, float, float, float, float]
ScaleLaw = Callable[[float, float, float], float]
GeometryEmitter = Callable[[float, float, float, float, tuple[float, float]], PatchBox]

BAR_WIDTH_DIVISOR = 7.0


def _area_true(value: float, fixmax: float, inches: float) -> float:
    return inches * math.sqrt(max(value, 0.0) / fixmax)


def _length_true(value: float, fixmax: float, inches: float) -> float:
    return inches * (max(value, 0.0) / fixmax)


def _emit_circle(
    x: float, y: float, size: float, inches: float, units: tuple[float, float]
) -> PatchBox:
    return ("circle", x, y, size * units[0], size * units[0])


def _emit_square(
    x: float, y: float, size: float, inches: float, units: tuple[float, float]
) -> PatchBox:
    return ("rectangle", x, y, size * units[0], size * units[1])


def _emit_bar(
    x: float, y: float, size: float, inches: float, units: tuple[float, float]
) -> PatchBox:
    height = size * units[1]
    # bars rise from the anchor point instead of being centred on it
    return ("rectangle", x, y + height / 2.0, inches / BAR_WIDTH_DIVISOR * units[0], height)


@dataclass(frozen=True, slots=True)
class SymbolShape:
    name: str
    scale: ScaleLaw
    emit: GeometryEmitter


CIRCLE = SymbolShape(name="circle", scale=_area_true, emit=_emit_circle)
SQUARE = SymbolShape(name="square", scale=_area_true, emit=_emit_square)
BAR = SymbolShape(name="bar", scale=_length_true, emit=_emit_bar)

SYMBOL_SHAPES: dict[str, SymbolShape] = {shape.name: shape for shape in (CIRCLE, SQUARE, BAR)}


def resolve_symbol_shape(kind: str | SymbolShape) -> SymbolShape:
    if isinstance(kind, SymbolShape):
        return kind
    shape = SYMBOL_SHAPES.get(str(kind).strip().casefold())
    if shape is None:
        raise ConfigurationError(
            f"Unknown symbol kind '{kind}'; expected one of: " + ", ".join(sorted(SYMBOL_SHAPES))
        )
    return shape
