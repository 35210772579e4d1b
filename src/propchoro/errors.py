"""Error taxonomy for layer rendering."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid rendering parameters (sizes, symbol kind, colors, positions)."""


class DataAlignmentError(ValueError):
    """Geometry and attribute sequences cannot be bound into one record set."""


class ClassificationError(ValueError):
    """The classification engine rejected its input."""
