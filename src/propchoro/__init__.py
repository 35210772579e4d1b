"""Proportional symbols layer colored by a choropleth classification."""

from .binder import bind_frame, bind_records
from .classify import classify_colors, get_breaks
from .errors import ClassificationError, ConfigurationError, DataAlignmentError
from .layer import LayerRequest, LayerResult, prop_symbols_choro_layer
from .legends import reconcile_color_legend, reconcile_size_legend
from .models import ClassificationRequest, Record, RecordSet
from .sizing import scale_sizes

__all__ = [
    "ClassificationError",
    "ClassificationRequest",
    "ConfigurationError",
    "DataAlignmentError",
    "LayerRequest",
    "LayerResult",
    "Record",
    "RecordSet",
    "bind_frame",
    "bind_records",
    "classify_colors",
    "get_breaks",
    "prop_symbols_choro_layer",
    "reconcile_color_legend",
    "reconcile_size_legend",
    "scale_sizes",
]
