"""Geometry ingestion and attribute binding."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Sequence

from .errors import DataAlignmentError
from .models import Record, RecordSet, is_missing

_LOGGER = logging.getLogger("propchoro.binder")


def _first_existing_column(columns: Iterable[str], candidates: Sequence[str]) -> str | None:
    existing = {str(col).lower(): str(col) for col in columns}
    for candidate in candidates:
        match = existing.get(candidate.lower())
        if match:
            return match
    return None


class LayerDataRepository:
    """File access for the layer geometry and an optional attribute table."""

    def __init__(self, geometry_path: Path, data_path: Path | None = None) -> None:
        self.geometry_path = geometry_path
        self.data_path = data_path

    def load_geometry(self) -> Any:
        """Load features via GeoPandas."""
        gpd = _require_geopandas()
        return gpd.read_file(self.geometry_path)

    def load_table(self) -> Any | None:
        """Load the attribute table (CSV) joined onto the geometry, if configured."""
        if self.data_path is None:
            return None
        pd = _require_pandas()
        return pd.read_csv(self.data_path)


def bind_records(
    positions: Sequence[tuple[float, float]],
    size_values: Sequence[Any],
    color_values: Sequence[Any],
    keys: Sequence[str] | None = None,
    *,
    size_field: str = "size",
    color_field: str = "color",
) -> RecordSet:
    """Zip aligned sequences into a record set; any length mismatch is fatal.

    Missing size values become 0 (no symbol), missing color values become None.
    """
    lengths = {
        "positions": len(positions),
        size_field: len(size_values),
        color_field: len(color_values),
    }
    if keys is not None:
        lengths["keys"] = len(keys)
    if len(set(lengths.values())) != 1:
        detail = ", ".join(f"{name}={count}" for name, count in lengths.items())
        raise DataAlignmentError(f"Record sequences are not aligned: {detail}")

    records: list[Record] = []
    for idx, ((x, y), size_value, color_value) in enumerate(zip(positions, size_values, color_values)):
        records.append(
            Record(
                x=float(x),
                y=float(y),
                size_value=0.0 if is_missing(size_value) else float(size_value),
                color_value=None if is_missing(color_value) else float(color_value),
                key=keys[idx] if keys is not None else None,
            )
        )
    return RecordSet(records=tuple(records), size_field=size_field, color_field=color_field)


def bind_frame(
    frame: Any,
    *,
    var: str,
    var2: str,
    df: Any | None = None,
    frame_id: str | None = None,
    df_id: str | None = None,
    drop_empty: bool = True,
    order_by_size: bool = True,
) -> RecordSet:
    """Bind a GeoDataFrame (optionally joined with `df`) into anchored records.

    Polygon features are anchored on their centroid (largest part for
    multipolygons). With `drop_empty`, features without a size value or with a
    zero size value are omitted. With `order_by_size`, records are sorted by
    decreasing size so that small symbols are drawn over large ones.
    """
    if df is not None:
        frame = _join_table(frame, df, frame_id=frame_id, df_id=df_id)
        key_col: str | None = _resolve_id_column(frame, frame_id)
    else:
        key_col = _resolve_id_column(frame, frame_id) if frame_id is not None else None

    for field in (var, var2):
        if field not in frame.columns:
            cols = ", ".join(str(c) for c in frame.columns)
            raise DataAlignmentError(f"Field '{field}' not found. Available columns: {cols}")

    pd = _require_pandas()
    sizes = pd.to_numeric(frame[var], errors="coerce").tolist()
    colors = pd.to_numeric(frame[var2], errors="coerce").tolist()
    geometries = list(frame.geometry)
    keys = [str(value) for value in frame[key_col]] if key_col else [str(idx) for idx in frame.index]

    rows: list[tuple[tuple[float, float], float, Any, str]] = []
    skipped_geometry = 0
    skipped_size = 0
    for geometry, size_value, color_value, key in zip(geometries, sizes, colors, keys):
        if drop_empty and (is_missing(size_value) or float(size_value) == 0.0):
            skipped_size += 1
            continue
        anchor = anchor_point(geometry)
        if anchor is None:
            skipped_geometry += 1
            continue
        rows.append((anchor, 0.0 if is_missing(size_value) else float(size_value), color_value, key))

    if skipped_size or skipped_geometry:
        _LOGGER.info(
            "Omitted %d features without a size value and %d without geometry",
            skipped_size,
            skipped_geometry,
        )
    if not rows:
        raise DataAlignmentError(f"No features left to draw for '{var}'")

    if order_by_size:
        rows.sort(key=lambda row: abs(row[1]), reverse=True)

    return bind_records(
        [row[0] for row in rows],
        [row[1] for row in rows],
        [row[2] for row in rows],
        [row[3] for row in rows],
        size_field=var,
        color_field=var2,
    )


def anchor_point(geometry: Any) -> tuple[float, float] | None:
    """Symbol anchor of a feature: the point itself or a centroid."""
    if geometry is None or getattr(geometry, "is_empty", True):
        return None
    geom_type = getattr(geometry, "geom_type", "")
    if geom_type == "Point":
        return (float(geometry.x), float(geometry.y))
    if geom_type == "MultiPolygon":
        geometry = max(geometry.geoms, key=lambda part: part.area)
    centroid = geometry.centroid
    return (float(centroid.x), float(centroid.y))


def _resolve_id_column(frame: Any, requested: str | None) -> str:
    columns = [str(col) for col in frame.columns if str(col) != _geometry_name(frame)]
    if requested is None:
        if not columns:
            raise DataAlignmentError("No attribute column available as identifier")
        return columns[0]
    match = _first_existing_column(columns, [requested])
    if match is None:
        raise DataAlignmentError(
            f"Identifier column '{requested}' not found. Available columns: {', '.join(columns)}"
        )
    return match


def _geometry_name(frame: Any) -> str | None:
    geometry = getattr(frame, "geometry", None)
    return getattr(geometry, "name", None)


def _join_table(frame: Any, df: Any, *, frame_id: str | None, df_id: str | None) -> Any:
    left_id = _resolve_id_column(frame, frame_id)
    right_id = _resolve_id_column(df, df_id)
    geometry_col = _geometry_name(frame) or "geometry"
    left = frame[[left_id, geometry_col]]
    right = df.drop(columns=[col for col in df.columns if col == geometry_col])

    left_keys = left[left_id].astype(str)
    right_keys = right[right_id].astype(str)
    matched = int(left_keys.isin(set(right_keys)).sum())
    if matched == 0:
        raise DataAlignmentError(
            f"No identifiers matched between geometry '{left_id}' and table '{right_id}'"
        )
    if matched < len(left):
        _LOGGER.warning("%d of %d features have no matching table row", len(left) - matched, len(left))

    left = left.assign(_join_key=left_keys)
    right = right.assign(_join_key=right_keys)
    if right_id == left_id:
        right = right.drop(columns=[right_id])
    merged = left.merge(right, on="_join_key", how="left").drop(columns=["_join_key"])
    return merged


def _require_geopandas() -> Any:
    try:
        import geopandas as gpd
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("geopandas is required for layer data loading") from exc
    return gpd


def _require_pandas() -> Any:
    try:
        import pandas as pd
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pandas is required for attribute binding") from exc
    return pd
