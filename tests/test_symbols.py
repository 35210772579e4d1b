"""
Unit tests for symbol geometry emission.
"""

from __future__ import annotations

import pytest

from propchoro.classify import classify_colors
from propchoro.models import ClassificationRequest, Record
from propchoro.shapes import BAR, CIRCLE, SQUARE, resolve_symbol_shape
from propchoro.sizing import scale_sizes
from propchoro.symbols import make_patch, symbol_geometries

UNITS = (100.0, 100.0)


def _classification(records):
    return classify_colors(
        [record.color_value for record in records],
        ClassificationRequest(breaks=(0.0, 2.0, 4.0), colors=("#ff0000", "#0000ff")),
    )


def _geometries(records, shape, **size_kwargs):
    size_result = scale_sizes(records, symbols=shape, **size_kwargs)
    return symbol_geometries(
        records,
        size_result,
        _classification(records),
        shape=shape,
        no_data_color="white",
        border_color="black",
        border_width=0.5,
        units=UNITS,
    )


class TestSymbolGeometries:
    def test_circle_radius(self, scenario_records):
        geometries = _geometries(scenario_records, CIRCLE, inches=0.3)
        assert [g.patch for g in geometries] == ["circle"] * 3
        assert [g.width for g in geometries] == pytest.approx([10.0, 20.0, 30.0])
        assert (geometries[0].x, geometries[0].y) == scenario_records[0].position

    def test_square_side(self, scenario_records):
        geometries = _geometries(scenario_records, SQUARE, inches=0.3)
        assert geometries[2].patch == "rectangle"
        assert geometries[2].width == pytest.approx(30.0)
        assert geometries[2].height == pytest.approx(30.0)
        assert geometries[2].y == scenario_records[2].y

    def test_bars_rise_from_anchor(self, scenario_records):
        geometries = _geometries(scenario_records, BAR, inches=0.7)
        for geometry, record in zip(geometries, scenario_records):
            assert geometry.width == pytest.approx(0.7 / 7 * UNITS[0])
            assert geometry.y - geometry.height / 2.0 == pytest.approx(record.y)
        assert geometries[2].height == pytest.approx(70.0)

    def test_fill_and_border(self, scenario_records):
        geometries = _geometries(scenario_records, CIRCLE, inches=0.3)
        assert [g.fill for g in geometries] == ["#ff0000", "#0000ff", "#0000ff"]
        assert all(g.border == "black" and g.line_width == 0.5 for g in geometries)

    def test_no_data_color(self):
        records = (Record(x=0.0, y=0.0, size_value=5.0, color_value=None),)
        geometries = _geometries(records, CIRCLE, inches=0.3)
        assert geometries[0].fill == "white"

    def test_reference_symbol_is_first_and_invisible(self, scenario_records):
        geometries = _geometries(scenario_records, CIRCLE, inches=0.3, fixmax=200.0)
        assert len(geometries) == len(scenario_records) + 1
        reference = geometries[0]
        assert reference.is_reference
        assert reference.fill == "none" and reference.border == "none"
        assert reference.line_width == 0.0
        assert not reference.visible
        assert reference.width == pytest.approx(30.0)
        assert sum(1 for g in geometries if g.visible) == len(scenario_records)


class TestMakePatch:
    def test_reference_patch_is_transparent(self, scenario_records):
        geometries = _geometries(scenario_records, SQUARE, inches=0.3, fixmax=200.0)
        patch = make_patch(geometries[0])
        assert patch.get_facecolor()[3] == 0.0
        assert patch.get_edgecolor()[3] == 0.0

    def test_rectangle_is_centred(self, scenario_records):
        geometries = _geometries(scenario_records, SQUARE, inches=0.3)
        patch = make_patch(geometries[2])
        assert patch.get_x() == pytest.approx(20.0 - 15.0)
        assert patch.get_y() == pytest.approx(10.0 - 15.0)


def test_resolve_symbol_shape_is_case_insensitive():
    assert resolve_symbol_shape(" Bar ") is BAR
    assert resolve_symbol_shape(CIRCLE) is CIRCLE
