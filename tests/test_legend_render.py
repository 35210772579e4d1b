"""
Tests for legend position parsing, label formatting and legend box layout.
"""

from __future__ import annotations

import pytest

from propchoro.errors import ConfigurationError
from propchoro.layer import LayerRequest, prop_symbols_choro_layer
from propchoro.legend_render import (
    ColorLegendStyle,
    SizeLegendStyle,
    format_value,
    normalize_legend_position,
)
from propchoro.models import ClassificationRequest


class TestFormatValue:
    def test_decimals(self):
        assert format_value(3.14159, 2) == "3.14"
        assert format_value(2.0, 1) == "2.0"

    def test_zero_digits_gives_integer_text(self):
        assert format_value(12.6, 0) == "13"

    def test_negative_digits_round_to_hundreds(self):
        assert format_value(12345.0, -2) == "12300"
        assert format_value(18760.0, -2) == "18800"


class TestNormalizeLegendPosition:
    def test_named_positions(self):
        assert normalize_legend_position("topright") == "topright"
        assert normalize_legend_position(" BottomLeft ") == "bottomleft"

    def test_no_legend(self):
        assert normalize_legend_position("n") is None

    def test_coordinates(self):
        assert normalize_legend_position((1, 2)) == (1.0, 2.0)
        assert normalize_legend_position([3.5, -4]) == (3.5, -4.0)

    @pytest.mark.parametrize("pos", ["middle", "", (1, 2, 3), ("a", "b"), None, 5])
    def test_invalid(self, pos):
        with pytest.raises(ConfigurationError):
            normalize_legend_position(pos)


def _legend_frame(ax, zorder):
    frames = [patch for patch in ax.patches if patch.get_zorder() == zorder]
    assert len(frames) == 1
    return frames[0]


class TestLegendFrames:
    def _render(self, ax, records, **legends):
        request = LayerRequest.for_fields(
            "pop",
            "income",
            classification=ClassificationRequest(breaks=(0.0, 2.0, 4.0), colors=("#ff0000", "#0000ff")),
            **legends,
        )
        prop_symbols_choro_layer(ax, records, request, add=False)
        ax.figure.canvas.draw()
        return ax.figure.canvas.get_renderer()

    def _assert_inside(self, inner, outer):
        assert inner.x0 >= outer.x0
        assert inner.x1 <= outer.x1
        assert inner.y0 >= outer.y0
        assert inner.y1 <= outer.y1

    def test_long_title_fits_color_legend_frame(self, ax, scenario_records):
        title = "W" * 20
        renderer = self._render(
            ax,
            scenario_records,
            size_legend=SizeLegendStyle(pos="n"),
            color_legend=ColorLegendStyle(pos="topleft", title=title, frame=True),
        )
        frame = _legend_frame(ax, 11.5).get_window_extent(renderer)
        (text,) = [text for text in ax.texts if text.get_text() == title]
        self._assert_inside(text.get_window_extent(renderer), frame)

    def test_all_labels_fit_size_legend_frame(self, ax, scenario_records):
        renderer = self._render(
            ax,
            scenario_records,
            size_legend=SizeLegendStyle(pos="bottomleft", title="MMMMMMMMMMMMMMMM", style="e", frame=True),
            color_legend=ColorLegendStyle(pos="n"),
        )
        frame = _legend_frame(ax, 9.5).get_window_extent(renderer)
        assert len(ax.texts) == 5
        for text in ax.texts:
            self._assert_inside(text.get_window_extent(renderer), frame)
