"""
Unit tests for the classification engine and color mapping.
"""

from __future__ import annotations

import re

import pytest

from propchoro.classify import (
    BREAK_METHODS,
    assign_classes,
    classify_colors,
    get_breaks,
    palette,
    sturges_nclass,
)
from propchoro.errors import ClassificationError, ConfigurationError
from propchoro.models import ClassificationRequest

HEX = re.compile(r"^#[0-9a-f]{6}$")


class TestGetBreaks:
    def test_equal(self):
        assert get_breaks(list(range(11)), nclass=5, method="equal") == pytest.approx(
            [0.0, 2.0, 4.0, 6.0, 8.0, 10.0]
        )

    def test_quantile_spans_data(self):
        values = [3.0, 1.0, 4.0, 1.0, 5.0, 9.0, 2.0, 6.0]
        breaks = get_breaks(values, nclass=4, method="quantile")
        assert len(breaks) == 5
        assert breaks[0] == 1.0
        assert breaks[-1] == 9.0
        assert list(breaks) == sorted(breaks)

    def test_q6_has_six_classes(self):
        breaks = get_breaks(list(range(1, 101)), nclass=3, method="q6")
        assert len(breaks) == 7

    def test_geom(self):
        breaks = get_breaks([1.0, 10.0, 100.0, 1000.0], nclass=3, method="geom")
        assert breaks == pytest.approx([1.0, 10.0, 100.0, 1000.0])

    def test_geom_rejects_non_positive(self):
        with pytest.raises(ClassificationError):
            get_breaks([0.0, 1.0, 2.0], nclass=2, method="geom")

    def test_arith(self):
        breaks = get_breaks([0.0, 6.0], nclass=3, method="arith")
        assert breaks == pytest.approx([0.0, 1.0, 3.0, 6.0])

    def test_sd_stays_within_data(self):
        values = [float(v) for v in range(1, 21)]
        breaks = get_breaks(values, nclass=4, method="sd")
        assert breaks[0] == 1.0
        assert breaks[-1] == 20.0
        assert list(breaks) == sorted(breaks)

    def test_fisher_jenks_finds_clusters(self):
        values = [1, 2, 3, 10, 11, 12, 20, 21, 22]
        assert get_breaks(values, nclass=3, method="fisher-jenks") == pytest.approx(
            [1.0, 3.0, 12.0, 22.0]
        )

    def test_fisher_jenks_needs_distinct_values(self):
        with pytest.raises(ClassificationError):
            get_breaks([1.0, 1.0, 2.0], nclass=3, method="fisher-jenks")

    def test_missing_values_are_ignored(self):
        breaks = get_breaks([None, 0.0, float("nan"), 10.0], nclass=2, method="equal")
        assert breaks == pytest.approx([0.0, 5.0, 10.0])

    def test_default_nclass_is_sturges(self):
        values = [float(v) for v in range(100)]
        assert len(get_breaks(values, method="equal")) == sturges_nclass(100) + 1
        assert sturges_nclass(3) == 3

    def test_unknown_method(self):
        with pytest.raises(ClassificationError):
            get_breaks([1.0, 2.0], method="natural")

    def test_no_values(self):
        with pytest.raises(ClassificationError):
            get_breaks([None, float("nan")], nclass=2)

    def test_all_methods_registered(self):
        assert set(BREAK_METHODS) == {"equal", "quantile", "q6", "geom", "arith", "sd", "fisher-jenks"}


class TestAssignClasses:
    def test_last_class_is_right_closed(self):
        assert assign_classes([0.0, 1.9, 2.0, 4.0], (0.0, 2.0, 4.0)) == (0, 0, 1, 1)

    def test_outside_and_missing(self):
        assert assign_classes([-1.0, None, 5.0], (0.0, 2.0, 4.0)) == (None, None, None)


class TestClassifyColors:
    def test_palette_matches_breaks(self):
        result = classify_colors([1.0, 2.0, 3.0, 4.0, 5.0], ClassificationRequest(method="equal", nclass=4))
        assert len(result.palette_colors) == len(result.breaks) - 1 == 4
        assert all(color in result.palette_colors for color in result.record_colors)

    def test_no_data_records(self):
        result = classify_colors([1.0, None, 3.0], ClassificationRequest(method="equal", nclass=2))
        assert result.record_colors[1] is None
        assert result.no_data_mask == (False, True, False)
        assert result.has_no_data
        assert result.has_unclassified

    def test_explicit_breaks_and_colors(self):
        request = ClassificationRequest(breaks=(0.0, 10.0, 20.0), colors=("red", "blue"))
        result = classify_colors([5.0, 15.0, 20.0, 25.0], request)
        assert result.breaks == (0.0, 10.0, 20.0)
        assert result.record_colors == ("red", "blue", "blue", None)
        assert not result.has_no_data
        assert result.has_unclassified

    def test_unsorted_breaks_fail(self):
        with pytest.raises(ClassificationError):
            classify_colors([1.0], ClassificationRequest(breaks=(0.0, 5.0, 2.0)))

    def test_color_count_mismatch(self):
        request = ClassificationRequest(breaks=(0.0, 1.0, 2.0), colors=("red",))
        with pytest.raises(ConfigurationError):
            classify_colors([0.5], request)

    def test_colors_set_class_count(self):
        request = ClassificationRequest(method="equal", colors=("a", "b", "c"))
        result = classify_colors([0.0, 3.0, 6.0, 9.0], request)
        assert result.breaks == pytest.approx([0.0, 3.0, 6.0, 9.0])


class TestPalette:
    def test_hex_colors(self):
        colors = palette("Blues", 5)
        assert len(colors) == 5
        assert all(HEX.match(color) for color in colors)
        assert len(set(colors)) == 5

    def test_unknown_palette(self):
        with pytest.raises(ConfigurationError):
            palette("NotAColormap", 3)
