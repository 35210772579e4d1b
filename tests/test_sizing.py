"""
Unit tests for proportional symbol sizing.
"""

from __future__ import annotations

import logging
import math

import pytest

from propchoro.errors import ConfigurationError, DataAlignmentError
from propchoro.models import Record
from propchoro.sizing import resolve_fixmax, scale_sizes


def _records(values):
    return tuple(Record(x=float(i), y=float(i), size_value=v) for i, v in enumerate(values))


class TestScaleSizes:
    def test_scenario_without_fixmax(self, scenario_records):
        result = scale_sizes(scenario_records, inches=0.3, symbols="circle")
        assert result.fixmax == 90.0
        assert result.record_sizes == pytest.approx([0.1, 0.2, 0.3])
        assert not result.reference_inserted

    def test_area_true_for_circles_and_squares(self):
        for kind in ("circle", "square"):
            result = scale_sizes(_records([5.0, 20.0, 100.0]), inches=0.5, symbols=kind)
            small, large = result.record_sizes[0], result.record_sizes[1]
            assert large == pytest.approx(2.0 * small)

    def test_length_true_for_bars(self):
        result = scale_sizes(_records([5.0, 20.0, 100.0]), inches=0.5, symbols="bar")
        assert result.record_sizes[1] == pytest.approx(4.0 * result.record_sizes[0])
        assert result.record_sizes[2] == pytest.approx(0.5)

    def test_oversized_fixmax_adds_reference(self, scenario_records):
        result = scale_sizes(scenario_records, inches=0.3, fixmax=200.0)
        assert max(result.record_sizes) == pytest.approx(0.3 * math.sqrt(90 / 200))
        assert result.reference_inserted
        ref = result.reference
        assert ref.size == 0.3
        assert ref.size_value == 200.0
        assert (ref.x, ref.y) == scenario_records[0].position
        # real records are untouched by the reference
        assert len(result.record_sizes) == len(scenario_records)
        assert result.plotted_sizes[0] == 0.3

    def test_fixmax_equal_to_data_max_needs_no_reference(self, scenario_records):
        result = scale_sizes(scenario_records, inches=0.3, fixmax=90.0)
        assert not result.reference_inserted

    def test_fixmax_below_data_max_is_not_clamped(self, scenario_records, caplog):
        with caplog.at_level(logging.WARNING, logger="propchoro.sizing"):
            result = scale_sizes(scenario_records, inches=0.3, fixmax=40.0)
        assert result.record_sizes[2] == pytest.approx(0.3 * math.sqrt(90 / 40))
        assert result.record_sizes[2] > 0.3
        assert not result.reference_inserted
        assert "below the data maximum" in caplog.text

    def test_non_positive_values_have_zero_size(self):
        result = scale_sizes(_records([-4.0, 0.0, 16.0]), inches=1.0)
        assert result.record_sizes == pytest.approx([0.0, 0.0, 1.0])
        assert all(size >= 0 for size in result.record_sizes)

    def test_all_non_positive_without_fixmax_is_config_error(self):
        with pytest.raises(ConfigurationError):
            scale_sizes(_records([0.0, -1.0]), inches=0.3)

    def test_explicit_fixmax_rescues_non_positive_data(self):
        result = scale_sizes(_records([0.0, 0.0]), inches=0.3, fixmax=10.0)
        assert result.reference_inserted
        assert result.record_sizes == (0.0, 0.0)

    def test_unknown_symbol_kind(self, scenario_records):
        with pytest.raises(ConfigurationError):
            scale_sizes(scenario_records, inches=0.3, symbols="triangle")

    def test_invalid_inches(self, scenario_records):
        with pytest.raises(ConfigurationError):
            scale_sizes(scenario_records, inches=0.0)

    def test_empty_records(self):
        with pytest.raises(ConfigurationError):
            scale_sizes((), inches=0.3, fixmax=10.0)

    @pytest.mark.parametrize("values", [[math.nan, 10.0, 40.0], [10.0, math.nan, 40.0], [10.0, 40.0, math.inf]])
    def test_non_finite_size_value_is_rejected(self, values):
        with pytest.raises(DataAlignmentError, match="#"):
            scale_sizes(_records(values), inches=0.3)

    def test_rejected_record_is_named_by_key(self):
        records = (Record(x=0.0, y=0.0, size_value=5.0, key="a"), Record(x=1.0, y=1.0, size_value=math.nan, key="b"))
        with pytest.raises(DataAlignmentError, match="Record b"):
            scale_sizes(records, inches=0.3)


class TestResolveFixmax:
    def test_defaults_to_data_max(self):
        assert resolve_fixmax([1.0, 7.5, 3.0], None) == 7.5

    def test_rejects_non_positive(self):
        with pytest.raises(ConfigurationError):
            resolve_fixmax([1.0], -2.0)
