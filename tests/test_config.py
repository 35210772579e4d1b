"""
Tests for the typed YAML config loader.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from propchoro.config import load_config
from propchoro.errors import ConfigurationError


def _write(tmp_path: Path, payload: dict) -> Path:
    path = tmp_path / "layer.yaml"
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


MINIMAL = {
    "input": {"path": "data/communes.geojson", "var": "pop", "var2": "income"},
    "output": {"path": "build/layer.png"},
}


class TestLoadConfig:
    def test_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, MINIMAL))
        assert cfg.input.path == tmp_path.resolve() / "data" / "communes.geojson"
        assert cfg.input.data_path is None
        assert cfg.output.logs_dir == tmp_path.resolve() / "build" / "logs"
        assert cfg.output.summary_json is None
        assert cfg.symbols.kind == "circle"
        assert cfg.symbols.inches == 0.3
        assert cfg.symbols.fixmax is None
        assert cfg.classification.method == "quantile"
        assert cfg.classification.breaks is None
        assert cfg.legend.size.pos == "right"
        assert cfg.legend.size.style == "c"
        assert cfg.legend.color.pos == "topright"
        assert cfg.legend.color.values_rnd == 2

    def test_full_example(self):
        cfg = load_config(Path(__file__).resolve().parents[1] / "layer.yaml")
        assert cfg.classification.method == "q6"
        assert cfg.symbols.inches == 0.2
        assert cfg.legend.size.style == "e"
        assert cfg.legend.color.values_rnd == -2
        assert cfg.legend.color.title == "Median Income\n(in euros)"

    def test_list_position_becomes_coordinates(self, tmp_path):
        payload = dict(MINIMAL, legend={"size": {"pos": [10, 20.5]}, "color": {"pos": "n"}})
        cfg = load_config(_write(tmp_path, payload))
        assert cfg.legend.size.pos == (10.0, 20.5)
        assert cfg.legend.color.pos == "n"

    def test_explicit_breaks_and_colors(self, tmp_path):
        payload = dict(
            MINIMAL,
            classification={"breaks": [0, 10, 20], "colors": ["#eeeeee", "#333333"]},
        )
        cfg = load_config(_write(tmp_path, payload))
        assert cfg.classification.breaks == (0.0, 10.0, 20.0)
        assert cfg.classification.colors == ("#eeeeee", "#333333")

    @pytest.mark.parametrize(
        "section",
        [
            {"symbols": {"kind": "star"}},
            {"symbols": {"inches": 0}},
            {"symbols": {"fixmax": -5}},
            {"classification": {"nclass": 0}},
            {"legend": {"size": {"style": "x"}}},
            {"legend": {"size": {"pos": [1, 2, 3]}}},
            {"image": {"dpi": 0}},
        ],
    )
    def test_invalid_values(self, tmp_path, section):
        with pytest.raises(ConfigurationError):
            load_config(_write(tmp_path, dict(MINIMAL, **section)))

    def test_missing_required_field(self, tmp_path):
        payload = {"input": {"path": "x.geojson", "var": "pop"}, "output": {"path": "out.png"}}
        with pytest.raises(ConfigurationError):
            load_config(_write(tmp_path, payload))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "layer.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(path)
