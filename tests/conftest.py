from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from propchoro.models import Record


@pytest.fixture
def scenario_records() -> tuple[Record, ...]:
    return (
        Record(x=0.0, y=0.0, size_value=10.0, color_value=1.0, key="a"),
        Record(x=10.0, y=5.0, size_value=40.0, color_value=2.0, key="b"),
        Record(x=20.0, y=10.0, size_value=90.0, color_value=3.0, key="c"),
    )


@pytest.fixture
def ax():
    fig, axes = plt.subplots(figsize=(6, 4), dpi=100)
    yield axes
    plt.close(fig)
