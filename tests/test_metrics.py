"""Test module for the sweep metrics in hermite_path.metrics

The tests are run using pytest.
"""

import logging

import numpy as np
import pytest

from hermite_path import PiecewiseHermitePath, arc_length, make_waypoint, max_acceleration, max_distance, max_speed
from hermite_path import _core
from hermite_path.metrics import sample_count


@pytest.fixture
def line():
    """Straight line from 0 to 4 at unit speed."""
    return PiecewiseHermitePath([make_waypoint(0.0, [0.0, 0.0], [1.0, 0.0]), make_waypoint(4.0, [4.0, 0.0], [1.0, 0.0])])


class TestSampleCount:
    def test_exact_multiple_includes_highest(self):
        assert sample_count(0.0, 1.0, 0.1) == 11

    def test_partial_step(self):
        assert sample_count(0.0, 1.05, 0.1) == 11

    def test_empty_range(self):
        assert sample_count(1.0, 0.0, 0.1) == 0
        assert sample_count(1.0, 1.0, 0.1) == 1

    @pytest.mark.parametrize("step", [0.0, -0.5, float("nan"), float("inf")])
    def test_invalid_step(self, step):
        with pytest.raises(ValueError):
            sample_count(0.0, 1.0, step)


class TestMetrics:
    def test_straight_line(self, line):
        assert max_distance(line) == pytest.approx(4.0)
        assert max_speed(line) == pytest.approx(1.0)
        assert max_acceleration(line) == pytest.approx(0.0, abs=1e-9)
        # k starts at 1, so the rectangle rule covers exactly 4 / step samples
        assert arc_length(line, 0.5) == pytest.approx(4.0)

    def test_path_methods_delegate(self, line):
        assert line.length(0.25) == pytest.approx(arc_length(line, 0.25))
        assert line.max_speed() == pytest.approx(max_speed(line))

    def test_chunking_does_not_change_result(self, line, monkeypatch):
        expected = arc_length(line, 0.001)
        monkeypatch.setattr(_core, "SWEEP_CHUNK_SIZE", 7)
        assert arc_length(line, 0.001) == pytest.approx(expected)
        assert max_distance(line, 0.001) == pytest.approx(4.0)

    def test_large_sweep_warns(self, line, monkeypatch, caplog):
        monkeypatch.setattr(_core, "LARGE_SWEEP_WARNING", 10)
        with caplog.at_level(logging.WARNING, logger="hermite_path.metrics"):
            max_speed(line, 0.1)
        assert "samples" in caplog.text

    def test_fewer_than_two_waypoints(self):
        path = PiecewiseHermitePath([make_waypoint(0.0, [5.0])])
        assert max_distance(path) == 0.0
        assert arc_length(path) == 0.0

    def test_accepts_numpy_sampling_on_any_path(self, line):
        times = np.linspace(0.0, 4.0, 5)
        assert line.position(times).shape == (5, 2)
