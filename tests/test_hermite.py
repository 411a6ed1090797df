"""Test module for HermiteSegment in hermite_path.hermite

The tests are run using pytest.
These tests cover the unit-interval blend, the affine mapping onto an
arbitrary interval, and extrapolation outside of it.
"""

import numpy as np
import pytest
from scipy.interpolate import CubicHermiteSpline

from hermite_path import DegenerateIntervalError, HermiteSegment, hermite_basis, is_zero, make_waypoint


def segment_1d(p0, p1, v0, v1, lower=0.0, upper=1.0):
    return HermiteSegment.create(np.array([p0]), np.array([p1]), np.array([v0]), np.array([v1]), lower, upper)


###############################################################################
# Basis
###############################################################################


class TestHermiteBasis:
    def test_partition_of_unity(self):
        s = np.linspace(-0.5, 1.5, 21)
        h00, _, h01, _ = hermite_basis(s)
        assert np.allclose(h00 + h01, 1.0)

    def test_endpoint_values(self):
        assert hermite_basis(0.0) == (1.0, 0.0, 0.0, 0.0)
        assert hermite_basis(1.0) == (0.0, 0.0, 1.0, 0.0)
        assert hermite_basis(0.0, order=1) == (0.0, 1.0, 0.0, 0.0)
        assert hermite_basis(1.0, order=1) == (0.0, 0.0, 0.0, 1.0)

    def test_invalid_order(self):
        with pytest.raises(ValueError):
            hermite_basis(0.5, order=3)


###############################################################################
# Unit interval
###############################################################################


class TestUnitSegment:
    def test_position(self):
        seg = HermiteSegment.unit(np.array([0.0]), np.array([2.5]), np.array([-3.8]), np.array([0.0]))
        expected = {0.0: 0.0, 0.1: -0.2378, 0.5: 0.775, 0.75: 1.93125, 1.0: 2.5}
        for t, value in expected.items():
            assert seg.position(t)[0] == pytest.approx(value, abs=1e-5)

    def test_velocity(self):
        seg = segment_1d(3.0, 1.5, 2.8, 1.0)
        expected = {0.0: 2.8, 0.1: 0.784, 0.5: -3.2, 0.75: -2.375, 1.0: 1.0}
        for t, value in expected.items():
            assert seg.velocity(t)[0] == pytest.approx(value, abs=1e-5)

    def test_acceleration(self):
        seg = segment_1d(1.0, -0.5, 0.0, 4.0)
        expected = {0.0: -17.0, 0.1: -12.8, 0.5: 4.0, 0.75: 14.5, 1.0: 25.0}
        for t, value in expected.items():
            assert seg.acceleration(t)[0] == pytest.approx(value, abs=1e-5)

    def test_call_is_position(self):
        seg = segment_1d(0.0, 2.5, -3.8, 0.0)
        assert np.allclose(seg(0.5), seg.position(0.5))

    def test_out_of_bounds_is_extrapolated(self):
        seg = segment_1d(0.0, 2.6, -3.8, 0.0)
        assert not is_zero(seg.position(-50.0))
        assert not is_zero(seg.position(50.0))
        seg = segment_1d(3.0, 1.5, 2.8, 1.0)
        assert not is_zero(seg.velocity(-1.0))
        assert not is_zero(seg.velocity(2.0))
        seg = segment_1d(1.0, -0.5, 0.0, 4.0)
        assert not is_zero(seg.acceleration(-0.5))
        assert not is_zero(seg.acceleration(1.1))


###############################################################################
# Sub-interval
###############################################################################


class TestSubIntervalSegment:
    def test_position(self):
        seg = segment_1d(0.0, 2.5, -3.8, 0.0, 4.0, 7.0)
        expected = {4.0: 0.0, 4.7: -1.218, 5.45: -0.284, 6.88: 2.471, 7.0: 2.5}
        for t, value in expected.items():
            assert seg.position(t)[0] == pytest.approx(value, abs=0.01)

    def test_velocity(self):
        seg = segment_1d(3.0, 1.5, 2.8, 1.0, 3.0, 5.0)
        expected = {3.0: 2.8, 3.1: 1.954, 3.7: -1.447, 4.4: -1.799, 5.0: 1.0}
        for t, value in expected.items():
            assert seg.velocity(t)[0] == pytest.approx(value, abs=0.01)

    def test_acceleration(self):
        seg = segment_1d(1.0, -0.5, 0.0, 4.0, -3.0, 1.0)
        expected = {-3.0: -2.5625, -2.4: -1.49375, -1.1: 0.821875, 0.0: 2.78125, 1.0: 4.5625}
        for t, value in expected.items():
            assert seg.acceleration(t)[0] == pytest.approx(value, abs=0.01)

    def test_velocities_are_prescaled(self):
        seg = segment_1d(0.0, 1.0, 2.0, -1.0, 10.0, 14.0)
        assert seg.width == pytest.approx(4.0)
        assert seg.m0[0] == pytest.approx(8.0)
        assert seg.m1[0] == pytest.approx(-4.0)

    def test_out_of_bounds_is_extrapolated(self):
        seg = segment_1d(0.0, 2.6, -3.8, 0.0, 4.0, 7.0)
        assert not is_zero(seg.position(3.5))
        assert not is_zero(seg.position(10.0))

    def test_matches_scipy_including_extrapolation(self):
        p0, p1 = np.array([1.0, -2.0]), np.array([3.0, 0.5])
        v0, v1 = np.array([0.5, 1.0]), np.array([-1.0, 2.0])
        seg = HermiteSegment.create(p0, p1, v0, v1, -1.0, 2.5)
        reference = CubicHermiteSpline([-1.0, 2.5], np.stack([p0, p1]), np.stack([v0, v1]))
        query = np.linspace(-2.0, 3.5, 23)
        assert seg.position(query).shape == (23, 2)
        assert np.allclose(seg.position(query), reference(query))
        assert np.allclose(seg.velocity(query), reference(query, 1))
        assert np.allclose(seg.acceleration(query), reference(query, 2))

    def test_from_waypoints(self):
        start = make_waypoint(3.0, [3.0], [2.8])
        end = make_waypoint(5.0, [1.5], [1.0])
        seg = HermiteSegment.from_waypoints(start, end)
        assert seg.velocity(3.7)[0] == pytest.approx(-1.447, abs=0.01)


class TestBatchedSegment:
    def test_one_query_per_row(self):
        p0 = np.array([[0.0], [3.0]])
        p1 = np.array([[2.5], [1.5]])
        v0 = np.array([[-3.8], [2.8]])
        v1 = np.array([[0.0], [1.0]])
        seg = HermiteSegment.create(p0, p1, v0, v1, np.array([4.0, 3.0]), np.array([7.0, 5.0]))
        pos = seg.position(np.array([4.7, 3.0]))
        vel = seg.velocity(np.array([4.7, 3.7]))
        assert pos.shape == (2, 1)
        assert pos[0, 0] == pytest.approx(-1.218, abs=0.01)
        assert pos[1, 0] == pytest.approx(3.0, abs=1e-9)
        assert vel[1, 0] == pytest.approx(-1.447, abs=0.01)


class TestDegenerateSegment:
    def test_zero_width_interval(self):
        with pytest.raises(DegenerateIntervalError):
            segment_1d(0.0, 1.0, 0.0, 0.0, 2.0, 2.0)

    def test_zero_width_row_in_batch(self):
        p = np.zeros((2, 1))
        with pytest.raises(DegenerateIntervalError):
            HermiteSegment.create(p, p, p, p, np.array([0.0, 1.0]), np.array([1.0, 1.0]))
