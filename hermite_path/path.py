"""
Piecewise trajectories through timestamped waypoints.

Two strategies share one query surface (Trajectory):

    PiecewiseHermitePath  - mutable, local control; each segment is a cubic
                            Hermite blend of its two waypoints' positions and
                            velocities.
    PiecewiseCubicPath    - immutable, globally C2; a cubic spline through all
                            positions with clamped end velocities.

Queries outside [lowest_time, highest_time] extrapolate the nearest segment.
With fewer than 2 waypoints every query returns the zero vector.

Usage:
    path = PiecewiseHermitePath()
    path.insert(make_waypoint(0.0, [1.0], [2.0]))
    path.insert(make_waypoint(2.0, [2.0], [0.0]))
    cubic = PiecewiseCubicPath.from_path(path)
    pos = cubic.position(np.linspace(0.0, 2.0, 50))   # (50, 1)
"""

from __future__ import annotations

import bisect
import logging
from typing import Iterable, List, Optional, Protocol, Tuple, Union, runtime_checkable

import numpy as np
import torch

from . import _core
from ._core import (
    ArrayLike,
    Backend,
    DuplicateTimeError,
    TimeLike,
    as_query,
    bracket_indices,
    stack,
    zeros,
)
from .hermite import HermiteSegment
from .metrics import arc_length, max_acceleration, max_distance, max_speed
from .spline import BoundaryLike, VectorSpline
from .waypoint import Waypoint

logger = logging.getLogger(__name__)


# =============================================================================
# Query Interface
# =============================================================================


@runtime_checkable
class Trajectory(Protocol):
    """Anything that evaluates position/velocity/acceleration over a time domain."""

    @property
    def domain(self) -> Tuple[float, float]: ...

    def __len__(self) -> int: ...

    def position(self, t: TimeLike) -> ArrayLike: ...

    def velocity(self, t: TimeLike) -> ArrayLike: ...

    def acceleration(self, t: TimeLike) -> ArrayLike: ...


class _WaypointPath:
    """Domain bounds, zero fallback and sweeps shared by both path types."""

    _waypoints: List[Waypoint]
    _dims: Optional[int]
    _backend: Backend

    def __len__(self) -> int:
        return len(self._waypoints)

    @property
    def dims(self) -> Optional[int]:
        return self._dims

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def waypoints(self) -> List[Waypoint]:
        """Waypoints sorted by time (copies)."""
        return [wp.copy() for wp in self._waypoints]

    @property
    def lowest_time(self) -> float:
        """First waypoint time, 0.0 when empty."""
        return self._waypoints[0].time if self._waypoints else 0.0

    @property
    def highest_time(self) -> float:
        """Last waypoint time, 0.0 when empty."""
        return self._waypoints[-1].time if self._waypoints else 0.0

    @property
    def domain(self) -> Tuple[float, float]:
        return self.lowest_time, self.highest_time

    def __call__(self, t: TimeLike) -> ArrayLike:
        return self.position(t)

    # -------------------------------------------------------------------------
    # Sweeps
    # -------------------------------------------------------------------------

    def max_distance(self, time_step: float = _core.DEFAULT_TIME_STEP) -> float:
        return max_distance(self, time_step)

    def max_speed(self, time_step: float = _core.DEFAULT_TIME_STEP) -> float:
        return max_speed(self, time_step)

    def max_acceleration(self, time_step: float = _core.DEFAULT_TIME_STEP) -> float:
        return max_acceleration(self, time_step)

    def length(self, time_step: float = _core.DEFAULT_TIME_STEP) -> float:
        return arc_length(self, time_step)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _zero(self, t: TimeLike) -> ArrayLike:
        """Zero vector(s) shaped like a real query result."""
        query, scalar = as_query(t, self._backend)
        dims = self._dims or 0
        return zeros((dims,) if scalar else (query.shape[0], dims), self._backend)

    def _check_compatible(self, waypoint: Waypoint) -> None:
        if self._dims is None:
            self._dims = waypoint.dims
        elif waypoint.dims != self._dims:
            raise ValueError(f"Waypoint has {waypoint.dims} dims, path has {self._dims}")
        if self._waypoints and waypoint.backend != self._backend:
            raise ValueError(f"Backend mismatch: {waypoint.backend} vs {self._backend}")
        if not self._waypoints:
            self._backend = waypoint.backend


def _sorted_unique(waypoints: Iterable[Waypoint]) -> List[Waypoint]:
    """Copies sorted by time; a repeated time raises DuplicateTimeError."""
    items = sorted((wp.copy() for wp in waypoints), key=lambda wp: wp.time)
    for prev, curr in zip(items, items[1:]):
        if prev.time == curr.time:
            raise DuplicateTimeError(f"Duplicate waypoint time {curr.time}")
    return items


# =============================================================================
# PiecewiseHermitePath
# =============================================================================


class PiecewiseHermitePath(_WaypointPath):
    """
    Mutable piecewise cubic Hermite path.

    Waypoints are kept sorted with unique times. Each query finds the bracketing
    pair of waypoints and evaluates a HermiteSegment built from their positions
    and velocities, so editing one waypoint only changes its two neighbouring
    segments.

    Mutations are keyed by time and never raise for a missing or duplicate
    time; they return whether the path changed.

    Example:
        >>> path = PiecewiseHermitePath()
        >>> path.insert(Waypoint(-3.0, np.array([-2.0]), np.array([0.0])))
        >>> path.insert(Waypoint(0.0, np.array([2.0]), np.array([1.0])))
        >>> path.position(-1.5)
        >>> path.erase(0.0)
    """

    def __init__(
        self,
        waypoints: Iterable[Waypoint] = (),
        dims: Optional[int] = None,
        backend: Backend = "numpy",
    ) -> None:
        self._waypoints: List[Waypoint] = []
        self._times: List[float] = []
        self._dims = dims
        self._fixed_dims = dims
        self._backend = backend
        self._tables: Optional[Tuple[ArrayLike, ArrayLike, ArrayLike]] = None

        for wp in _sorted_unique(waypoints):
            self._check_compatible(wp)
            self._waypoints.append(wp)
            self._times.append(wp.time)
        logger.debug("Created PiecewiseHermitePath with %d waypoints", len(self._waypoints))

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def insert(self, waypoint: Waypoint) -> bool:
        """Insert in time order; no-op if a waypoint with that time exists."""
        idx = bisect.bisect_left(self._times, waypoint.time)
        if idx < len(self._times) and self._times[idx] == waypoint.time:
            logger.debug("insert: time %g already present, keeping existing waypoint", waypoint.time)
            return False
        self._check_compatible(waypoint)
        self._waypoints.insert(idx, waypoint.copy())
        self._times.insert(idx, waypoint.time)
        self._tables = None
        return True

    def replace(self, waypoint: Waypoint) -> bool:
        """Overwrite the waypoint with the same time; no-op if there is none."""
        idx = self._find(waypoint.time)
        if idx is None:
            logger.debug("replace: time %g not present", waypoint.time)
            return False
        self._check_compatible(waypoint)
        self._waypoints[idx] = waypoint.copy()
        self._tables = None
        return True

    def insert_or_replace(self, waypoint: Waypoint) -> None:
        """Replace if the time exists, insert otherwise."""
        if not self.replace(waypoint):
            self.insert(waypoint)

    def erase(self, item: Union[Waypoint, float]) -> bool:
        """Remove the waypoint at a time (or at a waypoint's time); no-op if absent."""
        time = item.time if isinstance(item, Waypoint) else float(item)
        idx = self._find(time)
        if idx is None:
            logger.debug("erase: time %g not present", time)
            return False
        del self._waypoints[idx]
        del self._times[idx]
        self._tables = None
        return True

    def clear(self) -> None:
        """Remove every waypoint; an inferred dimension is forgotten."""
        self._waypoints.clear()
        self._times.clear()
        self._dims = self._fixed_dims
        self._tables = None

    def _find(self, time: float) -> Optional[int]:
        idx = bisect.bisect_left(self._times, time)
        if idx < len(self._times) and self._times[idx] == time:
            return idx
        return None

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def position(self, t: TimeLike) -> ArrayLike:
        """Position (D,) for a scalar t, (M, D) for t of shape (M,)."""
        return self._evaluate(t, order=0)

    def velocity(self, t: TimeLike) -> ArrayLike:
        return self._evaluate(t, order=1)

    def acceleration(self, t: TimeLike) -> ArrayLike:
        return self._evaluate(t, order=2)

    def segment_at(self, t: float) -> HermiteSegment:
        """The segment a query at t is evaluated on (edge segment outside the domain)."""
        if len(self._waypoints) < 2:
            raise ValueError("Need at least 2 waypoints")
        idx = min(max(bisect.bisect_right(self._times, t) - 1, 0), len(self._times) - 2)
        return HermiteSegment.from_waypoints(self._waypoints[idx].copy(), self._waypoints[idx + 1].copy())

    def _evaluate(self, t: TimeLike, order: int) -> ArrayLike:
        if len(self._waypoints) < 2:
            return self._zero(t)
        times, positions, velocities = self._get_tables()
        device = times.device if self._backend == "torch" else None
        query, scalar = as_query(t, self._backend, dtype=times.dtype, device=device)

        lo = bracket_indices(times, query)
        hi = lo + 1
        segment = HermiteSegment.create(
            positions[lo], positions[hi], velocities[lo], velocities[hi], times[lo], times[hi]
        )
        if order == 0:
            out = segment.position(query)
        elif order == 1:
            out = segment.velocity(query)
        else:
            out = segment.acceleration(query)
        return out[0] if scalar else out

    def _get_tables(self) -> Tuple[ArrayLike, ArrayLike, ArrayLike]:
        """Stacked (times, positions, velocities), rebuilt only after a mutation."""
        if self._tables is None:
            positions = stack([wp.position for wp in self._waypoints])
            velocities = stack([wp.velocity for wp in self._waypoints])
            if self._backend == "torch":
                times = torch.tensor(self._times, dtype=positions.dtype, device=positions.device)
            else:
                times = np.asarray(self._times, dtype=positions.dtype)
            self._tables = (times, positions, velocities)
        return self._tables

    # -------------------------------------------------------------------------
    # Copy
    # -------------------------------------------------------------------------

    def copy(self) -> "PiecewiseHermitePath":
        return PiecewiseHermitePath(self._waypoints, dims=self._fixed_dims, backend=self._backend)

    __copy__ = copy

    def __repr__(self) -> str:
        return (
            f"PiecewiseHermitePath(n_waypoints={len(self)}, dims={self._dims}, "
            f"domain=({self.lowest_time:g}, {self.highest_time:g}))"
        )


# =============================================================================
# PiecewiseCubicPath
# =============================================================================


class PiecewiseCubicPath(_WaypointPath):
    """
    Immutable C2 cubic spline path.

    Waypoints are sorted by time on construction. Only the first and last
    waypoint velocities are used (as clamped boundary conditions, unless start/
    end override them); interior velocities come out of the solver. Changing the
    waypoints means building a new path.

    Example:
        >>> cubic = PiecewiseCubicPath(hermite_path.waypoints)
        >>> cubic = PiecewiseCubicPath(wps, start=BoundaryCondition.natural())
        >>> cubic.velocity(np.array([1.0, 4.0]))
    """

    def __init__(
        self,
        waypoints: Iterable[Waypoint] = (),
        start: BoundaryLike = None,
        end: BoundaryLike = None,
        dims: Optional[int] = None,
        backend: Backend = "numpy",
    ) -> None:
        self._waypoints: List[Waypoint] = []
        self._dims = dims
        self._backend = backend
        for wp in _sorted_unique(waypoints):
            self._check_compatible(wp)
            self._waypoints.append(wp)

        self._spline: Optional[VectorSpline] = None
        if len(self._waypoints) >= 2:
            self._spline = VectorSpline.from_waypoints(self._waypoints, start, end)
        logger.debug("Created PiecewiseCubicPath with %d waypoints", len(self._waypoints))

    @classmethod
    def from_path(
        cls,
        path: _WaypointPath,
        start: BoundaryLike = None,
        end: BoundaryLike = None,
    ) -> "PiecewiseCubicPath":
        """Cubic path through another path's waypoints."""
        return cls(path.waypoints, start=start, end=end, dims=path.dims, backend=path.backend)

    @property
    def spline(self) -> Optional[VectorSpline]:
        """Underlying spline tables, None with fewer than 2 waypoints."""
        return self._spline

    def position(self, t: TimeLike) -> ArrayLike:
        """Position (D,) for a scalar t, (M, D) for t of shape (M,)."""
        if self._spline is None:
            return self._zero(t)
        return self._spline.position(t)

    def velocity(self, t: TimeLike) -> ArrayLike:
        if self._spline is None:
            return self._zero(t)
        return self._spline.velocity(t)

    def acceleration(self, t: TimeLike) -> ArrayLike:
        if self._spline is None:
            return self._zero(t)
        return self._spline.acceleration(t)

    def __repr__(self) -> str:
        return (
            f"PiecewiseCubicPath(n_waypoints={len(self)}, dims={self._dims}, "
            f"domain=({self.lowest_time:g}, {self.highest_time:g}))"
        )
