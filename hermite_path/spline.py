"""
Natural/clamped cubic spline engine.

Low-level functions:
    solve_second_derivatives(times, values, first, last)   # tridiagonal solve
    spline_position / spline_velocity / spline_acceleration  # closed-form evaluation

Classes:
    BoundaryCondition  - Natural or Clamped(velocity) end condition
    ScalarSpline       - one axis: times, values, second derivatives
    VectorSpline       - D axes sharing one time table

Values may be (N,) for a single axis or (N, D) for D independent axes; the
recurrence runs over N and is vectorized over D. Query times may be a scalar or
a 1-D array (M,).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from ._core import (
    ArrayLike,
    Backend,
    BoundaryKind,
    DegenerateIntervalError,
    TimeLike,
    as_query,
    bracket_indices,
    check_strictly_increasing,
    common_backend,
    get_backend,
    stack,
    to_backend,
    zeros_like,
)

if TYPE_CHECKING:
    from .waypoint import Waypoint

logger = logging.getLogger(__name__)


# =============================================================================
# BoundaryCondition
# =============================================================================


@dataclass(frozen=True, slots=True, eq=False)
class BoundaryCondition:
    """
    End condition for the cubic spline solver.

    NATURAL fixes the second derivative to zero at that end, CLAMPED fixes the
    first derivative (velocity) to ``value``. ``value`` is a scalar or a (D,)
    vector matching the spline axes.

    Example:
        >>> BoundaryCondition.natural()
        >>> BoundaryCondition.clamped(np.array([2.0, 0.0]))
    """

    kind: BoundaryKind
    value: Optional[Union[float, ArrayLike]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", BoundaryKind(self.kind))
        if self.kind == BoundaryKind.CLAMPED and self.value is None:
            raise ValueError("Clamped boundary requires a velocity value")
        if self.kind == BoundaryKind.NATURAL and self.value is not None:
            raise ValueError("Natural boundary takes no value")

    @classmethod
    def natural(cls) -> "BoundaryCondition":
        return cls(BoundaryKind.NATURAL)

    @classmethod
    def clamped(cls, value: Union[float, ArrayLike]) -> "BoundaryCondition":
        return cls(BoundaryKind.CLAMPED, value)

    @property
    def is_natural(self) -> bool:
        return self.kind == BoundaryKind.NATURAL

    def __repr__(self) -> str:
        if self.is_natural:
            return "BoundaryCondition.natural()"
        return f"BoundaryCondition.clamped({self.value!r})"


BoundaryLike = Union[BoundaryCondition, float, ArrayLike, None]


def as_boundary(boundary: BoundaryLike) -> BoundaryCondition:
    """None -> natural, number/vector -> clamped, BoundaryCondition unchanged."""
    if boundary is None:
        return BoundaryCondition.natural()
    if isinstance(boundary, BoundaryCondition):
        return boundary
    return BoundaryCondition.clamped(boundary)


# =============================================================================
# Solver
# =============================================================================


def solve_second_derivatives(
    times: ArrayLike,
    values: ArrayLike,
    first: BoundaryLike = None,
    last: BoundaryLike = None,
) -> ArrayLike:
    """
    Second derivatives of the interpolating cubic spline at each knot.

    Forward elimination + back substitution of the tridiagonal system
    (Numerical Recipes ``spline``), O(N) time and O(N) scratch.

    Args:
        times: Knot times (N,), strictly increasing, N >= 2
        values: Knot values (N,) or (N, D)
        first: Boundary at times[0] (natural if None, clamped if a number)
        last: Boundary at times[-1]

    Returns:
        Second derivatives with the same shape as values
    """
    backend = common_backend([times, values])
    times = to_backend(times, backend)
    values = to_backend(values, backend)
    _validate_table(times, values)
    first, last = as_boundary(first), as_boundary(last)

    t, y = times, values
    n = t.shape[0]
    y2 = zeros_like(y)
    u = zeros_like(y)

    if first.is_natural:
        y2[0] = 0.0
        u[0] = 0.0
    else:
        v0 = _boundary_value(first, y)
        y2[0] = -0.5
        u[0] = (3.0 / (t[1] - t[0])) * ((y[1] - y[0]) / (t[1] - t[0]) - v0)

    for i in range(1, n - 1):
        sig = (t[i] - t[i - 1]) / (t[i + 1] - t[i - 1])
        p = sig * y2[i - 1] + 2.0
        y2[i] = (sig - 1.0) / p
        slope_diff = (y[i + 1] - y[i]) / (t[i + 1] - t[i]) - (y[i] - y[i - 1]) / (t[i] - t[i - 1])
        u[i] = (6.0 * slope_diff / (t[i + 1] - t[i - 1]) - sig * u[i - 1]) / p

    if last.is_natural:
        qn, un = 0.0, 0.0
    else:
        vn = _boundary_value(last, y)
        qn = 0.5
        un = (3.0 / (t[n - 1] - t[n - 2])) * (vn - (y[n - 1] - y[n - 2]) / (t[n - 1] - t[n - 2]))
    y2[n - 1] = (un - qn * u[n - 2]) / (qn * y2[n - 2] + 1.0)

    for k in range(n - 2, -1, -1):
        y2[k] = y2[k] * y2[k + 1] + u[k]

    return y2


def _boundary_value(boundary: BoundaryCondition, like: ArrayLike) -> ArrayLike:
    """Boundary velocity as an array broadcastable against one row of ``like``."""
    if isinstance(like, torch.Tensor):
        value = torch.as_tensor(boundary.value, dtype=like.dtype, device=like.device)
    else:
        value = np.asarray(to_backend(boundary.value, "numpy"), dtype=like.dtype)
    row_shape = tuple(like.shape[1:])
    if tuple(value.shape) not in ((), row_shape):
        raise ValueError(f"Boundary value shape {tuple(value.shape)} does not match axes {row_shape}")
    return value


def _validate_table(times: ArrayLike, values: ArrayLike) -> None:
    if times.ndim != 1:
        raise ValueError(f"times must be 1-D, got shape {tuple(times.shape)}")
    if times.shape[0] < 2:
        raise ValueError("Need at least 2 points")
    if values.shape[0] != times.shape[0]:
        raise ValueError(f"Length mismatch: {times.shape[0]} times vs {values.shape[0]} values")
    check_strictly_increasing(times)


# =============================================================================
# Evaluation
# =============================================================================


def _bracket(
    times: ArrayLike, values: ArrayLike, query_times: ArrayLike
) -> Tuple[ArrayLike, ArrayLike, ArrayLike, ArrayLike, ArrayLike]:
    """Shared bracket search: (klo, khi, h, a, b) with a/b/h shaped to broadcast over axes."""
    klo = bracket_indices(times, query_times)
    khi = klo + 1
    h = times[khi] - times[klo]
    if bool((h == 0).any()):
        raise DegenerateIntervalError("Bracketing interval has zero width; times must be unique")
    a = (times[khi] - query_times) / h
    b = (query_times - times[klo]) / h
    if values.ndim > 1:
        extra = (1,) * (values.ndim - 1)
        h = h.reshape(h.shape + extra)
        a = a.reshape(a.shape + extra)
        b = b.reshape(b.shape + extra)
    return klo, khi, h, a, b


def _evaluate(
    times: ArrayLike,
    values: ArrayLike,
    second_derivatives: ArrayLike,
    t: TimeLike,
    order: int,
) -> ArrayLike:
    backend = get_backend(times)
    device = times.device if backend == "torch" else None
    query, scalar = as_query(t, backend, dtype=times.dtype, device=device)
    klo, khi, h, a, b = _bracket(times, values, query)
    y_lo, y_hi = values[klo], values[khi]
    s_lo, s_hi = second_derivatives[klo], second_derivatives[khi]

    if order == 0:
        out = a * y_lo + b * y_hi + ((a * a * a - a) * s_lo + (b * b * b - b) * s_hi) * (h * h) / 6.0
    elif order == 1:
        out = (y_hi - y_lo) / h + ((1.0 - 3.0 * a * a) * s_lo + (3.0 * b * b - 1.0) * s_hi) * h / 6.0
    elif order == 2:
        out = a * s_lo + b * s_hi
    else:
        raise ValueError(f"order must be 0, 1, or 2, got {order}")

    return out[0] if scalar else out


def spline_position(
    times: ArrayLike, values: ArrayLike, second_derivatives: ArrayLike, t: TimeLike
) -> ArrayLike:
    """
    Spline value at t.

    Outside [times[0], times[-1]] the nearest edge cubic is extrapolated.

    Raises:
        DegenerateIntervalError: the bracketing interval has zero width
    """
    return _evaluate(times, values, second_derivatives, t, order=0)


def spline_velocity(
    times: ArrayLike, values: ArrayLike, second_derivatives: ArrayLike, t: TimeLike
) -> ArrayLike:
    """Exact first derivative of the spline at t."""
    return _evaluate(times, values, second_derivatives, t, order=1)


def spline_acceleration(
    times: ArrayLike, values: ArrayLike, second_derivatives: ArrayLike, t: TimeLike
) -> ArrayLike:
    """Exact second derivative of the spline at t (linear in t within a segment)."""
    return _evaluate(times, values, second_derivatives, t, order=2)


# =============================================================================
# ScalarSpline
# =============================================================================


@dataclass(slots=True)
class ScalarSpline:
    """One-axis cubic spline table.

    Compute once with fit(), evaluate many times.

    Example:
        >>> spl = ScalarSpline.fit([0, 2, 5, 8], [1, 2, 0, 0], first=2.0, last=1.0)
        >>> spl.position(1.0)   # ~2.105
        >>> spl.velocity(np.linspace(0, 8, 5))
    """

    times: ArrayLike  # (N,)
    values: ArrayLike  # (N,)
    second_derivatives: ArrayLike  # (N,)
    backend: Backend = field(init=False)

    def __post_init__(self) -> None:
        self.backend = common_backend([self.times, self.values, self.second_derivatives])
        if not (self.times.shape[0] == self.values.shape[0] == self.second_derivatives.shape[0]):
            raise ValueError("times, values and second_derivatives must have equal length")
        if self.values.ndim != 1:
            raise ValueError(f"ScalarSpline values must be 1-D, got shape {tuple(self.values.shape)}")

    @classmethod
    def fit(
        cls,
        times,
        values,
        first: BoundaryLike = None,
        last: BoundaryLike = None,
    ) -> "ScalarSpline":
        """Solve for second derivatives and build the table."""
        backend = common_backend([x for x in (times, values) if not isinstance(x, (list, tuple))])
        times = to_backend(times, backend)
        values = to_backend(values, backend)
        second = solve_second_derivatives(times, values, first, last)
        return cls(times=times, values=values, second_derivatives=second)

    @property
    def n_points(self) -> int:
        return self.times.shape[0]

    @property
    def domain(self) -> Tuple[float, float]:
        return float(self.times[0]), float(self.times[-1])

    def position(self, t: TimeLike) -> ArrayLike:
        return spline_position(self.times, self.values, self.second_derivatives, t)

    def velocity(self, t: TimeLike) -> ArrayLike:
        return spline_velocity(self.times, self.values, self.second_derivatives, t)

    def acceleration(self, t: TimeLike) -> ArrayLike:
        return spline_acceleration(self.times, self.values, self.second_derivatives, t)

    __call__ = position


# =============================================================================
# VectorSpline
# =============================================================================


@dataclass(slots=True)
class VectorSpline:
    """
    D independent cubic splines sharing one time table.

    Tables stay resident after construction; evaluation runs every axis in one
    vectorized pass (equivalent to a per-axis ScalarSpline fan-out).

    Attributes:
        times: Knot times (N,)
        values: Knot positions (N, D)
        second_derivatives: Per-axis second derivatives (N, D)
    """

    times: ArrayLike
    values: ArrayLike
    second_derivatives: ArrayLike
    backend: Backend = field(init=False)

    def __post_init__(self) -> None:
        self.backend = common_backend([self.times, self.values, self.second_derivatives])
        if self.values.ndim != 2:
            raise ValueError(f"VectorSpline values must be (N, D), got shape {tuple(self.values.shape)}")
        if tuple(self.values.shape) != tuple(self.second_derivatives.shape):
            raise ValueError("values and second_derivatives must have the same shape")
        if self.times.shape[0] != self.values.shape[0]:
            raise ValueError(f"Length mismatch: {self.times.shape[0]} times vs {self.values.shape[0]} values")

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def fit(
        cls,
        times: ArrayLike,
        positions: ArrayLike,
        first: BoundaryLike = None,
        last: BoundaryLike = None,
    ) -> "VectorSpline":
        """
        Build from a time table (N,) and positions (N, D).

        Args:
            first, last: Boundary conditions; a clamped value must be scalar or (D,)
        """
        backend = common_backend([times, positions])
        times = to_backend(times, backend)
        positions = to_backend(positions, backend)
        if positions.ndim == 1:
            positions = positions.reshape(-1, 1)
        second = solve_second_derivatives(times, positions, first, last)
        logger.debug("Fitted VectorSpline with %d knots in %d dims", positions.shape[0], positions.shape[1])
        return cls(times=times, values=positions, second_derivatives=second)

    @classmethod
    def from_waypoints(
        cls,
        waypoints: Sequence["Waypoint"],
        start: BoundaryLike = None,
        end: BoundaryLike = None,
    ) -> "VectorSpline":
        """
        Build from waypoints sorted by time.

        Boundaries default to clamped at the first/last waypoint velocity;
        interior velocities are not used.
        """
        if len(waypoints) < 2:
            raise ValueError("Need at least 2 waypoints")
        times = stack([_time_like(wp) for wp in waypoints])
        positions = stack([wp.position for wp in waypoints])
        first = BoundaryCondition.clamped(waypoints[0].velocity) if start is None else as_boundary(start)
        last = BoundaryCondition.clamped(waypoints[-1].velocity) if end is None else as_boundary(end)
        return cls.fit(times, positions, first, last)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def n_points(self) -> int:
        return self.times.shape[0]

    @property
    def n_dims(self) -> int:
        return self.values.shape[1]

    @property
    def domain(self) -> Tuple[float, float]:
        return float(self.times[0]), float(self.times[-1])

    def axis(self, dim: int) -> ScalarSpline:
        """Single-axis view of this spline."""
        return ScalarSpline(
            times=self.times,
            values=self.values[:, dim],
            second_derivatives=self.second_derivatives[:, dim],
        )

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def position(self, t: TimeLike) -> ArrayLike:
        """Position (D,) for a scalar t, (M, D) for t of shape (M,)."""
        return spline_position(self.times, self.values, self.second_derivatives, t)

    def velocity(self, t: TimeLike) -> ArrayLike:
        return spline_velocity(self.times, self.values, self.second_derivatives, t)

    def acceleration(self, t: TimeLike) -> ArrayLike:
        return spline_acceleration(self.times, self.values, self.second_derivatives, t)

    __call__ = position


def _time_like(wp: "Waypoint") -> ArrayLike:
    """Waypoint time as a 0-d array on the waypoint's backend."""
    if wp.backend == "torch":
        return torch.as_tensor(wp.time, dtype=wp.position.dtype, device=wp.position.device)
    return np.asarray(wp.time, dtype=np.float64)
