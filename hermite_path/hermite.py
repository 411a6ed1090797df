"""
Cubic Hermite segment on an arbitrary [lower, upper] interval.

The segment blends two endpoint positions and velocities with the standard
Hermite basis on the unit interval:

    pos(s) = h00(s)*p0 + h10(s)*m0 + h01(s)*p1 + h11(s)*m1,   s = (t - lower) / (upper - lower)

where m0, m1 are the endpoint velocities pre-scaled by the interval width.
Velocity and acceleration are the exact derivatives mapped back to real time
(divided by width and width**2). Outside [lower, upper] the cubic is
extrapolated; no clamping happens here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Tuple, Union

import numpy as np
import torch

from ._core import ArrayLike, Backend, DegenerateIntervalError, TimeLike, as_query, common_backend, to_backend

if TYPE_CHECKING:
    from .waypoint import Waypoint

# =============================================================================
# JIT-compiled PyTorch kernels (hot paths)
# =============================================================================

# Flag to enable/disable JIT (useful for debugging)
_USE_JIT = True

try:
    @torch.jit.script
    def _hermite_kernel(p0: torch.Tensor, m0: torch.Tensor, p1: torch.Tensor,
                        m1: torch.Tensor, s: torch.Tensor, order: int) -> torch.Tensor:
        """JIT-compiled Hermite blend in power form (Horner's method)."""
        c2 = 3.0 * (p1 - p0) - 2.0 * m0 - m1
        c3 = 2.0 * (p0 - p1) + m0 + m1
        if order == 0:
            return p0 + s * (m0 + s * (c2 + s * c3))
        if order == 1:
            return m0 + s * (2.0 * c2 + s * 3.0 * c3)
        return 2.0 * c2 + 6.0 * c3 * s

    _JIT_AVAILABLE = True
except (RuntimeError, AttributeError):  # JIT compilation or missing torch.jit
    _JIT_AVAILABLE = False


# =============================================================================
# Hermite basis
# =============================================================================


def hermite_basis(s: Union[float, ArrayLike], order: int = 0) -> Tuple[ArrayLike, ArrayLike, ArrayLike, ArrayLike]:
    """
    Hermite basis functions (h00, h10, h01, h11) or their derivatives at s.

    Args:
        s: Local parameter, nominally in [0, 1]
        order: 0 for the basis, 1 and 2 for its derivatives w.r.t. s
    """
    if order == 0:
        s2, s3 = s * s, s * s * s
        return 2 * s3 - 3 * s2 + 1, s3 - 2 * s2 + s, -2 * s3 + 3 * s2, s3 - s2
    if order == 1:
        s2 = s * s
        return 6 * s2 - 6 * s, 3 * s2 - 4 * s + 1, -6 * s2 + 6 * s, 3 * s2 - 2 * s
    if order == 2:
        return 12 * s - 6, 6 * s - 4, -12 * s + 6, 6 * s - 2
    raise ValueError(f"order must be 0, 1, or 2, got {order}")


def _blend(p0: ArrayLike, m0: ArrayLike, p1: ArrayLike, m1: ArrayLike, s: ArrayLike, order: int) -> ArrayLike:
    if isinstance(p0, torch.Tensor) and _JIT_AVAILABLE and _USE_JIT:
        return _hermite_kernel(p0, m0, p1, m1, s, order)
    h00, h10, h01, h11 = hermite_basis(s, order)
    return h00 * p0 + h10 * m0 + h01 * p1 + h11 * m1


# =============================================================================
# HermiteSegment
# =============================================================================


@dataclass(frozen=True, slots=True, eq=False)
class HermiteSegment:
    """
    One cubic Hermite piece between two endpoints.

    The vectors may be single (D,) or batched (M, D) with lower/upper of shape
    (M,); a batched segment is evaluated with one query time per row.

    Attributes:
        p0, p1: Endpoint positions
        m0, m1: Endpoint velocities multiplied by (upper - lower)
        lower, upper: Interval the unit parameter is mapped onto

    Example:
        >>> seg = HermiteSegment.create(p0, p1, v0, v1, lower=4.0, upper=7.0)
        >>> seg.position(5.5)
    """

    p0: ArrayLike
    p1: ArrayLike
    m0: ArrayLike
    m1: ArrayLike
    lower: Union[float, ArrayLike] = 0.0
    upper: Union[float, ArrayLike] = 1.0
    backend: Backend = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "backend", common_backend([self.p0, self.p1, self.m0, self.m1]))

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        p0: ArrayLike,
        p1: ArrayLike,
        v0: ArrayLike,
        v1: ArrayLike,
        lower: Union[float, ArrayLike] = 0.0,
        upper: Union[float, ArrayLike] = 1.0,
    ) -> "HermiteSegment":
        """
        Segment from endpoint positions and real-time velocities.

        Velocities are scaled by the interval width here. lower >= upper is a
        precondition violation; lower == upper raises DegenerateIntervalError.
        """
        backend = common_backend([x for x in (p0, p1, v0, v1) if isinstance(x, (np.ndarray, torch.Tensor))])
        p0, p1, v0, v1 = (to_backend(x, backend) for x in (p0, p1, v0, v1))
        width = _expand(to_backend(upper, backend, dtype=p0.dtype) - to_backend(lower, backend, dtype=p0.dtype), p0)
        if bool((width == 0).any()):
            raise DegenerateIntervalError(f"Segment interval [{lower}, {upper}] has zero width")
        return cls(p0=p0, p1=p1, m0=v0 * width, m1=v1 * width, lower=lower, upper=upper)

    @classmethod
    def unit(cls, p0: ArrayLike, p1: ArrayLike, v0: ArrayLike, v1: ArrayLike) -> "HermiteSegment":
        """Segment on [0, 1]."""
        return cls.create(p0, p1, v0, v1, 0.0, 1.0)

    @classmethod
    def from_waypoints(cls, start: "Waypoint", end: "Waypoint") -> "HermiteSegment":
        """Segment spanning two waypoints."""
        return cls.create(start.position, end.position, start.velocity, end.velocity, start.time, end.time)

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    @property
    def width(self) -> Union[float, ArrayLike]:
        return self.upper - self.lower

    def position(self, t: TimeLike) -> ArrayLike:
        return self._evaluate(t, order=0)

    def velocity(self, t: TimeLike) -> ArrayLike:
        return self._evaluate(t, order=1)

    def acceleration(self, t: TimeLike) -> ArrayLike:
        return self._evaluate(t, order=2)

    __call__ = position

    def _evaluate(self, t: TimeLike, order: int) -> ArrayLike:
        device = self.p0.device if self.backend == "torch" else None
        query, scalar = as_query(t, self.backend, dtype=self.p0.dtype, device=device)
        lower = to_backend(self.lower, self.backend, dtype=self.p0.dtype)
        width = to_backend(self.upper, self.backend, dtype=self.p0.dtype) - lower
        if device is not None:
            lower, width = lower.to(device), width.to(device)

        s = (query - lower) / width
        s, width = s.reshape(-1, 1), (width.reshape(-1, 1) if width.ndim > 0 else width)
        out = _blend(self.p0, self.m0, self.p1, self.m1, s, order)
        if order:
            out = out / width**order
        return out[0] if scalar else out


def _expand(width: ArrayLike, like: ArrayLike) -> ArrayLike:
    """Reshape a per-row width (M,) so it scales (M, D) vectors."""
    if width.ndim > 0 and like.ndim > 1:
        return width.reshape(-1, 1)
    return width
