"""
Core utilities: types, constants, errors, and backend-agnostic operations.

This module provides the foundational building blocks used throughout hermite_path.
All internal modules depend on this module.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Sequence, Tuple, TypeVar, Union

import numpy as np
import torch


# =============================================================================
# Type Definitions
# =============================================================================

T = TypeVar("T", np.ndarray, torch.Tensor)
ArrayLike = Union[np.ndarray, torch.Tensor]
Backend = Literal["numpy", "torch"]
TimeLike = Union[float, ArrayLike]


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_TIME_STEP = 0.01  # Default sampling step for sweeps
SWEEP_CHUNK_SIZE = 65536  # Samples evaluated per vectorized chunk in a sweep
LARGE_SWEEP_WARNING = 10_000_000  # Log a warning above this many sweep samples
SWEEP_TOLERANCE = 1e-9  # Slack so the highest time is hit on exact multiples


# =============================================================================
# Enums
# =============================================================================


class BoundaryKind(str, Enum):
    """Boundary condition types for the cubic spline solver."""

    NATURAL = "natural"
    CLAMPED = "clamped"


# =============================================================================
# Errors
# =============================================================================


class DegenerateIntervalError(ValueError):
    """Raised when a bracketing interval has zero width."""

    pass


class DuplicateTimeError(ValueError):
    """Raised when a waypoint table repeats a time or is not strictly increasing."""

    pass


# =============================================================================
# Backend Detection
# =============================================================================


def get_backend(x: ArrayLike) -> Backend:
    """Determine backend from input type."""
    return "torch" if isinstance(x, torch.Tensor) else "numpy"


def to_backend(
    x,
    backend: Backend,
    dtype=None,
    device=None,
) -> ArrayLike:
    """Convert array to specified backend."""
    if backend == "torch":
        if isinstance(x, torch.Tensor):
            if dtype is None and not x.is_floating_point():
                dtype = torch.float64
            return x.to(dtype=dtype, device=device) if dtype or device else x
        return torch.as_tensor(x, dtype=dtype or torch.float64, device=device)
    if isinstance(x, torch.Tensor):
        x = x.detach().cpu().numpy()
    return np.asarray(x, dtype=dtype or np.float64)


def common_backend(arrays: Sequence[ArrayLike]) -> Backend:
    """Backend shared by all arrays, raising on a mix."""
    backends = {get_backend(a) for a in arrays if a is not None}
    if len(backends) > 1:
        raise ValueError(f"Backend mismatch: {sorted(backends)}")
    return backends.pop() if backends else "numpy"


# =============================================================================
# Backend-Agnostic Operations
# =============================================================================


def stack(arrays: List[ArrayLike], dim: int = 0) -> ArrayLike:
    """Stack arrays along new dimension."""
    if isinstance(arrays[0], torch.Tensor):
        return torch.stack(arrays, dim=dim)
    return np.stack(arrays, axis=dim)


def zeros(shape: Tuple[int, ...], backend: Backend, dtype=None, device=None) -> ArrayLike:
    """Zero tensor/array."""
    if backend == "torch":
        return torch.zeros(shape, dtype=dtype or torch.float64, device=device)
    return np.zeros(shape, dtype=dtype or np.float64)


def zeros_like(x: ArrayLike) -> ArrayLike:
    if isinstance(x, torch.Tensor):
        return torch.zeros_like(x)
    return np.zeros_like(x)


def vector_norm(x: ArrayLike, dim: int = -1) -> ArrayLike:
    """Euclidean magnitude along specified dimension."""
    if isinstance(x, torch.Tensor):
        return torch.linalg.vector_norm(x, dim=dim)
    return np.linalg.norm(x, axis=dim)


def is_zero(x: ArrayLike) -> bool:
    """True if every component is exactly zero."""
    if isinstance(x, torch.Tensor):
        return bool(torch.all(x == 0))
    return bool(np.all(np.asarray(x) == 0))


def format_vector(x: ArrayLike, precision: int = 3) -> str:
    """Human-readable rendering, e.g. ``<2.105, -0.749>``."""
    if isinstance(x, torch.Tensor):
        x = x.detach().cpu().numpy()
    values = np.atleast_1d(np.asarray(x, dtype=np.float64))
    return "<" + ", ".join(f"{v:.{precision}f}" for v in values) + ">"


def bracket_indices(times: ArrayLike, query_times: ArrayLike) -> ArrayLike:
    """
    Index of the lower knot of the bracketing interval for each query time.

    The result ``klo`` satisfies ``times[klo] <= t < times[klo + 1]`` inside the
    domain and is clamped to the first/last interval outside of it, so callers
    extrapolate with the nearest edge segment.
    """
    n = times.shape[0]
    if isinstance(times, torch.Tensor):
        return torch.clamp(torch.searchsorted(times, query_times, right=True) - 1, 0, n - 2)
    return np.clip(np.searchsorted(times, query_times, side="right") - 1, 0, n - 2)


def as_query(t: TimeLike, backend: Backend, dtype=None, device=None) -> Tuple[ArrayLike, bool]:
    """
    Normalize query time(s) to a 1-D array.

    Returns:
        (query_times, scalar) where scalar tells the caller to squeeze the result.
    """
    if backend == "torch":
        q = t if isinstance(t, torch.Tensor) else torch.as_tensor(t, dtype=dtype or torch.float64)
        q = q.to(dtype=dtype or torch.float64, device=device)
        scalar = q.ndim == 0
        return q.reshape(-1), scalar
    if isinstance(t, torch.Tensor):
        t = t.detach().cpu().numpy()
    q = np.asarray(t, dtype=dtype or np.float64)
    scalar = q.ndim == 0
    return q.reshape(-1), scalar


def check_strictly_increasing(times: ArrayLike) -> None:
    """Raise DuplicateTimeError unless times are strictly increasing."""
    if isinstance(times, torch.Tensor):
        bad = bool(torch.any(times[1:] <= times[:-1])) if times.shape[0] > 1 else False
    else:
        bad = bool(np.any(np.diff(times) <= 0)) if times.shape[0] > 1 else False
    if bad:
        raise DuplicateTimeError(f"Times must be strictly increasing, got {times.tolist()}")
