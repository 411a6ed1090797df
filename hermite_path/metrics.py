"""
Sweep metrics for trajectories.

Provides maximum distance, speed, acceleration and arc length by fixed-step
sampling over the trajectory domain. Cost and precision scale with the step.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Callable, Iterator

import numpy as np
import torch

from . import _core
from ._core import ArrayLike, vector_norm

if TYPE_CHECKING:
    from .path import Trajectory

logger = logging.getLogger(__name__)


# =============================================================================
# Sampling
# =============================================================================


def sample_count(lowest: float, highest: float, time_step: float) -> int:
    """Number of samples lowest + k*step, k = 0..K, that do not pass highest."""
    if not math.isfinite(time_step) or time_step <= 0:
        raise ValueError(f"time_step must be a positive finite number, got {time_step}")
    if highest < lowest:
        return 0
    return int(math.floor((highest - lowest) / time_step + _core.SWEEP_TOLERANCE)) + 1


def _sample_chunks(lowest: float, count: int, time_step: float, start: int = 0) -> Iterator[np.ndarray]:
    """Sample times lowest + k*step for k in [start, count), in bounded chunks."""
    if count > _core.LARGE_SWEEP_WARNING:
        logger.warning("Sweep requested %d samples; consider a larger time_step", count)
    chunk = max(int(_core.SWEEP_CHUNK_SIZE), 1)
    for k0 in range(start, count, chunk):
        k = np.arange(k0, min(k0 + chunk, count), dtype=np.float64)
        yield lowest + k * time_step


def _as_float(x: ArrayLike) -> float:
    if isinstance(x, torch.Tensor):
        return float(x.detach().cpu())
    return float(x)


def _max_norm(evaluate: Callable[[np.ndarray], ArrayLike], trajectory: "Trajectory", time_step: float) -> float:
    if len(trajectory) < 2:
        return 0.0
    lowest, highest = trajectory.domain
    count = sample_count(lowest, highest, time_step)
    best = 0.0
    for times in _sample_chunks(lowest, count, time_step):
        norms = vector_norm(evaluate(times), dim=-1)
        best = max(best, _as_float(norms.max()))
    return best


# =============================================================================
# Extrema
# =============================================================================


def max_distance(trajectory: "Trajectory", time_step: float = _core.DEFAULT_TIME_STEP) -> float:
    """
    Largest distance from the origin over a sampled sweep.

    Args:
        trajectory: Any object with position(), domain and len()
        time_step: Sampling step; smaller is slower and more precise

    Returns:
        Maximum |position|, or 0.0 with fewer than 2 waypoints
    """
    return _max_norm(trajectory.position, trajectory, time_step)


def max_speed(trajectory: "Trajectory", time_step: float = _core.DEFAULT_TIME_STEP) -> float:
    """Largest |velocity| over a sampled sweep (0.0 with fewer than 2 waypoints)."""
    return _max_norm(trajectory.velocity, trajectory, time_step)


def max_acceleration(trajectory: "Trajectory", time_step: float = _core.DEFAULT_TIME_STEP) -> float:
    """Largest |acceleration| over a sampled sweep (0.0 with fewer than 2 waypoints)."""
    return _max_norm(trajectory.acceleration, trajectory, time_step)


# =============================================================================
# Arc Length
# =============================================================================


def arc_length(trajectory: "Trajectory", time_step: float = _core.DEFAULT_TIME_STEP) -> float:
    """
    Arc length by the rectangle rule on speed.

    Sums |velocity(t)| * time_step over t = lowest + k*step for k >= 1 while
    t <= highest.

    Returns:
        Approximate length, or 0.0 with fewer than 2 waypoints
    """
    if len(trajectory) < 2:
        return 0.0
    lowest, highest = trajectory.domain
    count = sample_count(lowest, highest, time_step)
    total = 0.0
    for times in _sample_chunks(lowest, count, time_step, start=1):
        speeds = vector_norm(trajectory.velocity(times), dim=-1)
        total += _as_float(speeds.sum()) * time_step
    return total
