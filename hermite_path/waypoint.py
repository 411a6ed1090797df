"""
Waypoint: a timestamped position with velocity and acceleration.

Only position and velocity drive the interpolation; acceleration is carried
along for the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import numpy as np
import torch

from ._core import ArrayLike, Backend, common_backend, format_vector, to_backend, zeros_like


@dataclass(slots=True, eq=False)
class Waypoint:
    """
    Timestamped pose the path must pass through.

    Attributes:
        time: Time from the beginning of the path
        position: Position vector (D,)
        velocity: Velocity vector (D,)
        acceleration: Acceleration vector (D,), informational only
        backend: "numpy" or "torch" (auto-detected from inputs)

    Example:
        >>> wp = Waypoint(0.0, np.array([1.0, 2.0]), np.array([0.5, 0.0]))
        >>> wp = make_waypoint(2.0, np.array([3.0, 1.0]))  # zero velocity
    """

    time: float
    position: ArrayLike
    velocity: ArrayLike = None
    acceleration: ArrayLike = None
    backend: Backend = field(init=False)

    def __post_init__(self) -> None:
        """Validate and normalize inputs."""
        self.backend = common_backend(
            [x for x in (self.position, self.velocity, self.acceleration) if isinstance(x, (np.ndarray, torch.Tensor))]
        )
        floating = isinstance(self.position, torch.Tensor) and self.position.is_floating_point()
        dtype = self.position.dtype if floating else None
        device = self.position.device if isinstance(self.position, torch.Tensor) else None

        self.position = _as_vector(self.position, self.backend, dtype, device)
        if self.velocity is None:
            self.velocity = zeros_like(self.position)
        else:
            self.velocity = _as_vector(self.velocity, self.backend, self.position.dtype, device)
        if self.acceleration is None:
            self.acceleration = zeros_like(self.position)
        else:
            self.acceleration = _as_vector(self.acceleration, self.backend, self.position.dtype, device)

        for name in ("velocity", "acceleration"):
            vec = getattr(self, name)
            if tuple(vec.shape) != tuple(self.position.shape):
                raise ValueError(
                    f"{name} shape {tuple(vec.shape)} does not match position shape {tuple(self.position.shape)}"
                )
        self.time = float(self.time)

    @property
    def dims(self) -> int:
        return self.position.shape[0]

    def copy(self) -> "Waypoint":
        """Independent copy (vectors are copied too)."""
        if self.backend == "torch":
            return Waypoint(self.time, self.position.clone(), self.velocity.clone(), self.acceleration.clone())
        return Waypoint(self.time, self.position.copy(), self.velocity.copy(), self.acceleration.copy())

    def __repr__(self) -> str:
        return (
            f"Waypoint(time={self.time:g}, position={format_vector(self.position)}, "
            f"velocity={format_vector(self.velocity)}, acceleration={format_vector(self.acceleration)})"
        )


def make_waypoint(
    time: float,
    position: Union[ArrayLike, Sequence[float], float],
    velocity: Optional[Union[ArrayLike, Sequence[float], float]] = None,
    acceleration: Optional[Union[ArrayLike, Sequence[float], float]] = None,
) -> Waypoint:
    """
    Build a waypoint, defaulting velocity and acceleration to zero.

    Plain sequences and scalars become float64 NumPy vectors.
    """
    return Waypoint(time=time, position=position, velocity=velocity, acceleration=acceleration)


def _as_vector(x, backend: Backend, dtype=None, device=None) -> ArrayLike:
    vec = to_backend(x, backend, dtype=dtype, device=device)
    if vec.ndim == 0:
        vec = vec.reshape(1)
    if vec.ndim != 1:
        raise ValueError(f"Waypoint vectors must be 1-D, got shape {tuple(vec.shape)}")
    return vec
