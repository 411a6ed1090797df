"""
Smooth time-parameterized trajectories through waypoints, for NumPy and PyTorch.

API Styles
----------
This library provides three API styles:

1. Path classes (recommended for motion planning):
   - PiecewiseHermitePath: mutable, local control, per-waypoint velocities
   - PiecewiseCubicPath: immutable, C2 continuous, end velocities only
   - Shared query surface: position(), velocity(), acceleration(), domain,
     max_distance(), max_speed(), max_acceleration(), length()

2. Spline engines (recommended for raw tables):
   - ScalarSpline / VectorSpline: cubic spline tables, fit once, evaluate many times
   - HermiteSegment: one Hermite piece on an arbitrary interval

3. Low-level functions:
   - solve_second_derivatives(), spline_position(), spline_velocity(),
     spline_acceleration(), hermite_basis()

Usage Examples
--------------
Hermite path (local control):
    path = PiecewiseHermitePath()
    path.insert(make_waypoint(-3.0, [-2.0], [0.0]))
    path.insert(make_waypoint(0.0, [2.0], [1.0]))
    pos = path.position(-1.5)              # (1,)
    vel = path.velocity(np.array([-2.0, -1.0]))  # (2, 1)

Cubic path (global smoothing):
    cubic = PiecewiseCubicPath.from_path(path)
    acc = cubic.acceleration(0.5)

Spline table:
    spline = ScalarSpline.fit([0, 2, 5, 8], [1, 2, 0, 0], first=2.0, last=1.0)
    spline.position(1.0)                   # ~2.105

Conventions
-----------
- Vectors: (D,) arrays/tensors; batched queries return (M, D)
- Queries outside the waypoint domain extrapolate the nearest segment
- Fewer than 2 waypoints: every query returns the zero vector
- Boundary conditions: BoundaryCondition.natural() or .clamped(velocity)
"""

# Types, constants and errors
from ._core import (
    ArrayLike,
    Backend,
    BoundaryKind,
    DEFAULT_TIME_STEP,
    DegenerateIntervalError,
    DuplicateTimeError,
    TimeLike,
    format_vector,
    is_zero,
    vector_norm,
)

# Waypoints
from .waypoint import Waypoint, make_waypoint

# Spline engines
from .spline import (
    BoundaryCondition,
    ScalarSpline,
    VectorSpline,
    solve_second_derivatives,
    spline_acceleration,
    spline_position,
    spline_velocity,
)
from .hermite import HermiteSegment, hermite_basis

# Paths
from .path import PiecewiseCubicPath, PiecewiseHermitePath, Trajectory

# Metrics
from .metrics import arc_length, max_acceleration, max_distance, max_speed

__all__ = [
    # Types
    "ArrayLike",
    "Backend",
    "TimeLike",
    "BoundaryKind",
    # Constants
    "DEFAULT_TIME_STEP",
    # Errors
    "DegenerateIntervalError",
    "DuplicateTimeError",
    # Vectors
    "format_vector",
    "is_zero",
    "vector_norm",
    # Waypoints
    "Waypoint",
    "make_waypoint",
    # Spline engines
    "BoundaryCondition",
    "ScalarSpline",
    "VectorSpline",
    "solve_second_derivatives",
    "spline_position",
    "spline_velocity",
    "spline_acceleration",
    "HermiteSegment",
    "hermite_basis",
    # Paths
    "Trajectory",
    "PiecewiseHermitePath",
    "PiecewiseCubicPath",
    # Metrics
    "max_distance",
    "max_speed",
    "max_acceleration",
    "arc_length",
]

__version__ = "0.1.0"
