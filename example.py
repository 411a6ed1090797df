from hermite_path import (
    PiecewiseHermitePath, PiecewiseCubicPath, ScalarSpline,
    make_waypoint, format_vector,
)
import numpy as np
import torch

if __name__ == "__main__":
    # =========================================================================
    # 1. Hermite path (local control)
    # =========================================================================
    path = PiecewiseHermitePath()
    path.insert(make_waypoint(-3.0, [-2.0], [0.0]))
    path.insert(make_waypoint(0.0, [2.0], [1.0]))
    path.insert(make_waypoint(2.0, [3.0], [2.0]))
    path.insert(make_waypoint(6.0, [0.0], [0.0]))

    print(f"pos(-1.5) = {format_vector(path.position(-1.5))}")      # <-0.375>
    print(f"pos(3.5)  = {format_vector(path.position(3.5))}")       # <3.227>
    print(f"vel(-1.5) = {format_vector(path.velocity(-1.5))}")      # <1.750>
    print(f"vel(3.5)  = {format_vector(path.velocity(3.5))}")       # <-1.211>
    print(f"acc(-1.5) = {format_vector(path.acceleration(-1.5))}")  # <0.333>
    print(f"acc(3.5)  = {format_vector(path.acceleration(3.5))}")   # <-1.156>

    # Sampling the whole domain in one call
    t = np.arange(path.lowest_time, path.highest_time + 1e-9, 0.5)
    for ti, p in zip(t, path.position(t)):
        print(f"  t={ti:5.2f}: {format_vector(p)}")

    print(f"max speed: {path.max_speed(0.001):.3f}")   # 2.000
    print(f"length:    {path.length(0.001):.3f}")      # 9.445

    # =========================================================================
    # 2. Cubic path (global C2) from the same kind of waypoints
    # =========================================================================
    print("\nCubic path:")

    hermite = PiecewiseHermitePath([
        make_waypoint(0.0, [1.0], [2.0]),
        make_waypoint(2.0, [2.0], [0.0]),
        make_waypoint(5.0, [0.0], [0.0]),
        make_waypoint(8.0, [0.0], [1.0]),
    ])
    cubic = PiecewiseCubicPath.from_path(hermite)

    print(f"pos(1) = {format_vector(cubic.position(1.0))}")      # <2.105>
    print(f"pos(4) = {format_vector(cubic.position(4.0))}")      # <0.712>
    print(f"vel(1) = {format_vector(cubic.velocity(1.0))}")      # <0.355>
    print(f"vel(4) = {format_vector(cubic.velocity(4.0))}")      # <-0.749>
    print(f"acc(1) = {format_vector(cubic.acceleration(1.0))}")  # <-1.211>
    print(f"acc(4) = {format_vector(cubic.acceleration(4.0))}")  # <0.015>

    # =========================================================================
    # 3. Raw spline table
    # =========================================================================
    print("\nScalar spline:")

    spline = ScalarSpline.fit([0.0, 2.0, 5.0, 8.0], [1.0, 2.0, 0.0, 0.0], first=2.0, last=1.0)
    print(f"Position at [1, 4, 7.5]: {spline.position(np.array([1.0, 4.0, 7.5]))}")

    # =========================================================================
    # 4. PyTorch backend
    # =========================================================================
    print("\nPyTorch:")

    path_t = PiecewiseHermitePath([
        make_waypoint(0.0, torch.tensor([0.0, 0.0]), torch.tensor([1.0, 0.0])),
        make_waypoint(1.0, torch.tensor([1.0, 1.0]), torch.tensor([0.0, 1.0])),
    ])
    print(f"pos(0.5) = {path_t.position(0.5)}")

    print("\nDone!")
