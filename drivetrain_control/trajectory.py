"""Trajectories consumed by the follow actions.

Trajectory generation is done elsewhere; this module defines what an action
needs from a trajectory (its duration and a time-indexed sample) and provides
the reference trajectories used by the simulation runner and the tests:
- LemniscateTrajectory: the Lemniscate of Gerono figure-eight
- TurnTrajectory: rotation in place at constant rate
- SampledTrajectory: linear interpolation of pre-computed samples
"""

import math
from dataclasses import dataclass, field
from typing import Protocol

import numpy as np
import numpy.typing as npt

from .config import LEMNISCATE_SCALE, SIM_DURATION
from .geometry import Pose2D, Twist2D


@dataclass(frozen=True)
class PoseDual:
    """Target sample: pose with its field-frame time derivatives."""

    pose: Pose2D = field(default_factory=Pose2D)
    velocity: Twist2D = field(default_factory=Twist2D)
    acceleration: Twist2D = field(default_factory=Twist2D)


class Trajectory(Protocol):
    """Anything that can be followed by a FollowAction."""

    @property
    def duration(self) -> float:
        ...

    def get(self, t: float) -> PoseDual:
        ...


def _check_duration(duration: float) -> float:
    if not duration >= 0:
        raise ValueError(f"trajectory duration must be non-negative, got {duration}")
    return float(duration)


class LemniscateTrajectory:
    """Lemniscate of Gerono, traversed once over `duration` seconds.

    The curve is defined by:
        x = -scale * sin(k) * cos(k)
        y = scale * (sin(k) + 1)

    with k = 2π t / duration - π/2, so that it starts at the origin heading
    along +x. The heading follows the direction of motion.

    Args:
        scale: Size of the figure-eight (inches)
        duration: Time to complete the loop (seconds)
        origin: Pose the curve is anchored to
    """

    def __init__(self, scale: float = LEMNISCATE_SCALE, duration: float = SIM_DURATION, origin: Pose2D = Pose2D()):
        self._duration = _check_duration(duration)
        if self._duration == 0:
            raise ValueError("lemniscate duration must be positive")
        self.scale = scale
        self.origin = origin

    @property
    def duration(self) -> float:
        return self._duration

    def compute_k(self, t: float) -> float:
        """Path parameter k (radians) at time t, frozen at the end of the loop."""
        t = min(max(t, 0.0), self._duration)
        return 2.0 * math.pi * t / self._duration - math.pi / 2.0

    def get(self, t: float) -> PoseDual:
        k = self.compute_k(t)
        dk_dt = 2.0 * math.pi / self._duration

        x = -self.scale * math.sin(k) * math.cos(k)
        y = self.scale * (math.sin(k) + 1.0)

        # x = -scale/2 * sin(2k), so dx/dk = -scale * cos(2k)
        dx = -self.scale * math.cos(2.0 * k) * dk_dt
        dy = self.scale * math.cos(k) * dk_dt
        ddx = 2.0 * self.scale * math.sin(2.0 * k) * dk_dt**2
        ddy = -self.scale * math.sin(k) * dk_dt**2

        heading = math.atan2(dy, dx)
        omega = (dx * ddy - dy * ddx) / (dx**2 + dy**2)

        cos_o = math.cos(self.origin.heading)
        sin_o = math.sin(self.origin.heading)

        def to_field(u: float, v: float) -> tuple[float, float]:
            return cos_o * u - sin_o * v, sin_o * u + cos_o * v

        px, py = to_field(x, y)
        vx, vy = to_field(dx, dy)
        ax, ay = to_field(ddx, ddy)

        return PoseDual(
            Pose2D(self.origin.x + px, self.origin.y + py, self.origin.heading + heading),
            Twist2D(vx, vy, omega),
            Twist2D(ax, ay, 0.0),
        )

    def sample(self, dt: float = 0.1) -> dict[str, npt.NDArray[np.float64]]:
        """Positions along the whole loop, for plotting or metrics.

        Returns:
            Dictionary containing 't', 'x' and 'y' arrays
        """
        t_array = np.arange(0.0, self._duration + dt, dt)
        x_array = np.zeros_like(t_array)
        y_array = np.zeros_like(t_array)
        for i, t in enumerate(t_array):
            target = self.get(float(t)).pose
            x_array[i], y_array[i] = target.x, target.y
        return {"t": t_array, "x": x_array, "y": y_array}


class TurnTrajectory:
    """Rotation in place by `angle` radians at constant rate.

    A zero duration is allowed: the action finishes on its second step.
    """

    def __init__(self, start: Pose2D, angle: float, duration: float):
        self._duration = _check_duration(duration)
        self.start = start
        self.angle = angle

    @property
    def duration(self) -> float:
        return self._duration

    def get(self, t: float) -> PoseDual:
        if self._duration == 0:
            return PoseDual(Pose2D(self.start.x, self.start.y, self.start.heading + self.angle))
        t = min(max(t, 0.0), self._duration)
        rate = self.angle / self._duration
        return PoseDual(
            Pose2D(self.start.x, self.start.y, self.start.heading + rate * t),
            Twist2D(0.0, 0.0, rate),
        )


class SampledTrajectory:
    """Trajectory interpolated from time-stamped poses.

    Args:
        t: Strictly increasing sample times, starting at 0 (seconds)
        x, y: Sample positions
        heading: Sample headings (radians); unwrapped before interpolation

    Velocities are finite differences of the samples.
    """

    def __init__(
        self,
        t: npt.ArrayLike,
        x: npt.ArrayLike,
        y: npt.ArrayLike,
        heading: npt.ArrayLike,
    ):
        self.t = np.asarray(t, dtype=float)
        self.x = np.asarray(x, dtype=float)
        self.y = np.asarray(y, dtype=float)
        self.heading = np.unwrap(np.asarray(heading, dtype=float))

        if self.t.ndim != 1 or len(self.t) < 2:
            raise ValueError("a sampled trajectory needs at least two samples")
        if not (len(self.t) == len(self.x) == len(self.y) == len(self.heading)):
            raise ValueError("sample arrays must have the same length")
        if np.any(np.diff(self.t) <= 0):
            raise ValueError("sample times must be strictly increasing")
        self._duration = _check_duration(float(self.t[-1] - self.t[0]))

        self.vx = np.gradient(self.x, self.t)
        self.vy = np.gradient(self.y, self.t)
        self.omega = np.gradient(self.heading, self.t)

    @property
    def duration(self) -> float:
        return self._duration

    def get(self, t: float) -> PoseDual:
        time = self.t[0] + min(max(t, 0.0), self._duration)

        def at(values: np.ndarray) -> float:
            return float(np.interp(time, self.t, values))

        return PoseDual(
            Pose2D(at(self.x), at(self.y), at(self.heading)),
            Twist2D(at(self.vx), at(self.vy), at(self.omega)),
        )
