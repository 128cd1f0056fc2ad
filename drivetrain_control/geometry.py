"""Planar rigid-body geometry for pose tracking.

This module provides the SE(2) types shared by every odometry source and
controller:
- Pose2D: position (inches) and heading (radians, stored in [0, 2π))
- Twist2D: chassis velocity (vx, vy, omega)
- Group operations: compose, inverse, minus
- Pose exponential: exact integration of a constant-curvature increment
"""

import math
from dataclasses import dataclass

import numpy as np

from .config import SMALL_ANGLE_THRESHOLD

TWO_PI = 2.0 * math.pi


def normalize_angle(angle: float) -> float:
    """Normalize an angle into [0, 2π).

    Args:
        angle: Angle in radians (any value)

    Returns:
        Equivalent angle in [0, 2π)
    """
    angle = math.fmod(angle, TWO_PI)
    if angle < 0.0:
        angle += TWO_PI
    # fmod of a tiny negative value can round back up to 2π
    if angle >= TWO_PI:
        angle = 0.0
    return angle


def wrap_angle(angle: float) -> float:
    """Wrap an angle into (-π, π]."""
    angle = normalize_angle(angle)
    if angle > math.pi:
        angle -= TWO_PI
    return angle


def smallest_angle_difference(current: float, previous: float) -> float:
    """Signed shortest rotation going from previous to current.

    Args:
        current: Current angle (radians)
        previous: Previous angle (radians)

    Returns:
        Signed difference in (-π, π], positive counter-clockwise
    """
    return wrap_angle(current - previous)


@dataclass(frozen=True)
class Pose2D:
    """Planar pose: position (inches) and heading (radians, [0, 2π))."""

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "heading", normalize_angle(self.heading))

    def is_nan(self) -> bool:
        return math.isnan(self.x) or math.isnan(self.y) or math.isnan(self.heading)

    def to_matrix(self) -> np.ndarray:
        """Homogeneous 3x3 transformation matrix of this pose."""
        c = math.cos(self.heading)
        s = math.sin(self.heading)
        return np.array([[c, -s, self.x], [s, c, self.y], [0.0, 0.0, 1.0]])

    def __mul__(self, other: "Pose2D") -> "Pose2D":
        return compose(self, other)

    def __str__(self) -> str:
        return f"({self.x:.3f}, {self.y:.3f}, {math.degrees(self.heading):.1f}°)"


@dataclass(frozen=True)
class Twist2D:
    """Chassis velocity: linear (inches/s) and angular (rad/s) components."""

    vx: float = 0.0
    vy: float = 0.0
    omega: float = 0.0

    def is_nan(self) -> bool:
        return math.isnan(self.vx) or math.isnan(self.vy) or math.isnan(self.omega)

    def __add__(self, other: "Twist2D") -> "Twist2D":
        return Twist2D(self.vx + other.vx, self.vy + other.vy, self.omega + other.omega)

    def __sub__(self, other: "Twist2D") -> "Twist2D":
        return Twist2D(self.vx - other.vx, self.vy - other.vy, self.omega - other.omega)

    def __mul__(self, scale: float) -> "Twist2D":
        return Twist2D(self.vx * scale, self.vy * scale, self.omega * scale)

    __rmul__ = __mul__


def compose(a: Pose2D, b: Pose2D) -> Pose2D:
    """SE(2) group law: pose b expressed in frame a, mapped to the field.

    compose(a, Pose2D()) == a; the operation is associative but not
    commutative.
    """
    c = math.cos(a.heading)
    s = math.sin(a.heading)
    return Pose2D(
        a.x + c * b.x - s * b.y,
        a.y + s * b.x + c * b.y,
        a.heading + b.heading,
    )


def inverse(a: Pose2D) -> Pose2D:
    """Inverse transform: compose(a, inverse(a)) is the identity."""
    c = math.cos(a.heading)
    s = math.sin(a.heading)
    return Pose2D(-c * a.x - s * a.y, s * a.x - c * a.y, -a.heading)


def minus(a: Pose2D, b: Pose2D) -> Pose2D:
    """Relative pose of a seen from b (the tracking error of b towards a)."""
    return compose(inverse(b), a)


def rotate(twist: Twist2D, angle: float) -> Twist2D:
    """Rotate the linear part of a twist by angle (radians)."""
    c = math.cos(angle)
    s = math.sin(angle)
    return Twist2D(c * twist.vx - s * twist.vy, s * twist.vx + c * twist.vy, twist.omega)


def robot_to_field(twist: Twist2D, heading: float) -> Twist2D:
    """Express a robot-centric velocity in the field frame."""
    return rotate(twist, heading)


def field_to_robot(twist: Twist2D, heading: float) -> Twist2D:
    """Express a field-frame velocity in the robot frame."""
    return rotate(twist, -heading)


def rotation_matrix(heading: float) -> np.ndarray:
    """3x3 matrix rotating robot-frame deltas by heading."""
    c = math.cos(heading)
    s = math.sin(heading)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def pose_exponential(dx: float, dy: float, dtheta: float, heading: float) -> tuple[float, float, float]:
    """Convert one cycle of robot-frame motion into field-frame deltas.

    The robot is assumed to move along a constant-curvature arc during the
    cycle. Near-zero rotation uses the second-order Taylor expansions of
    sin(θ)/θ and (1 - cos(θ))/θ to avoid catastrophic cancellation.

    Args:
        dx: Forward displacement measured in the robot frame
        dy: Lateral displacement measured in the robot frame (left positive)
        dtheta: Signed rotation during the cycle (radians)
        heading: Field heading of the robot at the start of the cycle

    Returns:
        Tuple of field-frame (dx, dy, dθ); dθ stays signed and unwrapped
    """
    if abs(dtheta) < SMALL_ANGLE_THRESHOLD:
        sin_term = 1.0 - dtheta**2 / 6.0
        cos_term = dtheta / 2.0
    else:
        sin_term = math.sin(dtheta) / dtheta
        cos_term = (1.0 - math.cos(dtheta)) / dtheta

    transformation = np.array(
        [[sin_term, -cos_term, 0.0], [cos_term, sin_term, 0.0], [0.0, 0.0, 1.0]]
    )
    robot_deltas = np.array([dx, dy, dtheta])
    global_deltas = rotation_matrix(heading) @ transformation @ robot_deltas

    return float(global_deltas[0]), float(global_deltas[1]), float(global_deltas[2])


def integrate(pose: Pose2D, dx: float, dy: float, dtheta: float) -> Pose2D:
    """Advance pose by a robot-frame increment using the pose exponential."""
    gx, gy, gtheta = pose_exponential(dx, dy, dtheta, pose.heading)
    return Pose2D(pose.x + gx, pose.y + gy, pose.heading + gtheta)
