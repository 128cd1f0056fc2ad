"""Trajectory tracking feedback laws.

Each controller turns a target sample and the current estimate into a
robot-frame chassis velocity command:
- HolonomicController: independent axial/lateral/heading corrections for
  chassis that can translate in any direction (mecanum)
- RamseteController: nonlinear path tracking for skid-steer chassis
- TurnController: rotation in place for skid-steer chassis

Inputs are field-frame (pose, velocity) as produced by the odometry sources;
outputs are robot-frame so they can go straight into the kinematics.
"""

import math

from .config import RAMSETE_B_BAR, RAMSETE_ZETA, SMALL_ANGLE_THRESHOLD
from .geometry import Pose2D, Twist2D, field_to_robot, minus, wrap_angle
from .trajectory import PoseDual


def sinc(x: float) -> float:
    """sin(x) / x, continuous at 0."""
    if abs(x) < SMALL_ANGLE_THRESHOLD:
        return 1.0 - x * x / 6.0
    return math.sin(x) / x


def feedforward_command(target: PoseDual, pose: Pose2D) -> Twist2D:
    """Target velocity expressed in the robot frame (no correction)."""
    return field_to_robot(target.velocity, pose.heading)


class HolonomicController:
    """Proportional pose and velocity feedback for holonomic chassis.

    command = target velocity (robot frame)
              + position gains * pose error (robot frame)
              + velocity gains * velocity error (robot frame)
    """

    def __init__(
        self,
        axial_gain: float,
        lateral_gain: float,
        heading_gain: float,
        axial_velocity_gain: float = 0.0,
        lateral_velocity_gain: float = 0.0,
        heading_velocity_gain: float = 0.0,
    ):
        self.axial_gain = axial_gain
        self.lateral_gain = lateral_gain
        self.heading_gain = heading_gain
        self.axial_velocity_gain = axial_velocity_gain
        self.lateral_velocity_gain = lateral_velocity_gain
        self.heading_velocity_gain = heading_velocity_gain

    def compute(self, target: PoseDual, pose: Pose2D, velocity: Twist2D) -> Twist2D:
        """Compute the robot-frame velocity command.

        Args:
            target: Target sample (field frame)
            pose: Current pose estimate
            velocity: Current field-frame velocity estimate

        Returns:
            Robot-frame chassis velocity command
        """
        error = minus(target.pose, pose)
        heading_error = wrap_angle(target.pose.heading - pose.heading)

        target_velocity = field_to_robot(target.velocity, pose.heading)
        velocity_error = target_velocity - field_to_robot(velocity, pose.heading)

        return Twist2D(
            target_velocity.vx + self.axial_gain * error.x + self.axial_velocity_gain * velocity_error.vx,
            target_velocity.vy + self.lateral_gain * error.y + self.lateral_velocity_gain * velocity_error.vy,
            target_velocity.omega
            + self.heading_gain * heading_error
            + self.heading_velocity_gain * velocity_error.omega,
        )


class RamseteController:
    """Ramsete path tracking for non-holonomic chassis.

    With (ex, ey, eθ) the target pose in the robot frame:
        k = 2 ζ sqrt(ω_ref² + b v_ref²)
        v = v_ref cos(eθ) + k ex
        ω = ω_ref + k eθ + b v_ref sinc(eθ) ey

    Args:
        track_width: Used to normalize b_bar into b = b_bar / track_width²
        zeta: Damping ratio, in (0, 1)
        b_bar: Normalized aggressiveness, > 0
    """

    def __init__(self, track_width: float, zeta: float = RAMSETE_ZETA, b_bar: float = RAMSETE_B_BAR):
        if not track_width > 0:
            raise ValueError(f"track width must be positive, got {track_width}")
        self.zeta = zeta
        self.b_bar = b_bar
        self.b = b_bar / (track_width * track_width)

    def compute(self, target: PoseDual, pose: Pose2D, velocity: Twist2D) -> Twist2D:
        error = minus(target.pose, pose)
        heading_error = wrap_angle(target.pose.heading - pose.heading)

        # speed along the target heading
        target_heading = target.pose.heading
        v_ref = target.velocity.vx * math.cos(target_heading) + target.velocity.vy * math.sin(target_heading)
        omega_ref = target.velocity.omega

        k = 2.0 * self.zeta * math.sqrt(omega_ref**2 + self.b * v_ref**2)

        return Twist2D(
            v_ref * math.cos(heading_error) + k * error.x,
            0.0,
            omega_ref + k * heading_error + self.b * v_ref * sinc(heading_error) * error.y,
        )


class TurnController:
    """Rotation in place: heading feedback only, no translation command."""

    def __init__(self, turn_gain: float, turn_velocity_gain: float = 0.0):
        self.turn_gain = turn_gain
        self.turn_velocity_gain = turn_velocity_gain

    def compute(self, target: PoseDual, pose: Pose2D, velocity: Twist2D) -> Twist2D:
        heading_error = wrap_angle(target.pose.heading - pose.heading)
        omega_ref = target.velocity.omega
        return Twist2D(
            0.0,
            0.0,
            omega_ref + self.turn_gain * heading_error + self.turn_velocity_gain * (omega_ref - velocity.omega),
        )
