"""
Drive kinematics for mecanum and skid-steer (tank) chassis.

Inverse kinematics convert a desired robot-frame chassis velocity into
individual wheel velocities; forward kinematics recover the chassis velocity
from measured wheel velocities (used by drive-encoder odometry). Both mappings
are exact inverses at the same geometry.
"""

from dataclasses import dataclass

from .geometry import Twist2D


@dataclass(frozen=True)
class MecanumWheelVelocities:
    """Wheel velocities of a mecanum chassis (in/s, or any linear unit)."""

    left_front: float = 0.0
    left_back: float = 0.0
    right_back: float = 0.0
    right_front: float = 0.0

    def as_tuple(self) -> tuple[float, float, float, float]:
        return self.left_front, self.left_back, self.right_back, self.right_front


@dataclass(frozen=True)
class TankWheelVelocities:
    """Side velocities of a skid-steer chassis."""

    left: float = 0.0
    right: float = 0.0

    def as_tuple(self) -> tuple[float, float]:
        return self.left, self.right


class MecanumKinematics:
    """
    Mecanum drive kinematics.

    With r the effective radius (track_width + wheelbase) / 2 and l the
    lateral multiplier:
        left_front  = vx - l * vy - r * omega
        left_back   = vx + l * vy - r * omega
        right_back  = vx - l * vy + r * omega
        right_front = vx + l * vy + r * omega

    Args:
        track_width: Distance between left and right wheels
        wheelbase: Distance between front and back wheels (0 folds it into
                   track_width)
        lateral_multiplier: Ratio of forward to lateral wheel efficiency

    Raises:
        ValueError: If the effective radius or the lateral multiplier is not positive
    """

    def __init__(self, track_width: float, wheelbase: float = 0.0, lateral_multiplier: float = 1.0) -> None:
        radius = (track_width + wheelbase) / 2.0
        if not radius > 0:
            raise ValueError(f"mecanum geometry must have a positive radius, got {radius}")
        if not lateral_multiplier > 0:
            raise ValueError(f"lateral multiplier must be positive, got {lateral_multiplier}")

        self.track_width = track_width
        self.wheelbase = wheelbase
        self.lateral_multiplier = lateral_multiplier
        self.radius = radius

    def inverse(self, twist: Twist2D) -> MecanumWheelVelocities:
        """Robot-frame chassis velocity to wheel velocities."""
        lateral = self.lateral_multiplier * twist.vy
        turn = self.radius * twist.omega
        return MecanumWheelVelocities(
            left_front=twist.vx - lateral - turn,
            left_back=twist.vx + lateral - turn,
            right_back=twist.vx - lateral + turn,
            right_front=twist.vx + lateral + turn,
        )

    def forward(self, wheels: MecanumWheelVelocities) -> Twist2D:
        """Wheel velocities (or wheel displacements) to robot-frame chassis velocity."""
        lf, lb, rb, rf = wheels.as_tuple()
        return Twist2D(
            (lf + lb + rb + rf) / 4.0,
            (-lf + lb - rb + rf) / (4.0 * self.lateral_multiplier),
            (-lf - lb + rb + rf) / (4.0 * self.radius),
        )


class TankKinematics:
    """
    Skid-steer drive kinematics.

        left  = vx - omega * track_width / 2
        right = vx + omega * track_width / 2

    Lateral velocity cannot be commanded and is dropped.

    Raises:
        ValueError: If track_width is not positive
    """

    def __init__(self, track_width: float) -> None:
        if not track_width > 0:
            raise ValueError(f"track width must be positive, got {track_width}")
        self.track_width = track_width

    def inverse(self, twist: Twist2D) -> TankWheelVelocities:
        half = self.track_width / 2.0
        return TankWheelVelocities(
            left=twist.vx - half * twist.omega,
            right=twist.vx + half * twist.omega,
        )

    def forward(self, wheels: TankWheelVelocities) -> Twist2D:
        return Twist2D(
            (wheels.left + wheels.right) / 2.0,
            0.0,
            (wheels.right - wheels.left) / self.track_width,
        )
