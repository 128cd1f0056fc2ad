"""In-memory hardware ports.

These implement the protocols of `hardware.py` without any device behind
them. They back the unit tests and the closed-loop simulation.
"""

import math
from typing import List, Tuple

from .config import ENCODER_VELOCITY_MASK, ENCODER_VELOCITY_RESOLUTION
from .geometry import Pose2D, Twist2D, normalize_angle


def hub_velocity(ticks_per_second: float) -> int:
    """Velocity as a hub reports it: quantized, then wrapped to 16 bits."""
    quantized = ENCODER_VELOCITY_RESOLUTION * int(round(ticks_per_second / ENCODER_VELOCITY_RESOLUTION))
    return quantized & ENCODER_VELOCITY_MASK


class ManualClock:
    """Clock advanced explicitly by the caller."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt

    def set(self, now: float) -> None:
        self.now = now


class MockEncoder:
    """Encoder whose position and velocity hint are set by the caller."""

    def __init__(self, position: int = 0, velocity: float = 0.0) -> None:
        self.ticks = position
        self.hint = velocity

    def position(self) -> int:
        return self.ticks

    def velocity(self) -> float:
        return self.hint

    def move(self, delta: float, dt: float) -> None:
        """Travel delta ticks over dt seconds, updating the velocity hint."""
        self.ticks += int(round(delta))
        self.hint = hub_velocity(delta / dt) if dt > 0 else 0.0


class MockImu:
    """Heading sensor reporting a heading in (-π, π] like a real IMU."""

    def __init__(self, heading: float = 0.0, heading_velocity: float = 0.0) -> None:
        self.yaw = heading
        self.yaw_rate = heading_velocity

    def heading(self) -> float:
        angle = normalize_angle(self.yaw)
        return angle - 2.0 * math.pi if angle > math.pi else angle

    def heading_velocity(self) -> float:
        return self.yaw_rate

    def rotate(self, delta: float, dt: float) -> None:
        self.yaw += delta
        self.yaw_rate = delta / dt if dt > 0 else 0.0


class MockMotor:
    """Motor remembering every power it was given."""

    def __init__(self) -> None:
        self.current_power = 0.0
        self.powers: List[float] = []

    def power(self, value: float) -> None:
        self.current_power = value
        self.powers.append(value)


class MockVoltageSensor:
    """Battery whose voltage is set by the caller."""

    def __init__(self, voltage: float = 12.0) -> None:
        self.value = voltage

    def voltage(self) -> float:
        return self.value


class MockAbsoluteModule:
    """Absolute-position module with scriptable (possibly NaN) readings."""

    def __init__(self) -> None:
        self.pose = Pose2D()
        self.speed = Twist2D()
        self.x_offset = 0.0
        self.y_offset = 0.0
        self.resolution = 0.0
        self.scalar = 1.0
        self.update_count = 0
        self.recalibrations = 0
        self.nan_next = False

    def update(self) -> None:
        self.update_count += 1

    def position(self) -> Pose2D:
        if self.nan_next:
            return Pose2D(float("nan"), float("nan"), float("nan"))
        return self.pose

    def velocity(self) -> Twist2D:
        return self.speed

    def set_position(self, pose: Pose2D) -> None:
        self.pose = pose

    def set_offsets(self, x_offset: float, y_offset: float) -> None:
        self.x_offset = x_offset
        self.y_offset = y_offset

    def offsets(self) -> Tuple[float, float]:
        return self.x_offset, self.y_offset

    def set_encoder_resolution(self, ticks_per_mm: float) -> None:
        self.resolution = ticks_per_mm

    def encoder_resolution(self) -> float:
        return self.resolution

    def set_yaw_scalar(self, value: float) -> None:
        self.scalar = value

    def yaw_scalar(self) -> float:
        return self.scalar

    def reset_position_and_imu(self) -> None:
        self.pose = Pose2D()
        self.speed = Twist2D()

    def recalibrate_imu(self) -> None:
        self.recalibrations += 1


class MockOpticalSensor:
    """Optical tracking sensor with scriptable readings."""

    def __init__(self) -> None:
        self.pose = Pose2D()
        self.speed = Twist2D()
        self.acceleration = Twist2D()
        self.linear = 1.0
        self.angular = 1.0
        self.mounting = Pose2D()
        self.nan_next = False

    def get_pos_vel_acc(self) -> Tuple[Pose2D, Twist2D, Twist2D]:
        if self.nan_next:
            nan = float("nan")
            return Pose2D(nan, nan, nan), Twist2D(nan, nan, nan), Twist2D(nan, nan, nan)
        return self.pose, self.speed, self.acceleration

    def set_position(self, pose: Pose2D) -> None:
        self.pose = pose

    def linear_scalar(self) -> float:
        return self.linear

    def set_linear_scalar(self, value: float) -> None:
        self.linear = value

    def angular_scalar(self) -> float:
        return self.angular

    def set_angular_scalar(self, value: float) -> None:
        self.angular = value

    def offset(self) -> Pose2D:
        return self.mounting

    def set_offset(self, offset: Pose2D) -> None:
        self.mounting = offset
