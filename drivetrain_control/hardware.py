"""Typed sensor and actuator ports.

Hardware drivers live outside this package. Each physical channel is exposed
through a small protocol, and the `Hardware` registry maps configuration names
to port objects. Ports are resolved by name once, when a component reads its
configuration; control cycles only call the resolved objects.
"""

import logging
import time
from typing import Callable, Dict, Optional, Protocol, Tuple, TypeVar

from .geometry import Pose2D, Twist2D

Clock = Callable[[], float]
"""Monotonic time source returning seconds."""

DEFAULT_CLOCK: Clock = time.monotonic


class EncoderPort(Protocol):
    """Raw quadrature encoder channel."""

    def position(self) -> int:
        """Accumulated tick count."""
        ...

    def velocity(self) -> float:
        """Hub velocity hint (ticks/s), possibly a wrapped 16-bit counter."""
        ...


class HeadingPort(Protocol):
    """Heading sensor (IMU yaw)."""

    def heading(self) -> float:
        ...

    def heading_velocity(self) -> float:
        ...


class MotorPort(Protocol):
    """Drive motor accepting a normalized power in [-1, 1]."""

    def power(self, value: float) -> None:
        ...


class VoltagePort(Protocol):
    """Battery voltage sensor."""

    def voltage(self) -> float:
        ...


class AbsoluteModulePort(Protocol):
    """External absolute-position module (odometry computer with its own IMU)."""

    def update(self) -> None:
        ...

    def position(self) -> Pose2D:
        ...

    def velocity(self) -> Twist2D:
        ...

    def set_position(self, pose: Pose2D) -> None:
        ...

    def set_offsets(self, x_offset: float, y_offset: float) -> None:
        ...

    def offsets(self) -> Tuple[float, float]:
        ...

    def set_encoder_resolution(self, ticks_per_mm: float) -> None:
        ...

    def encoder_resolution(self) -> float:
        ...

    def set_yaw_scalar(self, value: float) -> None:
        ...

    def yaw_scalar(self) -> float:
        ...

    def reset_position_and_imu(self) -> None:
        ...

    def recalibrate_imu(self) -> None:
        ...


class OpticalSensorPort(Protocol):
    """Optical correlation tracking sensor."""

    def get_pos_vel_acc(self) -> Tuple[Pose2D, Twist2D, Twist2D]:
        ...

    def set_position(self, pose: Pose2D) -> None:
        ...

    def linear_scalar(self) -> float:
        ...

    def set_linear_scalar(self, value: float) -> None:
        ...

    def angular_scalar(self) -> float:
        ...

    def set_angular_scalar(self, value: float) -> None:
        ...

    def offset(self) -> Pose2D:
        ...

    def set_offset(self, offset: Pose2D) -> None:
        ...


PortT = TypeVar("PortT")


class Hardware:
    """Registry of named hardware ports.

    Attributes:
        encoders: Encoder channels by configuration name.
        motors: Drive motors by configuration name.
        imus: Heading sensors by configuration name.
        modules: Absolute-position modules by configuration name.
        optical: Optical tracking sensors by configuration name.
        voltage_sensors: Battery voltage sensors by configuration name.
        odometers: Configured odometry sources by name (filled by the factory).
        clock: Monotonic time source shared by every component.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.encoders: Dict[str, EncoderPort] = {}
        self.motors: Dict[str, MotorPort] = {}
        self.imus: Dict[str, HeadingPort] = {}
        self.modules: Dict[str, AbsoluteModulePort] = {}
        self.optical: Dict[str, OpticalSensorPort] = {}
        self.voltage_sensors: Dict[str, VoltagePort] = {}
        self.odometers: Dict[str, object] = {}
        self.clock: Clock = clock if clock is not None else DEFAULT_CLOCK

    def voltage_sensor(self) -> Optional[VoltagePort]:
        """First registered voltage sensor, if any."""
        return next(iter(self.voltage_sensors.values()), None)

    @staticmethod
    def resolve(ports: Dict[str, PortT], name: Optional[str], kind: str, owner: str) -> Optional[PortT]:
        """Look up a port by name, logging an error when it is missing.

        Args:
            ports: Registry dictionary to search
            name: Configured hardware name (None if the field was absent)
            kind: Port kind, used in the error message
            owner: Name of the component asking, used in the error message

        Returns:
            The port, or None when the name is absent or unknown
        """
        if name is None:
            logging.error(f"{owner}: missing {kind} in configuration")
            return None
        port = ports.get(name)
        if port is None:
            logging.error(f"{owner}: {kind} '{name}' not found in hardware map")
        return port
