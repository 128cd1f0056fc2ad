"""Odometry delegated to external sensing modules.

The module computes the pose itself; the source copies its output each cycle
and keeps the rest of the system safe from invalid readings. When the module
reports NaN, the pose is dead-reckoned from the last valid velocity and
is_nan() turns true until valid data resumes.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from .config import ABSOLUTE_MODULE_RESOLUTION
from .geometry import Pose2D, Twist2D, smallest_angle_difference
from .hardware import AbsoluteModulePort, Hardware, OpticalSensorPort
from .odometry import OdometrySource, read_float


class ExternalOdometry(OdometrySource):
    """Common update logic of device-backed sources.

    Subclasses implement _read_device() returning the field-frame pose and
    velocity reported by the device.
    """

    def __init__(self, name: str, hardware: Optional[Hardware] = None) -> None:
        super().__init__(name, hardware)
        self.hw_name: Optional[str] = None
        self.last_time: Optional[float] = None

    def _read_device(self) -> Tuple[Pose2D, Twist2D]:
        raise NotImplementedError

    def _update(self) -> None:
        now = self.clock()
        dt = now - self.last_time if self.last_time is not None else 0.0
        self.last_time = now

        pose, velocity = self._read_device()

        if pose.is_nan() or velocity.is_nan():
            if not self.pose_nan:
                logging.warning(f"{self.name}: device reported NaN, extrapolating from last velocity")
            self.pose_nan = True
            last = self.current_pose
            speed = self.current_velocity
            self.current_pose = Pose2D(
                last.x + speed.vx * dt,
                last.y + speed.vy * dt,
                last.heading + speed.omega * dt,
            )
            self.heading_total += speed.omega * dt
            return

        self.pose_nan = False
        self.heading_total += smallest_angle_difference(pose.heading, self.current_pose.heading)
        self.current_pose = pose
        self.current_velocity = velocity

    def _resolve_device(self, reader: Dict[str, Any], ports: Dict[str, Any], kind: str) -> Any:
        self.hw_name = reader.get("hwmap")
        return Hardware.resolve(ports, self.hw_name, kind, self.name)


class AbsoluteModuleOdometry(ExternalOdometry):
    """Absolute-position module (two pods and an internal IMU).

    Configuration fields:
        hwmap: Module name (required)
        x-offset, y-offset: Pod offsets from the tracking center (default: 0)
        resolution: Pod resolution in ticks/mm (default: swingarm pod)
    """

    kind = "pinpoint"

    def __init__(self, name: str, hardware: Optional[Hardware] = None) -> None:
        super().__init__(name, hardware)
        self.module: Optional[AbsoluteModulePort] = None
        self.x_offset = 0.0
        self.y_offset = 0.0
        self.resolution = ABSOLUTE_MODULE_RESOLUTION

    def _read_device(self) -> Tuple[Pose2D, Twist2D]:
        self.module.update()
        return self.module.position(), self.module.velocity()

    def _on_set_pose(self, pose: Pose2D) -> None:
        self.module.set_position(pose)

    # ------------------------------------------------------------- tuning

    def offsets(self) -> Tuple[float, float]:
        if self.module is None:
            return 0.0, 0.0
        return self.module.offsets()

    def set_offsets(self, x_offset: float, y_offset: float) -> None:
        if self.module is not None:
            self.x_offset = x_offset
            self.y_offset = y_offset
            self.module.set_offsets(x_offset, y_offset)

    def encoder_resolution(self) -> float:
        if self.module is None:
            return 0.0
        return self.module.encoder_resolution()

    def set_encoder_resolution(self, ticks_per_mm: float) -> None:
        if self.module is not None:
            self.resolution = ticks_per_mm
            self.module.set_encoder_resolution(ticks_per_mm)

    def yaw_scalar(self) -> float:
        if self.module is None:
            return 1.0
        return self.module.yaw_scalar()

    def set_yaw_scalar(self, value: float) -> None:
        if self.module is not None:
            self.module.set_yaw_scalar(value)

    def recalibrate_imu(self) -> None:
        if self.module is not None:
            logging.info(f"{self.name}: recalibrating imu")
            self.module.recalibrate_imu()

    # ------------------------------------------------------ configuration

    def read(self, reader: Dict[str, Any]) -> None:
        self.configuration_valid = True
        self.module = self._resolve_device(reader, self.hardware.modules, "absolute module")

        x_offset = read_float(reader, "x-offset", self.name, default=0.0)
        y_offset = read_float(reader, "y-offset", self.name, default=0.0)
        resolution = read_float(reader, "resolution", self.name, default=ABSOLUTE_MODULE_RESOLUTION)
        if None in (x_offset, y_offset, resolution):
            self.configuration_valid = False

        if self.module is None:
            self.configuration_valid = False
            return

        if self.configuration_valid:
            self.set_offsets(x_offset, y_offset)
            self.set_encoder_resolution(resolution)
            self.module.reset_position_and_imu()
            self.last_time = None
            self.set_pose(Pose2D())

    def write(self) -> Dict[str, Any]:
        if not self.configuration_valid:
            return {}
        return {
            "hwmap": self.hw_name,
            "x-offset": self.x_offset,
            "y-offset": self.y_offset,
            "resolution": self.resolution,
        }


class OpticalOdometry(ExternalOdometry):
    """Optical correlation tracking sensor.

    Configuration fields:
        hwmap: Sensor name (required)
        position-ratio: Linear scalar (default: 1)
        heading-ratio: Angular scalar (default: 1)
        x-offset, y-offset, heading-offset: Mounting offset (default: 0)
    """

    kind = "otos"

    def __init__(self, name: str, hardware: Optional[Hardware] = None) -> None:
        super().__init__(name, hardware)
        self.sensor: Optional[OpticalSensorPort] = None
        self.current_acceleration = Twist2D()

    def _read_device(self) -> Tuple[Pose2D, Twist2D]:
        pose, velocity, acceleration = self.sensor.get_pos_vel_acc()
        if not acceleration.is_nan():
            self.current_acceleration = acceleration
        return pose, velocity

    def _on_set_pose(self, pose: Pose2D) -> None:
        self.sensor.set_position(pose)

    def acceleration(self) -> Twist2D:
        return self.current_acceleration

    # ------------------------------------------------------------- tuning

    def linear_scalar(self) -> float:
        return self.sensor.linear_scalar() if self.sensor is not None else 1.0

    def set_linear_scalar(self, value: float) -> None:
        if self.sensor is not None:
            self.sensor.set_linear_scalar(value)

    def angular_scalar(self) -> float:
        return self.sensor.angular_scalar() if self.sensor is not None else 1.0

    def set_angular_scalar(self, value: float) -> None:
        if self.sensor is not None:
            self.sensor.set_angular_scalar(value)

    def offset(self) -> Pose2D:
        return self.sensor.offset() if self.sensor is not None else Pose2D()

    def set_offset(self, offset: Pose2D) -> None:
        if self.sensor is not None:
            self.sensor.set_offset(offset)

    # ------------------------------------------------------ configuration

    def read(self, reader: Dict[str, Any]) -> None:
        self.configuration_valid = True
        self.sensor = self._resolve_device(reader, self.hardware.optical, "optical sensor")

        values = {
            key: read_float(reader, key, self.name, default=default)
            for key, default in (
                ("position-ratio", 1.0),
                ("heading-ratio", 1.0),
                ("x-offset", 0.0),
                ("y-offset", 0.0),
                ("heading-offset", 0.0),
            )
        }
        if None in values.values():
            self.configuration_valid = False

        if self.sensor is None:
            self.configuration_valid = False
            return

        if self.configuration_valid:
            self.set_linear_scalar(values["position-ratio"])
            self.set_angular_scalar(values["heading-ratio"])
            self.set_offset(Pose2D(values["x-offset"], values["y-offset"], values["heading-offset"]))
            self.last_time = None
            self.set_pose(Pose2D())

    def write(self) -> Dict[str, Any]:
        if not self.configuration_valid:
            return {}
        offset = self.offset()
        return {
            "hwmap": self.hw_name,
            "position-ratio": self.linear_scalar(),
            "heading-ratio": self.angular_scalar(),
            "x-offset": offset.x,
            "y-offset": offset.y,
            "heading-offset": offset.heading,
        }
