"""Odometry from the drive motor encoders.

Wheel displacements are converted to a robot-frame twist with the forward
kinematics of the chassis. Wheel slip makes this the least accurate source,
so an optional heading sensor can take over the rotation estimate.
"""

import logging
from typing import Any, Dict, List, Optional

from .encoder import EncoderSample, EncoderSignalConditioner
from .geometry import Twist2D, integrate, robot_to_field, smallest_angle_difference
from .hardware import Hardware, HeadingPort
from .kinematics import MecanumKinematics, MecanumWheelVelocities, TankKinematics, TankWheelVelocities
from .odometry import OdometrySource, read_float

MECANUM_WHEEL_KEYS = ("front-left-wheel", "back-left-wheel", "back-right-wheel", "front-right-wheel")


def _average(samples: List[EncoderSample]) -> EncoderSample:
    """Mean of ganged encoders on one side of a tank chassis."""
    count = len(samples)
    return EncoderSample(
        position=sum(sample.position for sample in samples) // count,
        delta=sum(sample.delta for sample in samples) / count,
        velocity=sum(sample.velocity for sample in samples) / count,
    )


class DriveEncodersOdometry(OdometrySource):
    """Drive-encoder odometry for mecanum and tank chassis.

    Configuration fields:
        layout: "mecanum" (default) or "tank"
        front-left-wheel, back-left-wheel, back-right-wheel, front-right-wheel:
            Encoder names (mecanum layout, required)
        left-wheels, right-wheels: Lists of encoder names (tank layout, required)
        track-width-ticks: Track width in ticks (required)
        wheelbase-ticks: Wheelbase in ticks (mecanum, default: 0)
        in-per-tick: Wheel resolution (required)
        lateral-in-per-tick: Strafing resolution (mecanum, default: in-per-tick)
        imu: Heading sensor name (optional, replaces the encoder rotation)
    """

    kind = "driveencoders"

    def __init__(self, name: str, hardware: Optional[Hardware] = None) -> None:
        super().__init__(name, hardware)

        self.layout = "mecanum"
        self.wheel_names: Dict[str, Any] = {}
        self.wheels: Dict[str, List[EncoderSignalConditioner]] = {}
        self.kinematics = None
        self.imu: Optional[HeadingPort] = None
        self.imu_name: Optional[str] = None

        self.track_width_ticks = 0.0
        self.wheelbase_ticks = 0.0
        self.in_per_tick = 0.0
        self.lateral_in_per_tick = 0.0

        self.is_first_time = True
        self.last_heading = 0.0

    def _read_wheels(self) -> Dict[str, EncoderSample]:
        samples = {}
        for key, encoders in self.wheels.items():
            readings = [encoder.update() for encoder in encoders]
            samples[key] = readings[0] if len(readings) == 1 else _average(readings)
        return samples

    def _twist(self, samples: Dict[str, EncoderSample], field: str) -> Twist2D:
        """Robot-frame twist from one field ("delta" or "velocity") of the samples."""
        values = {key: self.in_per_tick * getattr(sample, field) for key, sample in samples.items()}
        if self.layout == "tank":
            return self.kinematics.forward(TankWheelVelocities(values["left-wheels"], values["right-wheels"]))
        return self.kinematics.forward(MecanumWheelVelocities(*(values[key] for key in MECANUM_WHEEL_KEYS)))

    def _update(self) -> None:
        samples = self._read_wheels()
        delta = self._twist(samples, "delta")
        robot_velocity = self._twist(samples, "velocity")

        if self.imu is not None:
            heading = self.imu.heading()
            if self.is_first_time:
                heading_delta = 0.0
            else:
                heading_delta = smallest_angle_difference(heading, self.last_heading)
            self.last_heading = heading
            delta = Twist2D(delta.vx, delta.vy, heading_delta)
        self.is_first_time = False

        self.current_pose = integrate(self.current_pose, delta.vx, delta.vy, delta.omega)
        self.heading_total += delta.omega
        self.current_velocity = robot_to_field(robot_velocity, self.current_pose.heading)

    def _resolve_wheel(self, reader: Dict[str, Any], key: str) -> List[EncoderSignalConditioner]:
        names = reader.get(key)
        self.wheel_names[key] = names
        if isinstance(names, str) or names is None:
            names = [names]
        return [
            EncoderSignalConditioner(Hardware.resolve(self.hardware.encoders, name, key, self.name), self.clock)
            for name in names
        ]

    def read(self, reader: Dict[str, Any]) -> None:
        self.configuration_valid = True
        self.is_first_time = True
        self.wheel_names = {}

        self.layout = reader.get("layout", "mecanum")
        if self.layout == "mecanum":
            keys = MECANUM_WHEEL_KEYS
        elif self.layout == "tank":
            keys = ("left-wheels", "right-wheels")
        else:
            logging.error(f"{self.name}: unknown layout '{self.layout}'")
            self.configuration_valid = False
            return

        self.wheels = {key: self._resolve_wheel(reader, key) for key in keys}
        if not all(encoder.is_configured() for encoders in self.wheels.values() for encoder in encoders):
            self.configuration_valid = False

        self.imu_name = reader.get("imu")
        self.imu = None
        if self.imu_name is not None:
            self.imu = Hardware.resolve(self.hardware.imus, self.imu_name, "imu", self.name)
            if self.imu is None:
                self.configuration_valid = False

        track_width_ticks = read_float(reader, "track-width-ticks", self.name)
        wheelbase_ticks = read_float(reader, "wheelbase-ticks", self.name, default=0.0)
        in_per_tick = read_float(reader, "in-per-tick", self.name)
        lateral_in_per_tick = read_float(reader, "lateral-in-per-tick", self.name, default=in_per_tick)
        if None in (track_width_ticks, wheelbase_ticks, in_per_tick, lateral_in_per_tick):
            self.configuration_valid = False
            return

        self.track_width_ticks = track_width_ticks
        self.wheelbase_ticks = wheelbase_ticks
        self.in_per_tick = in_per_tick
        self.lateral_in_per_tick = lateral_in_per_tick

        try:
            if self.layout == "tank":
                self.kinematics = TankKinematics(in_per_tick * track_width_ticks)
            else:
                self.kinematics = MecanumKinematics(
                    in_per_tick * track_width_ticks,
                    in_per_tick * wheelbase_ticks,
                    in_per_tick / lateral_in_per_tick,
                )
        except (ValueError, ZeroDivisionError) as e:
            logging.error(f"{self.name}: invalid geometry: {e}")
            self.configuration_valid = False

    def write(self) -> Dict[str, Any]:
        if not self.configuration_valid:
            return {}
        result: Dict[str, Any] = {"layout": self.layout}
        result.update(self.wheel_names)
        result["track-width-ticks"] = self.track_width_ticks
        result["in-per-tick"] = self.in_per_tick
        if self.layout == "mecanum":
            result["wheelbase-ticks"] = self.wheelbase_ticks
            result["lateral-in-per-tick"] = self.lateral_in_per_tick
        if self.imu_name is not None:
            result["imu"] = self.imu_name
        return result
