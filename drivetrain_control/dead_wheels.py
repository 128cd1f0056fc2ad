"""Dead-wheel odometry sources.

Unpowered tracking wheels measure the chassis motion independently of drive
wheel slip. Two layouts are supported:
- TwoDeadWheelsOdometry: one parallel wheel, one perpendicular wheel and a
  heading sensor
- ThreeDeadWheelsOdometry: two parallel wheels and one perpendicular wheel;
  rotation is solved from the parallel pair, no heading sensor needed

Lever arms are expressed in ticks per radian: the reading a wheel picks up
when the robot rotates one radian counter-clockwise in place. Translations
are recovered by removing that contribution from each raw delta.
"""

import logging
import math
from typing import Any, Dict, Optional

from .config import HEADING_RATE_ROLLOVER
from .encoder import EncoderSignalConditioner
from .geometry import Twist2D, integrate, robot_to_field, smallest_angle_difference
from .hardware import Hardware, HeadingPort
from .odometry import OdometrySource, read_float


class TwoDeadWheelsOdometry(OdometrySource):
    """Parallel + perpendicular dead wheels with an external heading sensor.

    Configuration fields:
        forward, strafe: Encoder names (required)
        imu: Heading sensor name (required)
        forward-y: Forward wheel lever arm (required)
        strafe-x: Strafe wheel lever arm (required)
        in-per-tick: Forward wheel resolution (required)
        lateral-in-per-tick: Strafe wheel resolution (default: in-per-tick)
    """

    kind = "2deadwheels"

    def __init__(self, name: str, hardware: Optional[Hardware] = None) -> None:
        super().__init__(name, hardware)

        self.forward: Optional[EncoderSignalConditioner] = None
        self.strafe: Optional[EncoderSignalConditioner] = None
        self.imu: Optional[HeadingPort] = None
        self.forward_name: Optional[str] = None
        self.strafe_name: Optional[str] = None
        self.imu_name: Optional[str] = None

        self.forward_y = 0.0
        self.strafe_x = 0.0
        self.in_per_tick = 0.0
        self.lateral_in_per_tick = 0.0

        self.is_first_time = True
        self.last_heading = 0.0
        self.last_heading_velocity = 0.0
        self.velocity_offset = 0.0

    def _update(self) -> None:
        forward = self.forward.update()
        strafe = self.strafe.update()

        heading = self.imu.heading()
        heading_velocity = self.imu.heading_velocity()
        if abs(heading_velocity - self.last_heading_velocity) > HEADING_RATE_ROLLOVER:
            self.velocity_offset -= math.copysign(2.0 * math.pi, heading_velocity)
        self.last_heading_velocity = heading_velocity
        heading_velocity += self.velocity_offset

        if self.is_first_time:
            self.is_first_time = False
            heading_delta = 0.0
        else:
            heading_delta = smallest_angle_difference(heading, self.last_heading)
        self.last_heading = heading

        dx = self.in_per_tick * (forward.delta - self.forward_y * heading_delta)
        dy = self.lateral_in_per_tick * (strafe.delta - self.strafe_x * heading_delta)

        self.current_pose = integrate(self.current_pose, dx, dy, heading_delta)
        self.heading_total += heading_delta

        robot_velocity = Twist2D(
            self.in_per_tick * (forward.velocity - self.forward_y * heading_velocity),
            self.lateral_in_per_tick * (strafe.velocity - self.strafe_x * heading_velocity),
            heading_velocity,
        )
        self.current_velocity = robot_to_field(robot_velocity, self.current_pose.heading)

    def read(self, reader: Dict[str, Any]) -> None:
        self.configuration_valid = True
        self.is_first_time = True

        self.forward_name = reader.get("forward")
        self.strafe_name = reader.get("strafe")
        self.imu_name = reader.get("imu")

        forward_port = Hardware.resolve(self.hardware.encoders, self.forward_name, "forward encoder", self.name)
        strafe_port = Hardware.resolve(self.hardware.encoders, self.strafe_name, "strafe encoder", self.name)
        self.imu = Hardware.resolve(self.hardware.imus, self.imu_name, "imu", self.name)

        self.forward = EncoderSignalConditioner(forward_port, self.clock)
        self.strafe = EncoderSignalConditioner(strafe_port, self.clock)

        forward_y = read_float(reader, "forward-y", self.name)
        strafe_x = read_float(reader, "strafe-x", self.name)
        in_per_tick = read_float(reader, "in-per-tick", self.name)
        lateral_in_per_tick = read_float(reader, "lateral-in-per-tick", self.name, default=in_per_tick)

        if None in (forward_y, strafe_x, in_per_tick, lateral_in_per_tick):
            self.configuration_valid = False
        else:
            self.forward_y = forward_y
            self.strafe_x = strafe_x
            self.in_per_tick = in_per_tick
            self.lateral_in_per_tick = lateral_in_per_tick

        if not (self.forward.is_configured() and self.strafe.is_configured()) or self.imu is None:
            self.configuration_valid = False

    def write(self) -> Dict[str, Any]:
        if not self.configuration_valid:
            return {}
        return {
            "forward": self.forward_name,
            "strafe": self.strafe_name,
            "imu": self.imu_name,
            "forward-y": self.forward_y,
            "strafe-x": self.strafe_x,
            "in-per-tick": self.in_per_tick,
            "lateral-in-per-tick": self.lateral_in_per_tick,
        }


class ThreeDeadWheelsOdometry(OdometrySource):
    """Two parallel dead wheels and one perpendicular dead wheel.

    Configuration fields:
        par0, par1, perp: Encoder names (required)
        par0-y-ticks, par1-y-ticks: Parallel wheel lever arms, must differ (required)
        perp-x-ticks: Perpendicular wheel lever arm (required)
        in-per-tick: Wheel resolution (required)
    """

    kind = "3deadwheels"

    def __init__(self, name: str, hardware: Optional[Hardware] = None) -> None:
        super().__init__(name, hardware)

        self.par0: Optional[EncoderSignalConditioner] = None
        self.par1: Optional[EncoderSignalConditioner] = None
        self.perp: Optional[EncoderSignalConditioner] = None
        self.par0_name: Optional[str] = None
        self.par1_name: Optional[str] = None
        self.perp_name: Optional[str] = None

        self.par0_y_ticks = 0.0
        self.par1_y_ticks = 0.0
        self.perp_x_ticks = 0.0
        self.in_per_tick = 0.0

    def _solve(self, par0: float, par1: float, perp: float) -> Twist2D:
        """Closed-form (forward, lateral, rotation) of the encoder system.

        Works on deltas (ticks) and velocities (ticks/s) alike.
        """
        separation = self.par0_y_ticks - self.par1_y_ticks
        return Twist2D(
            self.in_per_tick * (self.par0_y_ticks * par1 - self.par1_y_ticks * par0) / separation,
            self.in_per_tick * (self.perp_x_ticks * (par1 - par0) / separation + perp),
            (par0 - par1) / separation,
        )

    def _update(self) -> None:
        par0 = self.par0.update()
        par1 = self.par1.update()
        perp = self.perp.update()

        delta = self._solve(par0.delta, par1.delta, perp.delta)
        self.current_pose = integrate(self.current_pose, delta.vx, delta.vy, delta.omega)
        self.heading_total += delta.omega

        robot_velocity = self._solve(par0.velocity, par1.velocity, perp.velocity)
        self.current_velocity = robot_to_field(robot_velocity, self.current_pose.heading)

    def read(self, reader: Dict[str, Any]) -> None:
        self.configuration_valid = True

        self.par0_name = reader.get("par0")
        self.par1_name = reader.get("par1")
        self.perp_name = reader.get("perp")

        encoders = self.hardware.encoders
        self.par0 = EncoderSignalConditioner(
            Hardware.resolve(encoders, self.par0_name, "first parallel encoder", self.name), self.clock
        )
        self.par1 = EncoderSignalConditioner(
            Hardware.resolve(encoders, self.par1_name, "second parallel encoder", self.name), self.clock
        )
        self.perp = EncoderSignalConditioner(
            Hardware.resolve(encoders, self.perp_name, "perpendicular encoder", self.name), self.clock
        )

        par0_y_ticks = read_float(reader, "par0-y-ticks", self.name)
        par1_y_ticks = read_float(reader, "par1-y-ticks", self.name)
        perp_x_ticks = read_float(reader, "perp-x-ticks", self.name)
        in_per_tick = read_float(reader, "in-per-tick", self.name)

        if None in (par0_y_ticks, par1_y_ticks, perp_x_ticks, in_per_tick):
            self.configuration_valid = False
        elif par0_y_ticks == par1_y_ticks:
            logging.error(f"{self.name}: parallel wheels must have different lever arms")
            self.configuration_valid = False
        else:
            self.par0_y_ticks = par0_y_ticks
            self.par1_y_ticks = par1_y_ticks
            self.perp_x_ticks = perp_x_ticks
            self.in_per_tick = in_per_tick

        if not all(encoder.is_configured() for encoder in (self.par0, self.par1, self.perp)):
            self.configuration_valid = False

    def write(self) -> Dict[str, Any]:
        if not self.configuration_valid:
            return {}
        return {
            "par0": self.par0_name,
            "par1": self.par1_name,
            "perp": self.perp_name,
            "par0-y-ticks": self.par0_y_ticks,
            "par1-y-ticks": self.par1_y_ticks,
            "perp-x-ticks": self.perp_x_ticks,
            "in-per-tick": self.in_per_tick,
        }
