"""Drive train controllers.

A drive owns the wheel motors of one chassis and ties together the odometry
source, the kinematics, the motor feedforward and the feedback laws. It is
used two ways:
- manually, through drive(x, y, heading_rate) once per cycle
- automatically, by polling the FollowAction returned by follow_trajectory()
  or turn()

Configuration (dictionary with dash-separated keys):
    motors: Motor names (layout depends on the chassis)
    odometer: Name of an odometry source registered in the hardware
    physics: in-per-tick and track-width-ticks (required), chassis extras
    pidf: ks and kv (required), ka and the feedback gains (optional)
    reference: Initial pose {x, y, heading} (optional)
    voltage-sensor: Battery sensor name (optional)
    nominal-voltage: Fallback voltage (optional)
"""

import logging
import math
from typing import Any, Dict, List, Optional

from .actions import FollowAction
from .component_modes import ControlMode
from .config import DEFAULT_SPEED_MULTIPLIER, NOMINAL_VOLTAGE, RAMSETE_B_BAR, RAMSETE_ZETA
from .follower import HolonomicController, RamseteController, TurnController
from .geometry import Pose2D, Twist2D
from .hardware import Hardware, MotorPort
from .kinematics import MecanumKinematics, TankKinematics
from .motor_controller import MotorFeedforward
from .odometry import OdometrySource, read_float
from .persistence import PoseStore
from .trajectory import Trajectory, TurnTrajectory


class DriveTrain:
    """Common behaviour of all drive trains.

    Subclasses provide the motor layout (_read_chassis), the feedback laws
    (path_controller, turn_controller), manual mixing (drive) and the wheel
    power output (write_velocity, _write_powers).

    Attributes:
        name: Drive name; the persisted pose is stored under "<name>-pose".
        hardware: Registry the motors and the odometry are resolved from.
        store: Pose persistence, None to disable.
        mode: Active control terms.
        odometry: Configured odometry source, None when absent.
        initial_pose: Reference pose used without odometry.
        finished: True once the last action has finished.
    """

    kind = "base"

    def __init__(
        self,
        name: str,
        hardware: Optional[Hardware] = None,
        reader: Optional[Dict[str, Any]] = None,
        store: Optional[PoseStore] = None,
        mode: Optional[ControlMode] = None,
    ) -> None:
        self.name = name
        self.hardware = hardware if hardware is not None else Hardware()
        self.clock = self.hardware.clock
        self.store = store
        self.mode = mode if mode is not None else ControlMode()

        self.configuration_valid = False
        self.finished = True
        self.speed_multiplier = DEFAULT_SPEED_MULTIPLIER

        self.odometry: Optional[OdometrySource] = None
        self.odometer_name: Optional[str] = None
        self.initial_pose = Pose2D()
        self.voltage_sensor_name: Optional[str] = None
        self.feedforward: Optional[MotorFeedforward] = None
        self.kinematics = None

        self.in_per_tick = 0.0
        self.track_width_ticks = 0.0
        self.max_heading_velocity = math.pi
        self.pidf: Dict[str, float] = {}
        self.last_powers: List[float] = []

        if reader is not None:
            self.read(reader)

    # ------------------------------------------------------------------ state

    def is_configured(self) -> bool:
        return self.configuration_valid

    def has_finished(self) -> bool:
        return self.finished

    @property
    def drive_speed_multiplier(self) -> float:
        return self.speed_multiplier

    @drive_speed_multiplier.setter
    def drive_speed_multiplier(self, value: float) -> None:
        self.speed_multiplier = value

    def has_odometry(self) -> bool:
        return self.odometry is not None and self.odometry.is_configured()

    def pose(self) -> Pose2D:
        if not self.configuration_valid:
            return Pose2D()
        return self.odometry.pose() if self.has_odometry() else self.initial_pose

    def velocity(self) -> Twist2D:
        if not self.configuration_valid:
            return Twist2D()
        return self.odometry.velocity() if self.has_odometry() else Twist2D()

    # --------------------------------------------------------------- control

    def update(self) -> None:
        """Advance the odometry by one cycle; call before drive() or step()."""
        if self.has_odometry():
            self.odometry.update()

    def persist(self) -> None:
        """Save the current pose for the next run phase."""
        if self.store is not None and self.configuration_valid:
            self.store.save(f"{self.name}-pose", self.pose())

    def stop(self) -> None:
        """Write zero power to every wheel."""
        if self.configuration_valid:
            self._write_powers([0.0] * self._motor_count())

    def follow_trajectory(self, trajectory: Trajectory) -> FollowAction:
        # an unconfigured drive never reaches the controller
        controller = self.path_controller() if self.configuration_valid else None
        return FollowAction(self, trajectory, controller)

    def turn(self, angle: float, duration: Optional[float] = None) -> FollowAction:
        """Rotate in place by `angle` radians from the current pose.

        Args:
            angle: Signed rotation (rad), positive counter-clockwise
            duration: Time for the rotation; defaults to |angle| at the
                      configured maximum heading velocity
        """
        if duration is None:
            duration = abs(angle) / self.max_heading_velocity
        controller = self.turn_controller() if self.configuration_valid else None
        return FollowAction(self, TurnTrajectory(self.pose(), angle, duration), controller)

    def write_velocity(self, velocity: Twist2D, acceleration: Twist2D) -> List[float]:
        """Convert a robot-frame chassis command into wheel powers and write them.

        Returns:
            Powers written, in motor order
        """
        if not self.configuration_valid:
            return []
        wheel_velocities = self.kinematics.inverse(velocity).as_tuple()
        wheel_accelerations = self.kinematics.inverse(acceleration).as_tuple()
        voltage = self.feedforward.voltage(self.mode.use_voltage_compensation)
        powers = [
            self.feedforward.power(v, a, voltage) for v, a in zip(wheel_velocities, wheel_accelerations)
        ]
        self._write_powers(powers)
        return powers

    def drive(self, x: float, y: float, heading_rate: float) -> List[float]:
        raise NotImplementedError

    def path_controller(self):
        raise NotImplementedError

    def turn_controller(self):
        raise NotImplementedError

    def _motor_count(self) -> int:
        raise NotImplementedError

    def _write_powers(self, powers: List[float]) -> None:
        raise NotImplementedError

    # ---------------------------------------------------------- configuration

    def _read_chassis(self, reader: Dict[str, Any]) -> bool:
        """Resolve the motors; False on error."""
        raise NotImplementedError

    def _read_gains(self, pidf: Dict[str, Any]) -> bool:
        """Read the chassis feedback gains; False on error."""
        raise NotImplementedError

    def read(self, reader: Dict[str, Any]) -> None:
        """Apply a configuration dictionary; sets configuration_valid."""
        self.configuration_valid = True
        self.kinematics = None
        self.initial_pose = Pose2D()

        if not self._read_chassis(reader):
            self.configuration_valid = False

        physics = reader.get("physics", {})
        in_per_tick = read_float(physics, "in-per-tick", self.name)
        track_width_ticks = read_float(physics, "track-width-ticks", self.name)
        max_heading_velocity = read_float(physics, "max-heading-velocity", self.name, default=math.pi)
        if None in (in_per_tick, track_width_ticks, max_heading_velocity):
            self.configuration_valid = False
        elif max_heading_velocity <= 0:
            logging.error(f"{self.name}: max-heading-velocity must be positive")
            self.configuration_valid = False
        else:
            self.in_per_tick = in_per_tick
            self.track_width_ticks = track_width_ticks
            self.max_heading_velocity = max_heading_velocity

        pidf = reader.get("pidf", {})
        ks = read_float(pidf, "ks", self.name)
        kv = read_float(pidf, "kv", self.name)
        ka = read_float(pidf, "ka", self.name, default=0.0)
        nominal_voltage = read_float(reader, "nominal-voltage", self.name, default=NOMINAL_VOLTAGE)
        if None in (ks, kv, ka, nominal_voltage):
            self.configuration_valid = False
        if not self._read_gains(pidf):
            self.configuration_valid = False

        self.voltage_sensor_name = reader.get("voltage-sensor")
        voltage_sensor = None
        if self.voltage_sensor_name is not None:
            voltage_sensor = Hardware.resolve(
                self.hardware.voltage_sensors, self.voltage_sensor_name, "voltage sensor", self.name
            )
            if voltage_sensor is None:
                self.configuration_valid = False
        else:
            voltage_sensor = self.hardware.voltage_sensor()

        if self.configuration_valid:
            self.feedforward = MotorFeedforward(ks, kv, ka, nominal_voltage, voltage_sensor)
            try:
                self._build_kinematics(physics)
            except ValueError as e:
                logging.error(f"{self.name}: invalid geometry: {e}")
                self.configuration_valid = False

        reference = reader.get("reference")
        if reference is not None and self.configuration_valid:
            x = read_float(reference, "x", self.name, default=0.0)
            y = read_float(reference, "y", self.name, default=0.0)
            heading = read_float(reference, "heading", self.name, default=0.0)
            if None in (x, y, heading):
                self.configuration_valid = False
            else:
                self.initial_pose = Pose2D(x, y, heading)

        self.odometer_name = reader.get("odometer")
        self.odometry = None
        if self.odometer_name is not None:
            self.odometry = Hardware.resolve(self.hardware.odometers, self.odometer_name, "odometer", self.name)
            if self.odometry is None or not self.odometry.is_configured():
                logging.error(f"{self.name}: odometer '{self.odometer_name}' is not usable")
                self.configuration_valid = False

        if not self.configuration_valid:
            logging.error(f"{self.name}: {self.kind} drive is not configured")
            self.initial_pose = Pose2D()
            return

        self._restore_pose()

    def _restore_pose(self) -> None:
        pose = self.initial_pose
        if self.store is not None:
            saved = self.store.load(f"{self.name}-pose")
            if saved is not None:
                logging.info(f"{self.name}: restored pose {saved}")
                pose = saved
        self.initial_pose = pose
        if self.has_odometry():
            self.odometry.set_pose(pose)

    def _build_kinematics(self, physics: Dict[str, Any]) -> None:
        raise NotImplementedError

    def write(self) -> Dict[str, Any]:
        """Configuration dictionary that read() would accept."""
        if not self.configuration_valid:
            return {}
        result: Dict[str, Any] = {
            "motors": self._write_motors(),
            "physics": self._write_physics(),
            "pidf": dict(self.pidf, ks=self.feedforward.ks, kv=self.feedforward.kv, ka=self.feedforward.ka),
            "reference": {"x": self.initial_pose.x, "y": self.initial_pose.y, "heading": self.initial_pose.heading},
            "nominal-voltage": self.feedforward.nominal_voltage,
        }
        if self.odometer_name is not None:
            result["odometer"] = self.odometer_name
        if self.voltage_sensor_name is not None:
            result["voltage-sensor"] = self.voltage_sensor_name
        return result

    def _write_motors(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _write_physics(self) -> Dict[str, Any]:
        return {
            "in-per-tick": self.in_per_tick,
            "track-width-ticks": self.track_width_ticks,
            "max-heading-velocity": self.max_heading_velocity,
        }

    def log_configuration_text(self, header: str = "") -> str:
        if not self.configuration_valid:
            return f"{header}> {self.kind} drive {self.name} - not configured\n"
        result = f"{header}> {self.kind} drive {self.name}\n"
        for key, value in self.write().items():
            result += f"{header}--> {key} : {value}\n"
        if self.odometry is not None:
            result += self.odometry.log_configuration_text(header + "--")
        return result

    # ------------------------------------------------------------ diagnostics

    def get_diagnostics(self) -> Dict[str, float]:
        """Current drive state for telemetry.

        Returns:
            Dictionary containing pose, velocity, powers, voltage, speed
            multiplier and finished flag
        """
        pose = self.pose()
        velocity = self.velocity()
        result = {
            "x": pose.x,
            "y": pose.y,
            "heading": pose.heading,
            "vx": velocity.vx,
            "vy": velocity.vy,
            "omega": velocity.omega,
            "speed_multiplier": self.speed_multiplier,
            "finished": float(self.finished),
        }
        if self.feedforward is not None:
            result["voltage"] = self.feedforward.last_voltage
        for i, power in enumerate(self.last_powers):
            result[f"power_{i}"] = power
        return result

    def log(self) -> None:
        if self.configuration_valid:
            powers = ", ".join(f"{power:.3f}" for power in self.last_powers)
            logging.debug(f"{self.name}: pose {self.pose()} powers [{powers}]")


def _resolve_motors(hardware: Hardware, names: Any, key: str, owner: str) -> Optional[List[MotorPort]]:
    """Resolve one motor name or a list of ganged motor names."""
    if isinstance(names, str) or names is None:
        names = [names]
    if not names:
        logging.error(f"{owner}: no motor configured for {key}")
        return None
    motors = [Hardware.resolve(hardware.motors, name, key, owner) for name in names]
    if any(motor is None for motor in motors):
        return None
    return motors


class MecanumDrive(DriveTrain):
    """Four mecanum wheels, holonomic feedback.

    Configuration fields (in addition to DriveTrain):
        motors: front-left-wheel, back-left-wheel, back-right-wheel,
                front-right-wheel (required)
        physics: wheelbase-ticks (default: 0), lateral-in-per-tick
                 (default: in-per-tick)
        pidf: axial-gain, lateral-gain, heading-gain and their -velocity-gain
              counterparts (default: 0)
        field-centric: Manual driving mode (default: from the control mode)
    """

    kind = "mecanum"

    MOTOR_KEYS = ("front-left-wheel", "back-left-wheel", "back-right-wheel", "front-right-wheel")
    GAIN_KEYS = (
        "axial-gain",
        "lateral-gain",
        "heading-gain",
        "axial-velocity-gain",
        "lateral-velocity-gain",
        "heading-velocity-gain",
    )

    def __init__(self, *args, **kwargs) -> None:
        self.motors: List[MotorPort] = []
        self.motor_names: Dict[str, str] = {}
        self.wheelbase_ticks = 0.0
        self.lateral_in_per_tick = 0.0
        self.field_centric = False
        super().__init__(*args, **kwargs)

    def _read_chassis(self, reader: Dict[str, Any]) -> bool:
        motors = reader.get("motors", {})
        self.motors = []
        self.motor_names = {}
        valid = True
        for key in self.MOTOR_KEYS:
            name = motors.get(key)
            motor = Hardware.resolve(self.hardware.motors, name, key, self.name)
            if motor is None:
                valid = False
            else:
                self.motors.append(motor)
                self.motor_names[key] = name

        self.field_centric = bool(reader.get("field-centric", self.mode.field_centric))
        return valid

    def _read_gains(self, pidf: Dict[str, Any]) -> bool:
        gains = {key: read_float(pidf, key, self.name, default=0.0) for key in self.GAIN_KEYS}
        if None in gains.values():
            return False
        self.pidf = gains
        return True

    def _build_kinematics(self, physics: Dict[str, Any]) -> None:
        wheelbase_ticks = read_float(physics, "wheelbase-ticks", self.name, default=0.0)
        lateral_in_per_tick = read_float(physics, "lateral-in-per-tick", self.name, default=self.in_per_tick)
        if wheelbase_ticks is None or lateral_in_per_tick is None:
            raise ValueError("invalid wheelbase or lateral resolution")
        if lateral_in_per_tick == 0:
            raise ValueError("lateral-in-per-tick must not be zero")
        self.wheelbase_ticks = wheelbase_ticks
        self.lateral_in_per_tick = lateral_in_per_tick
        self.kinematics = MecanumKinematics(
            self.in_per_tick * self.track_width_ticks,
            self.in_per_tick * wheelbase_ticks,
            self.in_per_tick / lateral_in_per_tick,
        )

    def _write_physics(self) -> Dict[str, Any]:
        result = super()._write_physics()
        result["wheelbase-ticks"] = self.wheelbase_ticks
        result["lateral-in-per-tick"] = self.lateral_in_per_tick
        return result

    def write(self) -> Dict[str, Any]:
        result = super().write()
        if result:
            result["field-centric"] = self.field_centric
        return result

    def _write_motors(self) -> Dict[str, Any]:
        return dict(self.motor_names)

    def path_controller(self) -> HolonomicController:
        gains = self.pidf
        return HolonomicController(
            gains.get("axial-gain", 0.0),
            gains.get("lateral-gain", 0.0),
            gains.get("heading-gain", 0.0),
            gains.get("axial-velocity-gain", 0.0),
            gains.get("lateral-velocity-gain", 0.0),
            gains.get("heading-velocity-gain", 0.0),
        )

    def turn_controller(self) -> HolonomicController:
        # position gains hold the robot in place during the turn
        return self.path_controller()

    def _motor_count(self) -> int:
        return len(self.motors)

    def _write_powers(self, powers: List[float]) -> None:
        for motor, power in zip(self.motors, powers):
            motor.power(power)
        self.last_powers = list(powers)

    def drive(self, x: float, y: float, heading_rate: float) -> List[float]:
        """Manual driving.

        Args:
            x: Forward request in [-1, 1]
            y: Leftward request in [-1, 1]
            heading_rate: Counter-clockwise rotation request in [-1, 1]

        Returns:
            Powers written (front-left, back-left, back-right, front-right)
        """
        if not self.configuration_valid:
            return []

        if self.field_centric:
            heading = self.pose().heading
            cos_h = math.cos(heading)
            sin_h = math.sin(heading)
            x, y = x * cos_h + y * sin_h, -x * sin_h + y * cos_h

        denominator = max(abs(x) + abs(y) + abs(heading_rate), 1.0)
        powers = [
            (x - y - heading_rate) / denominator * self.speed_multiplier,
            (x + y - heading_rate) / denominator * self.speed_multiplier,
            (x - y + heading_rate) / denominator * self.speed_multiplier,
            (x + y + heading_rate) / denominator * self.speed_multiplier,
        ]
        self._write_powers(powers)
        return powers


class TankDrive(DriveTrain):
    """Skid-steer chassis: ganged left and right motors, Ramsete feedback.

    Configuration fields (in addition to DriveTrain):
        motors: left, right (lists of motor names, required)
        pidf: ramsete-zeta, ramsete-bbar, turn-gain, turn-velocity-gain
              (optional)
    """

    kind = "tank"

    GAIN_DEFAULTS = (
        ("ramsete-zeta", RAMSETE_ZETA),
        ("ramsete-bbar", RAMSETE_B_BAR),
        ("turn-gain", 0.0),
        ("turn-velocity-gain", 0.0),
    )

    def __init__(self, *args, **kwargs) -> None:
        self.left: List[MotorPort] = []
        self.right: List[MotorPort] = []
        self.motor_names: Dict[str, Any] = {}
        super().__init__(*args, **kwargs)

    def _read_chassis(self, reader: Dict[str, Any]) -> bool:
        motors = reader.get("motors", {})
        self.motor_names = {"left": motors.get("left"), "right": motors.get("right")}
        left = _resolve_motors(self.hardware, motors.get("left"), "left", self.name)
        right = _resolve_motors(self.hardware, motors.get("right"), "right", self.name)
        self.left = left or []
        self.right = right or []
        return left is not None and right is not None

    def _read_gains(self, pidf: Dict[str, Any]) -> bool:
        gains = {key: read_float(pidf, key, self.name, default=default) for key, default in self.GAIN_DEFAULTS}
        if None in gains.values():
            return False
        self.pidf = gains
        return True

    def _build_kinematics(self, physics: Dict[str, Any]) -> None:
        self.kinematics = TankKinematics(self.in_per_tick * self.track_width_ticks)

    def _write_motors(self) -> Dict[str, Any]:
        return dict(self.motor_names)

    def path_controller(self) -> RamseteController:
        return RamseteController(
            self.kinematics.track_width,
            self.pidf.get("ramsete-zeta", RAMSETE_ZETA),
            self.pidf.get("ramsete-bbar", RAMSETE_B_BAR),
        )

    def turn_controller(self) -> TurnController:
        return TurnController(self.pidf.get("turn-gain", 0.0), self.pidf.get("turn-velocity-gain", 0.0))

    def _motor_count(self) -> int:
        return 2

    def _write_powers(self, powers: List[float]) -> None:
        left, right = powers
        for motor in self.left:
            motor.power(left)
        for motor in self.right:
            motor.power(right)
        self.last_powers = [left, right]

    def drive(self, x: float, y: float, heading_rate: float) -> List[float]:
        """Manual driving; y is ignored (the chassis cannot strafe).

        Returns:
            Powers written (left, right)
        """
        if not self.configuration_valid:
            return []
        denominator = max(abs(x) + abs(heading_rate), 1.0)
        powers = [
            (x - heading_rate) / denominator * self.speed_multiplier,
            (x + heading_rate) / denominator * self.speed_multiplier,
        ]
        self._write_powers(powers)
        return powers
