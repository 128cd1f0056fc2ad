"""Kinematic plant for closed-loop runs without a robot.

The plant reads the powers written to the mock motors, turns them into wheel
velocities with the inverse of the motor feedforward model, moves the true
pose, and feeds every simulated sensor (drive encoders, dead wheels, IMU,
absolute module, optical sensor) so that any odometry source can be used.

Assumptions:
- No inertia and no wheel slip: wheels reach the commanded velocity at once
- The battery holds a constant voltage unless changed through `battery`
"""

import math
from typing import Any, Dict, List, Optional

from .config import (
    NOMINAL_VOLTAGE,
    SIM_AXIAL_GAIN,
    SIM_AXIAL_VELOCITY_GAIN,
    SIM_DEAD_WHEEL_IN_PER_TICK,
    SIM_HEADING_GAIN,
    SIM_HEADING_VELOCITY_GAIN,
    SIM_IN_PER_TICK,
    SIM_KA,
    SIM_KS,
    SIM_KV,
    SIM_LATERAL_GAIN,
    SIM_LATERAL_VELOCITY_GAIN,
    SIM_TRACK_WIDTH,
    SIM_TURN_GAIN,
    SIM_TURN_VELOCITY_GAIN,
    SIM_WHEELBASE,
)
from .geometry import Pose2D, Twist2D, integrate, robot_to_field
from .hardware import Hardware
from .kinematics import MecanumKinematics, MecanumWheelVelocities, TankKinematics, TankWheelVelocities
from .mock_hardware import (
    ManualClock,
    MockAbsoluteModule,
    MockEncoder,
    MockImu,
    MockMotor,
    MockOpticalSensor,
    MockVoltageSensor,
    hub_velocity,
)

# Dead-wheel lever arms (ticks per radian)
PAR0_Y_TICKS = 3000.0
PAR1_Y_TICKS = -3000.0
PERP_X_TICKS = -1250.0

MECANUM_MOTORS = ("front-left-wheel", "back-left-wheel", "back-right-wheel", "front-right-wheel")
TANK_MOTORS = ("left-front", "left-back", "right-front", "right-back")


class SimulatedRobot:
    """Mock hardware of one robot plus its true motion.

    Args:
        chassis: "mecanum" or "tank"
        clock: Shared manual clock, advanced by step()
        voltage: Initial battery voltage

    Attributes:
        hardware: Registry holding every simulated port
        true_pose: Ground-truth pose
        true_velocity: Ground-truth field-frame velocity
    """

    def __init__(self, chassis: str = "mecanum", clock: Optional[ManualClock] = None, voltage: float = NOMINAL_VOLTAGE):
        if chassis not in ("mecanum", "tank"):
            raise ValueError(f"unknown chassis '{chassis}'")
        self.chassis = chassis
        self.clock = clock if clock is not None else ManualClock()
        self.hardware = Hardware(self.clock)

        self.true_pose = Pose2D()
        self.true_velocity = Twist2D()

        if chassis == "mecanum":
            self.kinematics = MecanumKinematics(SIM_TRACK_WIDTH, SIM_WHEELBASE)
            motor_names = MECANUM_MOTORS
        else:
            self.kinematics = TankKinematics(SIM_TRACK_WIDTH)
            motor_names = TANK_MOTORS

        self.motors: Dict[str, MockMotor] = {name: MockMotor() for name in motor_names}
        self.hardware.motors.update(self.motors)

        # one drive encoder per motor, same name
        self.drive_encoders: Dict[str, MockEncoder] = {name: MockEncoder() for name in motor_names}
        self.dead_wheels: Dict[str, MockEncoder] = {name: MockEncoder() for name in ("par0", "par1", "perp")}
        self.hardware.encoders.update(self.drive_encoders)
        self.hardware.encoders.update(self.dead_wheels)
        self.ticks: Dict[str, float] = {name: 0.0 for name in self.hardware.encoders}

        self.imu = MockImu()
        self.module = MockAbsoluteModule()
        self.optical = MockOpticalSensor()
        self.battery = MockVoltageSensor(voltage)
        self.hardware.imus["imu"] = self.imu
        self.hardware.modules["pinpoint"] = self.module
        self.hardware.optical["otos"] = self.optical
        self.hardware.voltage_sensors["battery"] = self.battery

    # -------------------------------------------------------------- plant

    def wheel_velocity(self, power: float) -> float:
        """Steady-state wheel velocity for a motor power (inverse feedforward)."""
        volts = power * self.battery.voltage()
        if abs(volts) <= SIM_KS:
            return 0.0
        return (volts - math.copysign(SIM_KS, volts)) / SIM_KV

    def _wheel_velocities(self):
        velocities = {name: self.wheel_velocity(motor.current_power) for name, motor in self.motors.items()}
        if self.chassis == "mecanum":
            return velocities, MecanumWheelVelocities(*(velocities[name] for name in MECANUM_MOTORS))
        left = (velocities["left-front"] + velocities["left-back"]) / 2.0
        right = (velocities["right-front"] + velocities["right-back"]) / 2.0
        return velocities, TankWheelVelocities(left, right)

    def _move_encoder(self, name: str, delta_ticks: float, dt: float) -> None:
        self.ticks[name] += delta_ticks
        encoder = self.hardware.encoders[name]
        encoder.ticks = int(round(self.ticks[name]))
        encoder.hint = hub_velocity(delta_ticks / dt)

    def step(self, dt: float) -> None:
        """Advance the plant and the clock by dt seconds."""
        velocities, wheels = self._wheel_velocities()
        robot_velocity = self.kinematics.forward(wheels)

        dx = robot_velocity.vx * dt
        dy = robot_velocity.vy * dt
        dtheta = robot_velocity.omega * dt
        self.true_pose = integrate(self.true_pose, dx, dy, dtheta)
        self.true_velocity = robot_to_field(robot_velocity, self.true_pose.heading)

        for name, velocity in velocities.items():
            self._move_encoder(name, velocity * dt / SIM_IN_PER_TICK, dt)

        self._move_encoder("par0", dx / SIM_DEAD_WHEEL_IN_PER_TICK + PAR0_Y_TICKS * dtheta, dt)
        self._move_encoder("par1", dx / SIM_DEAD_WHEEL_IN_PER_TICK + PAR1_Y_TICKS * dtheta, dt)
        self._move_encoder("perp", dy / SIM_DEAD_WHEEL_IN_PER_TICK + PERP_X_TICKS * dtheta, dt)

        self.imu.rotate(dtheta, dt)

        self.module.pose = self.true_pose
        self.module.speed = self.true_velocity
        self.optical.pose = self.true_pose
        self.optical.speed = self.true_velocity

        self.clock.advance(dt)

    # ------------------------------------------------------ configurations

    def odometry_config(self, kind: str) -> Dict[str, Any]:
        """Configuration matching the simulated sensors for an odometry type."""
        if kind == "2deadwheels":
            return {
                "forward": "par0",
                "strafe": "perp",
                "imu": "imu",
                "forward-y": PAR0_Y_TICKS,
                "strafe-x": PERP_X_TICKS,
                "in-per-tick": SIM_DEAD_WHEEL_IN_PER_TICK,
            }
        if kind == "3deadwheels":
            return {
                "par0": "par0",
                "par1": "par1",
                "perp": "perp",
                "par0-y-ticks": PAR0_Y_TICKS,
                "par1-y-ticks": PAR1_Y_TICKS,
                "perp-x-ticks": PERP_X_TICKS,
                "in-per-tick": SIM_DEAD_WHEEL_IN_PER_TICK,
            }
        if kind == "driveencoders":
            config: Dict[str, Any] = {
                "track-width-ticks": SIM_TRACK_WIDTH / SIM_IN_PER_TICK,
                "in-per-tick": SIM_IN_PER_TICK,
            }
            if self.chassis == "mecanum":
                config.update({name: name for name in MECANUM_MOTORS})
                config["wheelbase-ticks"] = SIM_WHEELBASE / SIM_IN_PER_TICK
            else:
                config.update(
                    {
                        "layout": "tank",
                        "left-wheels": ["left-front", "left-back"],
                        "right-wheels": ["right-front", "right-back"],
                    }
                )
            return config
        if kind == "pinpoint":
            return {"hwmap": "pinpoint"}
        if kind == "otos":
            return {"hwmap": "otos"}
        return {}

    def drive_config(self, odometer: str) -> Dict[str, Any]:
        """Drive configuration matching the simulated chassis."""
        physics: Dict[str, Any] = {
            "in-per-tick": SIM_IN_PER_TICK,
            "track-width-ticks": SIM_TRACK_WIDTH / SIM_IN_PER_TICK,
        }
        pidf: Dict[str, Any] = {"ks": SIM_KS, "kv": SIM_KV, "ka": SIM_KA}
        if self.chassis == "mecanum":
            motors: Dict[str, Any] = {name: name for name in MECANUM_MOTORS}
            physics["wheelbase-ticks"] = SIM_WHEELBASE / SIM_IN_PER_TICK
            pidf.update(
                {
                    "axial-gain": SIM_AXIAL_GAIN,
                    "lateral-gain": SIM_LATERAL_GAIN,
                    "heading-gain": SIM_HEADING_GAIN,
                    "axial-velocity-gain": SIM_AXIAL_VELOCITY_GAIN,
                    "lateral-velocity-gain": SIM_LATERAL_VELOCITY_GAIN,
                    "heading-velocity-gain": SIM_HEADING_VELOCITY_GAIN,
                }
            )
        else:
            motors = {"left": ["left-front", "left-back"], "right": ["right-front", "right-back"]}
            pidf.update({"turn-gain": SIM_TURN_GAIN, "turn-velocity-gain": SIM_TURN_VELOCITY_GAIN})
        return {
            "motors": motors,
            "odometer": odometer,
            "physics": physics,
            "pidf": pidf,
            "voltage-sensor": "battery",
        }

    def powers(self) -> List[float]:
        return [motor.current_power for motor in self.motors.values()]
