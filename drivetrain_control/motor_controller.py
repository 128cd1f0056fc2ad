"""Motor feedforward with supply-voltage compensation.

Wheel velocities coming out of the kinematics are turned into normalized
motor powers with a linear motor model:

    power = (ks * sign(v) + kv * v + ka * a) / voltage

Dividing by the measured battery voltage keeps the wheel speed consistent as
the battery sags: the same (ks, kv, ka) command more power at lower voltage.
"""

import logging
import math
from typing import Dict, Optional, Sequence

from .config import MAX_MOTOR_POWER, NOMINAL_VOLTAGE
from .hardware import VoltagePort


def clip(value: float, limit: float = MAX_MOTOR_POWER) -> float:
    """Clamp a power to [-limit, limit]."""
    return max(-limit, min(limit, value))


def normalize_powers(powers: Sequence[float]) -> list[float]:
    """Scale powers down so the largest magnitude is at most 1.

    Ratios between the powers are preserved; powers already in range are
    returned unchanged.
    """
    largest = max((abs(power) for power in powers), default=0.0)
    if largest <= MAX_MOTOR_POWER:
        return list(powers)
    return [power / largest for power in powers]


class MotorFeedforward:
    """Linear motor model turning wheel velocity into normalized power.

    Attributes:
        ks: Static friction voltage (V)
        kv: Velocity coefficient (V per unit/s)
        ka: Acceleration coefficient (V per unit/s²)
        nominal_voltage: Voltage used when no valid measurement is available
        voltage_sensor: Battery voltage port, None to always use nominal_voltage
    """

    def __init__(
        self,
        ks: float,
        kv: float,
        ka: float = 0.0,
        nominal_voltage: float = NOMINAL_VOLTAGE,
        voltage_sensor: Optional[VoltagePort] = None,
    ):
        self.ks = ks
        self.kv = kv
        self.ka = ka
        self.nominal_voltage = nominal_voltage
        self.voltage_sensor = voltage_sensor
        self.last_voltage = nominal_voltage

    def voltage(self, use_compensation: bool = True) -> float:
        """Supply voltage for this cycle.

        Args:
            use_compensation: If False, the nominal voltage is returned without
                reading the sensor

        Returns:
            Measured voltage, or the nominal voltage when there is no sensor
            or the reading is not a positive number
        """
        if not use_compensation or self.voltage_sensor is None:
            self.last_voltage = self.nominal_voltage
            return self.last_voltage

        measured = self.voltage_sensor.voltage()
        if math.isnan(measured) or measured <= 0:
            logging.warning(f"Invalid supply voltage {measured}, using nominal {self.nominal_voltage} V")
            measured = self.nominal_voltage
        self.last_voltage = measured
        return measured

    def power(self, velocity: float, acceleration: float, voltage: float) -> float:
        """Normalized power for one wheel.

        Args:
            velocity: Wheel velocity command
            acceleration: Wheel acceleration command
            voltage: Supply voltage from voltage()

        Returns:
            Power clipped to [-1, 1]
        """
        # no static friction term at rest
        static = math.copysign(self.ks, velocity) if velocity != 0 else 0.0
        return clip((static + self.kv * velocity + self.ka * acceleration) / voltage)

    def get_diagnostics(self) -> Dict[str, float]:
        return {
            "ks": self.ks,
            "kv": self.kv,
            "ka": self.ka,
            "voltage": self.last_voltage,
        }
