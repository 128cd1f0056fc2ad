"""Shared fixtures: manual clock, mock hardware and simulated robots."""

import pytest

from drivetrain_control.hardware import Hardware
from drivetrain_control.mock_hardware import ManualClock, MockEncoder, MockImu
from drivetrain_control.simulation import SimulatedRobot


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def hardware(clock):
    hw = Hardware(clock)
    hw.encoders.update({name: MockEncoder() for name in ("fwd", "str", "par0", "par1", "perp")})
    hw.imus["imu"] = MockImu()
    return hw


@pytest.fixture
def mecanum_sim():
    return SimulatedRobot("mecanum")


@pytest.fixture
def tank_sim():
    return SimulatedRobot("tank")
