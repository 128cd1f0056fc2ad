"""Tests for the motor feedforward"""

import logging

import pytest

from drivetrain_control.mock_hardware import MockVoltageSensor
from drivetrain_control.motor_controller import MotorFeedforward, clip, normalize_powers


@pytest.fixture
def battery():
    return MockVoltageSensor(12.0)


@pytest.fixture
def feedforward(battery):
    return MotorFeedforward(0.6, 0.18, 0.02, 12.0, battery)


def test_zero_velocity_gives_zero_power(feedforward):
    """Test no static friction term at rest"""
    assert feedforward.power(0.0, 0.0, 12.0) == 0.0


def test_power(feedforward):
    assert feedforward.power(10.0, 0.0, 12.0) == pytest.approx((0.6 + 1.8) / 12.0)
    assert feedforward.power(-10.0, 0.0, 12.0) == pytest.approx(-(0.6 + 1.8) / 12.0)
    assert feedforward.power(10.0, 30.0, 12.0) == pytest.approx((0.6 + 1.8 + 0.6) / 12.0)


def test_power_is_clipped(feedforward):
    assert feedforward.power(1000.0, 0.0, 12.0) == 1.0
    assert feedforward.power(-1000.0, 0.0, 12.0) == -1.0


def test_voltage_sag_raises_power(feedforward, battery):
    """Test a lower battery voltage commands more power"""
    full = feedforward.power(10.0, 0.0, feedforward.voltage())
    battery.value = 10.0
    sagged = feedforward.power(10.0, 0.0, feedforward.voltage())
    assert sagged > full
    assert feedforward.last_voltage == 10.0


def test_voltage_without_compensation(feedforward, battery):
    battery.value = 10.0
    assert feedforward.voltage(use_compensation=False) == 12.0


def test_invalid_voltage_falls_back_to_nominal(feedforward, battery, caplog):
    battery.value = float("nan")
    with caplog.at_level(logging.WARNING):
        assert feedforward.voltage() == 12.0
    assert "nominal" in caplog.text
    battery.value = 0.0
    assert feedforward.voltage() == 12.0


def test_no_sensor_uses_nominal():
    assert MotorFeedforward(0.6, 0.18, nominal_voltage=13.0).voltage() == 13.0


def test_clip_and_normalize():
    assert clip(1.5) == 1.0
    assert clip(-0.3) == -0.3
    assert normalize_powers([2.0, -1.0]) == [1.0, -0.5]
    assert normalize_powers([0.5, -0.2]) == [0.5, -0.2]
    assert normalize_powers([]) == []


def test_diagnostics(feedforward):
    feedforward.voltage()
    assert feedforward.get_diagnostics() == {"ks": 0.6, "kv": 0.18, "ka": 0.02, "voltage": 12.0}
