"""Tests for drive-encoder odometry"""

import pytest

from drivetrain_control.drive_encoders import DriveEncodersOdometry
from drivetrain_control.hardware import Hardware
from drivetrain_control.mock_hardware import ManualClock, MockEncoder, MockImu

WHEELS = ("front-left-wheel", "back-left-wheel", "back-right-wheel", "front-right-wheel")


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def hardware(clock):
    hw = Hardware(clock)
    hw.encoders.update({name: MockEncoder() for name in WHEELS})
    hw.encoders.update({name: MockEncoder() for name in ("l1", "l2", "r1", "r2")})
    hw.imus["imu"] = MockImu()
    return hw


def mecanum_config(**overrides):
    config = {name: name for name in WHEELS}
    config.update({"track-width-ticks": 1000.0, "in-per-tick": 0.01})
    config.update(overrides)
    return config


def tank_config(**overrides):
    config = {
        "layout": "tank",
        "left-wheels": ["l1", "l2"],
        "right-wheels": ["r1", "r2"],
        "track-width-ticks": 1000.0,
        "in-per-tick": 0.01,
    }
    config.update(overrides)
    return config


def move(hardware, clock, ticks):
    clock.advance(0.05)
    for name, delta in ticks.items():
        hardware.encoders[name].move(delta, 0.05)


def make(hardware, config):
    odometry = DriveEncodersOdometry("drive-encoders", hardware)
    odometry.read(config)
    odometry.update()
    return odometry


def test_mecanum_forward(hardware, clock):
    odometry = make(hardware, mecanum_config())
    move(hardware, clock, {name: 100 for name in WHEELS})
    odometry.update()
    assert odometry.pose().x == pytest.approx(1.0)
    assert odometry.pose().y == pytest.approx(0.0)
    assert odometry.velocity().vx == pytest.approx(20.0)


def test_mecanum_strafe(hardware, clock):
    odometry = make(hardware, mecanum_config())
    move(hardware, clock, dict(zip(WHEELS, (-100, 100, -100, 100))))
    odometry.update()
    assert odometry.pose().x == pytest.approx(0.0)
    assert odometry.pose().y == pytest.approx(1.0)


def test_mecanum_rotation(hardware, clock):
    odometry = make(hardware, mecanum_config())
    move(hardware, clock, dict(zip(WHEELS, (-50, -50, 50, 50))))
    odometry.update()
    assert odometry.pose().heading == pytest.approx(0.1)
    assert odometry.total_heading() == pytest.approx(0.1)


def test_imu_replaces_encoder_rotation(hardware, clock):
    """Test wheel slip during a turn is ignored when an imu is configured"""
    odometry = make(hardware, mecanum_config(imu="imu"))
    move(hardware, clock, dict(zip(WHEELS, (-50, -50, 50, 50))))
    hardware.imus["imu"].rotate(0.05, 0.05)
    odometry.update()
    assert odometry.pose().heading == pytest.approx(0.05)


def test_tank_averages_ganged_encoders(hardware, clock):
    odometry = make(hardware, tank_config())
    move(hardware, clock, {"l1": -40, "l2": -60, "r1": 60, "r2": 40})
    odometry.update()
    assert odometry.pose().heading == pytest.approx(0.1)
    assert odometry.pose().x == pytest.approx(0.0, abs=1e-9)


def test_tank_forward(hardware, clock):
    odometry = make(hardware, tank_config())
    move(hardware, clock, {"l1": 100, "l2": 100, "r1": 100, "r2": 100})
    odometry.update()
    assert odometry.pose().x == pytest.approx(1.0)
    assert odometry.write()["left-wheels"] == ["l1", "l2"]


def test_unknown_layout(hardware):
    odometry = DriveEncodersOdometry("drive-encoders", hardware)
    odometry.read(mecanum_config(layout="swerve"))
    assert not odometry.is_configured()


def test_missing_wheel(hardware):
    config = mecanum_config()
    del config["back-left-wheel"]
    odometry = DriveEncodersOdometry("drive-encoders", hardware)
    odometry.read(config)
    assert not odometry.is_configured()


def test_invalid_geometry(hardware):
    odometry = DriveEncodersOdometry("drive-encoders", hardware)
    odometry.read(tank_config(**{"track-width-ticks": 0.0}))
    assert not odometry.is_configured()
