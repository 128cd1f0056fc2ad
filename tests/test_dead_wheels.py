"""Tests for dead-wheel odometry"""

import logging

import pytest

from drivetrain_control.dead_wheels import ThreeDeadWheelsOdometry, TwoDeadWheelsOdometry
from drivetrain_control.geometry import Pose2D

IN_PER_TICK = 0.00199


def two_wheel_config(**overrides):
    config = {
        "forward": "fwd",
        "strafe": "str",
        "imu": "imu",
        "forward-y": 1000.0,
        "strafe-x": -500.0,
        "in-per-tick": IN_PER_TICK,
    }
    config.update(overrides)
    return config


def three_wheel_config(**overrides):
    config = {
        "par0": "par0",
        "par1": "par1",
        "perp": "perp",
        "par0-y-ticks": 3000.0,
        "par1-y-ticks": -3000.0,
        "perp-x-ticks": -1250.0,
        "in-per-tick": 0.002,
    }
    config.update(overrides)
    return config


@pytest.fixture
def two_wheels(hardware):
    odometry = TwoDeadWheelsOdometry("two", hardware)
    odometry.read(two_wheel_config())
    odometry.update()
    return odometry


@pytest.fixture
def three_wheels(hardware):
    odometry = ThreeDeadWheelsOdometry("three", hardware)
    odometry.read(three_wheel_config())
    odometry.update()
    return odometry


def test_two_wheels_forward_motion(two_wheels, hardware, clock):
    """Test one forward cycle: 500 ticks over 50 ms"""
    clock.advance(0.05)
    hardware.encoders["fwd"].move(500, 0.05)
    two_wheels.update()

    pose = two_wheels.pose()
    assert pose.x == pytest.approx(500 * IN_PER_TICK)
    assert pose.y == pytest.approx(0.0)
    assert pose.heading == pytest.approx(0.0)
    assert two_wheels.velocity().vx == pytest.approx(10000 * IN_PER_TICK)
    assert two_wheels.velocity().vy == pytest.approx(0.0)


def test_two_wheels_rotation_in_place(two_wheels, hardware, clock):
    """Test lever-arm readings during a pure rotation cancel out"""
    clock.advance(0.05)
    hardware.imus["imu"].rotate(0.1, 0.05)
    hardware.encoders["fwd"].move(100, 0.05)
    hardware.encoders["str"].move(-50, 0.05)
    two_wheels.update()

    pose = two_wheels.pose()
    assert pose.x == pytest.approx(0.0, abs=1e-9)
    assert pose.y == pytest.approx(0.0, abs=1e-9)
    assert pose.heading == pytest.approx(0.1)
    assert two_wheels.total_heading() == pytest.approx(0.1)
    assert two_wheels.velocity().omega == pytest.approx(2.0)


def test_two_wheels_heading_wraps(hardware, clock):
    """Test the imu crossing ±π is seen as a small rotation"""
    hardware.imus["imu"].yaw = 3.0
    odometry = TwoDeadWheelsOdometry("two", hardware)
    odometry.read(two_wheel_config(**{"forward-y": 0.0, "strafe-x": 0.0}))
    odometry.update()

    clock.advance(0.05)
    hardware.imus["imu"].rotate(0.3, 0.05)
    odometry.update()
    assert odometry.total_heading() == pytest.approx(0.3)
    assert odometry.pose().heading == pytest.approx(0.3)


def test_two_wheels_lateral_resolution(hardware, clock):
    odometry = TwoDeadWheelsOdometry("two", hardware)
    odometry.read(two_wheel_config(**{"lateral-in-per-tick": 0.004}))
    odometry.update()

    clock.advance(0.05)
    hardware.encoders["str"].move(250, 0.05)
    odometry.update()
    assert odometry.pose().y == pytest.approx(1.0)
    assert odometry.write()["lateral-in-per-tick"] == 0.004


def test_two_wheels_missing_imu(hardware, caplog):
    """Test a missing heading sensor leaves the source not configured"""
    odometry = TwoDeadWheelsOdometry("two", hardware)
    with caplog.at_level(logging.ERROR):
        odometry.read(two_wheel_config(imu="nope"))
    assert not odometry.is_configured()
    assert "nope" in caplog.text

    hardware.encoders["fwd"].move(500, 0.05)
    odometry.update()
    assert odometry.pose() == Pose2D()
    assert odometry.write() == {}


def test_two_wheels_missing_field(hardware):
    odometry = TwoDeadWheelsOdometry("two", hardware)
    config = two_wheel_config()
    del config["forward-y"]
    odometry.read(config)
    assert not odometry.is_configured()


def test_three_wheels_forward_motion(three_wheels, hardware, clock):
    clock.advance(0.05)
    for name in ("par0", "par1"):
        hardware.encoders[name].move(500, 0.05)
    three_wheels.update()

    pose = three_wheels.pose()
    assert pose.x == pytest.approx(1.0)
    assert pose.y == pytest.approx(0.0)
    assert three_wheels.velocity().vx == pytest.approx(20.0)


def test_three_wheels_rotation_in_place(three_wheels, hardware, clock):
    """Test rotation is solved from the parallel pair"""
    clock.advance(0.05)
    hardware.encoders["par0"].move(900, 0.05)
    hardware.encoders["par1"].move(-900, 0.05)
    hardware.encoders["perp"].move(-375, 0.05)
    three_wheels.update()

    pose = three_wheels.pose()
    assert pose.x == pytest.approx(0.0, abs=1e-9)
    assert pose.y == pytest.approx(0.0, abs=1e-9)
    assert pose.heading == pytest.approx(0.3)
    assert three_wheels.total_heading() == pytest.approx(0.3)


def test_three_wheels_strafe_after_rotation(three_wheels, hardware, clock):
    """Test robot-frame motion is rotated into the field frame"""
    clock.advance(0.05)
    hardware.encoders["par0"].move(900, 0.05)
    hardware.encoders["par1"].move(-900, 0.05)
    hardware.encoders["perp"].move(-375, 0.05)
    three_wheels.update()

    clock.advance(0.05)
    hardware.encoders["perp"].move(500, 0.05)
    three_wheels.update()

    pose = three_wheels.pose()
    assert pose.x == pytest.approx(-0.29552, abs=1e-4)
    assert pose.y == pytest.approx(0.95534, abs=1e-4)


def test_three_wheels_equal_lever_arms(hardware, caplog):
    odometry = ThreeDeadWheelsOdometry("three", hardware)
    with caplog.at_level(logging.ERROR):
        odometry.read(three_wheel_config(**{"par1-y-ticks": 3000.0}))
    assert not odometry.is_configured()
    assert "lever arms" in caplog.text


def test_three_wheels_set_pose(three_wheels, hardware, clock):
    """Test updates integrate from a redefined pose"""
    three_wheels.set_pose(Pose2D(10.0, 5.0, 0.0))
    clock.advance(0.05)
    for name in ("par0", "par1"):
        hardware.encoders[name].move(500, 0.05)
    three_wheels.update()
    assert three_wheels.pose().x == pytest.approx(11.0)
    assert three_wheels.pose().y == pytest.approx(5.0)


def test_three_wheels_zero_input_is_idempotent(three_wheels, clock):
    clock.advance(0.05)
    three_wheels.update()
    three_wheels.update()
    assert three_wheels.pose() == Pose2D()
    assert len(three_wheels.pose_history) == 3


def test_diagnostics_and_configuration_text(three_wheels):
    diagnostics = three_wheels.get_diagnostics()
    assert set(diagnostics) == {"x", "y", "heading", "vx", "vy", "omega", "total_heading", "is_nan"}
    assert "3deadwheels three" in three_wheels.log_configuration_text()


def test_two_wheels_end_to_end(hardware, clock):
    """Test the reference scenario: small lever arms, one 500 tick cycle"""
    odometry = TwoDeadWheelsOdometry("two", hardware)
    odometry.read(two_wheel_config(**{"forward-y": 1.0, "strafe-x": -2.5}))
    odometry.update()

    clock.advance(0.05)
    hardware.encoders["fwd"].move(500, 0.05)
    odometry.update()

    pose = odometry.pose()
    assert pose.x == pytest.approx(0.995, abs=1e-3)
    assert pose.y == pytest.approx(0.0, abs=1e-3)
    assert pose.heading == pytest.approx(0.0, abs=1e-3)
    assert odometry.velocity().vx > 0.0
