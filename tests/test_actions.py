"""Tests for the follow action lifecycle"""

import math

import pytest

from drivetrain_control.actions import ActionState
from drivetrain_control.component_modes import ControlMode
from drivetrain_control.drive import MecanumDrive, TankDrive
from drivetrain_control.follower import feedforward_command
from drivetrain_control.geometry import Pose2D, Twist2D
from drivetrain_control.hardware import Hardware
from drivetrain_control.localizer import create_odometry
from drivetrain_control.trajectory import LemniscateTrajectory, TurnTrajectory


def make_drive(sim, mode=None):
    create_odometry("mock", "odometry", {}, sim.hardware)
    return MecanumDrive("drive", sim.hardware, sim.drive_config("odometry"), mode=mode or ControlMode())


def test_lifecycle(mecanum_sim):
    """Test running until elapsed > duration, then stopping the wheels"""
    drive = make_drive(mecanum_sim)
    action = drive.follow_trajectory(TurnTrajectory(Pose2D(), 1.0, 2.0))
    assert action.state == ActionState.NOT_STARTED

    assert action.step(0.0)
    assert action.is_running()
    assert not drive.has_finished()
    assert any(power != 0.0 for power in mecanum_sim.powers())

    assert action.step(1.0)
    assert action.step(2.0)
    assert not action.step(2.1)

    assert action.is_finished()
    assert drive.has_finished()
    assert mecanum_sim.powers() == [0.0, 0.0, 0.0, 0.0]
    assert not action.step(3.0)


def test_step_reads_drive_clock(mecanum_sim):
    drive = make_drive(mecanum_sim)
    action = drive.follow_trajectory(TurnTrajectory(Pose2D(), 1.0, 0.1))
    assert action.step()
    mecanum_sim.clock.advance(0.2)
    assert not action.step()


def test_zero_duration_finishes_on_second_step(mecanum_sim):
    drive = make_drive(mecanum_sim)
    action = drive.follow_trajectory(TurnTrajectory(Pose2D(), 1.0, 0.0))
    assert action.step(5.0)
    assert not action.step(5.05)


def test_not_configured_drive_finishes_immediately():
    drive = MecanumDrive("drive", Hardware(), {})
    action = drive.follow_trajectory(TurnTrajectory(Pose2D(), 1.0, 2.0))
    assert not action.step(0.0)
    assert action.is_finished()
    assert drive.has_finished()


def test_not_configured_tank_drive_finishes_immediately():
    drive = TankDrive("drive", Hardware(), {})
    action = drive.follow_trajectory(TurnTrajectory(Pose2D(), 1.0, 2.0))
    assert not action.step(0.0)
    assert action.is_finished()
    assert drive.has_finished()

    assert not drive.turn(math.pi / 2).step(0.0)


def test_zero_track_width_tank_drive_finishes_immediately(tank_sim):
    create_odometry("mock", "odometry", {}, tank_sim.hardware)
    config = tank_sim.drive_config("odometry")
    config["physics"]["track-width-ticks"] = 0.0
    drive = TankDrive("drive", tank_sim.hardware, config)
    assert not drive.is_configured()
    action = drive.follow_trajectory(TurnTrajectory(Pose2D(), 1.0, 2.0))
    assert not action.step(0.0)
    assert tank_sim.powers() == [0.0, 0.0, 0.0, 0.0]


def test_without_feedback_commands_target_velocity(mecanum_sim):
    drive = make_drive(mecanum_sim, ControlMode(use_feedback=False))
    drive.odometry.set_pose(Pose2D(5.0, 5.0, 0.0))
    trajectory = LemniscateTrajectory(24.0, 20.0)
    action = drive.follow_trajectory(trajectory)
    action.step(0.0)
    assert action.last_command == feedforward_command(trajectory.get(0.0), drive.pose())


def test_without_feedforward_on_target_commands_nothing(mecanum_sim):
    """Test only corrections are commanded when the feedforward is disabled"""
    drive = make_drive(mecanum_sim, ControlMode(use_feedforward=False))
    action = drive.follow_trajectory(LemniscateTrajectory(24.0, 20.0))
    action.step(0.0)
    command = action.last_command
    assert command.vx == pytest.approx(0.0, abs=1e-9)
    assert command.vy == pytest.approx(0.0, abs=1e-9)
    assert command.omega == pytest.approx(0.0, abs=1e-9)
    assert action.last_target.velocity == Twist2D()


def test_turn_defaults_to_max_heading_velocity(mecanum_sim):
    drive = make_drive(mecanum_sim)
    action = drive.turn(math.pi / 2)
    assert action.trajectory.duration == pytest.approx(0.5)
    assert action.step(0.0)
    assert action.last_command.omega > 0.0
