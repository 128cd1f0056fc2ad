"""Tests for SE(2) geometry"""

import math

import numpy as np
import pytest

from drivetrain_control.geometry import (
    Pose2D,
    Twist2D,
    compose,
    field_to_robot,
    integrate,
    inverse,
    minus,
    normalize_angle,
    pose_exponential,
    robot_to_field,
    smallest_angle_difference,
    wrap_angle,
)


def assert_pose(pose, x, y, heading, abs=1e-9):
    assert pose.x == pytest.approx(x, abs=abs)
    assert pose.y == pytest.approx(y, abs=abs)
    assert wrap_angle(pose.heading - heading) == pytest.approx(0.0, abs=abs)


def test_normalize_angle():
    """Test angles are mapped into [0, 2π)"""
    assert normalize_angle(-0.1) == pytest.approx(2 * math.pi - 0.1)
    assert normalize_angle(2 * math.pi) == 0.0
    assert normalize_angle(5 * math.pi) == pytest.approx(math.pi)
    assert 0.0 <= normalize_angle(-1e-18) < 2 * math.pi


def test_wrap_angle():
    """Test angles are mapped into (-π, π]"""
    assert wrap_angle(1.5 * math.pi) == pytest.approx(-0.5 * math.pi)
    assert wrap_angle(math.pi) == pytest.approx(math.pi)
    assert wrap_angle(-math.pi) == pytest.approx(math.pi)


def test_smallest_angle_difference_across_zero():
    assert smallest_angle_difference(0.1, 2 * math.pi - 0.1) == pytest.approx(0.2)
    assert smallest_angle_difference(2 * math.pi - 0.1, 0.1) == pytest.approx(-0.2)


def test_pose_heading_is_normalized():
    assert Pose2D(0, 0, -math.pi / 2).heading == pytest.approx(1.5 * math.pi)


def test_compose_identity_and_inverse():
    """Test group identities"""
    a = Pose2D(1.0, -2.0, 0.7)
    assert_pose(compose(a, Pose2D()), 1.0, -2.0, 0.7)
    assert_pose(compose(a, inverse(a)), 0.0, 0.0, 0.0)
    assert_pose(minus(a, a), 0.0, 0.0, 0.0)


def test_compose_matches_matrix_product():
    a = Pose2D(1.0, 2.0, 0.3)
    b = Pose2D(-0.5, 4.0, 2.0)
    np.testing.assert_allclose((a * b).to_matrix(), a.to_matrix() @ b.to_matrix(), atol=1e-9)


def test_minus_expresses_target_in_robot_frame():
    robot = Pose2D(0.0, 0.0, math.pi / 2)
    target = Pose2D(0.0, 1.0, math.pi / 2)
    assert_pose(minus(target, robot), 1.0, 0.0, 0.0)


def test_integrate_zero_increment_is_identity():
    """Test zero motion leaves the pose unchanged"""
    pose = Pose2D(3.0, 4.0, 1.0)
    assert integrate(pose, 0.0, 0.0, 0.0) == pose


def test_integrate_straight_line_uses_heading():
    assert_pose(integrate(Pose2D(0, 0, math.pi / 2), 1.0, 0.0, 0.0), 0.0, 1.0, math.pi / 2)


def test_integrate_quarter_arc():
    """Test a quarter circle of radius 1 ends at (1, 1)"""
    assert_pose(integrate(Pose2D(), math.pi / 2, 0.0, math.pi / 2), 1.0, 1.0, math.pi / 2)


def test_pose_exponential_small_angle_is_continuous():
    dx, dy, dtheta = pose_exponential(1.0, 0.0, 1e-6, 0.0)
    assert dx == pytest.approx(1.0)
    assert dy == pytest.approx(5e-7, rel=1e-3)
    assert dtheta == pytest.approx(1e-6)

    just_above = pose_exponential(1.0, 0.0, 0.0011, 0.0)
    just_below = pose_exponential(1.0, 0.0, 0.0009, 0.0)
    assert just_above[1] == pytest.approx(0.00055, rel=1e-3)
    assert just_below[1] == pytest.approx(0.00045, rel=1e-3)


def test_twist_frames():
    twist = Twist2D(1.0, 0.0, 0.5)
    field = robot_to_field(twist, math.pi / 2)
    assert field.vx == pytest.approx(0.0, abs=1e-12)
    assert field.vy == pytest.approx(1.0)
    assert field.omega == 0.5
    back = field_to_robot(field, math.pi / 2)
    assert back.vx == pytest.approx(1.0)
    assert back.vy == pytest.approx(0.0, abs=1e-12)


def test_twist_arithmetic():
    a = Twist2D(1.0, 2.0, 3.0)
    b = Twist2D(0.5, 0.5, 0.5)
    assert a + b == Twist2D(1.5, 2.5, 3.5)
    assert a - b == Twist2D(0.5, 1.5, 2.5)
    assert 2 * a == a * 2 == Twist2D(2.0, 4.0, 6.0)
    assert Twist2D(float("nan"), 0, 0).is_nan()
    assert Pose2D(0, float("nan"), 0).is_nan()


@pytest.mark.parametrize("omega", [1e-5, 0.5, 4.0])
def test_repeated_integration_matches_circular_arc(omega):
    """Test N cycles of a constant twist land on the closed-form arc"""
    v, dt, cycles = 10.0, 0.02, 100
    pose = Pose2D()
    for _ in range(cycles):
        pose = integrate(pose, v * dt, 0.0, omega * dt)

    total = omega * dt * cycles
    assert pose.x == pytest.approx(v / omega * math.sin(total), abs=1e-6)
    assert pose.y == pytest.approx(v / omega * (1.0 - math.cos(total)), abs=1e-6)
    assert wrap_angle(pose.heading - total) == pytest.approx(0.0, abs=1e-9)
