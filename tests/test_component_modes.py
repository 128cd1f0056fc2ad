"""Tests for control mode flags"""

from drivetrain_control.component_modes import ControlMode, parse_control_flags


def test_defaults():
    mode, remaining = parse_control_flags([])
    assert mode == ControlMode()
    assert remaining == []
    assert str(mode) == "Follower(FF+FB) → Motor(Voltage comp) → Robot centric"


def test_flags_are_consumed():
    """Test control flags are removed and the rest is passed through"""
    mode, remaining = parse_control_flags(["--no-feedback", "--chassis", "tank", "--field-centric"])
    assert not mode.use_feedback
    assert mode.use_feedforward
    assert mode.field_centric
    assert remaining == ["--chassis", "tank"]


def test_everything_disabled():
    mode, _ = parse_control_flags(["--no-feedback", "--no-feedforward", "--no-voltage-compensation"])
    assert str(mode).startswith("Follower(Off)")
    assert mode.to_dict() == {
        "use_feedback": False,
        "use_feedforward": False,
        "use_voltage_compensation": False,
        "field_centric": False,
    }
