"""
Control law modes.

This module defines which terms of the drive control law are active, so each
one's contribution to tracking can be evaluated in isolation.
"""

from dataclasses import dataclass
import argparse
import sys


@dataclass
class ControlMode:
    """Configuration for which control terms are active."""

    # Trajectory following
    use_feedback: bool = True  # If False, follow the target velocity open loop
    use_feedforward: bool = True  # If False, only the pose/velocity corrections are commanded

    # Motor layer
    use_voltage_compensation: bool = True  # If False, assume the nominal voltage

    # Manual driving
    field_centric: bool = False  # If True, drive() inputs are field-centric

    def __str__(self):
        """Human-readable description of active terms."""
        terms = []
        if self.use_feedforward:
            terms.append("FF")
        if self.use_feedback:
            terms.append("FB")
        follower = f"Follower({'+'.join(terms)})" if terms else "Follower(Off)"

        motor = "Motor(Voltage comp)" if self.use_voltage_compensation else "Motor(Nominal V)"
        manual = "Field centric" if self.field_centric else "Robot centric"

        return " → ".join([follower, motor, manual])

    def to_dict(self):
        """Convert to dictionary for logging."""
        return {
            "use_feedback": self.use_feedback,
            "use_feedforward": self.use_feedforward,
            "use_voltage_compensation": self.use_voltage_compensation,
            "field_centric": self.field_centric,
        }


def parse_control_flags(args=None):
    """
    Parse command-line flags to determine which control terms are active.

    Args:
        args: List of command-line arguments (default: sys.argv[1:])

    Returns:
        tuple: (ControlMode, remaining_args)
            - ControlMode with appropriate settings
            - List of remaining arguments not consumed
    """
    parser = argparse.ArgumentParser(add_help=False)

    parser.add_argument("--no-feedback", action="store_true", help="Disable pose/velocity feedback")
    parser.add_argument("--no-feedforward", action="store_true", help="Disable target velocity feedforward")
    parser.add_argument(
        "--no-voltage-compensation", action="store_true", help="Use the nominal voltage instead of the measured one"
    )
    parser.add_argument("--field-centric", action="store_true", help="Manual driving inputs are field-centric")

    if args is None:
        args = sys.argv[1:]

    known_args, remaining_args = parser.parse_known_args(args)

    mode = ControlMode(
        use_feedback=not known_args.no_feedback,
        use_feedforward=not known_args.no_feedforward,
        use_voltage_compensation=not known_args.no_voltage_compensation,
        field_centric=known_args.field_centric,
    )

    return mode, remaining_args
