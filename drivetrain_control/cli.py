#!/usr/bin/env python3
"""
Closed-loop Simulation Runner

This module wires a simulated robot, an odometry source and a drive train
together and follows the reference lemniscate for one loop. Every cycle it
logs the odometry estimate, the command and the tracking error to CSV files,
then reports the average and cumulative tracking error.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .component_modes import ControlMode, parse_control_flags
from .config import CYCLE_PERIOD, LEMNISCATE_SCALE, SIM_DURATION, TERM_BLUE, TERM_ORANGE, TERM_RESET
from .data_collector import DataCollector
from .drive import MecanumDrive, TankDrive
from .geometry import wrap_angle
from .localizer import ODOMETRY_TYPES, create_odometry
from .simulation import SimulatedRobot
from .trajectory import LemniscateTrajectory

DRIVE_TYPES = {"mecanum": MecanumDrive, "tank": TankDrive}


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return record.getMessage()
        else:
            return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


def load_overrides(path: Optional[str]) -> Dict[str, Any]:
    """Read configuration overrides from a JSON file.

    The file may hold an "odometry" and a "drive" object; their keys replace
    the simulated defaults (nested objects are merged one level deep).
    """
    if path is None:
        return {}
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = dict(result[key], **value)
        else:
            result[key] = value
    return result


def run_simulation(
    chassis: str = "mecanum",
    odometry_kind: str = "3deadwheels",
    duration: float = SIM_DURATION,
    mode: Optional[ControlMode] = None,
    overrides: Optional[Dict[str, Any]] = None,
    output_dir: str = ".",
    run_dir: Optional[str] = None,
    verbose: bool = True,
) -> Optional[float]:
    """Follow the reference lemniscate with a simulated robot.

    Args:
        chassis: "mecanum" or "tank"
        odometry_kind: Odometry type tag
        duration: Time for one loop of the lemniscate (seconds)
        mode: Active control terms
        overrides: {"odometry": {...}, "drive": {...}} configuration overrides
        output_dir: Base directory for the CSV files
        run_dir: Explicit run directory
        verbose: Print progress to the terminal

    Returns:
        Average L2 position error (inches), or None if the robot could not be
        configured
    """
    mode = mode if mode is not None else ControlMode()
    overrides = overrides or {}

    sim = SimulatedRobot(chassis)
    odometry_config = _merge(sim.odometry_config(odometry_kind), overrides.get("odometry", {}))
    odometry = create_odometry(odometry_kind, "odometry", odometry_config, sim.hardware)
    if odometry is None or not odometry.is_configured():
        return None

    drive_config = _merge(sim.drive_config("odometry"), overrides.get("drive", {}))
    drive = DRIVE_TYPES[chassis]("drive", sim.hardware, drive_config, mode=mode)
    if not drive.is_configured():
        return None

    logging.info(f"{TERM_BLUE}Control mode: {mode}{TERM_RESET}")
    logging.debug(drive.log_configuration_text())

    trajectory = LemniscateTrajectory(LEMNISCATE_SCALE, duration, drive.pose())
    action = drive.follow_trajectory(trajectory)

    with DataCollector(output_dir, run_dir, verbose=verbose) as collector:
        drive.update()
        while action.step():
            sim.step(CYCLE_PERIOD)
            drive.update()

            now = sim.clock()
            elapsed = now - action.start_time
            reference = trajectory.get(elapsed).pose
            collector.log_odometry(now, odometry.get_diagnostics())
            collector.log_command(
                now, action.last_target.pose, action.last_command, drive.feedforward.last_voltage, drive.last_powers
            )
            collector.log_tracking(
                now,
                reference.x - sim.true_pose.x,
                reference.y - sim.true_pose.y,
                wrap_angle(reference.heading - sim.true_pose.heading),
            )

        average = collector.average_error()
        logging.info(
            f"{TERM_BLUE}\033[1m→ L2: {collector.cumulative_error:.2f}in  Avg: {average:.3f}in{TERM_RESET}"
        )
    return average


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Closed-loop drivetrain simulation following a lemniscate")
    parser.add_argument("--chassis", choices=sorted(DRIVE_TYPES), default="mecanum", help="Drive train type")
    parser.add_argument(
        "--odometry",
        choices=sorted(kind for kind in ODOMETRY_TYPES if kind != "mock"),
        default="3deadwheels",
        help="Odometry source type",
    )
    parser.add_argument("--duration", type=float, default=SIM_DURATION, help="Time for one loop (seconds)")
    parser.add_argument("--config", help="JSON file with odometry/drive configuration overrides")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse the command line and run one simulation.

    Returns:
        Process exit code
    """
    mode, remaining_args = parse_control_flags(argv)
    args = build_parser().parse_args(remaining_args)

    setup_logging(args.verbose)

    try:
        overrides = load_overrides(args.config)
    except (OSError, ValueError) as e:
        logging.error(f"Could not load configuration: {e}")
        return 1

    try:
        result = run_simulation(args.chassis, args.odometry, args.duration, mode, overrides)
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        return 0

    if result is None:
        logging.error(f"{TERM_ORANGE}✗ Robot is not configured, see the errors above{TERM_RESET}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
