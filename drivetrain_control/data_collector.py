"""Data collection and CSV logging for drivetrain runs.

This module provides CSV data logging for:
- Odometry estimates (pose, velocity, total heading, NaN flag)
- Commands (target pose, chassis command, wheel powers, supply voltage)
- Tracking metrics (position and heading errors against ground truth)
"""

import csv
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

from .config import TERM_BLUE, TERM_RESET
from .geometry import Pose2D, Twist2D


class DataCollector:
    """Manages CSV file creation and logging for drivetrain data.

    Attributes:
        run_dir: Directory path for this run's output files.
        odometry_csv_file: File handle for odometry estimates CSV.
        command_csv_file: File handle for commands CSV.
        tracking_csv_file: File handle for tracking metrics CSV.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None, verbose: bool = True) -> None:
        """Initialize the data collector.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates timestamped
                directory. Can also be set via RUN_DIR environment variable.
            verbose: Print the output location on setup and cleanup.

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        self.verbose = verbose

        self.odometry_csv_file: Optional[TextIO] = None
        self.odometry_csv_writer: Any = None
        self.command_csv_file: Optional[TextIO] = None
        self.command_csv_writer: Any = None
        self.tracking_csv_file: Optional[TextIO] = None
        self.tracking_csv_writer: Any = None

        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.odometry_output_path: Path = self.run_dir / "odometry_data.csv"
        self.command_output_path: Path = self.run_dir / "command_data.csv"
        self.tracking_output_path: Path = self.run_dir / "tracking_metrics.csv"

        self.cumulative_error = 0.0
        self.sample_count = 0

    def setup(self) -> None:
        """Initialize CSV files with headers.

        Must be called before writing data.
        """
        self.odometry_csv_file = open(self.odometry_output_path, "w", newline="")
        self.odometry_csv_writer = csv.writer(self.odometry_csv_file)
        self.odometry_csv_writer.writerow(
            ["timestamp", "x", "y", "heading", "vx", "vy", "omega", "total_heading", "is_nan"]
        )

        self.command_csv_file = open(self.command_output_path, "w", newline="")
        self.command_csv_writer = csv.writer(self.command_csv_file)
        self.command_csv_writer.writerow(
            ["timestamp", "x_ref", "y_ref", "heading_ref", "vx_cmd", "vy_cmd", "omega_cmd", "voltage", "powers"]
        )

        self.tracking_csv_file = open(self.tracking_output_path, "w", newline="")
        self.tracking_csv_writer = csv.writer(self.tracking_csv_file)
        self.tracking_csv_writer.writerow(
            ["timestamp", "error_x", "error_y", "error_heading", "error_l2", "cumulative_l2_error", "sample_count"]
        )

        if self.verbose:
            print(f"{TERM_BLUE}✓ Initialized data collection to {self.run_dir}/{TERM_RESET}")

    def log_odometry(self, timestamp: float, diagnostics: dict) -> None:
        """Log one odometry estimate.

        Args:
            timestamp: Current time (seconds).
            diagnostics: OdometrySource.get_diagnostics() dictionary.
        """
        self.odometry_csv_writer.writerow(
            [
                timestamp,
                diagnostics["x"],
                diagnostics["y"],
                diagnostics["heading"],
                diagnostics["vx"],
                diagnostics["vy"],
                diagnostics["omega"],
                diagnostics["total_heading"],
                int(diagnostics["is_nan"]),
            ]
        )
        if self.odometry_csv_file:
            self.odometry_csv_file.flush()

    def log_command(
        self, timestamp: float, target: Pose2D, command: Twist2D, voltage: float, powers: Sequence[float]
    ) -> None:
        """Log one control command.

        Args:
            timestamp: Current time (seconds).
            target: Target pose of this cycle.
            command: Robot-frame chassis velocity command.
            voltage: Supply voltage used by the feedforward (V).
            powers: Wheel powers written, in motor order.
        """
        self.command_csv_writer.writerow(
            [
                timestamp,
                target.x,
                target.y,
                target.heading,
                command.vx,
                command.vy,
                command.omega,
                voltage,
                " ".join(f"{power:.4f}" for power in powers),
            ]
        )
        if self.command_csv_file:
            self.command_csv_file.flush()

    def log_tracking(self, timestamp: float, error_x: float, error_y: float, error_heading: float) -> float:
        """Log tracking errors and update the running L2 error.

        Args:
            timestamp: Current time (seconds).
            error_x: X position error (inches).
            error_y: Y position error (inches).
            error_heading: Heading error (radians).

        Returns:
            L2 norm of the position error.
        """
        error_l2 = (error_x**2 + error_y**2) ** 0.5
        self.cumulative_error += error_l2
        self.sample_count += 1
        self.tracking_csv_writer.writerow(
            [timestamp, error_x, error_y, error_heading, error_l2, self.cumulative_error, self.sample_count]
        )
        if self.tracking_csv_file:
            self.tracking_csv_file.flush()
        return error_l2

    def average_error(self) -> float:
        """Mean L2 position error over all logged samples."""
        if self.sample_count == 0:
            return 0.0
        return self.cumulative_error / self.sample_count

    def cleanup(self) -> None:
        """Close all CSV files and log final output location."""
        if self.odometry_csv_file:
            self.odometry_csv_file.close()
        if self.command_csv_file:
            self.command_csv_file.close()
        if self.tracking_csv_file:
            self.tracking_csv_file.close()

        if self.verbose:
            print(f"{TERM_BLUE}✓ Saved run data to {self.run_dir}/{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.cleanup()
