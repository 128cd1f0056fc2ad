"""Odometry source contract.

Every localization strategy (dead wheels, drive encoders, external modules)
derives from `OdometrySource` and produces, once per control cycle:
- pose(): field-frame Pose2D
- velocity(): field-frame Twist2D derived in the same update()
- total_heading(): unwrapped accumulated rotation

Sources are configured from a dictionary. A missing required field or a
missing hardware channel leaves the source not configured: every operation
then becomes a no-op returning the identity pose and a zero velocity.
"""

import logging
import math
from collections import deque
from typing import Any, Deque, Dict, Optional

from .config import POSE_HISTORY_LENGTH
from .geometry import Pose2D, Twist2D
from .hardware import Clock, Hardware


def read_float(reader: Dict[str, Any], key: str, owner: str, default: Optional[float] = None) -> Optional[float]:
    """Read a numeric configuration field.

    Args:
        reader: Configuration dictionary
        key: Field name
        owner: Component name, used in error messages
        default: Value for an optional field; None makes the field required

    Returns:
        The value as float, or None when a required field is missing or invalid
    """
    if key not in reader:
        if default is None:
            logging.error(f"{owner}: missing required field '{key}'")
        return default
    try:
        value = float(reader[key])
    except (TypeError, ValueError):
        logging.error(f"{owner}: field '{key}' is not a number: {reader[key]!r}")
        return None
    if math.isnan(value) or math.isinf(value):
        logging.error(f"{owner}: field '{key}' is not finite: {value}")
        return None
    return value


class OdometrySource:
    """Base class of all odometry sources.

    Attributes:
        name: Configuration name of the source.
        hardware: Registry the source resolves its ports from.
        clock: Monotonic time source.
        configuration_valid: True once read() found every required field.
        current_pose: Last computed field-frame pose.
        current_velocity: Last computed field-frame velocity.
        heading_total: Unwrapped accumulated heading (rad).
        pose_nan: True while the last reading was invalid.
        pose_history: Most recent poses, oldest first.
    """

    kind = "base"

    def __init__(self, name: str, hardware: Optional[Hardware] = None) -> None:
        self.name = name
        self.hardware = hardware if hardware is not None else Hardware()
        self.clock: Clock = self.hardware.clock

        self.configuration_valid = False

        self.current_pose = Pose2D()
        self.current_velocity = Twist2D()
        self.heading_total = 0.0
        self.pose_nan = False
        self.pose_history: Deque[Pose2D] = deque(maxlen=POSE_HISTORY_LENGTH)

    # ------------------------------------------------------------------ state

    def pose(self) -> Pose2D:
        return self.current_pose

    def velocity(self) -> Twist2D:
        return self.current_velocity

    def total_heading(self) -> float:
        return self.heading_total

    def is_configured(self) -> bool:
        return self.configuration_valid

    def is_nan(self) -> bool:
        return self.pose_nan

    def set_pose(self, pose: Pose2D) -> None:
        """Redefine the current pose; later updates integrate from it.

        The accumulated total heading is kept.
        """
        if self.configuration_valid:
            self.current_pose = pose
            self._on_set_pose(pose)

    def update(self) -> None:
        """Advance the estimate by one control cycle."""
        if self.configuration_valid:
            self._update()
            self.pose_history.append(self.current_pose)
            self.log()

    def _on_set_pose(self, pose: Pose2D) -> None:
        """Hook for sources that must forward the new pose to a device."""

    def _update(self) -> None:
        raise NotImplementedError

    # ---------------------------------------------------------- configuration

    def read(self, reader: Dict[str, Any]) -> None:
        """Apply a configuration dictionary; sets configuration_valid."""
        raise NotImplementedError

    def write(self) -> Dict[str, Any]:
        """Configuration dictionary that read() would accept."""
        return {}

    def log_configuration_text(self, header: str = "") -> str:
        if not self.configuration_valid:
            return ""
        fields = " - ".join(f"{key} : {value}" for key, value in self.write().items())
        return f"{header}> {self.kind} {self.name} - {fields}\n"

    # ------------------------------------------------------------ diagnostics

    def get_diagnostics(self) -> Dict[str, float]:
        """Current estimate for telemetry.

        Returns:
            Dictionary containing x, y, heading, vx, vy, omega, total_heading
            and is_nan (as 0.0/1.0)
        """
        return {
            "x": self.current_pose.x,
            "y": self.current_pose.y,
            "heading": self.current_pose.heading,
            "vx": self.current_velocity.vx,
            "vy": self.current_velocity.vy,
            "omega": self.current_velocity.omega,
            "total_heading": self.heading_total,
            "is_nan": float(self.pose_nan),
        }

    def log(self) -> None:
        if self.configuration_valid:
            logging.debug(
                f"{self.name}: pose {self.current_pose} "
                f"vel ({self.current_velocity.vx:.3f}, {self.current_velocity.vy:.3f}, "
                f"{self.current_velocity.omega:.3f}) total heading {self.heading_total:.3f}"
            )
