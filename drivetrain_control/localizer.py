"""Odometry source selection.

`create_odometry` builds the source named by a configuration type tag.
"""

import logging
from typing import Any, Dict, Optional, Type

from .dead_wheels import ThreeDeadWheelsOdometry, TwoDeadWheelsOdometry
from .drive_encoders import DriveEncodersOdometry
from .external_odometry import AbsoluteModuleOdometry, OpticalOdometry
from .geometry import Twist2D
from .hardware import Hardware
from .odometry import OdometrySource


class MockOdometry(OdometrySource):
    """Source whose pose and velocity are set by the caller.

    update() keeps the pose as it is; set_pose() and set_velocity() drive it.
    """

    kind = "mock"

    def _update(self) -> None:
        pass

    def set_velocity(self, velocity: Twist2D) -> None:
        self.current_velocity = velocity

    def read(self, reader: Dict[str, Any]) -> None:
        self.configuration_valid = True


ODOMETRY_TYPES: Dict[str, Type[OdometrySource]] = {
    cls.kind: cls
    for cls in (
        TwoDeadWheelsOdometry,
        ThreeDeadWheelsOdometry,
        DriveEncodersOdometry,
        AbsoluteModuleOdometry,
        OpticalOdometry,
        MockOdometry,
    )
}


def create_odometry(
    kind: str, name: str, reader: Dict[str, Any], hardware: Optional[Hardware] = None
) -> Optional[OdometrySource]:
    """Create and configure an odometry source.

    Args:
        kind: Type tag ("2deadwheels", "3deadwheels", "driveencoders",
              "pinpoint", "otos" or "mock")
        name: Source name
        reader: Source configuration dictionary
        hardware: Port registry; the created source is registered in its
                  odometers dictionary

    Returns:
        The source (possibly not configured), or None for an unknown tag
    """
    cls = ODOMETRY_TYPES.get(kind)
    if cls is None:
        logging.error(f"Unknown odometry type '{kind}' for {name}")
        return None

    source = cls(name, hardware)
    source.read(reader)
    if not source.is_configured():
        logging.error(f"Odometry {name} ({kind}) is not configured")
    source.hardware.odometers[name] = source
    return source
