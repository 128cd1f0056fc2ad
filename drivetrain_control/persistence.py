"""Pose persistence.

A drive saves its pose under a key at the end of one run phase and restores
it when it is created again for the next phase. The store is injected into
the drive; nothing is kept in module-level state.
"""

import json
import logging
import os
from typing import Dict, Optional, Protocol

from .geometry import Pose2D


class PoseStore(Protocol):
    """Key/value storage of poses."""

    def save(self, key: str, pose: Pose2D) -> None:
        ...

    def load(self, key: str) -> Optional[Pose2D]:
        ...


class MemoryPoseStore:
    """Process-local pose store."""

    def __init__(self) -> None:
        self.poses: Dict[str, Pose2D] = {}

    def save(self, key: str, pose: Pose2D) -> None:
        self.poses[key] = pose

    def load(self, key: str) -> Optional[Pose2D]:
        return self.poses.get(key)


class JsonPoseStore:
    """Pose store backed by a JSON file.

    The file maps each key to {"x": ..., "y": ..., "heading": ...}. It is read
    on every load and rewritten on every save, so several processes can share
    it across run phases.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def _read_all(self) -> Dict[str, Dict[str, float]]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logging.error(f"Could not read pose store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logging.error(f"Pose store {self.path} does not contain an object")
            return {}
        return data

    def save(self, key: str, pose: Pose2D) -> None:
        data = self._read_all()
        data[key] = {"x": pose.x, "y": pose.y, "heading": pose.heading}
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)

    def load(self, key: str) -> Optional[Pose2D]:
        entry = self._read_all().get(key)
        if entry is None:
            return None
        try:
            return Pose2D(float(entry["x"]), float(entry["y"]), float(entry["heading"]))
        except (KeyError, TypeError, ValueError) as e:
            logging.error(f"Invalid pose '{key}' in {self.path}: {e}")
            return None
