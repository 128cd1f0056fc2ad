"""Tests for pose persistence"""

import logging

from drivetrain_control.geometry import Pose2D
from drivetrain_control.persistence import JsonPoseStore, MemoryPoseStore


def test_memory_store():
    store = MemoryPoseStore()
    assert store.load("drive-pose") is None
    store.save("drive-pose", Pose2D(1.0, 2.0, 0.5))
    assert store.load("drive-pose") == Pose2D(1.0, 2.0, 0.5)


def test_json_store_round_trip(tmp_path):
    path = tmp_path / "state" / "poses.json"
    JsonPoseStore(str(path)).save("left-pose", Pose2D(1.0, 2.0, 0.5))
    JsonPoseStore(str(path)).save("right-pose", Pose2D(-1.0, 0.0, 0.0))

    store = JsonPoseStore(str(path))
    assert store.load("left-pose") == Pose2D(1.0, 2.0, 0.5)
    assert store.load("right-pose") == Pose2D(-1.0, 0.0, 0.0)
    assert store.load("missing") is None


def test_json_store_corrupt_file(tmp_path, caplog):
    path = tmp_path / "poses.json"
    path.write_text("{not json")
    with caplog.at_level(logging.ERROR):
        assert JsonPoseStore(str(path)).load("drive-pose") is None
    assert "Could not read" in caplog.text


def test_json_store_invalid_entry(tmp_path, caplog):
    path = tmp_path / "poses.json"
    path.write_text('{"drive-pose": {"x": 1.0}}')
    with caplog.at_level(logging.ERROR):
        assert JsonPoseStore(str(path)).load("drive-pose") is None
    assert "Invalid pose" in caplog.text
