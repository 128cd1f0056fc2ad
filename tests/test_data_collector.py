"""Tests for CSV data collection"""

import csv

import pytest

from drivetrain_control.data_collector import DataCollector
from drivetrain_control.geometry import Pose2D, Twist2D


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


def test_output_dir_must_be_directory(tmp_path):
    path = tmp_path / "file.txt"
    path.write_text("")
    with pytest.raises(ValueError):
        DataCollector(str(path))


def test_timestamped_run_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("RUN_DIR", raising=False)
    collector = DataCollector(str(tmp_path), verbose=False)
    assert collector.run_dir.parent == tmp_path / "results"
    assert collector.run_dir.name.startswith("run_")


def test_run_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("RUN_DIR", str(tmp_path / "from-env"))
    collector = DataCollector(str(tmp_path), verbose=False)
    assert collector.run_dir == tmp_path / "from-env"


def test_logging(tmp_path):
    run_dir = tmp_path / "run"
    diagnostics = {
        "x": 1.0,
        "y": 2.0,
        "heading": 0.5,
        "vx": 0.1,
        "vy": 0.2,
        "omega": 0.3,
        "total_heading": 0.5,
        "is_nan": 0.0,
    }
    with DataCollector(str(tmp_path), str(run_dir), verbose=False) as collector:
        collector.log_odometry(0.05, diagnostics)
        collector.log_command(0.05, Pose2D(1.0, 2.0, 0.0), Twist2D(3.0, 0.0, 0.1), 12.0, [0.1, -0.1])
        assert collector.log_tracking(0.05, 3.0, 4.0, 0.1) == 5.0
        collector.log_tracking(0.10, 0.0, 1.0, 0.0)
        assert collector.average_error() == 3.0

    odometry = read_rows(run_dir / "odometry_data.csv")
    assert odometry[0][0] == "timestamp"
    assert odometry[1] == ["0.05", "1.0", "2.0", "0.5", "0.1", "0.2", "0.3", "0.5", "0"]

    command = read_rows(run_dir / "command_data.csv")
    assert command[1][-1] == "0.1000 -0.1000"

    tracking = read_rows(run_dir / "tracking_metrics.csv")
    assert len(tracking) == 3
    assert tracking[2][-2:] == ["6.0", "2"]


def test_average_error_without_samples(tmp_path):
    assert DataCollector(str(tmp_path), str(tmp_path / "run"), verbose=False).average_error() == 0.0
