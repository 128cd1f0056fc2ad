"""Drivetrain Control - Odometry and Trajectory Following for Mobile Robots

A control library for wheeled robots (mecanum and tank chassis) that turns raw
sensor readings into a pose estimate and follows time-parameterized
trajectories.

## Architecture Overview

### Layer 1: Odometry (odometry.py, dead_wheels.py, drive_encoders.py, external_odometry.py)
Integrates encoder, IMU and external module readings into a field-frame pose.
- Two and three dead-wheel odometry with overflow-corrected velocities
- Drive-encoder odometry through forward kinematics
- Absolute positioning modules and optical sensors with NaN fallback
- Output: Pose, field-frame velocity and unwrapped total heading

### Layer 2: Trajectory Following (trajectory.py, follower.py, actions.py)
Pollable actions that sample a trajectory each cycle and compute a chassis command.
- Holonomic feedback for mecanum drives
- Ramsete feedback for tank drives, PD turn controller for in-place turns
- Output: Robot-frame velocity command

### Layer 3: Wheel Output (kinematics.py, motor_controller.py, drive.py)
Converts the chassis command to wheel velocities and then to motor powers.
- Mecanum and tank inverse kinematics
- ks/kv/ka feedforward with battery voltage compensation
- Output: Motor powers in [-1, 1]

## Modules

- `config.py` - Centralized constants with documentation
- `geometry.py` - SE(2) poses, twists and pose exponential
- `hardware.py` - Hardware port protocols and registry
- `encoder.py` - Encoder velocity median filter and overflow correction
- `localizer.py` - Odometry factory
- `persistence.py` - Pose storage across run phases
- `simulation.py` / `mock_hardware.py` - Simulated robot for tests and the CLI
- `data_collector.py` - CSV data logging
- `cli.py` - Closed-loop simulation runner

## Quick Start

```bash
python -m drivetrain_control --chassis mecanum --odometry 3deadwheels
```

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"

from .data_collector import DataCollector
from .drive import MecanumDrive, TankDrive
from .geometry import Pose2D, Twist2D
from .localizer import create_odometry

__all__ = [
    "Pose2D",
    "Twist2D",
    "create_odometry",
    "MecanumDrive",
    "TankDrive",
    "DataCollector",
]
