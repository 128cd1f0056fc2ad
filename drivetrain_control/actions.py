"""Pollable trajectory-following actions.

An action models a motion that lasts several control cycles without threads
or coroutines: the caller polls step() once per cycle until it returns False.

    NOT_STARTED --step()--> RUNNING --elapsed > duration--> FINISHED

A finished action is never restarted; create a new one instead.
"""

import logging
from enum import Enum
from typing import Optional

from .follower import feedforward_command
from .geometry import Twist2D, field_to_robot
from .trajectory import PoseDual, Trajectory


class ActionState(Enum):
    NOT_STARTED = "not started"
    RUNNING = "running"
    FINISHED = "finished"


class FollowAction:
    """Follow a trajectory with a drive and a feedback law.

    Args:
        drive: DriveTrain providing pose(), velocity(), mode, clock,
               write_velocity() and stop()
        trajectory: Trajectory to follow, not modified
        controller: Feedback law with compute(target, pose, velocity)
    """

    def __init__(self, drive, trajectory: Trajectory, controller) -> None:
        self.drive = drive
        self.trajectory = trajectory
        self.controller = controller
        self.state = ActionState.NOT_STARTED
        self.start_time: Optional[float] = None
        self.last_target: Optional[PoseDual] = None
        self.last_command = Twist2D()

    def is_running(self) -> bool:
        return self.state == ActionState.RUNNING

    def is_finished(self) -> bool:
        return self.state == ActionState.FINISHED

    def _finish(self) -> bool:
        self.drive.stop()
        self.drive.finished = True
        self.state = ActionState.FINISHED
        return False

    def step(self, now: Optional[float] = None) -> bool:
        """Run one control cycle.

        Args:
            now: Current time (seconds); read from the drive clock if None

        Returns:
            True while the action is running, False once it has finished
        """
        if self.state == ActionState.FINISHED:
            return False

        if not self.drive.is_configured():
            logging.error(f"{self.drive.name}: drive not configured, action finishes immediately")
            return self._finish()

        if now is None:
            now = self.drive.clock()

        if self.state == ActionState.NOT_STARTED:
            self.start_time = now
            self.state = ActionState.RUNNING
            self.drive.finished = False

        elapsed = now - self.start_time
        duration = self.trajectory.duration
        if elapsed > duration:
            logging.info(f"{self.drive.name}: trajectory finished after {elapsed:.2f}s")
            return self._finish()

        target = self.trajectory.get(min(elapsed, duration))
        pose = self.drive.pose()
        velocity = self.drive.velocity()
        mode = self.drive.mode

        if mode.use_feedforward:
            acceleration = field_to_robot(target.acceleration, pose.heading)
        else:
            # corrections only: pretend the target stands still
            target = PoseDual(target.pose)
            acceleration = Twist2D()

        if mode.use_feedback:
            command = self.controller.compute(target, pose, velocity)
        else:
            command = feedforward_command(target, pose)

        self.drive.write_velocity(command, acceleration)
        self.last_target = target
        self.last_command = command
        return True
