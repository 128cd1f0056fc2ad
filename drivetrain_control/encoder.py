"""Encoder signal conditioning.

Raw hub velocity counters are 16 bits wide and wrap at high speed, while
velocities computed from position deltas alone are too noisy for control.
The conditioner combines both: a 3-sample median of position-derived
velocities selects which wrap of the hub counter is the right one.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .config import (
    ENCODER_CORRECTION_MULTIPLE,
    ENCODER_HISTORY_SIZE,
    ENCODER_OVERFLOW_QUANTUM,
    ENCODER_VELOCITY_MASK,
    ENCODER_VELOCITY_RESOLUTION,
)
from .hardware import DEFAULT_CLOCK, Clock, EncoderPort


@dataclass(frozen=True)
class EncoderSample:
    """One conditioned encoder reading.

    Attributes:
        position: Raw accumulated ticks
        delta: Ticks travelled since the previous reading
        velocity: Filtered velocity (ticks/s)
    """

    position: int = 0
    delta: int = 0
    velocity: float = 0.0


def median_of_three(a: float, b: float, c: float) -> float:
    """Median of three values with two comparisons."""
    return max(min(a, b), min(max(a, b), c))


def correct_velocity(raw_velocity: float, estimate: float) -> int:
    """Unwrap a 16-bit hub velocity counter using a velocity estimate.

    Args:
        raw_velocity: Velocity hint as reported by the hub (ticks/s)
        estimate: Independent velocity estimate (ticks/s)

    Returns:
        Hub velocity shifted by the multiple of the correction quantum that
        lands closest to the estimate
    """
    real = int(raw_velocity) & ENCODER_VELOCITY_MASK
    real += real % ENCODER_VELOCITY_RESOLUTION // 4 * ENCODER_OVERFLOW_QUANTUM
    quantum = ENCODER_CORRECTION_MULTIPLE * ENCODER_OVERFLOW_QUANTUM
    # round half up
    real += int(math.floor((estimate - real) / quantum + 0.5)) * quantum
    return real


class EncoderSignalConditioner:
    """Turns raw (position, velocity hint) readings into clean samples.

    Attributes:
        port: Encoder channel, None when the channel is absent.
        history: Circular buffer of the last position-derived velocities.
    """

    def __init__(self, port: Optional[EncoderPort], clock: Clock = DEFAULT_CLOCK) -> None:
        self.port = port
        self.clock = clock

        self.history = [0.0] * ENCODER_HISTORY_SIZE
        self.current_index = 0
        self.last_position = 0
        self.last_time: Optional[float] = None
        self.median = 0.0
        self.is_first_time = True

    def is_configured(self) -> bool:
        return self.port is not None

    def reset(self) -> None:
        """Forget the history; the next update reports a zero delta."""
        self.history = [0.0] * ENCODER_HISTORY_SIZE
        self.current_index = 0
        self.median = 0.0
        self.last_time = None
        self.is_first_time = True

    def update(self) -> EncoderSample:
        """Read the channel and return the conditioned sample.

        Returns:
            EncoderSample; neutral (all zero) when the channel is not configured
        """
        if self.port is None:
            return EncoderSample()

        position = int(self.port.position())
        hint = float(self.port.velocity())
        now = self.clock()

        if self.is_first_time:
            self.is_first_time = False
            # seed with the unwrap closest to standstill
            seed = float(correct_velocity(hint, 0.0))
            self.history = [seed] * ENCODER_HISTORY_SIZE
            self.median = seed
            self.last_position = position
            self.last_time = now
            return EncoderSample(position, 0, 0.0)

        delta = position - self.last_position
        dt = now - self.last_time if self.last_time is not None else 0.0

        if dt > 0:
            self.history[self.current_index] = delta / dt
            self.current_index = (self.current_index + 1) % ENCODER_HISTORY_SIZE
            self.median = median_of_three(*self.history)

        velocity = correct_velocity(hint, self.median)

        self.last_position = position
        self.last_time = now

        return EncoderSample(position, delta, float(velocity))
