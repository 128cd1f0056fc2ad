"""Configuration parameters for the drivetrain control system.

This module centralizes the default constants including:
- Numerical thresholds for pose integration
- Encoder signal conditioning constants
- Motor feedforward and voltage compensation defaults
- Controller gain defaults
- Simulation robot parameters
- Terminal output settings

Component calibration (tick ratios, lever arms, gains, geometry) is read from
configuration dictionaries at startup; the values below are only used where a
field is optional, or by the simulation runner.
"""

import math

# ============================================================================
# Pose Integration
# ============================================================================

SMALL_ANGLE_THRESHOLD = 0.001
"""Rotation (rad) below which the pose exponential switches to Taylor forms.

sin(θ)/θ and (1 - cos(θ))/θ lose all precision near zero; below this value
the second-order expansions are exact to machine precision.
"""

POSE_HISTORY_LENGTH = 100
"""Number of past poses kept by each odometry source for diagnostics."""

HEADING_RATE_ROLLOVER = math.pi
"""Jump in reported heading rate (rad/s) treated as a ±2π rollover."""


# ============================================================================
# Encoder Signal Conditioning
# ============================================================================

ENCODER_HISTORY_SIZE = 3
"""Number of computed velocities kept for the median filter."""

ENCODER_VELOCITY_MASK = 0xFFFF
"""Native width of the hub velocity counter (16 bits)."""

ENCODER_OVERFLOW_QUANTUM = 0x10000
"""Value of one wrap of the velocity counter."""

ENCODER_VELOCITY_RESOLUTION = 20
"""Hub velocities are whole multiples of this value (ticks/s, 50 ms window)."""

ENCODER_CORRECTION_MULTIPLE = 5
"""The velocity counter is corrected by multiples of 5 wraps.

Since true velocities are multiples of 20 and 0x10000 % 20 == 16, the
remainder real % 20 // 4 recovers the number of wraps modulo 5; only the
multiple of 5 is left to the estimate.
"""


# ============================================================================
# External Odometry Modules
# ============================================================================

ABSOLUTE_MODULE_RESOLUTION = 13.26291192
"""Default pod resolution of the absolute-position module (ticks/mm, swingarm pod)."""


# ============================================================================
# Motor Feedforward
# ============================================================================

NOMINAL_VOLTAGE = 12.0
"""Battery voltage (V) used when the voltage sensor returns an invalid value."""

MAX_MOTOR_POWER = 1.0
"""Absolute limit of the normalized power written to a motor."""


# ============================================================================
# Controller Gains (defaults for optional fields)
# ============================================================================

RAMSETE_ZETA = 0.7
"""Ramsete damping ratio (range: (0, 1)).

Higher values damp oscillations around the path at the cost of slower
convergence.
"""

RAMSETE_B_BAR = 0.2
"""Ramsete aggressiveness (range: > 0), normalized by the track width (b = b_bar / track_width²)."""

DEFAULT_SPEED_MULTIPLIER = 1.0
"""Initial manual driving speed multiplier."""


# ============================================================================
# Simulation Robot
# ============================================================================

CYCLE_PERIOD = 0.05
"""Control cycle period (seconds) of the simulation runner (20 Hz)."""

SIM_DURATION = 20.0
"""Duration (seconds) of the reference lemniscate trajectory."""

SIM_TRACK_WIDTH = 14.0
"""Distance between left and right wheels (inches)."""

SIM_WHEELBASE = 12.0
"""Distance between front and rear axles (inches)."""

SIM_IN_PER_TICK = 0.0023
"""Drive encoder resolution (inches per tick)."""

SIM_DEAD_WHEEL_IN_PER_TICK = 0.00199
"""Dead-wheel encoder resolution (inches per tick)."""

SIM_KS = 0.6
"""Static friction voltage (V)."""

SIM_KV = 0.18
"""Velocity feedforward (V per inch/s)."""

SIM_KA = 0.0
"""Acceleration feedforward (V per inch/s²).

Zero in simulation: the kinematic plant has no inertia.
"""

SIM_AXIAL_GAIN = 4.0
SIM_LATERAL_GAIN = 4.0
SIM_HEADING_GAIN = 4.0
SIM_AXIAL_VELOCITY_GAIN = 0.0
SIM_LATERAL_VELOCITY_GAIN = 0.0
SIM_HEADING_VELOCITY_GAIN = 0.0
"""Holonomic controller gains used by the simulation (1/s)."""

SIM_TURN_GAIN = 4.0
SIM_TURN_VELOCITY_GAIN = 0.0
"""Pure rotation controller gains used by the simulation."""

LEMNISCATE_SCALE = 24.0
"""Size (inches) of the reference figure-eight: it spans ±scale/2 in x and 2·scale in y."""


# ============================================================================
# Terminal Output
# ============================================================================

TERM_ORANGE = "\033[38;2;247;72;35m"
TERM_BLUE = "\033[38;2;35;116;247m"
TERM_RESET = "\033[0m"
