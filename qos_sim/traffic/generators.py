"""Traffic generators for link simulation.

This module provides functions that produce the number of bytes a traffic
class offers to the link in one step. Volumes follow the mean rate of the
class scaled by a normally distributed multiplier.
"""

import math

from qos_sim.utils.rng import RandomSource


def round_half_up(value: float) -> int:
    """Round a non-negative value to the nearest integer, halves going up.

    Python's round() rounds halves to even, which would bias volumes that
    land exactly on .5 bytes.
    """
    return int(math.floor(value + 0.5))


def rate_multiplier(relative_variance: float, rng: RandomSource) -> float:
    """Draw a rate multiplier from N(1, relative_variance^2), clamped at 0.

    A draw is taken even for a zero variance so that every class consumes the
    same number of values from the random source.

    Args:
        relative_variance: Standard deviation of the multiplier.
        rng: Random source.

    Returns:
        Non-negative multiplier.
    """
    factor = 1 + relative_variance * rng.standard_normal()
    return max(factor, 0.0)


def step_arrival_bytes(
    rate_bps: float, relative_variance: float, step: float, rng: RandomSource
) -> int:
    """Generate the bytes offered during one step.

    Args:
        rate_bps: Mean rate in bits per second.
        relative_variance: Standard deviation of the rate multiplier.
        step: Step length in seconds.
        rng: Random source.

    Returns:
        Non-negative byte count.
    """
    factor = rate_multiplier(relative_variance, rng)
    return round_half_up(rate_bps * factor * step / 8)

