"""Random sources for link simulation.

The simulator draws one standard normal value per class and step. Any object
with a `standard_normal()` method can be injected, which lets tests script the
exact draws. Two sources are provided: numpy's default generator ("numpy") and
a small portable LCG ("lcg") that yields identical sequences on every platform.
"""

import math
from typing import Protocol, Union

import numpy as np


class RandomSource(Protocol):
    """Anything that can produce standard normal draws."""

    def standard_normal(self) -> float: ...


class CustomRNG:
    """
    A custom pseudo-random number generator (PRNG) class that uses a Linear Congruential Generator (LCG) algorithm.
    Normal draws are produced with the Box-Muller transform, so a seed gives the same traffic everywhere.
    """

    def __init__(self, seed: int):
        """
        Initialize the PRNG with a seed value.

        Args:
            seed (int): The initial seed value for the generator.
        """
        self.state = seed
        self._spare = None

    def random(self) -> float:
        """
        Generate a pseudo-random float between 0 and 1 using the LCG algorithm.

        Returns:
            float: A pseudo-random number in the range [0, 1).
        """
        a = 1664525  # Multiplier
        c = 1013904223  # Increment
        m = 2**32  # Modulus
        self.state = (a * self.state + c) % m
        return self.state / m

    def standard_normal(self) -> float:
        """
        Generate a draw from N(0, 1).

        Box-Muller gives two independent values per pair of uniforms; the
        second one is kept for the next call.

        Returns:
            float: A standard normal pseudo-random number.
        """
        if self._spare is not None:
            value, self._spare = self._spare, None
            return value

        u1 = 1.0 - self.random()  # (0, 1], keeps log finite
        u2 = self.random()
        radius = math.sqrt(-2.0 * math.log(u1))
        self._spare = radius * math.sin(2 * math.pi * u2)
        return radius * math.cos(2 * math.pi * u2)


RNG_KINDS = ("numpy", "lcg")


def make_rng(seed: int, kind: str = "numpy") -> Union[np.random.Generator, CustomRNG]:
    """Create the random source for a simulation run.

    Args:
        seed: Seed for reproducibility.
        kind: "numpy" for numpy's default generator, "lcg" for CustomRNG.

    Returns:
        A seeded random source.
    """
    if kind == "numpy":
        return np.random.default_rng(seed)
    if kind == "lcg":
        return CustomRNG(seed)
    raise ValueError(f"Unknown random source {kind!r}, expected one of {RNG_KINDS}")
