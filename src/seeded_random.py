"""Seeded linear congruential generator for reproducible text generation."""

import math
import random as _random
from typing import Sequence, TypeVar

T = TypeVar("T")

# Numerical Recipes LCG parameters
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2 ** 32


class SeededRandom:
    """Random source that is deterministic once a seed is set.

    Unseeded, it delegates to the standard library's global generator.
    Seeded, every draw advances ``state = (state * 1664525 + 1013904223) mod 2**32``
    and returns ``state / 2**32``. Recorded seeds replay identical sequences.
    """

    def __init__(self, seed: int | None = None):
        self._seed: int | None = None
        self._state = 0
        if seed is not None:
            self.set_seed(seed)

    def set_seed(self, seed: int) -> None:
        """Switch to deterministic mode.

        Args:
            seed: Any integer; stored as an unsigned 32-bit value

        Raises:
            TypeError: If seed is not an integer
        """
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise TypeError("Seed must be an integer")
        self._seed = abs(seed) % LCG_MODULUS
        self._state = self._seed

    def clear_seed(self) -> None:
        """Return to the non-deterministic source."""
        self._seed = None
        self._state = 0

    def get_seed(self) -> int | None:
        return self._seed

    @property
    def is_seeded(self) -> bool:
        return self._seed is not None

    def random(self) -> float:
        """Return a float in [0, 1)."""
        if self._seed is None:
            return _random.random()
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS

    def random_int(self, min_value: int, max_exclusive: int) -> int:
        """Return an integer in [min_value, max_exclusive)."""
        return math.floor(self.random() * (max_exclusive - min_value)) + min_value

    def random_choice(self, values: Sequence[T]) -> T:
        if len(values) == 0:
            raise ValueError("Cannot choose from an empty sequence")
        return values[self.random_int(0, len(values))]

    def weighted_choice(self, values: Sequence[T], cumulative_weights: Sequence[float]) -> T:
        """Pick the first value whose cumulative weight reaches a random draw.

        Args:
            values: Candidate values
            cumulative_weights: Prefix sums of the weights, same length as values

        Returns:
            Selected value (the last one if rounding leaves the draw uncovered)

        Raises:
            ValueError: If the sequences differ in length or are empty
        """
        if len(values) != len(cumulative_weights):
            raise ValueError("Values and weights must have the same length")
        if len(values) == 0:
            raise ValueError("Cannot choose from an empty sequence")

        draw = self.random()
        for value, cumulative in zip(values, cumulative_weights):
            if draw <= cumulative:
                return value
        return values[-1]
