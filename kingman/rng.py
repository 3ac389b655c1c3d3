"""
Sources of randomness for the coalescent process. A source draws uniform
integers and exponential variates, and can be duplicated so that a copied
process never shares its entropy stream with the original.
"""

import copy
from typing import Protocol
from typing import Sequence

import numpy as np

from kingman.exceptions import RandomSourceExhausted


class RandomSource(Protocol):
    def integers(self, bound: int) -> int:
        ...

    def exponential(self, rate: float) -> float:
        ...

    def copy(self) -> "RandomSource":
        ...


def _check_bound(bound):
    if bound < 1:
        raise ValueError(f"Upper bound must be at least 1, got {bound}")


def _check_rate(rate):
    if not rate > 0:
        raise ValueError(f"Exponential rate must be positive, got {rate}")


class NumpyRandomSource:
    """
    Random source backed by a numpy Generator. copy() duplicates the bit
    generator state, so the copy replays the draws the original would
    have made. spawn() returns a source with an independent stream.
    """

    def __init__(self, seed=None, generator=None):
        if generator is None:
            generator = np.random.default_rng(seed)
        self.generator = generator

    def integers(self, bound):
        _check_bound(bound)
        return int(self.generator.integers(bound))

    def exponential(self, rate):
        _check_rate(rate)
        return float(self.generator.exponential(scale=1 / rate))

    def copy(self):
        return NumpyRandomSource(generator=copy.deepcopy(self.generator))

    def spawn(self):
        return NumpyRandomSource(generator=self.generator.spawn(1)[0])


class SequenceRandomSource:
    """
    Replays fixed sequences of integers and exponential variates. Useful
    to drive the process along a known path.
    """

    def __init__(
        self, integers: Sequence[int] = (), exponentials: Sequence[float] = ()
    ):
        self._integers = list(integers)
        self._exponentials = list(exponentials)
        self._integer_cursor = 0
        self._exponential_cursor = 0

    @property
    def num_integers_left(self):
        return len(self._integers) - self._integer_cursor

    @property
    def num_exponentials_left(self):
        return len(self._exponentials) - self._exponential_cursor

    def integers(self, bound):
        _check_bound(bound)
        if self.num_integers_left == 0:
            raise RandomSourceExhausted(
                f"No integers left after {self._integer_cursor} draws"
            )
        value = self._integers[self._integer_cursor]
        if not 0 <= value < bound:
            raise ValueError(f"Stored integer {value} outside [0, {bound})")
        self._integer_cursor += 1
        return value

    def exponential(self, rate):
        _check_rate(rate)
        if self.num_exponentials_left == 0:
            raise RandomSourceExhausted(
                f"No exponential variates left after {self._exponential_cursor} draws"
            )
        value = self._exponentials[self._exponential_cursor]
        self._exponential_cursor += 1
        return value

    def copy(self):
        other = SequenceRandomSource(self._integers, self._exponentials)
        other._integer_cursor = self._integer_cursor
        other._exponential_cursor = self._exponential_cursor
        return other
