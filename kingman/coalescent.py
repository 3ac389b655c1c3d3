import contextlib
import dataclasses
import logging

from typing import Callable
from typing import List
from typing import Optional
from typing import Protocol
from typing import runtime_checkable

from kingman import exceptions
from kingman.partition import Partition
from kingman.rng import NumpyRandomSource
from kingman.rng import RandomSource

logger = logging.getLogger(__name__)


@runtime_checkable
class MarkovChain(Protocol):
    """
    Anything exposing its current state and accepting a replacement state
    can be composed with other chains generically.
    """

    @property
    def state(self):
        ...

    def set_state(self, state):
        ...


@contextlib.contextmanager
def preserved_state(chain: MarkovChain):
    """
    Yields the current state of chain and writes it back on exit, also
    when the body raises.
    """
    initial = chain.state
    try:
        yield initial
    finally:
        chain.set_state(initial)


def linear_rate(k):
    """
    Total rate of leaving a state with k blocks, linear in k. This is the
    default.
    """
    return k


def kingman_rate(k):
    """
    Classical Kingman rate: each of the k choose 2 pairs merges at rate 1.
    """
    return k * (k - 1) / 2


def num_pairs(k):
    return k * (k - 1) // 2


def lexicographic_pair(idx, k):
    """
    Maps idx to the idx-th pair (i, j) with i < j when all pairs over
    range(k) are listed in lexicographic order.
    """
    if not 0 <= idx < num_pairs(k):
        raise ValueError(f"Pair index {idx} out of range for {k} blocks")
    i = 0
    row = k - 1
    while idx >= row:
        idx -= row
        i += 1
        row -= 1
    return i, i + 1 + idx


def lexicographic_index(pair, k):
    """
    Inverse of lexicographic_pair.
    """
    i, j = sorted(pair)
    if i == j or i < 0 or j >= k:
        raise ValueError(f"Invalid pair {pair} for {k} blocks")
    return i * (2 * k - i - 1) // 2 + j - i - 1


@dataclasses.dataclass(frozen=True)
class Event:
    """
    Waiting time before a merge and the partition just after it.
    """

    time: float
    partition: Partition

    def __iter__(self):
        return iter((self.time, self.partition))


@dataclasses.dataclass(eq=False)
class CoalescentProcess:
    """
    Kingman's n-coalescent on the partitions of {0, ..., group_size - 1}.
    Starts from all singletons and merges two uniformly chosen blocks at
    each step until a single block is left. Waiting times are exponential
    with rate given by ``rate(k)`` for k blocks.

    Either pass a random source as ``rng`` or a ``seed`` to build one.
    """

    group_size: int
    rng: Optional[RandomSource] = None
    seed: Optional[int] = None
    rate: Callable[[int], float] = linear_rate

    def __post_init__(self):
        if self.rng is None:
            self.rng = NumpyRandomSource(self.seed)
        elif self.seed is not None:
            raise ValueError("Cannot specify both rng and seed")
        self._state = Partition(self.group_size)

    def __iter__(self):
        return self

    def __next__(self):
        event = self.step()
        if event is None:
            raise StopIteration
        return event

    @property
    def num_blocks(self):
        return self._state.num_blocks

    @property
    def is_terminal(self):
        return self._state.num_blocks == 1

    @property
    def state(self):
        """
        A copy of the current partition.
        """
        return self._state.copy()

    def set_state(self, state):
        if not isinstance(state, Partition):
            raise TypeError("State must be a Partition")
        if state.num_elements != self.group_size:
            raise ValueError(
                f"Partition over {state.num_elements} elements, "
                f"expected {self.group_size}"
            )
        self._state = state.copy()
        return self

    def set_rng(self, rng):
        self.rng = rng
        return self

    def copy(self):
        """
        Returns a duplicate with its own partition and a copy of the random
        source. The duplicate does not see any draws made by the original
        after this call, and vice versa.
        """
        other = dataclasses.replace(self, rng=self.rng.copy(), seed=None)
        other._state = self._state.copy()
        return other

    def fork(self):
        """
        Returns a duplicate whose random source is spawned from this one,
        so that both continue with independent streams.
        """
        if not hasattr(self.rng, "spawn"):
            raise TypeError(f"{type(self.rng).__name__} does not support spawn()")
        other = dataclasses.replace(self, rng=self.rng.spawn(), seed=None)
        other._state = self._state.copy()
        return other

    def step(self):
        """
        Merges two blocks and returns the Event, or None if only one block
        is left.
        """
        k = self._state.num_blocks
        if k == 1:
            return None

        rate = self.rate(k)
        if not rate > 0:
            raise exceptions.InvalidRateError(f"Rate {rate} for {k} blocks")
        time = self.rng.exponential(rate)

        a, b = lexicographic_pair(self.rng.integers(num_pairs(k)), k)
        blocks = self._state.blocks()
        u = blocks[a][0]
        v = blocks[b][0]
        merged = self._state.union(u, v)
        assert merged, "Picked blocks were already joined"
        assert self._state.num_blocks == k - 1

        logger.debug("Merged blocks %d and %d of %d after %f", a, b, k, time)
        return Event(time, self._state.copy())

    def generate_realization(self) -> List[Event]:
        """
        Runs the process from its current state until one block is left
        and returns the list of events, starting with (0.0, current state).
        The state is restored afterwards, but the random source has moved
        on, so the next call gives a different realization.
        """
        with preserved_state(self) as initial:
            logger.info("Generating realization from %d blocks", initial.num_blocks)
            realization = [Event(0.0, initial.copy())]
            realization.extend(self)
        logger.info("Realization complete after %d events", len(realization) - 1)
        return realization


def sim_coalescent(n, seed=None, rate=linear_rate):
    """
    Returns a single realization of the n-coalescent.
    """
    process = CoalescentProcess(n, seed=seed, rate=rate)
    return process.generate_realization()
