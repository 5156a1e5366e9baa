"""Shared output buffer for link simulation.

This module defines the QueueState class, the byte occupancy of the single
buffer shared by every traffic class, and the admission step that inserts
arrivals into it and drops what does not fit.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple


@dataclass(frozen=True)
class QueueState:
    """Byte occupancy of the shared buffer.

    Attributes:
        occupancy: Bytes queued per class, in class declaration order.
        capacity: Size of the shared buffer in bytes.
    """

    occupancy: Tuple[int, ...]
    capacity: int

    def __post_init__(self):
        if any(q < 0 for q in self.occupancy):
            raise ValueError(f"Queue occupancy cannot be negative: {self.occupancy}")
        if self.used > self.capacity:
            raise ValueError(
                f"Buffer holds {self.used} bytes, more than its capacity {self.capacity}"
            )

    @classmethod
    def empty(cls, num_classes: int, capacity: int) -> "QueueState":
        """Create an empty buffer."""
        return cls((0,) * num_classes, capacity)

    @property
    def used(self) -> int:
        """Bytes currently in the buffer, over every class."""
        return sum(self.occupancy)

    @property
    def free_space(self) -> int:
        return self.capacity - self.used


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of inserting one step of arrivals.

    Attributes:
        state: Buffer state after admission.
        admitted: Bytes accepted per class.
        dropped: Bytes discarded per class because the buffer was full.
    """

    state: QueueState
    admitted: Tuple[int, ...]
    dropped: Tuple[int, ...]


def admit(
    state: QueueState, arrivals: Sequence[int], order: Sequence[int]
) -> AdmissionResult:
    """Insert arrivals into the shared buffer, tail-dropping the overflow.

    Classes are handled one after the other in `order`. A class whose arrival
    does not fit takes whatever space is left and loses the rest, so earlier
    classes win when the buffer is close to full.

    Args:
        state: Buffer state before admission.
        arrivals: Bytes arriving per class, in class declaration order.
        order: Class indices in admission order.

    Returns:
        The new state with the bytes admitted and dropped per class.
    """
    if len(arrivals) != len(state.occupancy):
        raise ValueError(
            f"Got {len(arrivals)} arrivals for {len(state.occupancy)} classes"
        )

    occupancy = list(state.occupancy)
    admitted = [0] * len(occupancy)
    dropped = [0] * len(occupancy)
    free_space = state.free_space

    for s in order:
        arrival = arrivals[s]
        if arrival < 0:
            raise ValueError(f"Arrival volume cannot be negative: {arrival}")
        if arrival == 0:
            continue

        if arrival <= free_space:
            accepted = arrival
        elif free_space > 0:
            accepted = free_space
        else:
            accepted = 0

        occupancy[s] += accepted
        free_space -= accepted
        admitted[s] = accepted
        dropped[s] = arrival - accepted

    return AdmissionResult(
        QueueState(tuple(occupancy), state.capacity), tuple(admitted), tuple(dropped)
    )
