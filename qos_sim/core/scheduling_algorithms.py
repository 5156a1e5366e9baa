from abc import ABC, abstractmethod
from dataclasses import dataclass
import math
from typing import List, Optional, Sequence, Tuple, Union

from qos_sim.core.buffer import QueueState
from qos_sim.core.enums import SchedulingPolicy


@dataclass(frozen=True)
class ServiceResult:
    """Outcome of serving the shared buffer for one step.

    Attributes:
        state: Buffer state after service.
        transmitted: Bytes sent per class.
    """

    state: QueueState
    transmitted: Tuple[int, ...]


class SchedulingAlgorithm(ABC):
    """Abstract base class for link capacity scheduling algorithms"""

    def __init__(self):
        self.name = "Base Scheduler"

    @abstractmethod
    def allocate(self, demand: Sequence[float], capacity: float) -> Tuple[float, ...]:
        """
        Split the link capacity between traffic classes

        Args:
            demand: Demand of each class (queued bytes or offered rate)
            capacity: Capacity available to share, in the same unit

        Returns:
            Capacity granted to each class, in the order of `demand`
        """
        pass

    def __repr__(self) -> str:
        return self.name


class ProportionalShareScheduler(SchedulingAlgorithm):
    """Best-effort scheduling: capacity shared in proportion to queued bytes.

    Every class gets `queued / total_queued * budget` bytes, capped at what
    it has queued and floored to whole bytes. Shares are computed against the
    total at the start of the step and are not renormalised afterwards, so
    budget left by the cap or by flooring stays unused for the step.
    """

    def __init__(self, order: Optional[Sequence[int]] = None):
        """
        Args:
            order: Class indices in service order, defaults to index order
        """
        super().__init__()
        self.name = "Best Effort"
        self.order = list(order) if order is not None else None

    def _order(self, num_classes: int) -> List[int]:
        return self.order if self.order is not None else list(range(num_classes))

    def allocate(self, demand, capacity):
        """Bytes to send per class for queued bytes `demand` and a step budget"""
        total = sum(demand)
        served = [0] * len(demand)
        if total <= 0:
            return tuple(served)

        for s in self._order(len(demand)):
            share = demand[s] / total * capacity
            served[s] = int(math.floor(min(share, demand[s])))
        return tuple(served)

    def serve(self, state: QueueState, budget: float) -> ServiceResult:
        """Drain the shared buffer for one step

        Args:
            state: Buffer state before service
            budget: Bytes the link can send in this step

        Returns:
            The drained state and the bytes transmitted per class
        """
        transmitted = self.allocate(state.occupancy, budget)
        occupancy = tuple(q - tx for q, tx in zip(state.occupancy, transmitted))
        return ServiceResult(QueueState(occupancy, state.capacity), transmitted)


class PriorityPartitionScheduler(SchedulingAlgorithm):
    """QoS scheduling: fixed-priority partition voice > video > data.

    Voice gets its demand up to `voice_cap_fraction` of the link, video its
    demand up to `video_share` of what voice left, and data every remaining
    unit, so the three partitions add up to the link capacity. The sum is
    exact when voice and video are granted their whole (integer) demand; when
    a cap applies it holds to floating point rounding, within a few ulps of
    the capacity.
    """

    def __init__(self, voice_cap_fraction: float = 0.30, video_share: float = 0.60):
        super().__init__()
        if not 0 <= voice_cap_fraction <= 1 or not 0 <= video_share <= 1:
            raise ValueError(
                f"Partition fractions must be in [0, 1], got "
                f"voice_cap_fraction={voice_cap_fraction}, video_share={video_share}"
            )
        self.name = "Priority QoS"
        self.voice_cap_fraction = voice_cap_fraction
        self.video_share = video_share

    def allocate(self, demand, capacity):
        """Partitions (voice, video, data) for offered loads `demand`"""
        if len(demand) != 3:
            raise ValueError(
                f"Priority partition needs voice, video and data demand, got {demand}"
            )
        if not (math.isfinite(capacity) and capacity > 0):
            raise ValueError(f"Link capacity must be positive and finite, got {capacity}")

        voice_offered, video_offered, _ = demand
        voice_capacity = min(voice_offered, capacity * self.voice_cap_fraction)
        remaining = capacity - voice_capacity
        video_capacity = min(video_offered, remaining * self.video_share)
        data_capacity = capacity - voice_capacity - video_capacity

        if data_capacity < 0:
            raise ValueError(
                f"Partitions exceed the link: voice={voice_capacity}, "
                f"video={video_capacity}, capacity={capacity}"
            )
        return (voice_capacity, video_capacity, data_capacity)


def scheduling_algorithm_factory(
    policy: Union[str, SchedulingPolicy], **kwargs
) -> SchedulingAlgorithm:
    """
    Factory function to create the appropriate scheduler

    Args:
        policy: Scheduling policy ("BE" or "QOS")
        **kwargs: Arguments for the scheduler constructor

    Returns:
        An instance of the selected scheduling algorithm
    """
    try:
        policy = SchedulingPolicy(policy)
    except ValueError:
        raise ValueError(f"Unknown scheduling policy: {policy}") from None

    if policy is SchedulingPolicy.PRIORITY:
        return PriorityPartitionScheduler(**kwargs)
    return ProportionalShareScheduler(**kwargs)
