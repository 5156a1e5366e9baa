import pytest

from qos_sim.core.buffer import QueueState
from qos_sim.core.enums import SchedulingPolicy
from qos_sim.core.scheduling_algorithms import (
    PriorityPartitionScheduler,
    ProportionalShareScheduler,
    scheduling_algorithm_factory,
)


def test_single_class_is_served_up_to_its_queue():
    scheduler = ProportionalShareScheduler()
    result = scheduler.serve(QueueState((1000,), 2000), 1500)
    assert result.transmitted == (1000,)
    assert result.state.occupancy == (0,)


def test_capacity_shared_in_proportion_to_queued_bytes():
    scheduler = ProportionalShareScheduler()
    result = scheduler.serve(QueueState((300, 100, 0), 1000), 200)
    assert result.transmitted == (150, 50, 0)
    assert result.state.occupancy == (150, 50, 0)


def test_empty_buffer_serves_nothing():
    scheduler = ProportionalShareScheduler()
    state = QueueState((0, 0, 0), 1000)
    result = scheduler.serve(state, 2500)
    assert result.transmitted == (0, 0, 0)
    assert result.state == state


def test_flooring_leaves_budget_unused():
    # Each class is entitled to 2/3 of a byte and gets nothing: the spare
    # budget is not redistributed.
    scheduler = ProportionalShareScheduler()
    result = scheduler.serve(QueueState((1, 1, 1), 100), 2)
    assert result.transmitted == (0, 0, 0)

    result = scheduler.serve(QueueState((5, 5), 100), 3)
    assert result.transmitted == (1, 1)
    assert sum(result.transmitted) < 3


def test_served_bytes_never_exceed_budget_or_queue():
    scheduler = ProportionalShareScheduler([2, 0, 1])
    state = QueueState((1234, 5678, 91), 10_000)
    result = scheduler.serve(state, 2500)
    assert sum(result.transmitted) <= 2500
    for queued, sent in zip(state.occupancy, result.transmitted):
        assert 0 <= sent <= queued


def test_priority_partition_example():
    scheduler = PriorityPartitionScheduler(0.30, 0.60)
    voice, video, data = scheduler.allocate([18, 48, 78], 100)
    assert voice == pytest.approx(18)
    assert video == pytest.approx(48)
    assert data == pytest.approx(34)


def test_priority_partition_caps_voice_and_video():
    scheduler = PriorityPartitionScheduler(0.30, 0.60)
    voice, video, data = scheduler.allocate([50, 80, 10], 100)
    assert voice == pytest.approx(30)
    assert video == pytest.approx(42)
    assert data == pytest.approx(28)


@pytest.mark.parametrize(
    "demand, capacity",
    [
        ([18, 48, 78], 100),
        ([0.1, 0.2, 0.3], 1),
        ([500, 1, 1], 37.5),
        ([3, 900, 2], 12),
        ([0, 0, 0], 5),
    ],
)
def test_priority_partitions_add_up_to_the_link(demand, capacity):
    partitions = PriorityPartitionScheduler().allocate(demand, capacity)
    assert sum(partitions) == pytest.approx(capacity)
    assert all(p >= 0 for p in partitions)
    assert partitions[0] + partitions[1] <= capacity


@pytest.mark.parametrize(
    "demand, capacity, expected",
    [
        ([18, 48, 78], 100, (18, 48, 34)),
        ([10, 20, 1000], 100, (10, 20, 70)),
        ([1, 2, 3], 10, (1, 2, 7)),
        ([0, 0, 0], 5, (0, 0, 5)),
    ],
)
def test_priority_partition_is_exact_below_the_caps(demand, capacity, expected):
    partitions = PriorityPartitionScheduler().allocate(demand, capacity)
    assert partitions == expected
    assert sum(partitions) == capacity


def test_priority_partition_rejects_bad_input():
    with pytest.raises(ValueError):
        PriorityPartitionScheduler(1.5, 0.6)
    with pytest.raises(ValueError):
        PriorityPartitionScheduler().allocate([1, 2], 10)
    with pytest.raises(ValueError):
        PriorityPartitionScheduler().allocate([1, 2, 3], 0)
    with pytest.raises(ValueError):
        PriorityPartitionScheduler().allocate([1, 2, 3], float("nan"))


def test_factory():
    assert isinstance(scheduling_algorithm_factory("BE"), ProportionalShareScheduler)
    assert isinstance(
        scheduling_algorithm_factory(SchedulingPolicy.PRIORITY), PriorityPartitionScheduler
    )
    assert scheduling_algorithm_factory("BE", order=[1, 0]).order == [1, 0]
    with pytest.raises(ValueError):
        scheduling_algorithm_factory("WFQ")
