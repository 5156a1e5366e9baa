"""QoS capacity partition model for link simulation.

With QoS the link is no longer a shared byte queue: each class gets an
instantaneous capacity partition from a fixed priority rule (voice > video >
data) and loses whatever it offers beyond it. Delay and jitter are estimated
with per-class affine functions of the offered load ratio.
"""

import logging
from dataclasses import dataclass, replace
from itertools import product
from typing import Dict, List, Optional, Sequence, Tuple

from qos_sim.core.config import CLASS_NAMES, QoSConfig
from qos_sim.core.enums import SchedulingPolicy
from qos_sim.core.scheduling_algorithms import scheduling_algorithm_factory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityAllocation:
    """Per-class capacity partition and its outcome.

    Attributes:
        offered: Congested offered load per class.
        capacity: Capacity granted per class.
        loss: Offered load beyond the granted capacity.
        throughput: Offered load actually carried.
        utilization: Share of the link carried per class, in percent.
    """

    offered: Dict[str, float]
    capacity: Dict[str, float]
    loss: Dict[str, float]
    throughput: Dict[str, float]
    utilization: Dict[str, float]


@dataclass(frozen=True)
class QoSResult:
    """Everything the QoS scenario reports.

    Attributes:
        config: Parameters of the run.
        load_ratio: Total congested offered load over link capacity.
        allocation: Capacity partition and its throughput and loss.
        delay: Estimated delay per class in seconds.
        jitter: Estimated jitter per class in seconds.
    """

    config: QoSConfig
    load_ratio: float
    allocation: CapacityAllocation
    delay: Dict[str, float]
    jitter: Dict[str, float]


def allocate_capacity(config: QoSConfig) -> CapacityAllocation:
    """Partition the link between the classes and derive throughput and loss.

    Args:
        config: QoS parameters.

    Returns:
        The capacity allocation.
    """
    scheduler = scheduling_algorithm_factory(
        SchedulingPolicy.PRIORITY,
        voice_cap_fraction=config.voice_cap_fraction,
        video_share=config.video_share,
    )
    offered = config.congested_offered()
    partitions = scheduler.allocate(
        [offered[name] for name in CLASS_NAMES], config.link_capacity
    )
    capacity = dict(zip(CLASS_NAMES, partitions))

    loss = {name: max(0.0, offered[name] - capacity[name]) for name in CLASS_NAMES}
    throughput = {name: offered[name] - loss[name] for name in CLASS_NAMES}
    utilization = {
        name: throughput[name] / config.link_capacity * 100 for name in CLASS_NAMES
    }
    return CapacityAllocation(offered, capacity, loss, throughput, utilization)


def load_ratio(config: QoSConfig) -> float:
    """Total congested offered load relative to the link capacity."""
    return config.total_offered / config.link_capacity


def estimate_delay_jitter(
    config: QoSConfig,
) -> Tuple[Dict[str, float], Dict[str, float]]:
    """Estimate per-class delay and jitter.

    delay = base + sensitivity * load_ratio and jitter = coefficient *
    load_ratio. These are heuristics, not a queueing model.

    Args:
        config: QoS parameters holding the coefficients.

    Returns:
        Tuple of (delay, jitter) dictionaries in seconds.
    """
    rho = load_ratio(config)
    delay = {
        name: config.delay_base[name] + config.delay_sensitivity[name] * rho
        for name in CLASS_NAMES
    }
    jitter = {name: config.jitter_sensitivity[name] * rho for name in CLASS_NAMES}
    return delay, jitter


def run_qos_scenario(config: Optional[QoSConfig] = None) -> QoSResult:
    """Evaluate the QoS scenario.

    Args:
        config: QoS parameters, defaults to the congested triple-play link.

    Returns:
        The partition, throughput, loss, delay and jitter of every class.
    """
    if config is None:
        config = QoSConfig()

    allocation = allocate_capacity(config)
    delay, jitter = estimate_delay_jitter(config)
    rho = load_ratio(config)
    logger.debug(
        "QoS scenario: capacity=%s congestion=%s load_ratio=%.3f",
        config.link_capacity,
        config.congestion,
        rho,
    )
    return QoSResult(config, rho, allocation, delay, jitter)


def sweep_congestion(
    config: QoSConfig,
    multipliers: Sequence[float],
    capacities: Optional[Sequence[float]] = None,
) -> List[QoSResult]:
    """Evaluate the QoS scenario over a grid of congestion levels.

    Args:
        config: Base parameters; only capacity and congestion are replaced.
        multipliers: Congestion multipliers to evaluate.
        capacities: Link capacities to evaluate, defaults to the base one.

    Returns:
        One result per (capacity, multiplier) pair, capacity-major.
    """
    if capacities is None:
        capacities = [config.link_capacity]

    results = []
    for capacity, multiplier in product(capacities, multipliers):
        point = replace(config, link_capacity=capacity, congestion=multiplier)
        results.append(run_qos_scenario(point))
    logger.info("Swept %d congestion points", len(results))
    return results
