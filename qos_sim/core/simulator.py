"""Best-effort link simulator.

This module defines the BestEffortSimulator class, which runs the
discrete-time shared buffer model: every step each class generates traffic,
the arrivals are admitted into the shared buffer (or dropped when it is
full) and the link drains the buffer in proportion to what each class holds.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import simpy

from qos_sim.core.buffer import QueueState, admit
from qos_sim.core.config import SimulationConfig
from qos_sim.core.enums import SchedulingPolicy
from qos_sim.core.scheduling_algorithms import scheduling_algorithm_factory
from qos_sim.traffic.generators import step_arrival_bytes
from qos_sim.utils.metrics import aggregate_metrics
from qos_sim.utils.rng import RandomSource, make_rng

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationState:
    """State carried from one step to the next.

    Attributes:
        queue: Occupancy of the shared buffer.
        step_index: Number of steps already simulated.
    """

    queue: QueueState
    step_index: int = 0


@dataclass(frozen=True)
class StepMetrics:
    """What happened to every class during one step.

    All tuples are in class declaration order.

    Attributes:
        step_index: Index of the step.
        arrivals: Bytes generated.
        admitted: Bytes accepted into the buffer.
        dropped: Bytes discarded on overflow.
        transmitted: Bytes sent on the link.
        occupancy: Bytes queued at the end of the step.
    """

    step_index: int
    arrivals: Tuple[int, ...]
    admitted: Tuple[int, ...]
    dropped: Tuple[int, ...]
    transmitted: Tuple[int, ...]
    occupancy: Tuple[int, ...]


@dataclass
class SimulationResult:
    """Time series and aggregates of a best-effort run.

    Per-class arrays have shape (num_classes, step_count), rows in class
    declaration order.

    Attributes:
        config: Parameters of the run.
        times: Start time of every step in seconds.
        queue_bytes: Bytes queued per class at the end of each step.
        arrivals: Bytes generated per class and step.
        admitted: Bytes admitted per class and step.
        dropped: Bytes dropped per class and step.
        transmitted: Bytes transmitted per class and step.
        buffer_bytes: Total buffer occupancy at the end of each step.
        metrics: Aggregate metrics, see `aggregate_metrics`.
    """

    config: SimulationConfig
    times: np.ndarray
    queue_bytes: np.ndarray
    arrivals: np.ndarray
    admitted: np.ndarray
    dropped: np.ndarray
    transmitted: np.ndarray
    buffer_bytes: np.ndarray
    metrics: Dict[str, Any]

    def class_index(self, name: str) -> int:
        """Row of class `name` in the per-class arrays."""
        try:
            return self.config.class_names.index(name)
        except ValueError:
            raise ValueError(f"Unknown traffic class: {name}") from None


class BestEffortSimulator:
    """Shared buffer simulation without QoS.

    Attributes:
        config: Simulation parameters.
        rng: Random source for the traffic generators.
        scheduler: Proportional share scheduler following the service order.
        state: State reached by the last run (initial state before any run).
        hooks: Callbacks keyed by event type.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[RandomSource] = None,
    ):
        """Initialize the simulator.

        Args:
            config: Simulation parameters, defaults to the congested
                triple-play link.
            rng: Random source, defaults to the `config.rng` kind seeded
                with `config.seed`.
        """
        self.config = config if config is not None else SimulationConfig()
        if rng is None:
            rng = make_rng(self.config.seed, self.config.rng)
        self.rng = rng
        self.scheduler = scheduling_algorithm_factory(
            SchedulingPolicy.BEST_EFFORT, order=self.config.order_indices
        )
        self.state = self.initial_state()

        self.hooks: Dict[str, List[Callable[..., Any]]] = {
            "step": [],  # a step was simulated
            "sim_end": [],  # the simulation ends
        }

    def initial_state(self) -> SimulationState:
        """Empty buffer at time 0."""
        return SimulationState(
            QueueState.empty(
                len(self.config.classes), self.config.buffer_capacity_bytes
            )
        )

    def generate(self, rng: RandomSource) -> Tuple[int, ...]:
        """Bytes offered by every class in one step, in declaration order."""
        step = self.config.clock.step
        return tuple(
            step_arrival_bytes(c.rate_bps, c.relative_variance, step, rng)
            for c in self.config.classes
        )

    def step(
        self,
        state: SimulationState,
        rng: RandomSource,
        arrivals: Optional[Sequence[int]] = None,
    ) -> Tuple[SimulationState, StepMetrics]:
        """Simulate one step: generate, admit, serve.

        Args:
            state: State at the start of the step.
            rng: Random source for the traffic generators.
            arrivals: Bytes offered per class; generated from `rng` when None.

        Returns:
            Tuple of the state at the end of the step and what happened in it.
        """
        if arrivals is None:
            arrivals = self.generate(rng)
        arrivals = tuple(arrivals)

        admission = admit(state.queue, arrivals, self.config.order_indices)
        service = self.scheduler.serve(admission.state, self.config.step_budget_bytes)

        metrics = StepMetrics(
            step_index=state.step_index,
            arrivals=arrivals,
            admitted=admission.admitted,
            dropped=admission.dropped,
            transmitted=service.transmitted,
            occupancy=service.state.occupancy,
        )
        return SimulationState(service.state, state.step_index + 1), metrics

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Register a callback function for a specific event type.

        Args:
            event_type: The type of event to register for.
            callback: The function to call when the event occurs.
        """
        if event_type not in self.hooks:
            raise ValueError(f"Unknown hook type: {event_type}")
        self.hooks[event_type].append(callback)

    def call_hooks(self, event_type: str, *args: Any, **kwargs: Any) -> None:
        """Call all registered callbacks for the given event type."""
        for callback in self.hooks[event_type]:
            callback(*args, **kwargs)

    def run(self, updates: bool = False) -> SimulationResult:
        """Run the simulation over the whole clock.

        Steps are driven by a SimPy process that advances the environment by
        one step length per iteration.

        Args:
            updates: Print the progress every tenth of the duration.

        Returns:
            The recorded time series and aggregate metrics.
        """
        config = self.config
        clock = config.clock
        num_classes = len(config.classes)
        steps = clock.step_count

        queue_bytes = np.zeros((num_classes, steps), dtype=np.int64)
        arrivals = np.zeros((num_classes, steps), dtype=np.int64)
        admitted = np.zeros((num_classes, steps), dtype=np.int64)
        dropped = np.zeros((num_classes, steps), dtype=np.int64)
        transmitted = np.zeros((num_classes, steps), dtype=np.int64)
        buffer_bytes = np.zeros(steps, dtype=np.int64)

        env = simpy.Environment()
        logger.info(
            "Running best-effort simulation: %d steps of %gs, service order %s",
            steps,
            clock.step,
            ", ".join(config.service_order),
        )

        def stepper():
            state = self.initial_state()
            for k in range(steps):
                state, step_metrics = self.step(state, self.rng)
                arrivals[:, k] = step_metrics.arrivals
                admitted[:, k] = step_metrics.admitted
                dropped[:, k] = step_metrics.dropped
                transmitted[:, k] = step_metrics.transmitted
                queue_bytes[:, k] = step_metrics.occupancy
                buffer_bytes[k] = state.queue.used
                self.call_hooks("step", step_metrics, env.now)
                yield env.timeout(clock.step)
            self.state = state

        env.process(stepper())

        if updates:
            count = 10
            interval = clock.duration / count

            def update():
                for counter in range(1, count + 1):
                    yield env.timeout(interval)
                    progress = counter / count * 100
                    print(f"Progress: {progress:.2f}%", end="\r")
                print()

            env.process(update())

        env.run()

        metrics = aggregate_metrics(
            config, transmitted, dropped, queue_bytes, buffer_bytes
        )
        result = SimulationResult(
            config=config,
            times=clock.times(),
            queue_bytes=queue_bytes,
            arrivals=arrivals,
            admitted=admitted,
            dropped=dropped,
            transmitted=transmitted,
            buffer_bytes=buffer_bytes,
            metrics=metrics,
        )
        logger.info(
            "Best-effort simulation done: %d bytes sent, %d bytes dropped",
            int(transmitted.sum()),
            int(dropped.sum()),
        )
        self.call_hooks("sim_end", result)
        return result


def run_replications(
    config: SimulationConfig, seeds: Sequence[int]
) -> Dict[str, Dict[str, float]]:
    """Run independent best-effort simulations and summarise them.

    Each run owns its simulator, state and random source.

    Args:
        config: Parameters shared by every run; only the seed changes.
        seeds: One seed per replication.

    Returns:
        Per class, the mean and standard deviation of throughput (bit/s) and
        loss ratio over the replications.
    """
    if not seeds:
        raise ValueError("At least one seed is required")

    throughputs: Dict[str, List[float]] = {name: [] for name in config.class_names}
    losses: Dict[str, List[float]] = {name: [] for name in config.class_names}

    for seed in seeds:
        result = BestEffortSimulator(replace(config, seed=seed)).run()
        for name, stats in result.metrics["classes"].items():
            throughputs[name].append(stats["throughput_bps"])
            losses[name].append(stats["loss_ratio"])

    summary = {}
    for name in config.class_names:
        summary[name] = {
            "throughput_mean": float(np.mean(throughputs[name])),
            "throughput_std": float(np.std(throughputs[name])),
            "loss_ratio_mean": float(np.mean(losses[name])),
            "loss_ratio_std": float(np.std(losses[name])),
        }
    return summary
