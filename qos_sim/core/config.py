"""Configuration for link simulation.

This module defines the parameter sets of both scenarios: the best-effort
shared buffer simulation and the QoS capacity partition model. Defaults
reproduce the congested triple-play link used throughout the project.
Both can be loaded from a JSON file, where any missing key keeps its default.
"""

import json
import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from qos_sim.core.enums import ServiceClass
from qos_sim.core.traffic_class import TrafficClass, triple_play_classes
from qos_sim.utils.rng import RNG_KINDS

logger = logging.getLogger(__name__)

CLASS_NAMES: Tuple[str, ...] = tuple(c.value for c in ServiceClass)


def _require_positive(name: str, value: float) -> None:
    """Reject zero, negative, NaN and infinite parameters."""
    if not (math.isfinite(value) and value > 0):
        raise ValueError(f"{name} must be a positive finite number, got {value}")


@dataclass(frozen=True)
class SimulationClock:
    """Discrete simulation clock.

    Attributes:
        duration: Total simulated time in seconds.
        step: Length of one step in seconds.
    """

    duration: float = 10.0
    step: float = 1e-3

    def __post_init__(self):
        _require_positive("Clock duration", self.duration)
        _require_positive("Clock step", self.step)
        if self.step_count < 1:
            raise ValueError(
                f"Step {self.step}s is longer than the duration {self.duration}s"
            )

    @property
    def step_count(self) -> int:
        """Number of steps in the simulation."""
        return int(round(self.duration / self.step))

    def times(self) -> np.ndarray:
        """Start time of every step, from 0 to duration - step."""
        return np.arange(self.step_count) * self.step


@dataclass
class SimulationConfig:
    """Parameters of the best-effort shared buffer simulation.

    Attributes:
        clock: Simulation duration and step size.
        link_capacity_bps: Output link capacity in bits per second.
        buffer_capacity_bytes: Size of the buffer shared by every class.
        classes: Traffic classes, in the order used for output arrays.
        service_order: Class names in the order they are admitted and served
            within a step. Earlier classes win partial overflows and keep
            their share of the rounding remainder. Defaults to class order.
        seed: Seed of the random source.
        rng: Random source kind, "numpy" or "lcg" (portable CustomRNG).
    """

    clock: SimulationClock = field(default_factory=SimulationClock)
    link_capacity_bps: float = 20e6
    buffer_capacity_bytes: int = 2_000_000
    classes: Tuple[TrafficClass, ...] = field(default_factory=triple_play_classes)
    service_order: Optional[Tuple[str, ...]] = None
    seed: int = 42
    rng: str = "numpy"

    def __post_init__(self):
        self.classes = tuple(self.classes)
        if not self.classes:
            raise ValueError("At least one traffic class is required")
        _require_positive("Link capacity", self.link_capacity_bps)
        _require_positive("Buffer capacity", self.buffer_capacity_bytes)
        if self.rng not in RNG_KINDS:
            raise ValueError(
                f"Unknown random source {self.rng!r}, expected one of {RNG_KINDS}"
            )

        names = self.class_names
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate traffic class names: {names}")

        if self.service_order is None:
            self.service_order = names
        self.service_order = tuple(self.service_order)
        if sorted(self.service_order) != sorted(names):
            raise ValueError(
                f"Service order {self.service_order} must list each of {names} once"
            )

    @property
    def class_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.classes)

    @property
    def order_indices(self) -> List[int]:
        """Indices into `classes` following `service_order`."""
        names = self.class_names
        return [names.index(name) for name in self.service_order]

    @property
    def step_budget_bytes(self) -> float:
        """Bytes the link can transmit in one step."""
        return self.link_capacity_bps * self.clock.step / 8


def _per_class(values: Dict[str, float]) -> Dict[str, float]:
    return {name: values[name] for name in CLASS_NAMES}


@dataclass
class QoSConfig:
    """Parameters of the fixed-priority capacity partition model.

    Rates share one unit (Mbps by default). Delays are in seconds.

    Attributes:
        link_capacity: Capacity of the link.
        congestion: Multiplier applied to every nominal offered load.
        offered: Nominal offered load per class.
        voice_cap_fraction: Largest fraction of the link voice may use.
        video_share: Fraction of the capacity left by voice granted to video.
        delay_base: Delay of each class on an idle link.
        delay_sensitivity: Delay added per unit of offered load ratio.
        jitter_sensitivity: Jitter per unit of offered load ratio.
    """

    link_capacity: float = 100.0
    congestion: float = 1.2
    offered: Dict[str, float] = field(
        default_factory=lambda: {"voice": 15.0, "video": 40.0, "data": 65.0}
    )
    voice_cap_fraction: float = 0.30
    video_share: float = 0.60
    delay_base: Dict[str, float] = field(
        default_factory=lambda: {"voice": 0.020, "video": 0.030, "data": 0.050}
    )
    delay_sensitivity: Dict[str, float] = field(
        default_factory=lambda: {"voice": 0.005, "video": 0.010, "data": 0.050}
    )
    jitter_sensitivity: Dict[str, float] = field(
        default_factory=lambda: {"voice": 0.001, "video": 0.002, "data": 0.010}
    )

    def __post_init__(self):
        _require_positive("Link capacity", self.link_capacity)
        _require_positive("Congestion multiplier", self.congestion)
        for fraction_name in ("voice_cap_fraction", "video_share"):
            value = getattr(self, fraction_name)
            if not 0 <= value <= 1:
                raise ValueError(f"{fraction_name} must be in [0, 1], got {value}")

        for table_name in (
            "offered",
            "delay_base",
            "delay_sensitivity",
            "jitter_sensitivity",
        ):
            table = getattr(self, table_name)
            missing = set(CLASS_NAMES) - set(table)
            extra = set(table) - set(CLASS_NAMES)
            if missing or extra:
                raise ValueError(
                    f"{table_name} needs exactly the classes {CLASS_NAMES}, "
                    f"missing={sorted(missing)}, unknown={sorted(extra)}"
                )
            if not all(math.isfinite(v) and v >= 0 for v in table.values()):
                raise ValueError(
                    f"{table_name} values must be finite and non-negative: {table}"
                )
            setattr(self, table_name, _per_class(table))

    def congested_offered(self) -> Dict[str, float]:
        """Offered load per class after applying the congestion multiplier."""
        return {name: load * self.congestion for name, load in self.offered.items()}

    @property
    def total_offered(self) -> float:
        """Total congested offered load."""
        return sum(self.offered.values()) * self.congestion


def _clock_from_dict(data: Dict[str, Any]) -> SimulationClock:
    defaults = SimulationClock()
    return SimulationClock(
        duration=data.get("duration", defaults.duration),
        step=data.get("step", defaults.step),
    )


def simulation_config_from_dict(data: Dict[str, Any]) -> SimulationConfig:
    """Build a SimulationConfig from a (possibly partial) dictionary."""
    kwargs: Dict[str, Any] = {}
    if "clock" in data:
        kwargs["clock"] = _clock_from_dict(data["clock"])
    if "classes" in data:
        kwargs["classes"] = tuple(TrafficClass(**c) for c in data["classes"])
    if data.get("service_order") is not None:
        kwargs["service_order"] = tuple(data["service_order"])
    for key in ("link_capacity_bps", "buffer_capacity_bytes", "seed", "rng"):
        if key in data:
            kwargs[key] = data[key]
    return SimulationConfig(**kwargs)


def qos_config_from_dict(data: Dict[str, Any]) -> QoSConfig:
    """Build a QoSConfig from a (possibly partial) dictionary.

    Per-class tables are merged with the defaults so a file may override a
    single class.
    """
    defaults = QoSConfig()
    kwargs: Dict[str, Any] = {}
    for key in ("link_capacity", "congestion", "voice_cap_fraction", "video_share"):
        if key in data:
            kwargs[key] = data[key]
    for key in ("offered", "delay_base", "delay_sensitivity", "jitter_sensitivity"):
        if key in data:
            kwargs[key] = {**getattr(defaults, key), **data[key]}
    return QoSConfig(**kwargs)


def load_config(filename: str) -> Tuple[SimulationConfig, QoSConfig]:
    """Load both scenario configurations from a JSON file.

    The file may contain a "best_effort" and a "qos" section; an absent
    section keeps every default.

    Args:
        filename: Path of the JSON file.

    Returns:
        Tuple of (SimulationConfig, QoSConfig).
    """
    with open(filename) as f:
        data = json.load(f)

    sim_config = simulation_config_from_dict(data.get("best_effort", {}))
    qos_config = qos_config_from_dict(data.get("qos", {}))
    logger.info("Loaded configuration from %s", filename)
    return sim_config, qos_config


def config_to_dict(
    sim_config: SimulationConfig, qos_config: QoSConfig
) -> Dict[str, Any]:
    """Convert both configurations into a JSON serializable dictionary."""
    best_effort = asdict(sim_config)
    best_effort["classes"] = [asdict(c) for c in sim_config.classes]
    best_effort["service_order"] = list(sim_config.service_order)
    return {"best_effort": best_effort, "qos": asdict(qos_config)}
