import matplotlib

matplotlib.use("Agg")

import pytest

from qos_sim.core.config import SimulationClock, SimulationConfig
from qos_sim.core.traffic_class import TrafficClass


@pytest.fixture
def short_config():
    """Congested triple-play link over half a second with a small buffer."""
    return SimulationConfig(
        clock=SimulationClock(duration=0.5, step=1e-3),
        buffer_capacity_bytes=50_000,
        seed=42,
    )


@pytest.fixture
def single_class_config():
    """One class, 1000 bytes of link budget per 1 ms step."""
    return SimulationConfig(
        clock=SimulationClock(duration=0.01, step=1e-3),
        link_capacity_bps=8e6,
        buffer_capacity_bytes=1000,
        classes=(TrafficClass("voice", 8e6, 0.5, 200),),
    )
