"""TrafficClass class for link simulation.

This module defines the TrafficClass class, which describes one of the
services (voice, video, data) offered to the simulated link.
"""

from dataclasses import dataclass
import math
from typing import Tuple

from qos_sim.core.enums import ServiceClass


@dataclass(frozen=True)
class TrafficClass:
    """Represents a traffic class offered to the link.

    Attributes:
        name: Identifier of the class (e.g. "voice").
        rate_bps: Mean offered rate in bits per second.
        relative_variance: Standard deviation of the rate multiplier.
        packet_size: Nominal packet size in bytes (informational only).
        label: Human readable name used by reports and plots.
    """

    name: str
    rate_bps: float
    relative_variance: float = 0.0
    packet_size: int = 1000
    label: str = ""

    def __post_init__(self):
        """Validate the class parameters."""
        if not self.name:
            raise ValueError("Traffic class needs a name")
        if not (math.isfinite(self.rate_bps) and self.rate_bps >= 0):
            raise ValueError(
                f"Traffic class {self.name!r} needs a finite non-negative rate, got {self.rate_bps}"
            )
        if not (math.isfinite(self.relative_variance) and self.relative_variance >= 0):
            raise ValueError(
                f"Traffic class {self.name!r} needs a finite non-negative variance, got "
                f"{self.relative_variance}"
            )
        if not self.packet_size > 0:
            raise ValueError(
                f"Traffic class {self.name!r} needs a positive packet size"
            )
        if not self.label:
            object.__setattr__(self, "label", self.name.capitalize())

    def offered_bytes(self, duration: float) -> float:
        """Approximate bytes offered over `duration`, ignoring rate variance."""
        return self.rate_bps * duration / 8


def triple_play_classes() -> Tuple[TrafficClass, TrafficClass, TrafficClass]:
    """Default voice, video and data classes of the congested metro link."""
    return (
        TrafficClass(ServiceClass.VOICE.value, 2e6, 0.05, 200, "Voice (VoIP)"),
        TrafficClass(ServiceClass.VIDEO.value, 20e6, 0.20, 1400, "Video (IPTV)"),
        TrafficClass(ServiceClass.DATA.value, 10e6, 0.50, 1000, "Data (Internet)"),
    )
