"""Enumerations for link simulation.

This module defines enumerations used throughout the link simulator.
"""

from enum import Enum


class ServiceClass(Enum):
    """Traffic classes carried by the triple-play link.

    Attributes:
        VOICE: VoIP, small packets, nearly constant bit rate.
        VIDEO: IPTV, large packets, moderate variation.
        DATA: Internet access, bursty best-effort traffic.
    """

    VOICE = "voice"
    VIDEO = "video"
    DATA = "data"


class SchedulingPolicy(Enum):
    """Policies used to share the link capacity between classes.

    Attributes:
        BEST_EFFORT: Capacity shared in proportion to queued bytes.
        PRIORITY: Capacity partitioned with voice > video > data.
    """

    BEST_EFFORT = "BE"
    PRIORITY = "QOS"
