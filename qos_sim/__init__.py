"""Triple-play link simulation.

Discrete-time models of a congested link carrying voice, video and data,
served either best effort from one shared buffer or with fixed-priority
capacity partitioning.
"""

__version__ = "0.1.0"
