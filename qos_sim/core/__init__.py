"""Core components for link simulation.

This module contains the configuration types, the admission and scheduling
algorithms, the best-effort simulation engine and the QoS partition model.
"""
