"""Traffic generation for link simulation.

This module provides per-step arrival volume generators for the traffic
classes carried by the simulated link.
"""
