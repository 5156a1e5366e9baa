"""Utilities for link simulation: random sources, metrics, reports and plots."""
