"""Metrics utilities for link simulation.

This module provides functions for calculating and exporting link simulation
metrics, including per-class throughput, loss ratio, delay estimates and
fairness, and for comparing the best-effort and QoS scenarios.
"""

import csv
import json
import os
from typing import TYPE_CHECKING, Any, Dict, List

import numpy as np

from qos_sim.core.config import SimulationConfig

if TYPE_CHECKING:
    from qos_sim.core.qos import QoSResult
    from qos_sim.core.simulator import SimulationResult


def throughput_bps(transmitted_bytes: float, duration: float) -> float:
    """Mean throughput in bits per second."""
    if duration <= 0:
        raise ValueError(f"Duration must be positive, got {duration}")
    return transmitted_bytes * 8 / duration


def loss_ratio(dropped_bytes: float, offered_bytes: float) -> float:
    """Fraction of the offered bytes that were dropped.

    The offered volume is the mean-rate approximation, so the ratio can
    slightly exceed what was really generated. Zero offered load gives 0.
    """
    if offered_bytes <= 0:
        return 0.0
    return dropped_bytes / offered_bytes


def calculate_fairness_index(throughputs: Dict[str, float]) -> float:
    """Calculate Jain's fairness index for class throughputs.

    Args:
        throughputs: Dictionary mapping class names to throughputs.

    Returns:
        Fairness index between 0 and 1 (1 is perfectly fair).
    """
    if not throughputs:
        return 0.0

    values = list(throughputs.values())
    n = len(values)
    sum_throughput = sum(values)
    sum_squared = sum(x**2 for x in values)

    if sum_squared == 0:
        return 0.0

    return (sum_throughput**2) / (n * sum_squared)


def aggregate_metrics(
    config: SimulationConfig,
    transmitted: np.ndarray,
    dropped: np.ndarray,
    queue_bytes: np.ndarray,
    buffer_bytes: np.ndarray,
) -> Dict[str, Any]:
    """Calculate aggregate metrics of a best-effort run.

    Delay is approximated by the time the link needs to drain the whole
    shared buffer, since every queued byte waits behind all others in the
    best-effort model. Each class averages it over the steps in which it had
    bytes queued; jitter is the standard deviation of the same samples.

    Args:
        config: Parameters of the run.
        transmitted: Bytes sent per class and step.
        dropped: Bytes dropped per class and step.
        queue_bytes: Bytes queued per class at the end of each step.
        buffer_bytes: Total buffer occupancy at the end of each step.

    Returns:
        Dictionary of calculated metrics.
    """
    duration = config.clock.duration
    drain_time = buffer_bytes * 8 / config.link_capacity_bps

    classes: Dict[str, Dict[str, float]] = {}
    for s, traffic_class in enumerate(config.classes):
        tx_total = int(transmitted[s].sum())
        drop_total = int(dropped[s].sum())
        offered = traffic_class.offered_bytes(duration)

        queued = queue_bytes[s] > 0
        samples = drain_time[queued]
        classes[traffic_class.name] = {
            "transmitted_bytes": tx_total,
            "dropped_bytes": drop_total,
            "offered_bytes": offered,
            "throughput_bps": throughput_bps(tx_total, duration),
            "loss_ratio": loss_ratio(drop_total, offered),
            "mean_delay": float(samples.mean()) if samples.size else 0.0,
            "jitter": float(samples.std()) if samples.size else 0.0,
        }

    total_bits = float(transmitted.sum()) * 8
    return {
        "policy": "Best Effort",
        "duration": duration,
        "classes": classes,
        "link_utilization": total_bits / (config.link_capacity_bps * duration),
        "peak_buffer_bytes": int(buffer_bytes.max()) if buffer_bytes.size else 0,
        "fairness_index": calculate_fairness_index(
            {name: c["throughput_bps"] for name, c in classes.items()}
        ),
    }


def qos_metrics(result: "QoSResult") -> Dict[str, Any]:
    """Flatten a QoS scenario result into a metrics dictionary."""
    allocation = result.allocation
    classes = {}
    for name in allocation.offered:
        offered = allocation.offered[name]
        classes[name] = {
            "offered": offered,
            "capacity": allocation.capacity[name],
            "throughput": allocation.throughput[name],
            "loss": allocation.loss[name],
            "loss_ratio": loss_ratio(allocation.loss[name], offered),
            "utilization": allocation.utilization[name],
            "delay": result.delay[name],
            "jitter": result.jitter[name],
        }
    return {
        "policy": "Priority QoS",
        "link_capacity": result.config.link_capacity,
        "congestion": result.config.congestion,
        "load_ratio": result.load_ratio,
        "classes": classes,
        "fairness_index": calculate_fairness_index(allocation.throughput),
    }


def compare_scenarios(
    best_effort: "SimulationResult", qos: "QoSResult"
) -> Dict[str, Dict[str, float]]:
    """Compare the loss each class suffers with and without QoS.

    Throughputs are not comparable across scenarios (the QoS model uses its
    own link capacity), so each is reported relative to its own link.

    Args:
        best_effort: Result of the best-effort simulation.
        qos: Result of the QoS scenario.

    Returns:
        Per class: link share and loss percentage in both scenarios.
    """
    be_classes = best_effort.metrics["classes"]
    qos_classes = qos_metrics(qos)["classes"]
    link_bps = best_effort.config.link_capacity_bps

    comparison = {}
    for name in be_classes:
        if name not in qos_classes:
            continue
        comparison[name] = {
            "best_effort_link_share": be_classes[name]["throughput_bps"] / link_bps * 100,
            "qos_link_share": qos_classes[name]["utilization"],
            "best_effort_loss_pct": be_classes[name]["loss_ratio"] * 100,
            "qos_loss_pct": qos_classes[name]["loss_ratio"] * 100,
        }
    return comparison


def save_metrics_to_json(
    metrics: Dict[str, Any], filename: str = "results/metrics.json"
) -> None:
    """Save metrics to a JSON file.

    Args:
        metrics: Dictionary of metrics to save.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w") as f:
        json.dump(metrics, f, indent=2)


def save_metrics_to_csv(
    comparison: Dict[str, Dict[str, float]],
    filename: str = "results/scenario_comparison.csv",
) -> None:
    """Save a per-class scenario comparison to a CSV file.

    Args:
        comparison: Output of `compare_scenarios`.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    columns: List[str] = [
        "best_effort_link_share",
        "qos_link_share",
        "best_effort_loss_pct",
        "qos_loss_pct",
    ]
    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["Class"] + columns)
        for name, row in comparison.items():
            writer.writerow([name] + [row[column] for column in columns])
