"""Visualization utilities for link simulation.

This module provides functions for plotting link simulation results,
including queue occupancy, buffer sharing, throughput over time and the
per-class metrics of the QoS scenario.
"""

from typing import List, Sequence
import matplotlib.pyplot as plt
import numpy as np
import os

from qos_sim.core.qos import QoSResult
from qos_sim.core.simulator import SimulationResult

CLASS_COLORS = {
    "voice": (0.0, 0.447, 0.741),
    "video": (0.850, 0.325, 0.098),
    "data": (0.466, 0.674, 0.188),
}


def _color(name: str):
    return CLASS_COLORS.get(name)


def _finish(fig, output_dir: str | None, filename: str, show: bool) -> None:
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        fig.savefig(os.path.join(output_dir, f"{filename}.png"))
        plt.close(fig)
    elif show:
        plt.show()
    else:
        plt.close(fig)


def moving_average(values: np.ndarray, window: int) -> np.ndarray:
    """Causal moving average, zero padded before the first sample.

    Args:
        values: Samples to smooth.
        window: Number of samples averaged.

    Returns:
        Smoothed samples, same length as `values`.
    """
    if window < 1:
        raise ValueError(f"Window must be at least 1, got {window}")
    kernel = np.ones(window) / window
    return np.convolve(values, kernel)[: len(values)]


def plot_queue_occupancy(
    result: SimulationResult,
    output_dir: str | None = None,
    show = True,
) -> None:
    """Plot the bytes queued by every class over time.

    Args:
        result: Result of a best-effort run.
        output_dir: Directory to save the plot, or None to show it.
        show: Whether to display the plot when it is not saved.
    """
    classes = result.config.classes
    fig, axes = plt.subplots(len(classes), 1, figsize=(12, 3 * len(classes)), sharex=True)
    axes = np.atleast_1d(axes)

    for s, traffic_class in enumerate(classes):
        ax = axes[s]
        ax.plot(result.times, result.queue_bytes[s], color=_color(traffic_class.name), linewidth=1.2)
        ax.set_ylabel(f"{traffic_class.label} queue (bytes)")
        ax.grid(True, linestyle="--", alpha=0.7)

    axes[0].set_title("Best effort, no QoS: queue per class")
    axes[-1].set_xlabel("Time (s)")
    plt.tight_layout()

    _finish(fig, output_dir, "queue_occupancy", show)


def plot_buffer_share(
    result: SimulationResult,
    output_dir: str | None = None,
    show = True,
) -> None:
    """Plot the share of the buffer held by every class as a stacked area.

    Args:
        result: Result of a best-effort run.
        output_dir: Directory to save the plot, or None to show it.
        show: Whether to display the plot when it is not saved.
    """
    config = result.config
    shares = result.queue_bytes / config.buffer_capacity_bytes * 100

    colors = [_color(c.name) for c in config.classes]
    if None in colors:
        colors = None

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.stackplot(
        result.times,
        shares,
        labels=[c.label for c in config.classes],
        colors=colors,
    )
    ax.set_title("Relative buffer occupancy per class (best effort)")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Buffer occupancy (%)")
    ax.grid(True, linestyle="--", alpha=0.7)
    ax.legend(loc="upper left")
    plt.tight_layout()

    _finish(fig, output_dir, "buffer_share", show)


def plot_smoothed_throughput(
    result: SimulationResult,
    window: int = 200,
    output_dir: str | None = None,
    show = True,
) -> None:
    """Plot the instantaneous throughput of every class, smoothed.

    Args:
        result: Result of a best-effort run.
        window: Moving average window in steps.
        output_dir: Directory to save the plot, or None to show it.
        show: Whether to display the plot when it is not saved.
    """
    config = result.config
    step = config.clock.step
    classes = config.classes
    fig, axes = plt.subplots(len(classes), 1, figsize=(12, 3 * len(classes)), sharex=True)
    axes = np.atleast_1d(axes)

    for s, traffic_class in enumerate(classes):
        instantaneous = result.transmitted[s] * 8 / (step * 1e6)
        ax = axes[s]
        ax.plot(result.times, moving_average(instantaneous, window), color=_color(traffic_class.name), linewidth=1.2)
        ax.set_title(f"Smoothed instantaneous throughput - {traffic_class.label}")
        ax.set_ylabel("Throughput (Mbps)")
        ax.grid(True, linestyle="--", alpha=0.7)

    axes[-1].set_xlabel("Time (s)")
    plt.tight_layout()

    _finish(fig, output_dir, "smoothed_throughput", show)


def plot_throughput_and_drops(
    result: SimulationResult,
    output_dir: str | None = None,
    show = True,
) -> None:
    """Plot mean throughput and drop percentage per class as bars.

    Args:
        result: Result of a best-effort run.
        output_dir: Directory to save the plot, or None to show it.
        show: Whether to display the plot when it is not saved.
    """
    classes = result.config.classes
    stats = result.metrics["classes"]
    labels = [c.label for c in classes]
    x = np.arange(len(classes))

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))

    axes[0].bar(x, [stats[c.name]["throughput_bps"] / 1e6 for c in classes], width=0.6)
    axes[0].set_ylabel("Mean throughput (Mbps)")
    axes[0].set_title("Mean throughput per class (best effort)")

    axes[1].bar(x, [stats[c.name]["loss_ratio"] * 100 for c in classes], width=0.6, color="red")
    axes[1].set_ylabel("Drops (% approx.)")
    axes[1].set_title("Approximate drop percentage per class")

    for ax in axes:
        ax.set_xticks(x)
        ax.set_xticklabels(labels)
        ax.grid(True, linestyle="--", alpha=0.7)

    plt.tight_layout()

    _finish(fig, output_dir, "throughput_and_drops", show)


def plot_qos_dashboard(
    result: QoSResult,
    output_dir: str | None = None,
    show = True,
) -> None:
    """Plot the six panel summary of the QoS scenario.

    Args:
        result: Result of the QoS scenario.
        output_dir: Directory to save the plot, or None to show it.
        show: Whether to display the plot when it is not saved.
    """
    allocation = result.allocation
    names = list(allocation.offered)
    x = np.arange(len(names))

    fig, axes = plt.subplots(2, 3, figsize=(15, 9))
    axes = axes.flatten()

    panels = [
        ("Throughput per class", [allocation.throughput[n] for n in names], "Mbps", (0.2, 0.6, 0.8)),
        ("Lost traffic", [allocation.loss[n] for n in names], "Mbps", (0.8, 0.2, 0.2)),
        ("Delay per class", [result.delay[n] * 1000 for n in names], "ms", (0.9, 0.6, 0.2)),
        ("Jitter per class", [result.jitter[n] * 1000 for n in names], "ms", (0.6, 0.4, 0.8)),
    ]
    for ax, (title, values, unit, color) in zip(axes, panels):
        ax.bar(x, values, color=color)
        ax.set_title(title)
        ax.set_ylabel(unit)

    bar_width = 0.35
    axes[4].bar(x, [allocation.offered[n] for n in names], bar_width, label="Offered")
    axes[4].bar(x + bar_width, [allocation.capacity[n] for n in names], bar_width, label="Allocated")
    axes[4].set_title("Offered traffic vs allocated capacity")
    axes[4].set_ylabel("Mbps")
    axes[4].legend(loc="upper left")

    for ax in axes[:5]:
        ax.set_xticks(x + (bar_width / 2 if ax is axes[4] else 0))
        ax.set_xticklabels(names)
        ax.grid(True, linestyle="--", alpha=0.7)

    utilization = [allocation.utilization[n] for n in names]
    if sum(utilization) > 0:
        axes[5].pie(utilization, labels=names, autopct="%1.1f%%")
    axes[5].set_title("Link utilization per class")

    fig.suptitle("QoS scenario: priority partition, performance analysis")
    plt.tight_layout()

    _finish(fig, output_dir, "qos_dashboard", show)


def plot_congestion_sweep(
    results: Sequence[QoSResult],
    output_dir: str | None = None,
    show = True,
) -> None:
    """Plot loss and delay of every class against the congestion multiplier.

    Args:
        results: Output of `sweep_congestion` for a single link capacity.
        output_dir: Directory to save the plot, or None to show it.
        show: Whether to display the plot when it is not saved.
    """
    if not results:
        raise ValueError("Nothing to plot: the sweep is empty")

    multipliers: List[float] = [r.config.congestion for r in results]
    names = list(results[0].allocation.offered)

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    for name in names:
        axes[0].plot(multipliers, [r.allocation.loss[name] for r in results], "o-", color=_color(name), label=name)
        axes[1].plot(multipliers, [r.delay[name] * 1000 for r in results], "o-", color=_color(name), label=name)

    axes[0].set_title("Lost traffic vs congestion")
    axes[0].set_ylabel("Loss (Mbps)")
    axes[1].set_title("Estimated delay vs congestion")
    axes[1].set_ylabel("Delay (ms)")
    for ax in axes:
        ax.set_xlabel("Congestion multiplier")
        ax.grid(True, linestyle="--", alpha=0.7)
        ax.legend()

    plt.tight_layout()

    _finish(fig, output_dir, "congestion_sweep", show)
