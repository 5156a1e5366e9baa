"""Console reports for link simulation results."""

from typing import Dict

from qos_sim.core.qos import QoSResult
from qos_sim.core.simulator import SimulationResult


def print_best_effort_report(result: SimulationResult) -> None:
    """Print mean throughput and drop percentage of every class.

    Args:
        result: Result of a best-effort run.
    """
    config = result.config
    metrics = result.metrics

    print("\n================== BEST EFFORT RESULTS ==================")
    print(
        f"Link: {config.link_capacity_bps / 1e6:.1f} Mbps, "
        f"buffer: {config.buffer_capacity_bytes / 1e6:.2f} MB, "
        f"service order: {', '.join(config.service_order)}\n"
    )
    for traffic_class in config.classes:
        stats = metrics["classes"][traffic_class.name]
        print(
            f"Class: {traffic_class.label:<16} | "
            f"Thpt = {stats['throughput_bps'] / 1e6:6.2f} Mbps | "
            f"Drops ~ {stats['loss_ratio'] * 100:5.2f} % | "
            f"Delay ~ {stats['mean_delay'] * 1000:7.1f} ms"
        )
    print(f"\nLink utilization: {metrics['link_utilization'] * 100:.1f} %")
    print(f"Peak buffer: {metrics['peak_buffer_bytes']} bytes")
    print(f"Fairness index: {metrics['fairness_index']:.3f}")


def print_qos_report(result: QoSResult) -> None:
    """Print throughput, loss, delay and jitter of every class.

    Args:
        result: Result of the QoS scenario.
    """
    config = result.config
    allocation = result.allocation

    print("\n=== QOS SCENARIO: priority partition voice > video > data ===")
    print(f"Link capacity: {config.link_capacity:.1f} Mbps")
    print(f"Total offered load: {config.total_offered:.1f} Mbps")
    print(f"Congestion factor: {config.congestion:.1f}\n")

    _print_table("Throughput (Mbps)", allocation.throughput, "{:.1f}")
    _print_table("Lost traffic (Mbps)", allocation.loss, "{:.1f}")
    _print_table("Delay (ms)", _to_ms(result.delay), "{:.1f}")
    _print_table("Jitter (ms)", _to_ms(result.jitter), "{:.2f}")


def print_comparison(comparison: Dict[str, Dict[str, float]]) -> None:
    """Print the per-class comparison of both scenarios."""
    print("\n--- Best effort vs QoS ---")
    print(f"{'Class':<8} {'BE share %':>11} {'QoS share %':>12} {'BE loss %':>10} {'QoS loss %':>11}")
    for name, row in comparison.items():
        print(
            f"{name:<8} {row['best_effort_link_share']:>11.1f} "
            f"{row['qos_link_share']:>12.1f} {row['best_effort_loss_pct']:>10.2f} "
            f"{row['qos_loss_pct']:>11.2f}"
        )


def _to_ms(values: Dict[str, float]) -> Dict[str, float]:
    return {name: value * 1000 for name, value in values.items()}


def _print_table(title: str, values: Dict[str, float], fmt: str) -> None:
    print(f"--- {title} ---")
    for name, value in values.items():
        print(f"{name + ':':<7}{fmt.format(value)}")
    print()
