import os
import argparse
import logging
from dataclasses import replace

import numpy as np

from qos_sim.core.config import QoSConfig, SimulationConfig, config_to_dict, load_config
from qos_sim.core.qos import run_qos_scenario, sweep_congestion
from qos_sim.core.simulator import BestEffortSimulator, run_replications
from qos_sim.utils.metrics import (
    compare_scenarios,
    qos_metrics,
    save_metrics_to_csv,
    save_metrics_to_json,
)
from qos_sim.utils.report import print_best_effort_report, print_comparison, print_qos_report
from qos_sim.utils.rng import RNG_KINDS
from qos_sim.utils.visualization import (
    plot_buffer_share,
    plot_congestion_sweep,
    plot_qos_dashboard,
    plot_queue_occupancy,
    plot_smoothed_throughput,
    plot_throughput_and_drops,
)


def run_best_effort(config: SimulationConfig, output_dir, show, progress):
    """Run scenario 1: shared buffer, no QoS"""
    print(f"\n=== Running best-effort scenario (seed {config.seed}) ===")
    result = BestEffortSimulator(config).run(updates=progress)
    print_best_effort_report(result)

    save_metrics_to_json(result.metrics, os.path.join(output_dir, "best_effort.json"))

    plot_dir = output_dir if not show else None
    plot_queue_occupancy(result, plot_dir, show)
    plot_buffer_share(result, plot_dir, show)
    plot_smoothed_throughput(result, output_dir=plot_dir, show=show)
    plot_throughput_and_drops(result, plot_dir, show)
    return result


def run_qos(config: QoSConfig, output_dir, show):
    """Run scenario 2: priority partition with QoS"""
    print("\n=== Running QoS scenario ===")
    result = run_qos_scenario(config)
    print_qos_report(result)

    save_metrics_to_json(qos_metrics(result), os.path.join(output_dir, "qos.json"))
    plot_qos_dashboard(result, output_dir if not show else None, show)
    return result


def run_sweep(config: QoSConfig, output_dir, show):
    """Sweep the QoS scenario over congestion levels"""
    print("\n=== Sweeping congestion levels ===")
    multipliers = [float(m) for m in np.round(np.arange(0.5, 2.01, 0.1), 2)]
    results = sweep_congestion(config, multipliers)
    for result in results:
        losses = ", ".join(f"{n}={v:.1f}" for n, v in result.allocation.loss.items())
        print(f"Congestion {result.config.congestion:.1f}: loss {losses}")

    plot_congestion_sweep(results, output_dir if not show else None, show)
    return results


def main():
    """Main function to run simulations"""
    parser = argparse.ArgumentParser(description="Triple-play link simulation: best effort vs QoS")
    parser.add_argument("--all", action="store_true", help="Run every scenario")
    parser.add_argument("--best-effort", action="store_true", help="Run the shared buffer scenario")
    parser.add_argument("--qos", action="store_true", help="Run the priority partition scenario")
    parser.add_argument("--sweep", action="store_true", help="Sweep QoS over congestion levels")
    parser.add_argument(
        "--replications", type=int, default=0, help="Run N independent best-effort replications"
    )
    parser.add_argument("--config", help="JSON file overriding the default parameters")
    parser.add_argument("--seed", type=int, help="Seed of the best-effort scenario")
    parser.add_argument(
        "--rng",
        choices=RNG_KINDS,
        help="Random source of the best-effort scenario (lcg is portable across platforms)",
    )
    parser.add_argument(
        "--order", help="Comma separated service order of the best-effort scenario"
    )
    parser.add_argument("--output-dir", default="results", help="Directory for results")
    parser.add_argument("--no-show", action="store_true", help="Save plots instead of showing them")
    parser.add_argument("--progress", action="store_true", help="Print simulation progress")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.config:
        sim_config, qos_config = load_config(args.config)
    else:
        sim_config, qos_config = SimulationConfig(), QoSConfig()

    if args.seed is not None:
        sim_config = replace(sim_config, seed=args.seed)
    if args.rng:
        sim_config = replace(sim_config, rng=args.rng)
    if args.order:
        sim_config = replace(sim_config, service_order=tuple(args.order.split(",")))

    os.makedirs(args.output_dir, exist_ok=True)
    save_metrics_to_json(
        config_to_dict(sim_config, qos_config), os.path.join(args.output_dir, "config.json")
    )
    show = not args.no_show

    be_result = qos_result = None
    if args.all or args.best_effort:
        be_result = run_best_effort(sim_config, args.output_dir, show, args.progress)

    if args.all or args.qos:
        qos_result = run_qos(qos_config, args.output_dir, show)

    if be_result is not None and qos_result is not None:
        comparison = compare_scenarios(be_result, qos_result)
        print_comparison(comparison)
        save_metrics_to_csv(comparison, os.path.join(args.output_dir, "scenario_comparison.csv"))

    if args.all or args.sweep:
        run_sweep(qos_config, args.output_dir, show)

    if args.replications > 0:
        print(f"\n=== Running {args.replications} best-effort replications ===")
        seeds = [sim_config.seed + i for i in range(args.replications)]
        summary = run_replications(sim_config, seeds)
        for name, stats in summary.items():
            print(
                f"{name:<6} thpt {stats['throughput_mean'] / 1e6:.2f} "
                f"+/- {stats['throughput_std'] / 1e6:.2f} Mbps, "
                f"loss {stats['loss_ratio_mean'] * 100:.2f} "
                f"+/- {stats['loss_ratio_std'] * 100:.2f} %"
            )
        save_metrics_to_json(summary, os.path.join(args.output_dir, "replications.json"))

    # If no scenario selected, show help
    if not (args.all or args.best_effort or args.qos or args.sweep or args.replications):
        parser.print_help()


if __name__ == "__main__":
    main()
