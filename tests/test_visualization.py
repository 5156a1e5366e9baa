import numpy as np
import pytest

from qos_sim.core.config import QoSConfig
from qos_sim.core.qos import run_qos_scenario, sweep_congestion
from qos_sim.core.simulator import BestEffortSimulator
from qos_sim.utils.visualization import (
    moving_average,
    plot_buffer_share,
    plot_congestion_sweep,
    plot_qos_dashboard,
    plot_queue_occupancy,
    plot_smoothed_throughput,
    plot_throughput_and_drops,
)


def test_moving_average_is_causal_and_zero_padded():
    smoothed = moving_average(np.array([2.0, 2.0, 2.0, 4.0]), 2)
    assert smoothed.tolist() == [1.0, 2.0, 2.0, 3.0]
    with pytest.raises(ValueError):
        moving_average(np.ones(3), 0)


def test_best_effort_plots_are_saved(short_config, tmp_path):
    result = BestEffortSimulator(short_config).run()
    plot_queue_occupancy(result, str(tmp_path))
    plot_buffer_share(result, str(tmp_path))
    plot_smoothed_throughput(result, window=50, output_dir=str(tmp_path))
    plot_throughput_and_drops(result, str(tmp_path))

    for name in ("queue_occupancy", "buffer_share", "smoothed_throughput", "throughput_and_drops"):
        assert (tmp_path / f"{name}.png").exists()


def test_qos_plots_are_saved(tmp_path):
    plot_qos_dashboard(run_qos_scenario(), str(tmp_path))
    plot_congestion_sweep(sweep_congestion(QoSConfig(), [0.8, 1.2, 1.6]), str(tmp_path))
    assert (tmp_path / "qos_dashboard.png").exists()
    assert (tmp_path / "congestion_sweep.png").exists()

    with pytest.raises(ValueError):
        plot_congestion_sweep([], str(tmp_path))
