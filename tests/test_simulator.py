from dataclasses import replace

import numpy as np
import pytest

from qos_sim.core.simulator import BestEffortSimulator, run_replications
from qos_sim.core.scheduling_algorithms import ProportionalShareScheduler
from qos_sim.utils.rng import CustomRNG
from scripted_rng import ScriptedRNG


def test_step_follows_generate_admit_serve(single_class_config):
    # 1000 bytes arrive per step (draw 0.0) and the link sends 1000 per step
    sim = BestEffortSimulator(single_class_config, rng=ScriptedRNG([0.0]))
    state, metrics = sim.step(sim.initial_state(), sim.rng)
    assert metrics.arrivals == (1000,)
    assert metrics.admitted == (1000,)
    assert metrics.dropped == (0,)
    assert metrics.transmitted == (1000,)
    assert state.queue.occupancy == (0,)
    assert state.step_index == 1


def test_step_drops_overflow_with_scripted_draws(single_class_config):
    # draw 1.0 with a 50% variance: 1500 bytes into a 1000 byte buffer
    sim = BestEffortSimulator(single_class_config, rng=ScriptedRNG([1.0]))
    state, metrics = sim.step(sim.initial_state(), sim.rng)
    assert metrics.arrivals == (1500,)
    assert metrics.admitted == (1000,)
    assert metrics.dropped == (500,)
    assert metrics.transmitted == (1000,)
    assert state.queue.used == 0


def test_step_with_explicit_arrivals_keeps_state_threaded(short_config):
    sim = BestEffortSimulator(short_config)
    state = sim.initial_state()
    state, first = sim.step(state, sim.rng, arrivals=(1000, 4000, 2000))
    # budget is 2500 bytes per step: 7000 queued, shares 357.14, 1428.57, 714.28
    assert first.transmitted == (357, 1428, 714)
    assert state.queue.occupancy == (643, 2572, 1286)

    state, second = sim.step(state, sim.rng, arrivals=(0, 0, 0))
    assert second.admitted == (0, 0, 0)
    assert sum(second.transmitted) <= 2500
    assert state.step_index == 2


def test_empty_step_changes_nothing(short_config):
    sim = BestEffortSimulator(short_config)
    state, metrics = sim.step(sim.initial_state(), sim.rng, arrivals=(0, 0, 0))
    assert metrics.transmitted == (0, 0, 0)
    assert state.queue.occupancy == (0, 0, 0)


def test_run_shapes(short_config):
    result = BestEffortSimulator(short_config).run()
    steps = short_config.clock.step_count
    assert steps == 500
    assert result.times.shape == (steps,)
    for series in (
        result.queue_bytes,
        result.arrivals,
        result.admitted,
        result.dropped,
        result.transmitted,
    ):
        assert series.shape == (3, steps)
    assert result.buffer_bytes.shape == (steps,)
    assert result.class_index("video") == 1
    with pytest.raises(ValueError):
        result.class_index("bulk")


def test_buffer_never_overflows_and_queues_never_go_negative(short_config):
    result = BestEffortSimulator(short_config).run()
    assert result.buffer_bytes.max() <= short_config.buffer_capacity_bytes
    assert (result.queue_bytes >= 0).all()
    assert np.array_equal(result.buffer_bytes, result.queue_bytes.sum(axis=0))
    # the link is congested, so the buffer fills up and drops happen
    assert result.dropped.sum() > 0


def test_bytes_are_conserved_every_step(short_config):
    result = BestEffortSimulator(short_config).run()
    assert np.array_equal(result.admitted, result.arrivals - result.dropped)

    previous = np.hstack([np.zeros((3, 1), dtype=np.int64), result.queue_bytes[:, :-1]])
    assert np.array_equal(
        result.queue_bytes, previous + result.admitted - result.transmitted
    )


def test_link_never_sends_more_than_its_budget(short_config):
    result = BestEffortSimulator(short_config).run()
    assert result.transmitted.sum(axis=0).max() <= short_config.step_budget_bytes


def test_same_seed_replays_the_same_run(short_config):
    first = BestEffortSimulator(short_config).run()
    second = BestEffortSimulator(short_config).run()
    assert np.array_equal(first.arrivals, second.arrivals)
    assert np.array_equal(first.queue_bytes, second.queue_bytes)

    other = BestEffortSimulator(replace(short_config, seed=7)).run()
    assert not np.array_equal(first.arrivals, other.arrivals)


def test_lcg_source_is_selected_by_config(short_config):
    config = replace(short_config, rng="lcg")
    sim = BestEffortSimulator(config)
    assert isinstance(sim.rng, CustomRNG)
    assert isinstance(sim.scheduler, ProportionalShareScheduler)

    first = sim.run()
    second = BestEffortSimulator(config).run()
    assert np.array_equal(first.arrivals, second.arrivals)

    numpy_run = BestEffortSimulator(short_config).run()
    assert not np.array_equal(first.arrivals, numpy_run.arrivals)


def test_service_order_is_a_fairness_policy(short_config):
    voice_first = BestEffortSimulator(short_config).run()
    voice_last = BestEffortSimulator(
        replace(short_config, service_order=("data", "video", "voice"))
    ).run()

    # generation does not depend on the order
    assert np.array_equal(voice_first.arrivals, voice_last.arrivals)

    voice = voice_first.class_index("voice")
    assert voice_first.dropped[voice].sum() == 0
    assert voice_last.dropped[voice].sum() > 0


def test_hooks_are_called(short_config):
    sim = BestEffortSimulator(short_config)
    steps = []
    ends = []
    sim.register_hook("step", lambda metrics, now: steps.append((metrics.step_index, now)))
    sim.register_hook("sim_end", ends.append)

    result = sim.run()

    assert len(steps) == short_config.clock.step_count
    assert steps[0] == (0, 0)
    assert steps[10][1] == pytest.approx(10 * short_config.clock.step)
    assert len(ends) == 1 and ends[0] is result
    assert sim.state.step_index == short_config.clock.step_count

    with pytest.raises(ValueError):
        sim.register_hook("packet_hop", print)


def test_progress_updates(short_config, capsys):
    BestEffortSimulator(short_config).run(updates=True)
    assert "Progress: 100.00%" in capsys.readouterr().out


def test_replications_summarise_independent_runs(short_config):
    summary = run_replications(short_config, [1, 2, 3])
    assert set(summary) == {"voice", "video", "data"}
    for stats in summary.values():
        assert stats["throughput_mean"] > 0
        assert stats["throughput_std"] >= 0
        assert 0 <= stats["loss_ratio_mean"]

    with pytest.raises(ValueError):
        run_replications(short_config, [])
