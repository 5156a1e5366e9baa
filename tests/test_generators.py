import pytest

from qos_sim.core.traffic_class import TrafficClass
from qos_sim.traffic.generators import (
    rate_multiplier,
    round_half_up,
    step_arrival_bytes,
)
from qos_sim.utils.rng import make_rng
from scripted_rng import ScriptedRNG


def test_round_half_up_rounds_halves_away_from_zero():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_half_up(0.0) == 0


def test_mean_draw_gives_mean_volume():
    # 8 Mbps over 1 ms is 1000 bytes
    assert step_arrival_bytes(8e6, 0.5, 1e-3, ScriptedRNG([0.0])) == 1000


def test_multiplier_scales_volume():
    assert step_arrival_bytes(8e6, 0.5, 1e-3, ScriptedRNG([2.0])) == 2000
    assert step_arrival_bytes(8e6, 0.5, 1e-3, ScriptedRNG([-1.0])) == 500


def test_negative_multiplier_is_clamped_to_zero():
    assert rate_multiplier(0.5, ScriptedRNG([-3.0])) == 0.0
    assert step_arrival_bytes(8e6, 0.5, 1e-3, ScriptedRNG([-3.0])) == 0


def test_zero_variance_is_constant_bit_rate():
    rng = make_rng(7)
    expected = round_half_up(2e6 * 1e-3 / 8)
    volumes = [step_arrival_bytes(2e6, 0.0, 1e-3, rng) for _ in range(500)]
    assert set(volumes) == {expected}
    assert expected == 250


def test_zero_variance_still_consumes_a_draw():
    rng = ScriptedRNG([0.3, 0.7])
    step_arrival_bytes(2e6, 0.0, 1e-3, rng)
    assert rng.index == 1


def test_volumes_are_never_negative():
    rng = make_rng(1)
    volumes = [step_arrival_bytes(10e6, 2.0, 1e-3, rng) for _ in range(2000)]
    assert min(volumes) == 0
    assert all(v >= 0 for v in volumes)


def test_volumes_track_mean_rate():
    data = TrafficClass("data", 10e6, 0.5, 1000)
    rng = make_rng(3)
    volumes = [
        step_arrival_bytes(data.rate_bps, data.relative_variance, 1e-3, rng)
        for _ in range(5000)
    ]
    # clamping at zero barely shifts the mean for a 50% variance
    assert sum(volumes) / len(volumes) == pytest.approx(1250, rel=0.03)


def test_same_seed_same_traffic():
    def volumes(seed):
        rng = make_rng(seed)
        return [step_arrival_bytes(20e6, 0.2, 1e-3, rng) for _ in range(100)]

    assert volumes(5) == volumes(5)
    assert volumes(5) != volumes(6)
