import numpy as np
import pytest

from qos_sim.utils.rng import RNG_KINDS, CustomRNG, make_rng
from scripted_rng import ScriptedRNG


def test_custom_rng_is_reproducible():
    first = CustomRNG(42)
    second = CustomRNG(42)
    assert [first.random() for _ in range(10)] == [second.random() for _ in range(10)]
    assert [first.standard_normal() for _ in range(10)] == [
        second.standard_normal() for _ in range(10)
    ]


def test_custom_rng_uniform_range():
    rng = CustomRNG(1)
    values = [rng.random() for _ in range(1000)]
    assert all(0 <= v < 1 for v in values)


def test_custom_rng_normal_moments():
    rng = CustomRNG(2024)
    draws = np.array([rng.standard_normal() for _ in range(20_000)])
    assert draws.mean() == pytest.approx(0, abs=0.05)
    assert draws.std() == pytest.approx(1, abs=0.05)


def test_scripted_rng_replays_and_cycles():
    rng = ScriptedRNG([0.5, -1.0])
    assert [rng.standard_normal() for _ in range(5)] == [0.5, -1.0, 0.5, -1.0, 0.5]
    with pytest.raises(ValueError):
        ScriptedRNG([])


def test_make_rng_is_seeded():
    assert make_rng(9).standard_normal() == make_rng(9).standard_normal()


def test_make_rng_selects_kind():
    assert isinstance(make_rng(1, "numpy"), np.random.Generator)
    lcg = make_rng(1, "lcg")
    assert isinstance(lcg, CustomRNG)
    assert lcg.standard_normal() == CustomRNG(1).standard_normal()
    assert RNG_KINDS == ("numpy", "lcg")
    with pytest.raises(ValueError):
        make_rng(1, "mersenne")
