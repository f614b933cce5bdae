#!/usr/bin/env python3
"""
Tests for the Lenia engine (the session object around the stepper).

Verifies:
1. End-to-end run on a 32x32 torus from a 3x3 block
2. Kernel cache reuse, rebuilds on spec change and on resize
3. Determinism across engine instances
4. Flat parameter interface, presets and the run budget
5. The Game of Life preset reproduces B3/S23 exactly
"""

import sys

import numpy as np
import pytest

from lenia_engine import __main__ as cli
from lenia_engine.errors import ConfigurationError, NumericDegeneracy, PreconditionViolation
from lenia_engine.growth import GrowthSpec
from lenia_engine.kernel import KernelSpec, synthesize
from lenia_engine.lenia import Lenia
from lenia_engine.presets import PRESET_ORDER, get_preset


def _engine(size=32, **kwargs):
    return Lenia(
        size=size,
        kernel_spec=KernelSpec(radius=6, core="bump"),
        growth_spec=GrowthSpec(profile="gaussian", mu=0.14, sigma=0.05),
        T=10,
        **kwargs,
    )


def test_end_to_end():
    print("Testing end-to-end run...")
    engine = _engine()
    engine.seed_block(width=3, value=1.0)
    assert engine.world.sum() == 9.0

    result = engine.step()
    center = result.neighborhood[16, 16]
    Y, X = np.ogrid[:32, :32]
    far = np.hypot(X - 16, Y - 16) >= 10
    assert center > result.neighborhood[far].max()

    for _ in range(49):
        engine.step()
    assert engine.generation == 50
    assert engine.time == pytest.approx(5.0)
    assert engine.world.min() >= 0.0 and engine.world.max() <= 1.0
    print("  ✓ 50 steps, field stays in [0, 1]")


def test_kernel_cache_reused_across_steps():
    print("Testing kernel cache idempotence...")
    engine = _engine()
    engine.seed_block()
    kernel = engine.frequency_kernel
    before = kernel.spectrum.real.copy()

    engine.step()
    engine.step()
    assert engine.frequency_kernel is kernel
    assert engine.kernel_cache.builds == 1
    assert np.array_equal(kernel.spectrum.real, before)

    fresh = synthesize(KernelSpec(radius=6, core="bump"), 32)
    assert np.array_equal(kernel.spectrum.real, fresh.spectrum.real)
    print("  ✓ frequency kernel unchanged between steps")


def test_kernel_spec_change_rebuilds():
    engine = _engine()
    engine.set_kernel_spec(KernelSpec(radius=5))
    assert engine.kernel_spec == KernelSpec(radius=5)
    assert engine.kernel_cache.builds == 2

    # switching back is a cache hit
    engine.set_kernel_spec({"radius": 6, "core": "bump"})
    assert engine.kernel_cache.builds == 2

    with pytest.raises(ConfigurationError):
        engine.set_kernel_spec({"radius": 0})
    assert engine.kernel_spec == KernelSpec(radius=6)


def test_deterministic_across_instances():
    a, b = _engine(), _engine()
    a.seed_random(density=0.6, rng=11)
    b.seed_random(density=0.6, rng=11)
    assert np.array_equal(a.world, b.world)
    for _ in range(25):
        a.step()
        b.step()
        assert np.array_equal(a.world, b.world)


def test_outputs_are_read_only():
    engine = _engine()
    engine.seed_block()
    engine.step()
    with pytest.raises(ValueError):
        engine.neighborhood[0, 0] = 1.0
    with pytest.raises(ValueError):
        engine.growth_field[0, 0] = 1.0
    assert engine.neighborhood.shape == (32, 32)


def test_resize():
    print("Testing resize...")
    engine = _engine()
    engine.seed_block()
    engine.step()

    engine.resize(64)
    assert engine.size == 64
    assert engine.world.shape == (64, 64) and engine.world.sum() == 0.0
    assert engine.frequency_kernel.shape == (64, 64)
    assert engine.neighborhood.shape == (64, 64)
    engine.seed_block()
    engine.step()

    with pytest.raises(ConfigurationError):
        engine.resize(48)
    assert engine.size == 64

    with pytest.raises(PreconditionViolation):
        engine.resize(16, field=np.ones((32, 32)))

    engine.resize(16, field=np.full((16, 16), 0.5))
    assert np.all(engine.world == 0.5)
    engine.step()
    print("  ✓ grids and kernel follow the new size")


def test_set_params():
    engine = _engine()
    engine.set_params(mu=0.2, sigma=0.03)
    assert engine.growth_spec.mu == 0.2 and engine.growth_spec.sigma == 0.03
    assert engine.kernel_cache.builds == 1

    engine.set_params(R=8, peaks=[1.0, 0.5], rings=1)
    assert engine.kernel_spec.radius == 8 and engine.kernel_spec.peaks == (1.0, 0.5)
    assert engine.kernel_cache.builds == 2
    engine.set_params(R=8)
    assert engine.kernel_cache.builds == 2

    engine.set_params(T=5, clamp=False, profile="step")
    params = engine.get_params()
    assert params["T"] == 5 and params["clamp"] is False
    assert params["profile"] == "step" and params["core"] == "bump"
    assert params["rings"] == 1 and params["peaks"] == [1.0, 0.5]

    with pytest.raises(ConfigurationError):
        engine.set_params(nonsense=1)
    with pytest.raises(ConfigurationError):
        engine.set_params(sigma=0.0)
    with pytest.raises(ConfigurationError):
        engine.set_params(T=0)


def test_run_budget():
    engine = _engine(size=16, budget=5)
    engine.seed_block()
    engine.run()
    assert engine.generation == 5 and engine.remaining == 0
    engine.run()
    assert engine.generation == 5

    engine.set_budget(None)
    engine.run(3)
    assert engine.generation == 8
    with pytest.raises(ValueError):
        engine.run()


def test_check_finite():
    engine = _engine(size=16)
    engine.check_finite()
    engine.world[2, 2] = np.inf
    with pytest.raises(NumericDegeneracy):
        engine.check_finite()


def test_blob_seeding():
    print("Testing blob seeding...")
    a, b = _engine(size=64), _engine(size=64)
    a.seed("blobs", rng=3)
    b.seed("blobs", rng=3)
    assert np.array_equal(a.world, b.world)
    assert a.world.sum() > 0.0
    assert a.world.min() >= 0.0 and a.world.max() <= 1.0

    b.seed("blobs", rng=4)
    assert not np.array_equal(a.world, b.world)
    print("  ✓ same rng gives the same blobs")


def test_add_and_remove_blob():
    engine = _engine(size=64)
    engine.add_blob(0, 0, radius=5, value=0.8)
    world = engine.world
    assert world[0, 0] == pytest.approx(0.8)
    # wraps across both edges of the torus
    assert world[0, 63] > 0.0 and world[63, 0] > 0.0
    assert world[0, 63] == pytest.approx(world[0, 1])
    assert world[63, 0] == pytest.approx(world[1, 0])
    assert world[32, 32] == 0.0

    engine.remove_blob(0, 0, radius=5)
    assert np.all(engine.world == 0.0)


def test_presets():
    for key in PRESET_ORDER:
        engine = Lenia.from_preset(key, size=64)
        engine.seed(get_preset(key)["seed"], rng=0)
        engine.step_n(2)
        assert engine.world.min() >= 0.0 and engine.world.max() <= 1.0
    with pytest.raises(ConfigurationError):
        Lenia.from_preset("no_such_preset")


def test_game_of_life_blinker():
    print("Testing Game of Life preset...")
    engine = Lenia.from_preset("game_of_life", size=16)
    assert engine.kernel_spec.radius == 2
    engine.clear()
    engine.world[8, 7:10] = 1.0

    engine.step()
    vertical = np.zeros((16, 16))
    vertical[7:10, 8] = 1.0
    assert np.array_equal(engine.world, vertical)

    engine.step()
    horizontal = np.zeros((16, 16))
    horizontal[8, 7:10] = 1.0
    assert np.array_equal(engine.world, horizontal)
    print("  ✓ blinker oscillates")


def test_stats():
    engine = _engine(size=16)
    engine.seed_block(width=2, value=0.5)
    stats = engine.stats
    assert stats["mass"] == pytest.approx(2.0)
    assert stats["generation"] == 0 and stats["time"] == 0.0


def test_cli(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["lenia_engine", "game_of_life", "--size", "16",
                                      "--steps", "3", "--seed", "1"])
    assert cli.main() == 0
    assert "Done: 3 steps" in capsys.readouterr().out

    monkeypatch.setattr(sys, "argv", ["lenia_engine", "--list"])
    assert cli.main() == 0
    assert "orbium" in capsys.readouterr().out

    monkeypatch.setattr(sys, "argv", ["lenia_engine", "--size", "24", "--steps", "1"])
    assert cli.main() == 1

    monkeypatch.setattr(sys, "argv", ["lenia_engine", "--bogus"])
    assert cli.main() == 2


if __name__ == "__main__":
    print("\n=== Testing Lenia Engine ===\n")

    test_end_to_end()
    test_kernel_cache_reused_across_steps()
    test_kernel_spec_change_rebuilds()
    test_deterministic_across_instances()
    test_outputs_are_read_only()
    test_resize()
    test_set_params()
    test_run_budget()
    test_check_finite()
    test_blob_seeding()
    test_add_and_remove_blob()
    test_presets()
    test_game_of_life_blinker()
    test_stats()
    print("  - test_cli needs pytest fixtures (monkeypatch, capsys); run it with pytest")

    print("\n✓ All tests passed!\n")
