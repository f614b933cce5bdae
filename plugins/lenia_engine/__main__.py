"""
Lenia Engine - Headless Runner

Usage:
    python -m lenia_engine [preset] [--size N] [--steps K] [--seed S]
                           [--backend radix2|numpy] [--no-clamp] [--verbose]
                           [--list]

Examples:
    python -m lenia_engine
    python -m lenia_engine hydrogeminium --size 256 --steps 500
    python -m lenia_engine game_of_life --size 64 --steps 100 --seed 7

Runs a preset without any display and prints field statistics.
Use --list to see all available presets, --verbose for debug logging.
"""

import logging
import sys
import time

from .errors import LeniaError
from .lenia import Lenia
from .presets import PRESET_ORDER, get_preset, list_presets


def run(preset, sim_size, steps, seed=None, backend="radix2", clamp=True):
    """Run `steps` generations of a preset and print progress."""
    p = get_preset(preset)
    engine = Lenia.from_preset(preset, size=sim_size, backend=backend, clamp=clamp,
                               budget=steps)
    seed_kwargs = {}
    if "density" in p:
        seed_kwargs["density"] = p["density"]
    engine.seed(p.get("seed", "random"), rng=seed, **seed_kwargs)

    report_every = max(1, steps // 10)
    start = time.perf_counter()
    while not engine.counters.exhausted:
        engine.step()
        if engine.generation % report_every == 0 or engine.counters.exhausted:
            s = engine.stats
            print(f"  gen {s['generation']:6d}  t={s['time']:8.2f}  "
                  f"mass={s['mass']:10.3f}  max={s['max']:.3f}  alive={s['alive_pct']:5.1f}%")
    elapsed = time.perf_counter() - start
    print(f"Done: {steps} steps in {elapsed:.2f}s ({steps / max(elapsed, 1e-9):.1f} steps/s)")
    return engine


def main():
    preset = "orbium"
    sim_size = 128
    steps = 200
    seed = None
    backend = "radix2"
    clamp = True

    args = sys.argv[1:]
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--size" and i + 1 < len(args):
            sim_size = int(args[i + 1])
            i += 2
        elif arg == "--steps" and i + 1 < len(args):
            steps = int(args[i + 1])
            i += 2
        elif arg == "--seed" and i + 1 < len(args):
            seed = int(args[i + 1])
            i += 2
        elif arg == "--backend" and i + 1 < len(args):
            backend = args[i + 1]
            i += 2
        elif arg == "--no-clamp":
            clamp = False
            i += 1
        elif arg == "--verbose":
            logging.basicConfig(level=logging.DEBUG)
            i += 1
        elif arg == "--list":
            print("\nAvailable presets:")
            for key, name, desc in list_presets():
                print(f"    {key:16s} {name:20s} {desc}")
            print()
            return 0
        elif arg in ("--help", "-h"):
            print(__doc__)
            return 0
        elif arg in PRESET_ORDER:
            preset = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available presets")
            return 2

    print(f"Lenia headless run: {preset} @ {sim_size}x{sim_size}, {steps} steps ({backend})")
    try:
        run(preset, sim_size, steps, seed=seed, backend=backend, clamp=clamp)
    except LeniaError as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
