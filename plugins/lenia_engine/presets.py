"""
Lenia Parameter Presets

Each preset is a flat parameter set known to produce interesting behaviors.
Kernel radii are tuned for a BASE_RES x BASE_RES grid and scaled to the
actual grid size by Lenia.from_preset(), unless "fixed_radius" is set.

Keys:
    R, rings, peaks, edges, core, kernel_exponent   -> KernelSpec
    mu, sigma, profile, growth_exponent             -> GrowthSpec
    T                                               -> time resolution
    seed, density                                   -> initial seeding
"""

BASE_RES = 256  # Presets are tuned for this resolution

PRESETS = {
    "orbium": {
        "name": "Orbium",
        "description": "Single-ring glider, the classic Lenia 'creature'",
        "R": 13, "T": 10, "mu": 0.15, "sigma": 0.015,
        "core": "bump", "profile": "gaussian",
        "seed": "random", "density": 0.6,
    },
    "orbium_quad": {
        "name": "Orbium (quad)",
        "description": "Orbium with polynomial kernel and growth",
        "R": 13, "T": 10, "mu": 0.15, "sigma": 0.015,
        "core": "polynomial", "profile": "polynomial",
        "seed": "random", "density": 0.6,
    },
    "hydrogeminium": {
        "name": "Hydrogeminium",
        "description": "Three-ring kernel, self-replicating blobs",
        "R": 18, "T": 10, "mu": 0.26, "sigma": 0.036,
        "rings": 2, "peaks": [0.5, 1.0, 0.667],
        "core": "bump", "profile": "gaussian",
        "seed": "blobs", "density": 0.7,
    },
    "nebula": {
        "name": "Nebula",
        "description": "Two rings with soft edges, cloud-like interference",
        "R": 20, "T": 12, "mu": 0.16, "sigma": 0.020,
        "rings": 1, "peaks": [1.0, 0.6], "edges": [0.0, 0.3, 0.0],
        "core": "bump", "profile": "gaussian",
        "seed": "random", "density": 0.4,
    },
    "plateau": {
        "name": "Plateau",
        "description": "Trapezoid kernel and growth, hard-edged cells",
        "R": 10, "T": 5, "mu": 0.22, "sigma": 0.035,
        "core": "trapezoid", "profile": "trapezoid",
        "seed": "blobs", "density": 0.6,
    },
    "game_of_life": {
        "name": "Game of Life",
        "description": "B3/S23 reproduced exactly with a life kernel and step growth",
        "R": 2, "T": 1, "mu": 0.353, "sigma": 0.07,
        "core": "life", "profile": "step",
        "fixed_radius": True,
        "seed": "random", "density": 0.5,
    },
}

PRESET_ORDER = ["orbium", "orbium_quad", "hydrogeminium", "nebula", "plateau", "game_of_life"]


def get_preset(name):
    """Get a preset by name. Returns None if not found."""
    return PRESETS.get(name)


def list_presets():
    """Return list of (key, name, description) for presets."""
    return [(k, PRESETS[k]["name"], PRESETS[k]["description"])
            for k in PRESET_ORDER if k in PRESETS]
