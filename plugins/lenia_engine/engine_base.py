"""
Abstract Base Class for Field Engines

Owns the N x N field and the generation counters, and provides the
painting helpers shared by every engine. Grid sizes must be powers of two
(the FFT works on radix-2 lengths only).
"""

from abc import ABC, abstractmethod

import numpy as np

from .grid import require_grid_size
from .stepper import GenerationCounters


class FieldEngine(ABC):
    """Base class for toroidal field engines."""

    def __init__(self, size=256, budget=None):
        self.size = require_grid_size(size)
        self.world = np.zeros((self.size, self.size), dtype=np.float64)
        self.counters = GenerationCounters(budget)

    @property
    def generation(self):
        return self.counters.generation

    @property
    def time(self):
        """Accumulated simulation time (sum of 1/T over all steps)."""
        return self.counters.time

    @property
    def remaining(self):
        """Steps left in the run budget, or None when unbounded."""
        return self.counters.remaining

    @abstractmethod
    def step(self):
        """Advance one generation."""

    def step_n(self, n):
        """Advance n steps. Returns final state."""
        for _ in range(n):
            self.step()
        return self.world

    def run(self, steps=None):
        """Step until `steps` are done or the run budget is used up.

        With steps=None the run budget decides; an unbounded engine
        needs an explicit step count.
        """
        if steps is None:
            if self.counters.remaining is None:
                raise ValueError("run() without a step count needs a run budget")
            steps = self.counters.remaining
        for _ in range(steps):
            if self.counters.exhausted:
                break
            self.step()
        return self.world

    def set_budget(self, budget):
        self.counters.remaining = budget

    @abstractmethod
    def set_params(self, **params):
        """Update engine parameters."""

    @abstractmethod
    def get_params(self):
        """Return dict of current parameter values."""

    @abstractmethod
    def seed(self, seed_type="random", **kwargs):
        """Seed the world based on type string."""

    def _distance(self, cx, cy):
        """Toroidal distance of every cell to (cx, cy)."""
        Y, X = np.ogrid[:self.size, :self.size]
        dx = np.abs(X - cx)
        dy = np.abs(Y - cy)
        dx = np.minimum(dx, self.size - dx)
        dy = np.minimum(dy, self.size - dy)
        return np.sqrt(dx ** 2 + dy ** 2)

    def add_blob(self, cx, cy, radius=15, value=0.8):
        """Paint matter at (cx, cy). Default: smooth falloff."""
        dist = self._distance(cx, cy)
        influence = np.clip(1.0 - dist / radius, 0, 1) ** 2 * value
        self.world = np.clip(self.world + influence, 0, 1)

    def remove_blob(self, cx, cy, radius=15):
        """Erase matter at (cx, cy). Default: smooth falloff."""
        dist = self._distance(cx, cy)
        influence = np.clip(1.0 - dist / radius, 0, 1) ** 2
        self.world = np.clip(self.world - influence, 0, 1)

    def clear(self):
        """Clear the world and reset the counters (the run budget is kept)."""
        self.world = np.zeros((self.size, self.size), dtype=np.float64)
        self.counters.reset(self.counters.remaining)

    @property
    def stats(self):
        """Return current world statistics."""
        return {
            "generation": self.generation,
            "time": self.time,
            "mass": float(self.world.sum()),
            "mean": float(self.world.mean()),
            "max": float(self.world.max()),
            "alive_pct": float((self.world > 0.01).sum()) / self.world.size * 100,
        }
