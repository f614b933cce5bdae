"""
Lenia - Continuous Cellular Automaton Engine

A continuous generalization of Conway's Game of Life where:
- States are continuous [0, 1] instead of binary
- Neighborhoods use smooth (multi-)ring kernels instead of discrete counts
- Growth/decay is governed by a tunable growth function
- Time steps are fractional (dt = 1/T) for smooth evolution

The engine is the only object that holds simulation state: the field, the
counters, the active kernel/growth specs and the kernel cache. Kernel
rebuilds and steps are serialized by a lock, so a kernel is never swapped
out while a step reads it.

Reference: Bert Chan, "Lenia - Biology of Artificial Life" (2019)
"""

import logging
import threading

import numpy as np

from .engine_base import FieldEngine
from .errors import ConfigurationError, NumericDegeneracy, PreconditionViolation
from .grid import require_grid_size
from .growth import GrowthSpec
from .kernel import KernelCache, KernelSpec
from .presets import BASE_RES, get_preset
from .stepper import GenerationStepper

logger = logging.getLogger(__name__)

# Flat parameter names accepted by set_params(), mapped to spec fields
_KERNEL_PARAMS = {
    "R": "radius",
    "rings": "rings",
    "peaks": "peaks",
    "edges": "edges",
    "core": "core",
    "kernel_exponent": "exponent",
}
_GROWTH_PARAMS = {
    "mu": "mu",
    "sigma": "sigma",
    "profile": "profile",
    "growth_exponent": "exponent",
}


def _as_spec(value, cls):
    if value is None:
        return cls()
    if isinstance(value, cls):
        return value
    return cls(**value)


class Lenia(FieldEngine):

    def __init__(self, size=256, kernel_spec=None, growth_spec=None, T=10,
                 clamp=True, backend="radix2", budget=None, cache_size=4):
        """
        Args:
            size: Grid dimension (size x size), a power of two
            kernel_spec: KernelSpec (or dict of its fields)
            growth_spec: GrowthSpec (or dict of its fields)
            T: Time resolution (dt = 1/T, higher = smoother/slower)
            clamp: Keep the field in [0, 1] (else only >= 0)
            backend: "radix2" (built-in FFT) or "numpy" (numpy.fft)
            budget: Optional number of steps run() may take
            cache_size: Number of frequency kernels kept around
        """
        super().__init__(size, budget)
        if not T > 0:
            raise ConfigurationError(f"T must be positive, got {T!r}")
        self.T = T
        self.clamp = clamp
        self.backend = backend

        self._lock = threading.Lock()
        self._cache = KernelCache(maxsize=cache_size)
        self._stepper = GenerationStepper(self.size, backend=backend)
        self._kernel_spec = None
        self._kernel = None
        self._growth_spec = _as_spec(growth_spec, GrowthSpec)
        self._neighborhood = np.zeros((self.size, self.size), dtype=np.float64)
        self._growth = np.zeros((self.size, self.size), dtype=np.float64)

        self.set_kernel_spec(_as_spec(kernel_spec, KernelSpec))

    @classmethod
    def from_preset(cls, key, size=256, **kwargs):
        """Create an engine from a named preset.

        Kernel radii are scaled from the BASE_RES presets are tuned for,
        unless the preset pins its radius.
        """
        preset = get_preset(key)
        if preset is None:
            raise ConfigurationError(f"Unknown preset: {key!r}")

        R = preset.get("R", 13)
        if not preset.get("fixed_radius", False):
            R = max(5, int(R * size / BASE_RES))

        kernel_spec = KernelSpec(
            radius=R,
            rings=preset.get("rings", 0),
            peaks=tuple(preset.get("peaks", (1.0,))),
            edges=tuple(preset.get("edges", ())),
            core=preset.get("core", "bump"),
            exponent=preset.get("kernel_exponent", 4.0),
        )
        growth_spec = GrowthSpec(
            profile=preset.get("profile", "gaussian"),
            mu=preset.get("mu", 0.15),
            sigma=preset.get("sigma", 0.015),
            exponent=preset.get("growth_exponent", 4.0),
        )
        kwargs.setdefault("T", preset.get("T", 10))
        return cls(size=size, kernel_spec=kernel_spec, growth_spec=growth_spec, **kwargs)

    # ------------------------------------------------------------------
    # Specs and cached kernel

    @property
    def kernel_spec(self):
        return self._kernel_spec

    @property
    def growth_spec(self):
        return self._growth_spec

    @property
    def frequency_kernel(self):
        return self._kernel

    @property
    def kernel_cache(self):
        return self._cache

    def set_kernel_spec(self, spec):
        """Activate a kernel spec, building its frequency kernel if not cached."""
        spec = _as_spec(spec, KernelSpec)
        with self._lock:
            self._kernel = self._cache.get(spec, self.size)
            self._kernel_spec = spec

    def set_growth_spec(self, spec):
        spec = _as_spec(spec, GrowthSpec)
        with self._lock:
            self._growth_spec = spec

    # ------------------------------------------------------------------
    # Outputs of the last step

    @property
    def neighborhood(self):
        """Neighborhood activation from the last step (read-only)."""
        view = self._neighborhood.view()
        view.flags.writeable = False
        return view

    @property
    def growth_field(self):
        """Growth values from the last step (read-only)."""
        view = self._growth.view()
        view.flags.writeable = False
        return view

    def step(self):
        """Advance one generation. Returns StepResult(field, neighborhood, growth)."""
        with self._lock:
            result = self._stepper.step(
                self.world, self._kernel, self._growth_spec, self.T,
                clamp=self.clamp, counters=self.counters,
            )
            self.world = result.field
            self._neighborhood = result.neighborhood
            self._growth = result.growth
        return result

    def resize(self, size, field=None):
        """Reallocate every grid at a new power-of-two size.

        The kernel is rebuilt for the new size. How the old field maps onto
        the new grid is up to the caller: pass `field` (size x size) to
        install it, otherwise the world starts empty.
        """
        size = require_grid_size(size)
        if field is not None:
            field = np.array(field, dtype=np.float64)
            if field.shape != (size, size):
                raise PreconditionViolation(
                    f"Replacement field has shape {field.shape}, expected {(size, size)}")

        with self._lock:
            old = self.size
            self._cache.clear()
            kernel = self._cache.get(self._kernel_spec, size)
            self.size = size
            self._kernel = kernel
            self._stepper = GenerationStepper(size, backend=self.backend)
            self.world = field if field is not None else np.zeros((size, size), dtype=np.float64)
            self._neighborhood = np.zeros((size, size), dtype=np.float64)
            self._growth = np.zeros((size, size), dtype=np.float64)
        logger.info(f"Resized Lenia grid {old}x{old} -> {size}x{size}")

    def check_finite(self):
        """Raise NumericDegeneracy if the field or last outputs hold NaN/inf."""
        for name, array in (("field", self.world),
                            ("neighborhood", self._neighborhood),
                            ("growth", self._growth)):
            if not np.isfinite(array).all():
                bad = int((~np.isfinite(array)).sum())
                raise NumericDegeneracy(f"{bad} non-finite values in {name}")

    # ------------------------------------------------------------------
    # Flat parameter interface

    def set_params(self, T=None, clamp=None, **params):
        """Update parameters by flat name (R, mu, sigma, peaks, ...).

        Rebuilds the kernel only when a kernel parameter actually changes.
        """
        unknown = set(params) - set(_KERNEL_PARAMS) - set(_GROWTH_PARAMS)
        if unknown:
            raise ConfigurationError(f"Unknown Lenia parameters: {sorted(unknown)}")

        if T is not None:
            if not T > 0:
                raise ConfigurationError(f"T must be positive, got {T!r}")
            self.T = T
        if clamp is not None:
            self.clamp = clamp

        kernel_changes = {_KERNEL_PARAMS[k]: v for k, v in params.items()
                          if k in _KERNEL_PARAMS and v is not None}
        growth_changes = {_GROWTH_PARAMS[k]: v for k, v in params.items()
                          if k in _GROWTH_PARAMS and v is not None}
        for key in ("peaks", "edges"):
            if key in kernel_changes:
                kernel_changes[key] = tuple(kernel_changes[key])

        if growth_changes:
            self.set_growth_spec(self._growth_spec.replace(**growth_changes))
        if kernel_changes:
            spec = self._kernel_spec.replace(**kernel_changes)
            if spec != self._kernel_spec:
                self.set_kernel_spec(spec)

    def get_params(self):
        k, g = self._kernel_spec, self._growth_spec
        return {
            "R": k.radius,
            "rings": k.rings,
            "peaks": list(k.peaks),
            "edges": list(k.edges),
            "core": k.core.value,
            "kernel_exponent": k.exponent,
            "mu": g.mu,
            "sigma": g.sigma,
            "profile": g.profile.value,
            "growth_exponent": g.exponent,
            "T": self.T,
            "clamp": self.clamp,
        }

    # ------------------------------------------------------------------
    # Seeding

    def seed(self, seed_type="random", rng=None, **kwargs):
        """Seed the world based on type string."""
        if seed_type == "blobs":
            self.seed_multiple_blobs(rng=rng, **kwargs)
        elif seed_type == "block":
            self.seed_block(**kwargs)
        elif seed_type == "clear":
            self.clear()
        else:
            self.seed_random(rng=rng, **kwargs)

    def seed_random(self, density=0.5, radius=None, rng=None):
        """Seed a circular region with gaussian-falloff random values."""
        rng = np.random.default_rng(rng)
        if radius is None:
            radius = self.size // 4
        self.clear()
        cy, cx = self.size // 2, self.size // 2
        dist = self._distance(cx, cy)
        # Smooth gaussian envelope instead of hard circle
        envelope = np.exp(-0.5 * (dist / (radius * 0.6)) ** 2)
        noise = rng.random((self.size, self.size)) * density
        self.world = np.clip(noise * envelope, 0, 1)

    def seed_multiple_blobs(self, n_blobs=8, blob_radius=None, density=0.6, rng=None):
        """Seed with overlapping gaussian blobs clustered near center."""
        rng = np.random.default_rng(rng)
        if blob_radius is None:
            blob_radius = max(2, self.size // 10)
        self.clear()
        center = self.size // 2
        # Blobs stay within the central 40% of the grid
        scatter = self.size * 0.2
        world = np.zeros((self.size, self.size), dtype=np.float64)
        for _ in range(n_blobs):
            cy = int(center + rng.standard_normal() * scatter) % self.size
            cx = int(center + rng.standard_normal() * scatter) % self.size
            dist = self._distance(cx, cy)
            blob = np.exp(-0.5 * (dist / (blob_radius * 0.5)) ** 2) * density
            # Noise texture within the blob
            noise = rng.random((self.size, self.size)) * 0.4 + 0.6
            world += blob * noise
        self.world = np.clip(world, 0, 1)

    def seed_block(self, width=3, value=1.0, cx=None, cy=None):
        """Seed a solid square block (centered by default)."""
        self.clear()
        cx = self.size // 2 if cx is None else cx
        cy = self.size // 2 if cy is None else cy
        lo = width // 2
        rows = np.arange(cy - lo, cy - lo + width) % self.size
        cols = np.arange(cx - lo, cx - lo + width) % self.size
        self.world[np.ix_(rows, cols)] = value
