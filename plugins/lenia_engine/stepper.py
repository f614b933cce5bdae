"""
Generation Stepper

One generation of the field:
1. snapshot the field (every read below uses the snapshot only)
2. forward FFT of the snapshot
3. multiply with the cached kernel spectrum
4. inverse FFT -> neighborhood activation n (real part; imag ~0 is dropped)
5. per cell: d = growth(n), v = previous + d / T, clamp to [0, 1] or [0, inf)
6. advance the generation counters

The stepper owns all working buffers for one grid size and double-buffers
the field: the new generation is written to the buffer that is not being
returned to the caller, and the two are swapped when the step completes.
"""

import logging
from collections import namedtuple

import numpy as np

from .errors import ConfigurationError, PreconditionViolation
from .fft import FORWARD, INVERSE, transform2d
from .grid import ComplexGrid, require_grid_size
from .spectral import multiply

logger = logging.getLogger(__name__)

BACKENDS = ("radix2", "numpy")

StepResult = namedtuple("StepResult", ["field", "neighborhood", "growth"])


def _read_only(array):
    view = array.view()
    view.flags.writeable = False
    return view


class GenerationCounters:
    """Generation index, elapsed simulation time and optional step budget."""

    def __init__(self, budget=None):
        self.generation = 0
        self.time = 0.0
        self.remaining = budget

    def advance(self, dt_steps):
        self.generation += 1
        self.time += 1.0 / dt_steps
        if self.remaining is not None:
            self.remaining = max(self.remaining - 1, 0)

    def reset(self, budget=None):
        self.generation = 0
        self.time = 0.0
        self.remaining = budget

    @property
    def exhausted(self):
        return self.remaining is not None and self.remaining <= 0

    def __repr__(self):
        return (f"GenerationCounters(generation={self.generation}, "
                f"time={self.time:.4f}, remaining={self.remaining})")


class GenerationStepper:
    """Owns the working buffers for stepping an N x N field."""

    def __init__(self, size, backend="radix2"):
        if backend not in BACKENDS:
            raise ConfigurationError(f"Unknown FFT backend: {backend!r}. Supported: {BACKENDS}")
        self.size = require_grid_size(size)
        self.backend = backend
        self._warned_nonfinite = False

        n = self.size
        self.previous = np.zeros((n, n), dtype=np.float64)
        self.neighborhood = np.zeros((n, n), dtype=np.float64)
        self.growth = np.zeros((n, n), dtype=np.float64)
        self._spectrum = ComplexGrid.zeros(n)
        self._product = ComplexGrid.zeros(n)
        self._buffers = [np.zeros((n, n), dtype=np.float64),
                         np.zeros((n, n), dtype=np.float64)]
        self._back = 0

    def _convolve(self, kernel):
        """Neighborhood activation of self.previous, written to self.neighborhood."""
        if self.backend == "numpy":
            spectrum = ComplexGrid.from_complex(np.fft.fft2(self.previous))
            product = multiply(spectrum, kernel.spectrum, out=self._product)
            self.neighborhood[...] = np.fft.ifft2(product.to_complex()).real
            return

        spectrum = self._spectrum
        np.copyto(spectrum.real, self.previous)
        spectrum.imag.fill(0.0)
        transform2d(FORWARD, spectrum.real, spectrum.imag)
        product = multiply(spectrum, kernel.spectrum, out=self._product)
        transform2d(INVERSE, product.real, product.imag)
        np.copyto(self.neighborhood, product.real)

    def step(self, field, kernel, growth_spec, dt_steps, clamp=True, counters=None):
        """Advance `field` by one generation.

        Args:
            field: N x N array of the current generation (never modified)
            kernel: FrequencyKernel built for the same N
            growth_spec: GrowthSpec mapping activation to growth
            dt_steps: time resolution T, each step integrates growth / T
            clamp: clip to [0, 1] if True, else only to [0, inf)
            counters: optional GenerationCounters to advance

        Returns:
            StepResult(field, neighborhood, growth). The arrays belong to the
            stepper and are overwritten by later steps.
        """
        n = self.size
        if field.shape != (n, n):
            raise PreconditionViolation(
                f"Field shape {field.shape} does not match stepper size {n}")
        if kernel.shape != (n, n):
            raise PreconditionViolation(
                f"Kernel shape {kernel.shape} does not match field size {n}; "
                f"rebuild the kernel after resizing")
        if not dt_steps > 0:
            raise ConfigurationError(f"dt_steps must be positive, got {dt_steps!r}")

        np.copyto(self.previous, field)
        self._convolve(kernel)
        self.growth[...] = growth_spec(self.neighborhood)

        out = self._buffers[self._back]
        np.add(self.previous, self.growth / dt_steps, out=out)
        if clamp:
            np.clip(out, 0.0, 1.0, out=out)
        else:
            np.maximum(out, 0.0, out=out)
        self._back ^= 1

        if counters is not None:
            counters.advance(dt_steps)

        if np.isfinite(out).all():
            self._warned_nonfinite = False
        elif not self._warned_nonfinite:
            logger.warning("Non-finite values in field after step; "
                           "check kernel and growth parameters")
            self._warned_nonfinite = True

        return StepResult(out, _read_only(self.neighborhood), _read_only(self.growth))


def step(field, kernel, growth_spec, dt_steps, clamp=True, backend="radix2"):
    """One generation with throwaway buffers. See GenerationStepper.step()."""
    field = np.asarray(field, dtype=np.float64)
    if field.ndim != 2:
        raise PreconditionViolation(f"Field must be a 2D grid, got shape {field.shape}")
    stepper = GenerationStepper(kernel.size, backend=backend)
    return stepper.step(field, kernel, growth_spec, dt_steps, clamp=clamp)
