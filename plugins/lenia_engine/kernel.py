"""
Kernel Synthesizer

Builds the radially symmetric convolution kernel on the full N x N torus
(origin at cell (0, 0), offsets wrapping at N/2), transforms it to the
frequency domain and normalizes it by its total weight, so that a uniform
field convolves to itself.

Kernels are made of 1 + `rings` concentric rings. Inside each ring the
profile is the core shape evaluated on the ring's local coordinate, scaled
between that ring's peak weight and the edge weight of the nearest ring
boundary:

    R = r * (rings + 1),  b = floor(R),  e = floor(R + 0.5)
    K(r) = (core(R mod 1) * (peaks[b] - edges[e]) + edges[e]) / divisor

Core shapes (r in [0, 1), 0 elsewhere):
    bump:        exp(alpha - alpha / (4r(1-r)))
    polynomial:  (4r(1-r))^alpha
    trapezoid:   linear ramps over the outer quarters, 1 on [1/4, 3/4]
    step:        1 on [1/4, 3/4]
    life:        1 on [1/4, 3/4], 1/2 inside 1/4 (Game-of-Life like)

Reference: Bert Chan, "Lenia - Biology of Artificial Life" (2019)
"""

import enum
import logging
from collections import OrderedDict
from typing import Tuple

import numpy as np
from pydantic import (BaseModel, ConfigDict, Field, PrivateAttr,
                      ValidationError, model_validator)

from .errors import ConfigurationError
from .fft import FORWARD, transform2d
from .grid import ComplexGrid, require_grid_size

logger = logging.getLogger(__name__)

MAX_RINGS = 3
MAX_PEAKS = MAX_RINGS + 1
# Ring boundaries 0 .. rings+1 can carry an edge weight
MAX_EDGES = MAX_RINGS + 2
# Total kernel weight below this is treated as an empty kernel
MIN_TOTAL_WEIGHT = 1e-10


def core_bump(r, alpha=4.0):
    out = np.zeros_like(r)
    inside = (r > 0.0) & (r < 1.0)
    x = 4.0 * r[inside] * (1.0 - r[inside])
    out[inside] = np.exp(alpha - alpha / x)
    return out


def core_polynomial(r, alpha=4.0):
    return np.maximum(4.0 * r * (1.0 - r), 0.0) ** alpha


def core_trapezoid(r, alpha=None):
    return np.clip(4.0 * np.minimum(r, 1.0 - r), 0.0, 1.0)


def core_step(r, alpha=None):
    return ((r >= 0.25) & (r <= 0.75)).astype(np.float64)


def core_life(r, alpha=None):
    ring = (r >= 0.25) & (r <= 0.75)
    center = (r >= 0.0) & (r < 0.25)
    return np.where(ring, 1.0, np.where(center, 0.5, 0.0))


class CoreShape(str, enum.Enum):
    bump = "bump"
    polynomial = "polynomial"
    trapezoid = "trapezoid"
    step = "step"
    life = "life"


CORE_SHAPES = {
    CoreShape.bump: core_bump,
    CoreShape.polynomial: core_polynomial,
    CoreShape.trapezoid: core_trapezoid,
    CoreShape.step: core_step,
    CoreShape.life: core_life,
}


class KernelSpec(BaseModel):
    """Kernel parameters. Immutable and hashable, so it can key a cache.

    Raises ConfigurationError on construction if a value is out of range.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    radius: float = Field(default=13.0, gt=0.0, description="Kernel radius in cells")
    rings: int = Field(default=0, ge=0, le=MAX_RINGS, description="Extra rings beyond the first")
    peaks: Tuple[float, ...] = Field(
        default=(1.0,), min_length=1, max_length=MAX_PEAKS,
        description="Peak weight of each ring, innermost first",
    )
    edges: Tuple[float, ...] = Field(
        default=(), max_length=MAX_EDGES,
        description="Weight at each ring boundary, center first",
    )
    core: CoreShape = Field(default=CoreShape.bump, description="Shape inside a ring")
    exponent: float = Field(default=4.0, gt=0.0, description="Core sharpness (bump/polynomial)")

    _core_function = PrivateAttr(default=None)

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid kernel spec: {e}") from e

    @model_validator(mode="after")
    def check_rings(self):
        if len(self.edges) > self.rings + 2:
            raise ValueError(
                f"{self.rings} extra rings have {self.rings + 2} boundaries, "
                f"got {len(self.edges)} edge weights")
        if self.rings > 0:
            if len(self.peaks) < self.rings + 1:
                raise ValueError(
                    f"{self.rings} extra rings need {self.rings + 1} peak weights, "
                    f"got {len(self.peaks)}")
            if self.divisor == 0.0:
                raise ValueError("all ring weights are zero")
        return self

    def model_post_init(self, __context):
        self._core_function = CORE_SHAPES[self.core]

    @property
    def divisor(self):
        """Largest absolute ring weight; keeps multi-ring values within [-1, 1]."""
        weights = self.peaks[:self.rings + 1] + self.edges
        return float(max(abs(w) for w in weights))

    def core_shape(self, r):
        return self._core_function(r, self.exponent)

    def replace(self, **changes):
        """Return a copy with some fields changed (validated again)."""
        return KernelSpec(**{**self.model_dump(), **changes})


def toroidal_offsets(n):
    """Signed offsets 0, 1, ..., n/2-1, -n/2, ..., -1 of each index from the origin."""
    idx = np.arange(n)
    return np.where(idx < n // 2, idx, idx - n)


def radial_distance(n):
    """Euclidean distance of every cell to cell (0, 0) on an n x n torus."""
    off = toroidal_offsets(n).astype(np.float64)
    return np.sqrt(off[:, None] ** 2 + off[None, :] ** 2)


def spatial_kernel(spec, n):
    """Unnormalized kernel values on the n x n torus.

    Returns:
        (kernel, total_weight)
    """
    r = radial_distance(n) / spec.radius

    if spec.rings == 0:
        kernel = spec.core_shape(r)
    else:
        layers = spec.rings + 1
        div = spec.divisor
        peaks = np.asarray(spec.peaks[:layers], dtype=np.float64)
        edges = np.zeros(layers + 1, dtype=np.float64)
        used = spec.edges[:layers + 1]
        edges[:len(used)] = used

        inside = r < 1.0
        R = r * layers
        b = np.clip(np.floor(R).astype(np.intp), 0, layers - 1)
        e = np.clip(np.floor(R + 0.5).astype(np.intp), 0, layers)
        edge = edges[e]
        kernel = spec.core_shape(np.mod(R, 1.0)) * (peaks[b] - edge) / div + edge / div
        kernel = np.where(inside, kernel, 0.0)

    return kernel, float(kernel.sum())


class FrequencyKernel:
    """Normalized kernel spectrum, ready to multiply a field spectrum with.

    Both the spectrum and the normalized spatial kernel are read-only.
    """

    def __init__(self, spectrum, spatial, total_weight, spec=None):
        self.spectrum = spectrum
        self.spatial = spatial
        self.total_weight = total_weight
        self.spec = spec

    @classmethod
    def from_spatial(cls, kernel, spec=None):
        """Transform an explicit spatial kernel (origin at cell (0, 0))."""
        kernel = np.array(kernel, dtype=np.float64)
        if kernel.ndim != 2 or kernel.shape[0] != kernel.shape[1]:
            raise ConfigurationError(f"Kernel must be a square grid, got shape {kernel.shape}")
        require_grid_size(kernel.shape[0])

        total = float(kernel.sum())
        if not np.isfinite(total) or abs(total) < MIN_TOTAL_WEIGHT:
            raise ConfigurationError(
                f"Degenerate kernel: total weight {total!r} (spec={spec!r})")

        real = kernel.copy()
        imag = np.zeros_like(real)
        transform2d(FORWARD, real, imag)
        real /= total
        imag /= total

        spatial = kernel / total
        spatial.flags.writeable = False
        return cls(ComplexGrid(real, imag).freeze(), spatial, total, spec)

    @property
    def size(self):
        return self.spectrum.size

    @property
    def shape(self):
        return self.spectrum.shape

    def __repr__(self):
        return f"FrequencyKernel(size={self.size}, total_weight={self.total_weight:.4g})"


def synthesize(spec, n):
    """Build the FrequencyKernel of `spec` on an n x n grid."""
    n = require_grid_size(n)
    if spec.radius > n / 2:
        logger.warning(f"Kernel radius {spec.radius} exceeds half the grid ({n // 2}); "
                       f"the kernel will wrap around the torus")
    kernel, total = spatial_kernel(spec, n)
    logger.debug(f"Synthesized {spec.core.value} kernel: n={n} rings={spec.rings} "
                 f"radius={spec.radius} total_weight={total:.4g}")
    return FrequencyKernel.from_spatial(kernel, spec=spec)


class KernelCache:
    """Equality-keyed cache of FrequencyKernels, keyed on (spec, n).

    A kernel is only rebuilt when the spec or the grid size differs from
    every cached entry. Least recently used entries are evicted first.
    """

    def __init__(self, maxsize=4):
        self.maxsize = maxsize
        self._entries = OrderedDict()
        self.builds = 0

    def get(self, spec, n):
        key = (spec, int(n))
        kernel = self._entries.get(key)
        if kernel is not None:
            self._entries.move_to_end(key)
            logger.debug(f"Kernel cache hit: n={n} radius={spec.radius}")
            return kernel

        kernel = synthesize(spec, n)
        self.builds += 1
        self._entries[key] = kernel
        while len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)
        return kernel

    def __contains__(self, key):
        spec, n = key
        return (spec, int(n)) in self._entries

    def __len__(self):
        return len(self._entries)

    def clear(self):
        self._entries.clear()
