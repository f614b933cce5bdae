"""
Growth Functions

Map the neighborhood activation n of every cell to a signed growth rate in
[-1, 1]. All profiles peak at +1 when n == mu and saturate at -1 as |n - mu|
grows; they only differ in how sharp the transition is:

    gaussian:    2 * exp(-r^2 / (2 sigma^2)) - 1
    polynomial:  2 * (1 - r^2 / (9 sigma^2))^exponent - 1, -1 beyond 3 sigma
    trapezoid:   plateau up to sigma/2, linear ramp down to -1 at 2 sigma
    step:        +1 within sigma, -1 outside

with r = |n - mu|. Everything is vectorized over numpy arrays.
"""

import enum

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from .errors import ConfigurationError


def growth_gaussian(n, mu, sigma, exponent=None):
    r = n - mu
    return 2.0 * np.exp(-(r * r) / (2.0 * sigma * sigma)) - 1.0


def growth_polynomial(n, mu, sigma, exponent=4.0):
    r = n - mu
    base = np.maximum(1.0 - (r * r) / (9.0 * sigma * sigma), 0.0)
    return 2.0 * base ** exponent - 1.0


def growth_trapezoid(n, mu, sigma, exponent=None):
    r = np.abs(n - mu)
    p = sigma / 2.0
    q = sigma * 2.0
    return 2.0 * np.clip((q - r) / (q - p), 0.0, 1.0) - 1.0


def growth_step(n, mu, sigma, exponent=None):
    return np.where(np.abs(n - mu) <= sigma, 1.0, -1.0)


class GrowthProfile(str, enum.Enum):
    gaussian = "gaussian"
    polynomial = "polynomial"
    trapezoid = "trapezoid"
    step = "step"


GROWTH_FUNCTIONS = {
    GrowthProfile.gaussian: growth_gaussian,
    GrowthProfile.polynomial: growth_polynomial,
    GrowthProfile.trapezoid: growth_trapezoid,
    GrowthProfile.step: growth_step,
}


class GrowthSpec(BaseModel):
    """Growth profile and its parameters. Immutable and hashable.

    Raises ConfigurationError on construction if a value is out of range.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    profile: GrowthProfile = Field(
        default=GrowthProfile.gaussian,
        description="Shape of the growth curve",
    )
    mu: float = Field(
        default=0.15, ge=0.0,
        description="Activation that gives maximum growth",
    )
    sigma: float = Field(
        default=0.015, gt=0.0,
        description="Width of the growth curve",
    )
    exponent: float = Field(
        default=4.0, gt=0.0,
        description="Sharpness exponent (polynomial profile only)",
    )

    _function = PrivateAttr(default=None)

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid growth spec: {e}") from e

    def model_post_init(self, __context):
        self._function = GROWTH_FUNCTIONS[self.profile]

    def __call__(self, n):
        return self._function(n, self.mu, self.sigma, self.exponent)

    def replace(self, **changes):
        """Return a copy with some fields changed (validated again)."""
        return GrowthSpec(**{**self.model_dump(), **changes})


def growth(n, spec):
    """Growth rate for activation n (scalar or array) under `spec`."""
    return spec(np.asarray(n, dtype=np.float64))
