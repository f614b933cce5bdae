"""
Complex Grids and Size Helpers

A ComplexGrid is a pair of equal-size float arrays (real, imag). Spectra of
the field, of the kernel and of the neighborhood all use it, so the FFT and
the multiplier never have to deal with numpy's complex dtype.
"""

import numpy as np

from .errors import ConfigurationError, PreconditionViolation


def is_power_of_two(n):
    return isinstance(n, (int, np.integer)) and n > 0 and (n & (n - 1)) == 0


def require_grid_size(n):
    """Validate a user-supplied grid size. Returns it as a plain int."""
    if not is_power_of_two(n):
        raise ConfigurationError(f"Grid size must be a positive power of two, got {n!r}")
    return int(n)


def require_same_shape(*arrays, what="buffers"):
    shapes = {a.shape for a in arrays}
    if len(shapes) != 1:
        raise PreconditionViolation(
            f"Dimension mismatch between {what}: {sorted(shapes)}")


class ComplexGrid:
    """Real/imaginary pair of N x N float64 grids."""

    __slots__ = ("real", "imag")

    def __init__(self, real, imag=None):
        real = np.asarray(real, dtype=np.float64)
        if imag is None:
            imag = np.zeros_like(real)
        else:
            imag = np.asarray(imag, dtype=np.float64)
        require_same_shape(real, imag, what="real and imaginary parts")
        self.real = real
        self.imag = imag

    @classmethod
    def zeros(cls, n):
        return cls(np.zeros((n, n), dtype=np.float64),
                   np.zeros((n, n), dtype=np.float64))

    @classmethod
    def from_complex(cls, values):
        values = np.asarray(values)
        return cls(values.real.copy(), values.imag.copy())

    def to_complex(self):
        return self.real + 1j * self.imag

    @property
    def shape(self):
        return self.real.shape

    @property
    def size(self):
        """Edge length N of the (square) grid."""
        return self.real.shape[0]

    def freeze(self):
        """Mark both arrays read-only. Used for shared, cached spectra."""
        self.real.flags.writeable = False
        self.imag.flags.writeable = False
        return self

    def __repr__(self):
        return f"ComplexGrid(shape={self.shape})"
