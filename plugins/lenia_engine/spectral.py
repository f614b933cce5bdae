"""
Frequency-Domain Multiplier

Pointwise complex product of two spectra. By the convolution theorem the
inverse transform of the product is the circular (toroidal) convolution
of the two spatial grids.
"""

import numpy as np

from .grid import ComplexGrid, require_same_shape


def multiply(a, b, out=None):
    """(ar + i*ai) * (br + i*bi), elementwise.

    Args:
        a, b: ComplexGrid operands of identical shape
        out: optional ComplexGrid to write into (may not alias a or b)

    Returns:
        ComplexGrid with the product
    """
    require_same_shape(a.real, b.real, what="spectra")
    if out is None:
        out = ComplexGrid(np.empty_like(a.real), np.empty_like(a.real))
    np.subtract(a.real * b.real, a.imag * b.imag, out=out.real)
    np.add(a.real * b.imag, a.imag * b.real, out=out.imag)
    return out


def multiply3(a, b, out=None):
    """Same product with three real multiplies (Gauss' trick).

    Rounding differs from multiply() in the last bits only.
    """
    require_same_shape(a.real, b.real, what="spectra")
    if out is None:
        out = ComplexGrid(np.empty_like(a.real), np.empty_like(a.real))
    k1 = b.real * (a.real + a.imag)
    k2 = a.real * (b.imag - b.real)
    k3 = a.imag * (b.real + b.imag)
    np.subtract(k1, k3, out=out.real)
    np.add(k1, k2, out=out.imag)
    return out
