"""
Radix-2 FFT Engine

Iterative Cooley-Tukey transform on split real/imaginary arrays:
- transform():   1D transform over the last axis, so a 2D array has every
                 row transformed in one call (rows are independent)
- transform2d(): separable 2D transform (rows, transpose, rows, transpose back)

Conventions match numpy.fft: FORWARD uses exp(-2*pi*i*k/N) and is left
unnormalized, INVERSE divides by N on every 1D pass (1/N^2 for a 2D inverse).
Both functions mutate their inputs in place.
"""

import math
from functools import lru_cache

import numpy as np

from .errors import PreconditionViolation
from .grid import is_power_of_two


# Sign of the twiddle exponent
FORWARD = -1
INVERSE = 1


@lru_cache(maxsize=32)
def _bit_reversal(n):
    """Index permutation that reverses the log2(n) low bits of 0..n-1."""
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.intp)
    for _ in range(bits):
        rev = (rev << 1) | (idx & 1)
        idx = idx >> 1
    rev.flags.writeable = False
    return rev


@lru_cache(maxsize=128)
def _twiddles(direction, span):
    half = span // 2
    angle = direction * 2.0 * math.pi / span
    k = np.arange(half)
    wr = np.cos(angle * k)
    wi = np.sin(angle * k)
    wr.flags.writeable = False
    wi.flags.writeable = False
    return wr, wi


def _check_direction(direction):
    if direction not in (FORWARD, INVERSE):
        raise PreconditionViolation(
            f"FFT direction must be FORWARD ({FORWARD}) or INVERSE ({INVERSE}), got {direction!r}")


def transform(direction, real, imag):
    """In-place 1D FFT over the last axis of `real` and `imag`.

    Args:
        direction: FORWARD or INVERSE
        real: float array, last axis a power of two in length
        imag: float array of the same shape

    Raises PreconditionViolation for integer (or other non-float) inputs.
    """
    _check_direction(direction)
    if real.shape != imag.shape:
        raise PreconditionViolation(
            f"FFT inputs differ in shape: {real.shape} vs {imag.shape}")
    # Results are written back in place, so integer arrays would truncate them
    if not (np.issubdtype(real.dtype, np.floating) and np.issubdtype(imag.dtype, np.floating)):
        raise PreconditionViolation(
            f"FFT inputs must be float arrays, got {real.dtype} and {imag.dtype}")
    n = real.shape[-1] if real.ndim else 0
    if not is_power_of_two(n):
        raise PreconditionViolation(f"FFT length must be a power of two, got {n}")

    lead = real.shape[:-1]
    perm = _bit_reversal(n)
    re = np.array(real[..., perm], dtype=np.float64)
    im = np.array(imag[..., perm], dtype=np.float64)

    span = 2
    while span <= n:
        half = span // 2
        wr, wi = _twiddles(direction, span)
        # (..., blocks, span): the first half of every block pairs with the second
        re_b = re.reshape(lead + (n // span, span))
        im_b = im.reshape(lead + (n // span, span))
        ar, ai = re_b[..., :half], im_b[..., :half]
        br, bi = re_b[..., half:], im_b[..., half:]

        tr = wr * br - wi * bi
        ti = wr * bi + wi * br
        br[...] = ar - tr
        bi[...] = ai - ti
        ar += tr
        ai += ti
        span *= 2

    if direction == INVERSE:
        re /= n
        im /= n

    real[...] = re
    imag[...] = im


def transform2d(direction, real, imag):
    """In-place 2D FFT of square N x N grids.

    Rows are transformed, both grids transposed, rows (the original columns)
    transformed again, then both grids transposed back.
    """
    if real.ndim != 2 or real.shape[0] != real.shape[1]:
        raise PreconditionViolation(f"2D FFT needs a square grid, got shape {real.shape}")
    if real.shape != imag.shape:
        raise PreconditionViolation(
            f"FFT inputs differ in shape: {real.shape} vs {imag.shape}")

    transform(direction, real, imag)

    re_t = np.ascontiguousarray(real.T)
    im_t = np.ascontiguousarray(imag.T)
    transform(direction, re_t, im_t)

    real[...] = re_t.T
    imag[...] = im_t.T
