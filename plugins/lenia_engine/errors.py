"""
Engine Exceptions

ConfigurationError is raised when a spec or grid size is rejected (before
any stepping happens). PreconditionViolation is a caller bug: buffers of
different sizes handed to the same operation. NumericDegeneracy is only
raised on request, the stepper itself never sanitizes NaN/inf.
"""


class LeniaError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(LeniaError, ValueError):
    """Malformed KernelSpec/GrowthSpec or a grid size that is not a power of two."""


class PreconditionViolation(LeniaError, ValueError):
    """Dimension mismatch between field, kernel and working buffers."""


class NumericDegeneracy(LeniaError, ArithmeticError):
    """Non-finite values found in the field or its intermediate arrays."""
