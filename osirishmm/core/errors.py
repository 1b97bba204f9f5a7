"""
Exception taxonomy for osirishmm.

Numeric domain errors come from the log-space primitives, UnalignableError
from the Viterbi decoder and DegenerateFitError from the mixture fitter.
The training loop treats the last two as per-item skips; construction
errors are programmer mistakes and are never caught.
"""


class NegativeValueError(ArithmeticError):
    """Negative value passed to the natural log function."""


class DivideByZeroError(ZeroDivisionError):
    """Log-space quotient with a zero-probability divisor."""


class UnalignableError(RuntimeError):
    """No state path reaches the end state for an observation sequence."""


class DegenerateFitError(ArithmeticError):
    """Mixture EM could not produce valid parameters for a sample pool."""


class ModelConstructionError(ValueError):
    """Invalid structural operation on a hidden state graph."""
