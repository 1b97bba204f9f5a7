"""
Log-space probability arithmetic.

Probabilities are carried as natural logarithms. Probability zero has no
logarithm, so it is represented out-of-band by NaN (LOG_ZERO) rather than
-inf. Every scalar primitive is compiled with numba so the Viterbi and EM
kernels can call them from nopython code; they are equally callable from
Python.

Algorithms follow Mann, "Numerically Stable Hidden Markov Model
Implementation" (2006).
"""

import math

import numpy as np
from numba import jit

from osirishmm.core.errors import NegativeValueError, DivideByZeroError


LOG_ZERO = np.nan


def is_log_zero(ln_x) -> bool:
    """True if ln_x is the zero-probability sentinel."""
    return math.isnan(ln_x)


@jit(nopython=True, cache=False)
def eexp(ln_x):
    """Map from log space back to linear space."""
    if math.isnan(ln_x):
        return 0.0
    return math.exp(ln_x)


@jit(nopython=True, cache=False)
def eln(x):
    """Map from linear space to log space."""
    if x == 0.0:
        return np.nan
    elif x > 0.0:
        return math.log(x)
    raise NegativeValueError("Negative value passed to natural log function.")


@jit(nopython=True, cache=False)
def ln_sum(ln_x, ln_y):
    """ln(x + y) given ln(x) and ln(y)."""
    x_zero = math.isnan(ln_x)
    y_zero = math.isnan(ln_y)
    if x_zero and y_zero:
        return np.nan
    elif x_zero:
        return ln_y
    elif y_zero:
        return ln_x

    # Subtract the larger argument inside the exponential
    if ln_x > ln_y:
        return ln_x + math.log1p(math.exp(ln_y - ln_x))
    return ln_y + math.log1p(math.exp(ln_x - ln_y))


@jit(nopython=True, cache=False)
def ln_prod(ln_x, ln_y):
    """ln(x * y) given ln(x) and ln(y)."""
    if math.isnan(ln_x) or math.isnan(ln_y):
        return np.nan
    return ln_x + ln_y


@jit(nopython=True, cache=False)
def ln_quot(ln_x, ln_y):
    """ln(x / y) given ln(x) and ln(y)."""
    if math.isnan(ln_y):
        raise DivideByZeroError("ln_quot: Cannot divide by zero.")
    if math.isnan(ln_x):
        return np.nan
    return ln_x - ln_y


@jit(nopython=True, cache=False)
def ln_greater_than(ln_x, ln_y):
    """
    Strict ordering over log probabilities where LOG_ZERO is the minimum.

    zero vs zero      -> False
    zero vs value     -> False
    value vs zero     -> True
    value vs value    -> ln_x > ln_y
    """
    if math.isnan(ln_x):
        return False
    if math.isnan(ln_y):
        return True
    return ln_x > ln_y


# Long-form aliases
to_linear = eexp
to_log = eln
log_sum = ln_sum
log_prod = ln_prod
log_quot = ln_quot
log_greater_than = ln_greater_than


def eln_array(p: np.ndarray) -> np.ndarray:
    """
    Vectorised eln for emission tables.

    Zeros map to LOG_ZERO; any negative entry raises NegativeValueError.
    """
    p = np.asarray(p, dtype=np.float64)
    if np.any(p < 0):
        raise NegativeValueError("Negative value passed to natural log function.")
    with np.errstate(divide='ignore'):
        out = np.log(p)
    out[p == 0] = np.nan
    return out
