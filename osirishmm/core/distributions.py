"""
Emission distributions for hidden states.

Three closed variants share a single contract, density(x), returning a
linear-space density. Callers convert to log space with eln/eln_array.
density() accepts a scalar or a numpy array of observations.
"""

import math

import numpy as np
from numba import jit

from osirishmm.core.log_space import eln_array


_LOG_SQRT_2PI = 0.5 * math.log(2.0 * math.pi)


@jit(nopython=True, cache=False)
def normal_log_pdf(x, mu, sigma):
    """Closed-form log density of N(mu, sigma); never underflows."""
    z = (x - mu) / sigma
    return -math.log(sigma) - _LOG_SQRT_2PI - 0.5 * z * z


def kl_divergence(mu1: float, sigma1: float, mu2: float, sigma2: float) -> float:
    """KL(N(mu1, sigma1) || N(mu2, sigma2)). Diagnostic only."""
    return (math.log(sigma2 / sigma1)
            + (sigma1 ** 2 + (mu1 - mu2) ** 2) / (2.0 * sigma2 ** 2) - 0.5)


class Distribution:
    """Base class for emission distributions."""

    is_silent = False

    def density(self, x):
        raise NotImplementedError

    def log_density(self, x):
        return eln_array(self.density(x))


class NormalDistribution(Distribution):
    """Gaussian emission, one per reference position."""

    def __init__(self, mean: float, std: float):
        if not std > 0:
            raise ValueError(f"Normal std must be positive, got {std}")
        self.mean = float(mean)
        self.std = float(std)

    def density(self, x):
        var = self.std ** 2
        return (1.0 / np.sqrt(2.0 * np.pi * var)) * np.exp(-(x - self.mean) ** 2 / (2.0 * var))

    def log_density(self, x):
        # Closed form so far-tail observations do not underflow to zero
        x = np.asarray(x, dtype=np.float64)
        z = (x - self.mean) / self.std
        return -np.log(self.std) - _LOG_SQRT_2PI - 0.5 * z * z

    def __repr__(self):
        return f"NormalDistribution(mean={self.mean}, std={self.std})"


class UniformDistribution(Distribution):
    """Flat emission over [lower, upper], zero outside."""

    def __init__(self, lower: float, upper: float):
        if upper <= lower:
            raise ValueError(f"Uniform bounds must satisfy lower < upper, got [{lower}, {upper}]")
        self.lower = float(lower)
        self.upper = float(upper)

    def density(self, x):
        x = np.asarray(x, dtype=np.float64)
        inside = (x >= self.lower) & (x <= self.upper)
        out = np.where(inside, 1.0 / (self.upper - self.lower), 0.0)
        return out if out.ndim else float(out)

    def __repr__(self):
        return f"UniformDistribution(lower={self.lower}, upper={self.upper})"


class SilentDistribution(Distribution):
    """Bound to non-emitting states; never consumes an observation."""

    is_silent = True

    def density(self, x):
        x = np.asarray(x, dtype=np.float64)
        return np.ones_like(x) if x.ndim else 1.0

    def __repr__(self):
        return "SilentDistribution()"
