"""
Two-component univariate Gaussian mixture, fitted by expectation-maximisation.

The E-step runs in log space through the log_space primitives so samples
far from both component means do not underflow. Convergence is declared
when the total log-likelihood improves by less than `tol`; `n_iter` caps
the number of iterations.
"""

import math
from typing import Optional, Tuple

import numpy as np
from numba import jit

from osirishmm.core.distributions import normal_log_pdf
from osirishmm.core.errors import DegenerateFitError, DivideByZeroError, NegativeValueError
from osirishmm.core.log_space import eexp, eln, ln_prod, ln_quot, ln_sum


@jit(nopython=True, cache=False)
def _em_estep_numba(samples, ln_w1, mu1, sd1, ln_w2, mu2, sd2):
    """
    Responsibilities of component 1 and total log-likelihood.

    Returns:
        resp1: (n,) posterior probability each sample came from component 1
        log_lik: sum over samples of ln(w1 N1 + w2 N2)
    """
    n = samples.shape[0]
    resp1 = np.empty(n)
    log_lik = 0.0
    for j in range(n):
        x = samples[j]
        a = ln_prod(ln_w1, normal_log_pdf(x, mu1, sd1))
        b = ln_prod(ln_w2, normal_log_pdf(x, mu2, sd2))
        norm = ln_sum(a, b)
        resp1[j] = eexp(ln_quot(a, norm))
        log_lik = ln_prod(log_lik, norm)
    return resp1, log_lik


class TrainingMonitor:
    """Log-likelihood after each E-step."""

    def __init__(self):
        self.history = []


class GaussianMixtureEM:
    """
    Two-component Gaussian mixture estimator.

    Fitted attributes (after fit()):
        weights_: (w1, w2)
        means_: (mu1, mu2)
        stds_: (sd1, sd2)
        converged_: whether the tolerance was met before n_iter
        monitor_: TrainingMonitor with the log-likelihood history
    """

    def __init__(self, n_iter: int = 1000, tol: float = 1e-4):
        if n_iter < 1:
            raise ValueError(f"n_iter must be at least 1, got {n_iter}")
        self.n_iter = n_iter
        self.tol = tol

        self.weights_: Optional[Tuple[float, float]] = None
        self.means_: Optional[Tuple[float, float]] = None
        self.stds_: Optional[Tuple[float, float]] = None
        self.converged_ = False
        self.n_iter_ = 0
        self.monitor_: Optional[TrainingMonitor] = None

    def fit(self, samples, mean1: float, std1: float,
            mean2: float, std2: float) -> 'GaussianMixtureEM':
        """
        Fit the mixture to a pool of samples, seeded at the given components.

        Raises:
            DegenerateFitError: empty pool, invalid seed, or a component
                collapsing during fitting
        """
        x = np.asarray(samples, dtype=np.float64).ravel()
        if len(x) == 0:
            raise DegenerateFitError("Cannot fit a mixture to an empty sample pool.")
        for sd in (std1, std2):
            if not (math.isfinite(sd) and sd > 0):
                raise DegenerateFitError(f"Seed standard deviation must be positive, got {sd}.")

        w1, w2 = 0.5, 0.5
        mu1, mu2 = float(mean1), float(mean2)
        sd1, sd2 = float(std1), float(std2)

        self.monitor_ = TrainingMonitor()
        self.converged_ = False
        prev_log_lik = -np.inf

        try:
            for iteration in range(self.n_iter):
                # E-step
                resp1, log_lik = _em_estep_numba(x, eln(w1), mu1, sd1, eln(w2), mu2, sd2)
                resp2 = 1.0 - resp1

                # M-step
                n1 = resp1.sum()
                n2 = resp2.sum()
                if n1 <= 0.0 or n2 <= 0.0:
                    raise DegenerateFitError("A mixture component lost all responsibility.")

                w1 = n1 / len(x)
                w2 = n2 / len(x)
                mu1 = float(np.dot(resp1, x) / n1)
                mu2 = float(np.dot(resp2, x) / n2)
                sd1 = math.sqrt(np.dot(resp1, (x - mu1) ** 2) / n1)
                sd2 = math.sqrt(np.dot(resp2, (x - mu2) ** 2) / n2)
                if not (sd1 > 0 and sd2 > 0):
                    raise DegenerateFitError("A mixture component collapsed to zero variance.")

                self.monitor_.history.append(log_lik)
                self.n_iter_ = iteration + 1

                improvement = log_lik - prev_log_lik
                if iteration > 0 and improvement < self.tol:
                    self.converged_ = True
                    break

                prev_log_lik = log_lik
        except (NegativeValueError, DivideByZeroError) as e:
            raise DegenerateFitError(str(e)) from e

        self.weights_ = (float(w1), float(w2))
        self.means_ = (mu1, mu2)
        self.stds_ = (sd1, sd2)
        return self

    def score(self, samples) -> float:
        """Total log-likelihood of samples under the fitted mixture."""
        x = np.asarray(samples, dtype=np.float64).ravel()
        _, log_lik = _em_estep_numba(x, eln(self.weights_[0]), self.means_[0], self.stds_[0],
                                     eln(self.weights_[1]), self.means_[1], self.stds_[1])
        return log_lik

    def parameters(self) -> Tuple[float, float, float, float, float, float]:
        """(w1, mu1, sd1, w2, mu2, sd2)"""
        return (self.weights_[0], self.means_[0], self.stds_[0],
                self.weights_[1], self.means_[1], self.stds_[1])


def gaussian_mixture_em(mean1: float, std1: float, mean2: float, std2: float,
                        samples, tolerance: float = 1e-4,
                        max_iter: int = 1000) -> Tuple[float, float, float, float, float, float]:
    """
    Fit a two-component mixture and return (w1, mu1, sd1, w2, mu2, sd2).

    Raises:
        DegenerateFitError: see GaussianMixtureEM.fit
    """
    em = GaussianMixtureEM(n_iter=max_iter, tol=tolerance)
    em.fit(samples, mean1, std1, mean2, std2)
    return em.parameters()
