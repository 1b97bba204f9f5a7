"""
osirishmm - Hidden Markov Model toolkit for training nanopore pore models
of base analogues from aligned raw current.
"""

__version__ = "1.0.0"

from osirishmm.core.hmm import HiddenMarkovModel, State, StateRole
from osirishmm.core.mixture import GaussianMixtureEM, gaussian_mixture_em
from osirishmm.core.pore_model import PoreModel
from osirishmm.training.engine import PoreModelTrainer, train_from_file
