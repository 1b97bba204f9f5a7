"""Core log-space arithmetic, state graph, Viterbi decoding and mixture EM."""

from osirishmm.core.errors import (
    NegativeValueError,
    DivideByZeroError,
    UnalignableError,
    DegenerateFitError,
    ModelConstructionError,
)
from osirishmm.core.distributions import NormalDistribution, UniformDistribution, SilentDistribution
from osirishmm.core.hmm import HiddenMarkovModel, State, StateRole
from osirishmm.core.mixture import GaussianMixtureEM, gaussian_mixture_em
from osirishmm.core.pore_model import PoreModel
from osirishmm.core.reference import Reference, load_reference
from osirishmm.core.training_data import TrainingRead, TrainingDataFile, read_training_data
