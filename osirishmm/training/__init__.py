"""Per-read alignment, event pooling and per-position mixture fitting."""

from osirishmm.training.alignment import Alignment, align_events, align_read, build_read_model, modelled_kmers
from osirishmm.training.engine import PoreModelTrainer, TrainingStats, train_from_file
from osirishmm.training.events import EventData, detect_events, normalise_events
from osirishmm.training.output import MixtureFit, write_trained_model
from osirishmm.training.parameters import TrainingConfig, TransitionParameters
from osirishmm.training.pileup import EventPileup

__all__ = [
    'Alignment',
    'align_events',
    'align_read',
    'build_read_model',
    'modelled_kmers',
    'PoreModelTrainer',
    'TrainingStats',
    'train_from_file',
    'EventData',
    'detect_events',
    'normalise_events',
    'MixtureFit',
    'write_trained_model',
    'TrainingConfig',
    'TransitionParameters',
    'EventPileup',
]
