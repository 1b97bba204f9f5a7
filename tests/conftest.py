"""
Shared pytest fixtures for osirishmm tests.
"""
import pytest
import numpy as np
import tempfile

from osirishmm.core.pore_model import PoreModel
from osirishmm.core.training_data import TrainingRead
from osirishmm.training.events import EventData


# 20 bases, every 5-mer distinct
REFERENCE = "AAAAATGCGCATTGACCTAG"


def kmers_of(sequence, k=5):
    return [sequence[i:i + k] for i in range(len(sequence) - k + 1)]


@pytest.fixture
def reference():
    return REFERENCE


@pytest.fixture
def pore_model():
    """
    Pore model over the reference's 5-mers. Means climb 5 pA per k-mer so
    neighbouring positions are well separated; every mean lies inside the
    default insertion bounds [50, 150].
    """
    table = {kmer: (60.0 + 5.0 * i, 1.0) for i, kmer in enumerate(kmers_of(REFERENCE))}
    return PoreModel(table)


@pytest.fixture
def seeded_events(pore_model):
    """One noise-free event per module (len - 5 of them) at the seeded mean."""
    def make(window):
        return np.array([pore_model.lookup(km)[0] for km in kmers_of(window)[:len(window) - 5]])
    return make


@pytest.fixture
def identity_normaliser():
    """Treats read.raw as already-normalised events with a perfect quality score."""
    def normalise(read, pore_model, kmers):
        return EventData(np.asarray(read.raw, dtype=np.float64), 0.0, 1.0, 0.0)
    return normalise


@pytest.fixture
def noisy_reads(pore_model):
    """Twenty full-reference reads whose events are seeded means plus N(0, 0.5) noise."""
    rng = np.random.default_rng(7)
    n_modules = len(REFERENCE) - 5
    means = np.array([pore_model.lookup(km)[0] for km in kmers_of(REFERENCE)[:n_modules]])
    return [
        TrainingRead(basecalls=REFERENCE, roi_bounds=(0, len(REFERENCE)),
                     raw=means + rng.normal(0.0, 0.5, n_modules), read_number=i)
        for i in range(20)
    ]


@pytest.fixture
def temp_dir():
    """Temporary directory for file operations."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir
