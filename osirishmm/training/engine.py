"""
osirishmm training engine.

Per read: normalise the raw signal, discard it if the quality score is too
large, build the read's state graph over its region of interest, Viterbi-
align the events and pool them by reference position. Once every read is
pooled, fit a two-component Gaussian mixture to each position's pool.

An unalignable read is skipped and a degenerate fit drops that position's
row; every other error propagates.
"""

from typing import Callable, Iterable, List, Optional

import numpy as np
from tqdm import tqdm

from osirishmm.core.errors import DegenerateFitError, UnalignableError
from osirishmm.core.mixture import gaussian_mixture_em
from osirishmm.core.pore_model import PoreModel
from osirishmm.core.training_data import TrainingDataFile, TrainingRead
from osirishmm.training.alignment import Alignment, align_read, modelled_kmers
from osirishmm.training.events import EventData, segment_and_normalise
from osirishmm.training.output import MixtureFit, write_trained_model
from osirishmm.training.parameters import TrainingConfig
from osirishmm.training.pileup import EventPileup


Normaliser = Callable[[TrainingRead, PoreModel, List[str]], EventData]


class TrainingStats:
    """Counts of what happened to each read and each position."""

    def __init__(self):
        self.reads_seen = 0
        self.reads_low_quality = 0
        self.reads_unalignable = 0
        self.reads_aligned = 0
        self.events_pooled = 0
        self.positions_fitted = 0
        self.positions_degenerate = 0
        self.degenerate_kmers = []

    def get_summary(self) -> dict:
        return {
            'reads_seen': self.reads_seen,
            'reads_low_quality': self.reads_low_quality,
            'reads_unalignable': self.reads_unalignable,
            'reads_aligned': self.reads_aligned,
            'pct_reads_aligned': 100 * self.reads_aligned / self.reads_seen if self.reads_seen > 0 else 0,
            'events_pooled': self.events_pooled,
            'positions_fitted': self.positions_fitted,
            'positions_degenerate': self.positions_degenerate,
        }


class PoreModelTrainer:
    """
    Trains per-position current distributions from a corpus of reads.

    Args:
        pore_model: k-mer table seeding the match states and the EM fit
        config: training configuration (defaults if None)
        normaliser: callable (read, pore_model, kmers) -> EventData, where
            kmers are the k-mers the read's graph models; defaults to event
            detection followed by method-of-moments normalisation
        verbose: show a progress bar and report skipped positions
    """

    def __init__(self, pore_model: PoreModel, config: Optional[TrainingConfig] = None,
                 normaliser: Optional[Normaliser] = None, verbose: bool = False):
        self.pore_model = pore_model
        self.config = config if config is not None else TrainingConfig()
        self.config.validate()
        if self.config.kmer_length != pore_model.k:
            raise ValueError(
                f"Config k-mer length {self.config.kmer_length} does not match "
                f"pore model k-mer length {pore_model.k}"
            )
        self.normaliser = normaliser if normaliser is not None else segment_and_normalise
        self.verbose = verbose

        self.pileup = EventPileup()
        self.stats = TrainingStats()

    def align(self, read: TrainingRead, reference: str) -> Optional[Alignment]:
        """
        Normalise and align one read.

        Returns None if the read fails the quality filter.

        Raises:
            UnalignableError: ROI outside the reference or too short, or no
                Viterbi path
        """
        lower, upper = read.roi_bounds
        if not 0 <= lower < upper <= len(reference):
            raise UnalignableError(
                f"ROI [{lower}, {upper}) lies outside the reference of length {len(reference)}"
            )

        window = reference[lower:upper]
        kmers = modelled_kmers(window, self.config.kmer_length)

        event_data = self.normaliser(read, self.pore_model, kmers)
        if abs(event_data.quality_score) > self.config.max_quality:
            return None

        return align_read(window, lower, event_data.normalised_events,
                          self.pore_model, self.config)

    def process_read(self, read: TrainingRead, reference: str) -> Optional[Alignment]:
        """Align one read and pool its events; skips unalignable reads."""
        self.stats.reads_seen += 1
        try:
            alignment = self.align(read, reference)
        except UnalignableError as e:
            self.stats.reads_unalignable += 1
            if self.verbose:
                tqdm.write(f"Skipping read {read.read_number}: {e}")
            return None

        if alignment is None:
            self.stats.reads_low_quality += 1
            return None

        self.stats.reads_aligned += 1
        self.stats.events_pooled += self.pileup.add_alignment(alignment, self.config.bounds)
        return alignment

    def align_corpus(self, reads: Iterable[TrainingRead], reference: str,
                     total: Optional[int] = None) -> EventPileup:
        iterator = reads
        if self.verbose:
            iterator = tqdm(reads, total=total, desc="Aligning", unit="read")
        for read in iterator:
            self.process_read(read, reference)
        return self.pileup

    def fit_position(self, position: int, events: np.ndarray, reference: str) -> MixtureFit:
        """
        Fit the two-component mixture at one position.

        Component 1 is seeded at the pore model's distribution for the
        position's k-mer, component 2 at the same std with the mean offset
        by config.second_component_offset.

        Raises:
            DegenerateFitError: the pool cannot be fitted
        """
        kmer = reference[position:position + self.config.kmer_length]
        ont_mean, ont_std = self.pore_model.lookup(kmer)

        mu2 = ont_mean + self.config.second_component_offset
        w1, m1, s1, w2, m2, s2 = gaussian_mixture_em(
            ont_mean, ont_std, mu2, ont_std, events,
            tolerance=self.config.em_tolerance,
            max_iter=self.config.em_max_iter,
        )
        return MixtureFit(kmer, ont_mean, ont_std, w1, m1, s1, w2, m2, s2, position=position)

    def fit_pileup(self, reference: str) -> List[MixtureFit]:
        """Fit every pooled position in ascending order; degenerate positions are dropped."""
        fits = []
        for position, events in self.pileup.items():
            try:
                fit = self.fit_position(position, events, reference)
            except DegenerateFitError as e:
                self.stats.positions_degenerate += 1
                kmer = reference[position:position + self.config.kmer_length]
                self.stats.degenerate_kmers.append(kmer)
                if self.verbose:
                    print(f"{e}\nAborted training on: {kmer}")
                continue
            fits.append(fit)
            self.stats.positions_fitted += 1
        return fits

    def train(self, reads: Iterable[TrainingRead], reference: str,
              total: Optional[int] = None) -> List[MixtureFit]:
        self.align_corpus(reads, reference, total=total)
        return self.fit_pileup(reference)


def train_from_file(training_data: str, pore_model: PoreModel, output: str,
                    config: Optional[TrainingConfig] = None,
                    reference: Optional[str] = None,
                    normaliser: Optional[Normaliser] = None,
                    include_kl: bool = False,
                    verbose: bool = False) -> TrainingStats:
    """
    Train from a `.foh` file and write the trained model.

    Args:
        reference: overrides the reference sequence stored in the file
    """
    trainer = PoreModelTrainer(pore_model, config=config, normaliser=normaliser, verbose=verbose)

    with TrainingDataFile(training_data) as foh:
        ref = reference if reference is not None else foh.reference
        fits = trainer.train(foh, ref, total=foh.expected_reads)

    write_trained_model(fits, output, include_kl=include_kl)
    return trainer.stats
