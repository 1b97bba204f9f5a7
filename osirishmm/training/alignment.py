"""
Per-read state graph and event-to-reference alignment.

Each reference position i of the read's region of interest gets a module of
six states:

    SS  skip-start (silent)     D   deletion (silent)
    I   insertion (Uniform)     M1  match (Normal, position's k-mer)
    M2  match (Normal, shared)  SE  skip-end (silent)

Modules are chained left to right, so a decoded path never revisits an
earlier reference position.
"""

from dataclasses import dataclass
from typing import List

import numpy as np

from osirishmm.core.distributions import NormalDistribution, SilentDistribution, UniformDistribution
from osirishmm.core.errors import UnalignableError
from osirishmm.core.hmm import HiddenMarkovModel, State, StateRole
from osirishmm.core.pore_model import PoreModel
from osirishmm.training.parameters import TrainingConfig


MODULE_ROLES = (
    StateRole.SKIP_START,
    StateRole.DELETION,
    StateRole.INSERTION,
    StateRole.MATCH1,
    StateRole.MATCH2,
    StateRole.SKIP_END,
)


@dataclass
class Module:
    """The six states of one reference position."""
    position: int
    kmer: str
    ss: State
    d: State
    i: State
    m1: State
    m2: State
    se: State

    def states(self) -> List[State]:
        return [self.ss, self.d, self.i, self.m1, self.m2, self.se]


@dataclass
class Alignment:
    """Viterbi alignment of one read's events to reference positions."""
    log_prob: float
    positions: np.ndarray
    roles: List[StateRole]
    events: np.ndarray

    def __len__(self):
        return len(self.events)


def modelled_kmers(window: str, k: int) -> List[str]:
    """
    K-mers of the positions a window models, one per module.

    A window of length L holds L - k modules; its last k-mer is context only.

    Raises:
        UnalignableError: window too short to hold a single module
    """
    n_modules = len(window) - k
    if n_modules < 1:
        raise UnalignableError(
            f"Region of interest of length {len(window)} is too short for {k}-mer modules"
        )
    return [window[idx:idx + k] for idx in range(n_modules)]


def build_read_model(window: str, offset: int, pore_model: PoreModel,
                     config: TrainingConfig) -> HiddenMarkovModel:
    """
    Build and finalise the state graph for one read.

    Args:
        window: reference sequence covered by the read's region of interest
        offset: absolute reference index of window[0]
        pore_model: k-mer table seeding each position's Normal distribution
        config: transition weights and insertion bounds

    Raises:
        UnalignableError: window too short to hold a single module
        KeyError: a k-mer of the window is missing from the pore model
    """
    kmers = modelled_kmers(window, config.kmer_length)

    t = config.transitions
    hmm = HiddenMarkovModel(name=f"roi_{offset}_{offset + len(window)}")

    silent = SilentDistribution()
    insertion = UniformDistribution(*config.insertion_bounds)

    modules = []
    for idx, kmer in enumerate(kmers):
        pos = offset + idx
        mean, std = pore_model.lookup(kmer)
        match = NormalDistribution(mean, std)
        loc = str(pos)

        def state(role, dist, tied=''):
            return State(f"{loc}_{role.value}", dist, meta=kmer, tied_group=tied,
                         position=pos, role=role)

        m = Module(
            position=pos, kmer=kmer,
            ss=state(StateRole.SKIP_START, silent),
            d=state(StateRole.DELETION, silent),
            i=state(StateRole.INSERTION, insertion),
            m1=state(StateRole.MATCH1, match, loc + '_match'),
            m2=state(StateRole.MATCH2, match, loc + '_match'),
            se=state(StateRole.SKIP_END, silent),
        )
        hmm.add_states(m.states())

        # internal to one position
        hmm.add_transition(m.ss, m.m1, t.ss_to_m1)
        hmm.add_transition(m.ss, m.m2, t.ss_to_m2)
        hmm.add_transition(m.d, m.i, t.d_to_i)
        hmm.add_transition(m.i, m.i, t.i_to_i)
        hmm.add_transition(m.i, m.ss, t.i_to_ss)
        hmm.add_transition(m.m1, m.m1, t.m1_to_m1)
        hmm.add_transition(m.m1, m.se, t.m1_to_se)
        hmm.add_transition(m.m2, m.m2, t.m2_to_m2)
        hmm.add_transition(m.m2, m.se, t.m2_to_se)
        hmm.add_transition(m.se, m.i, t.se_to_i)

        modules.append(m)

    # between positions
    for prev, nxt in zip(modules, modules[1:]):
        hmm.add_transition(prev.d, nxt.d, t.d_to_next_d)
        hmm.add_transition(prev.d, nxt.ss, t.d_to_next_ss)
        hmm.add_transition(prev.i, nxt.ss, t.i_to_next_ss)
        hmm.add_transition(prev.se, nxt.ss, t.se_to_next_ss)
        hmm.add_transition(prev.se, nxt.d, t.se_to_next_d)

    first, last = modules[0], modules[-1]
    hmm.add_transition(hmm.start, first.ss, 0.5)
    hmm.add_transition(hmm.start, first.d, 0.5)

    hmm.add_transition(last.d, hmm.end, t.d_to_next_d + t.d_to_next_ss)
    hmm.add_transition(last.i, hmm.end, t.i_to_next_ss)
    hmm.add_transition(last.se, hmm.end, t.se_to_next_ss + t.se_to_next_d)

    hmm.finalise()
    return hmm


def align_events(hmm: HiddenMarkovModel, events) -> Alignment:
    """
    Viterbi-align events and assign each one to a reference position.

    Raises:
        UnalignableError: no path explains the events
    """
    events = np.asarray(events, dtype=np.float64)
    log_prob, path = hmm.viterbi(events)

    emitting = [s for s in path if s.role.is_emitting]
    if len(emitting) != len(events):
        raise UnalignableError(
            f"Decoded path emits {len(emitting)} times for {len(events)} events"
        )

    return Alignment(
        log_prob=log_prob,
        positions=np.array([s.position for s in emitting], dtype=np.int64),
        roles=[s.role for s in emitting],
        events=events,
    )


def align_read(window: str, offset: int, events, pore_model: PoreModel,
               config: TrainingConfig) -> Alignment:
    """Build the read's state graph and align its normalised events."""
    hmm = build_read_model(window, offset, pore_model, config)
    return align_events(hmm, events)
