"""
osirishmm hidden state graph

Provides:
1. State / StateRole - structured state identity (position, role, k-mer)
2. HiddenMarkovModel - builder contract (add_state, add_transition, finalise)
3. Viterbi decoding over a graph mixing silent and emitting states,
   compiled with numba

States are indexed in insertion order with start = 0 and end = 1. Silent
states never consume an observation, so at each observation index the
emitting states are relaxed first (from the previous index) and silent
states are then relaxed in a topological order of the silent-to-silent
edges. A cycle through silent states only is rejected at finalise().
"""

import heapq
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
from numba import jit

from osirishmm.core.distributions import Distribution, SilentDistribution
from osirishmm.core.errors import ModelConstructionError, UnalignableError
from osirishmm.core.log_space import eln, ln_prod, ln_greater_than


class StateRole(Enum):
    """Role of a state within one reference-position module."""
    START = 'start'
    END = 'end'
    SKIP_START = 'SS'
    DELETION = 'D'
    INSERTION = 'I'
    MATCH1 = 'M1'
    MATCH2 = 'M2'
    SKIP_END = 'SE'
    OTHER = 'other'

    @property
    def is_match(self) -> bool:
        return self in (StateRole.MATCH1, StateRole.MATCH2)

    @property
    def is_emitting(self) -> bool:
        return self in (StateRole.INSERTION, StateRole.MATCH1, StateRole.MATCH2)


@dataclass(eq=False)
class State:
    """
    A named hidden state.

    The distribution is shared, not owned: a single Uniform or Silent
    instance is typically bound to many states. `weight` is the default
    weight used by add_transition() when none is given. States in the
    same non-empty `tied_group` must share one distribution instance.
    """
    name: str
    distribution: Distribution
    meta: str = ''
    tied_group: str = ''
    weight: float = 1.0
    position: Optional[int] = None
    role: StateRole = StateRole.OTHER

    @property
    def is_silent(self) -> bool:
        return self.distribution.is_silent

    def __repr__(self):
        return f"State({self.name!r})"


# =============================================================================
# Numba-compiled Viterbi kernel
# =============================================================================

@jit(nopython=True, cache=False)
def _viterbi_numba(log_emit, emitting, silent_order, pred_indptr, pred_src,
                   pred_logw, start):
    """
    Viterbi dynamic programming over a general state graph.

    Args:
        log_emit: (n_states, T) emission log-densities (NaN = zero)
        emitting: (n_states,) bool, False for silent states
        silent_order: silent state indices in topological order
        pred_indptr, pred_src, pred_logw: incoming edges in CSR form,
            sources sorted ascending within each destination
        start: index of the start state

    Returns:
        score: (T + 1, n_states) best log-probability; row r is the state
            after consuming r observations
        back: (T + 1, n_states) predecessor index (-1 if unreachable)
    """
    n_states, T = log_emit.shape
    score = np.full((T + 1, n_states), np.nan)
    back = np.full((T + 1, n_states), -1, dtype=np.int64)
    score[0, start] = 0.0

    for r in range(T + 1):
        if r > 0:
            # Emitting states consume observation r - 1
            for s in range(n_states):
                if not emitting[s]:
                    continue
                e = log_emit[s, r - 1]
                best = np.nan
                arg = -1
                for k in range(pred_indptr[s], pred_indptr[s + 1]):
                    p = pred_src[k]
                    cand = ln_prod(score[r - 1, p], ln_prod(pred_logw[k], e))
                    # Strict comparison: lowest-index predecessor wins ties
                    if ln_greater_than(cand, best):
                        best = cand
                        arg = p
                score[r, s] = best
                back[r, s] = arg

        for j in range(silent_order.shape[0]):
            s = silent_order[j]
            if s == start:
                continue
            best = np.nan
            arg = -1
            for k in range(pred_indptr[s], pred_indptr[s + 1]):
                p = pred_src[k]
                cand = ln_prod(score[r, p], pred_logw[k])
                if ln_greater_than(cand, best):
                    best = cand
                    arg = p
            score[r, s] = best
            back[r, s] = arg

    return score, back


# =============================================================================
# Hidden state graph
# =============================================================================

class HiddenMarkovModel:
    """
    Directed graph of named states with weighted transitions.

    Built with add_state() / add_transition(), locked with finalise(), then
    decoded with viterbi(). Transition weights are linear-space and are
    expected to be normalised per source state by the caller.
    """

    def __init__(self, name: str = 'model'):
        self.name = name
        silent = SilentDistribution()
        self.start = State('start', silent, role=StateRole.START)
        self.end = State('end', silent, role=StateRole.END)

        self.states: List[State] = []
        self._index: Dict[str, int] = {}
        self._transitions: Dict[int, Dict[int, float]] = defaultdict(dict)
        self.finalised = False

        # Filled by finalise()
        self._emitting: Optional[np.ndarray] = None
        self._silent_order: Optional[np.ndarray] = None
        self._pred_indptr: Optional[np.ndarray] = None
        self._pred_src: Optional[np.ndarray] = None
        self._pred_logw: Optional[np.ndarray] = None

        self._register(self.start)
        self._register(self.end)

    def __len__(self):
        return len(self.states)

    @property
    def n_states(self) -> int:
        return len(self.states)

    def _register(self, state: State):
        if state.name in self._index:
            raise ModelConstructionError(f"Duplicate state name: {state.name!r}")
        self._index[state.name] = len(self.states)
        self.states.append(state)

    def _check_mutable(self):
        if self.finalised:
            raise ModelConstructionError(
                f"Model {self.name!r} is finalised; no further states or transitions may be added"
            )

    def index_of(self, state: State) -> int:
        """Index of a registered state."""
        idx = self._index.get(state.name)
        if idx is None or self.states[idx] is not state:
            raise ModelConstructionError(f"State {state.name!r} is not registered in {self.name!r}")
        return idx

    def add_state(self, state: State):
        self._check_mutable()
        self._register(state)

    def add_states(self, states):
        for state in states:
            self.add_state(state)

    def add_transition(self, src: State, dst: State, weight: Optional[float] = None):
        """Add an edge src -> dst. weight defaults to src.weight."""
        self._check_mutable()
        i = self.index_of(src)
        j = self.index_of(dst)
        if weight is None:
            weight = src.weight
        if not 0.0 < weight <= 1.0:
            raise ModelConstructionError(
                f"Transition weight {src.name} -> {dst.name} must be in (0, 1], got {weight}"
            )
        if j in self._transitions[i]:
            raise ModelConstructionError(f"Duplicate transition {src.name} -> {dst.name}")
        if dst is self.start:
            raise ModelConstructionError("The start state cannot have incoming transitions")
        if src is self.end:
            raise ModelConstructionError("The end state cannot have outgoing transitions")
        self._transitions[i][j] = float(weight)

    def transition_weight(self, src: State, dst: State) -> float:
        """Linear-space weight of src -> dst (0.0 if absent)."""
        return self._transitions[self.index_of(src)].get(self.index_of(dst), 0.0)

    def tied_states(self, group: str) -> List[State]:
        return [s for s in self.states if group and s.tied_group == group]

    def finalise(self):
        """Lock the structure and compile the decoder's index tables."""
        self._check_mutable()
        n = self.n_states

        for i, s in enumerate(self.states):
            if s is self.start or s is self.end:
                continue
            if not self._transitions.get(i):
                raise ModelConstructionError(f"State {s.name!r} has no outgoing transition")

        groups = defaultdict(set)
        for s in self.states:
            if s.tied_group:
                groups[s.tied_group].add(id(s.distribution))
        for group, dists in groups.items():
            if len(dists) > 1:
                raise ModelConstructionError(f"Tied group {group!r} binds more than one distribution")

        emitting = np.array([not s.is_silent for s in self.states], dtype=np.bool_)

        incoming = defaultdict(list)
        for i, out in self._transitions.items():
            for j, w in out.items():
                incoming[j].append((i, w))

        pred_indptr = np.zeros(n + 1, dtype=np.int64)
        pred_src = []
        pred_logw = []
        for j in range(n):
            for i, w in sorted(incoming[j]):
                pred_src.append(i)
                pred_logw.append(eln(w))
            pred_indptr[j + 1] = len(pred_src)

        self._emitting = emitting
        self._silent_order = self._topological_silent_order(emitting, incoming)
        self._pred_indptr = pred_indptr
        self._pred_src = np.array(pred_src, dtype=np.int64)
        self._pred_logw = np.array(pred_logw, dtype=np.float64)
        self.finalised = True

    def _topological_silent_order(self, emitting, incoming) -> np.ndarray:
        """Kahn's algorithm over silent -> silent edges, lowest index first."""
        silent = [i for i in range(self.n_states) if not emitting[i]]
        indegree = {i: 0 for i in silent}
        for j in silent:
            for i, _ in incoming[j]:
                if not emitting[i]:
                    indegree[j] += 1

        ready = [i for i in silent if indegree[i] == 0]
        heapq.heapify(ready)
        order = []
        while ready:
            i = heapq.heappop(ready)
            order.append(i)
            for j in self._transitions.get(i, {}):
                if emitting[j]:
                    continue
                indegree[j] -= 1
                if indegree[j] == 0:
                    heapq.heappush(ready, j)

        if len(order) != len(silent):
            cyclic = sorted(self.states[i].name for i in silent if indegree[i] > 0)
            raise ModelConstructionError(f"Cycle through silent states: {cyclic}")
        return np.array(order, dtype=np.int64)

    def _emission_table(self, obs: np.ndarray) -> np.ndarray:
        """(n_states, T) emission log-densities; shared distributions computed once."""
        table = np.full((self.n_states, len(obs)), np.nan)
        cache = {}
        for i, s in enumerate(self.states):
            if not self._emitting[i]:
                continue
            key = id(s.distribution)
            if key not in cache:
                cache[key] = s.distribution.log_density(obs)
            table[i] = cache[key]
        return table

    def viterbi(self, observations) -> Tuple[float, List[State]]:
        """
        Most likely state path for an observation sequence.

        Args:
            observations: sequence of floats

        Returns:
            (log_prob, path) where path lists every state visited between
            start and end (exclusive), silent states included

        Raises:
            UnalignableError: no path reaches the end state
        """
        if not self.finalised:
            raise ModelConstructionError(f"Model {self.name!r} must be finalised before decoding")

        obs = np.asarray(observations, dtype=np.float64).ravel()
        log_emit = self._emission_table(obs)

        start = self.index_of(self.start)
        end = self.index_of(self.end)
        score, back = _viterbi_numba(log_emit, self._emitting, self._silent_order,
                                     self._pred_indptr, self._pred_src, self._pred_logw,
                                     start)

        T = len(obs)
        log_prob = score[T, end]
        if np.isnan(log_prob):
            raise UnalignableError(
                f"No path through {self.name!r} explains {T} observations"
            )

        # Backtrace from (T, end) to (0, start)
        path = []
        r, s = T, end
        while not (r == 0 and s == start):
            p = back[r, s]
            if s != end:
                path.append(self.states[s])
            if self._emitting[s]:
                r -= 1
            s = p
        path.reverse()

        return float(log_prob), path
