"""
Training configuration.

TransitionParameters holds the fixed weights of the per-position module
grammar; TrainingConfig holds everything else a training run needs. Both
round-trip through JSON so a run's effective settings can be stored next
to its output.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class TransitionParameters:
    """
    Weights of the six-state module (SS, D, I, M1, M2, SE).

    Internal weights connect states of one reference position; the
    `*_to_next_*` weights connect position i to position i + 1.
    """
    # internal
    ss_to_m1: float = 0.5
    ss_to_m2: float = 0.5
    d_to_i: float = 0.1
    i_to_i: float = 0.25
    i_to_ss: float = 0.25
    m1_to_m1: float = 0.3
    m1_to_se: float = 0.7
    m2_to_m2: float = 0.3
    m2_to_se: float = 0.7
    se_to_i: float = 0.05
    # external
    d_to_next_d: float = 0.3
    d_to_next_ss: float = 0.6
    i_to_next_ss: float = 0.5
    se_to_next_ss: float = 0.85
    se_to_next_d: float = 0.1

    def outgoing(self) -> Dict[str, float]:
        """Total outgoing weight per module state."""
        return {
            'SS': self.ss_to_m1 + self.ss_to_m2,
            'D': self.d_to_i + self.d_to_next_d + self.d_to_next_ss,
            'I': self.i_to_i + self.i_to_ss + self.i_to_next_ss,
            'M1': self.m1_to_m1 + self.m1_to_se,
            'M2': self.m2_to_m2 + self.m2_to_se,
            'SE': self.se_to_i + self.se_to_next_ss + self.se_to_next_d,
        }

    def validate(self):
        for f in fields(self):
            w = getattr(self, f.name)
            if not 0.0 < w <= 1.0:
                raise ValueError(f"Transition weight {f.name} must be in (0, 1], got {w}")
        for state, total in self.outgoing().items():
            if abs(total - 1.0) > 1e-6:
                raise ValueError(f"Outgoing weights from {state} sum to {total}, expected 1")


@dataclass
class TrainingConfig:
    kmer_length: int = 5
    insertion_bounds: Tuple[float, float] = (50.0, 150.0)
    max_quality: float = 1.0
    em_tolerance: float = 1e-4
    em_max_iter: int = 1000
    second_component_offset: float = 1.0
    bounds: Optional[Tuple[int, int]] = None
    transitions: TransitionParameters = field(default_factory=TransitionParameters)

    def validate(self):
        if self.kmer_length < 1:
            raise ValueError(f"kmer_length must be positive, got {self.kmer_length}")
        lo, hi = self.insertion_bounds
        if not lo < hi:
            raise ValueError(f"insertion_bounds must satisfy lower < upper, got {self.insertion_bounds}")
        if self.em_max_iter < 1:
            raise ValueError(f"em_max_iter must be at least 1, got {self.em_max_iter}")
        if self.em_tolerance <= 0:
            raise ValueError(f"em_tolerance must be positive, got {self.em_tolerance}")
        if self.bounds is not None and not self.bounds[0] < self.bounds[1]:
            raise ValueError(f"bounds must satisfy lower < upper, got {self.bounds}")
        self.transitions.validate()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['insertion_bounds'] = list(self.insertion_bounds)
        d['bounds'] = list(self.bounds) if self.bounds is not None else None
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'TrainingConfig':
        known = {f.name for f in fields(cls)}
        d = {k: v for k, v in d.items() if k in known}
        transitions = TransitionParameters(**d.pop('transitions', {}))
        if 'insertion_bounds' in d:
            d['insertion_bounds'] = tuple(d['insertion_bounds'])
        if d.get('bounds') is not None:
            d['bounds'] = tuple(d['bounds'])
        return cls(transitions=transitions, **d)


def load_config(filepath: str) -> TrainingConfig:
    with open(filepath, 'r') as f:
        data = json.load(f)
    config = TrainingConfig.from_dict(data)
    config.validate()
    return config


def save_config(config: TrainingConfig, filepath: str, extra: Optional[Dict[str, Any]] = None):
    data = config.to_dict()
    if extra:
        data.update(extra)
    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2)
