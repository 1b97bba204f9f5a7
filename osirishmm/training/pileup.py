"""Event pool: reference position -> normalised events aligned there."""

from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np


class EventPileup:
    """
    Grows monotonically across the corpus and is read once for fitting.
    Order within a position is irrelevant to the fitter, so pileups built
    over disjoint sets of reads can be merged by appending.
    """

    def __init__(self):
        self._pool: Dict[int, List[float]] = defaultdict(list)

    def add(self, position: int, event: float):
        self._pool[int(position)].append(float(event))

    def add_alignment(self, alignment, bounds: Optional[Tuple[int, int]] = None) -> int:
        """Pool an alignment's events; returns how many were kept."""
        kept = 0
        for pos, event in zip(alignment.positions, alignment.events):
            if bounds is not None and not bounds[0] <= pos < bounds[1]:
                continue
            self.add(pos, event)
            kept += 1
        return kept

    def merge(self, other: 'EventPileup'):
        for pos, events in other._pool.items():
            self._pool[pos].extend(events)

    def __len__(self):
        return len(self._pool)

    def __contains__(self, position: int) -> bool:
        return position in self._pool

    def positions(self) -> List[int]:
        return sorted(self._pool)

    def events(self, position: int) -> np.ndarray:
        return np.array(self._pool.get(position, []))

    def items(self) -> Iterator[Tuple[int, np.ndarray]]:
        """(position, events) in ascending position order."""
        for pos in self.positions():
            yield pos, np.array(self._pool[pos])

    def total_events(self) -> int:
        return sum(len(v) for v in self._pool.values())
