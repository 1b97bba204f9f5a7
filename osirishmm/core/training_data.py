"""
Reader for `.foh` training data.

Layout:
    line 1      reference sequence
    line 2      number of reads in the file
    then, per read, three lines:
        base calls
        region-of-interest bounds "<lower> <upper>" (half-open)
        raw signal, space-separated floats
"""

from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np


@dataclass
class TrainingRead:
    """One read's worth of training data."""
    basecalls: str
    roi_bounds: Tuple[int, int]
    raw: np.ndarray
    read_number: int = 0

    @property
    def roi_length(self) -> int:
        return self.roi_bounds[1] - self.roi_bounds[0]


class TrainingDataFile:
    """
    Streaming `.foh` reader. Reads are loaded one at a time on iteration.

    Usage:
        with TrainingDataFile(path) as foh:
            for read in foh:
                ...
    """

    def __init__(self, filepath: str):
        self.filepath = filepath
        self._fh = open(filepath, 'r')
        self._line_no = 0
        try:
            self.reference = self._next_line('reference').strip().upper()
            count = self._next_line('read count').strip()
            try:
                self.expected_reads = int(count)
            except ValueError:
                raise ValueError(f"{filepath}:{self._line_no}: expected a read count, got {count!r}") from None
        except ValueError:
            self._fh.close()
            raise

    def _next_line(self, what: str) -> str:
        line = self._fh.readline()
        if not line:
            raise ValueError(f"{self.filepath}: truncated file, missing {what} at line {self._line_no + 1}")
        self._line_no += 1
        return line.rstrip('\n')

    def __iter__(self) -> Iterator[TrainingRead]:
        n = 0
        while True:
            line = self._fh.readline()
            if not line:
                return
            self._line_no += 1
            if not line.strip():
                continue

            basecalls = line.strip()
            bounds = self._next_line('ROI bounds').split()
            if len(bounds) != 2:
                raise ValueError(f"{self.filepath}:{self._line_no}: expected '<lower> <upper>', got {bounds}")
            try:
                lower, upper = int(bounds[0]), int(bounds[1])
            except ValueError:
                raise ValueError(f"{self.filepath}:{self._line_no}: non-integer ROI bounds {bounds}") from None

            signal = self._next_line('raw signal')
            try:
                raw = np.array(signal.split(), dtype=np.float64)
            except ValueError:
                raise ValueError(f"{self.filepath}:{self._line_no}: non-numeric raw signal") from None

            yield TrainingRead(basecalls=basecalls, roi_bounds=(lower, upper), raw=raw, read_number=n)
            n += 1

    def close(self):
        self._fh.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def read_training_data(filepath: str) -> Iterator[TrainingRead]:
    """Iterate over the reads of a `.foh` file."""
    with TrainingDataFile(filepath) as foh:
        yield from foh


def write_training_data(filepath: str, reference: str, reads) -> None:
    """Write reads in `.foh` layout. Used to build fixtures and subsets."""
    reads = list(reads)
    with open(filepath, 'w') as f:
        f.write(reference + '\n')
        f.write(f"{len(reads)}\n")
        for read in reads:
            f.write(read.basecalls + '\n')
            f.write(f"{read.roi_bounds[0]} {read.roi_bounds[1]}\n")
            f.write(' '.join(repr(float(v)) for v in read.raw) + '\n')
