"""
Pore-model table: k-mer -> (mean, std) of the expected current level.

Tab-delimited files with the k-mer, mean and standard deviation in the
first three columns. Lines starting with 'kmer' (header) or '#' are
skipped.
"""

from typing import Dict, Iterable, Tuple

import numpy as np
import pandas as pd


class PoreModel:
    """Explicit k-mer lookup table, scoped to one training run."""

    def __init__(self, table: Dict[str, Tuple[float, float]]):
        if not table:
            raise ValueError("Pore model is empty")
        lengths = {len(k) for k in table}
        if len(lengths) != 1:
            raise ValueError(f"Pore model mixes k-mer lengths: {sorted(lengths)}")
        self._table = dict(table)
        self.k = lengths.pop()

    @classmethod
    def from_tsv(cls, filepath: str) -> 'PoreModel':
        df = pd.read_csv(filepath, sep='\t', header=None, comment='#',
                         usecols=[0, 1, 2], dtype={0: str})
        df.columns = ['kmer', 'mean', 'std']
        df = df[df['kmer'].str[:4] != 'kmer']
        try:
            means = df['mean'].astype(float)
            stds = df['std'].astype(float)
        except ValueError as e:
            raise ValueError(f"Malformed pore model row in {filepath}: {e}") from e
        if means.isna().any() or stds.isna().any():
            raise ValueError(f"Missing mean or std in pore model {filepath}")

        return cls({k.upper(): (m, s) for k, m, s in zip(df['kmer'], means, stds)})

    def __contains__(self, kmer: str) -> bool:
        return kmer in self._table

    def __len__(self):
        return len(self._table)

    def lookup(self, kmer: str) -> Tuple[float, float]:
        """(mean, std) for a k-mer. Raises KeyError if absent."""
        try:
            return self._table[kmer]
        except KeyError:
            raise KeyError(f"k-mer {kmer!r} not found in pore model") from None

    def kmers(self, sequence: str) -> Iterable[str]:
        """All k-mers of a sequence, left to right."""
        return (sequence[i:i + self.k] for i in range(len(sequence) - self.k + 1))

    def expected_levels(self, sequence: str) -> Tuple[np.ndarray, np.ndarray]:
        """Means and stds of every k-mer of a sequence."""
        pairs = [self.lookup(kmer) for kmer in self.kmers(sequence)]
        if not pairs:
            return np.array([]), np.array([])
        means, stds = zip(*pairs)
        return np.array(means), np.array(stds)
