"""FASTA reference provider with nucleotide alphabet validation."""

from typing import Dict

import pysam


ALPHABET = frozenset('ATGCNURYKMSWBDHV')


class Reference:
    """Named reference sequences, upper-cased."""

    def __init__(self, sequences: Dict[str, str]):
        self._sequences = dict(sequences)

    def __contains__(self, name: str) -> bool:
        return name in self._sequences

    def __len__(self):
        return len(self._sequences)

    @property
    def names(self):
        return list(self._sequences)

    def get(self, name: str) -> str:
        try:
            return self._sequences[name]
        except KeyError:
            raise KeyError(f"Reference {name!r} not found; available: {self.names}") from None


def validate_sequence(sequence: str, source: str = 'reference') -> str:
    """Upper-case a sequence and check it against the nucleotide alphabet."""
    seq = sequence.upper().replace('\r', '')
    illegal = set(seq) - ALPHABET
    if illegal:
        raise ValueError(f"Illegal character in {source}: {''.join(sorted(illegal))}")
    return seq


def load_reference(filepath: str) -> Reference:
    """
    Load every record of a FASTA file.

    Raises:
        ValueError: no records, or an illegal character in a sequence
    """
    sequences = {}
    with pysam.FastxFile(filepath) as fh:
        for record in fh:
            sequences[record.name] = validate_sequence(record.sequence or '',
                                                       f"{filepath}:{record.name}")

    if not sequences:
        raise ValueError(f"No fasta header (>) found in reference file {filepath}")
    return Reference(sequences)
