"""
Tests for FASTA reference loading.
"""
import os
import pytest

from osirishmm.core.reference import load_reference, validate_sequence


def write_fasta(path, records):
    with open(path, 'w') as f:
        for name, seq in records:
            f.write(f">{name}\n{seq}\n")
    return path


class TestValidateSequence:

    def test_uppercases(self):
        assert validate_sequence('acgtn') == 'ACGTN'

    def test_iupac_codes_allowed(self):
        assert validate_sequence('RYKMSWBDHV') == 'RYKMSWBDHV'

    def test_illegal_character(self):
        with pytest.raises(ValueError, match='X'):
            validate_sequence('ACGTX')


class TestLoadReference:

    def test_records(self, temp_dir):
        path = write_fasta(os.path.join(temp_dir, 'ref.fa'),
                           [('chr1', 'acgtacgt'), ('chr2', 'TTTTGGGG')])
        reference = load_reference(path)

        assert len(reference) == 2
        assert reference.names == ['chr1', 'chr2']
        assert reference.get('chr1') == 'ACGTACGT'
        assert 'chr2' in reference

    def test_missing_record(self, temp_dir):
        path = write_fasta(os.path.join(temp_dir, 'ref.fa'), [('chr1', 'ACGT')])
        with pytest.raises(KeyError):
            load_reference(path).get('chr9')

    def test_illegal_character(self, temp_dir):
        path = write_fasta(os.path.join(temp_dir, 'ref.fa'), [('chr1', 'ACGTZ')])
        with pytest.raises(ValueError):
            load_reference(path)
