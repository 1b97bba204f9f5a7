"""
Tests for the k-mer pore-model table.
"""
import os
import pytest
import numpy as np

from osirishmm.core.pore_model import PoreModel


def write_tsv(path, lines):
    with open(path, 'w') as f:
        f.write('\n'.join(lines) + '\n')
    return path


class TestPoreModel:

    def test_lookup(self, pore_model):
        assert pore_model.k == 5
        assert pore_model.lookup('AAAAA') == (60.0, 1.0)
        assert 'AAAAA' in pore_model
        assert 'CCCCC' not in pore_model

    def test_missing_kmer(self, pore_model):
        with pytest.raises(KeyError):
            pore_model.lookup('CCCCC')

    def test_empty(self):
        with pytest.raises(ValueError):
            PoreModel({})

    def test_mixed_lengths(self):
        with pytest.raises(ValueError):
            PoreModel({'AAAAA': (1.0, 1.0), 'AAAA': (2.0, 1.0)})

    def test_kmers_and_levels(self, pore_model):
        assert list(pore_model.kmers('AAAAATG')) == ['AAAAA', 'AAAAT', 'AAATG']
        means, stds = pore_model.expected_levels('AAAAATG')
        np.testing.assert_array_equal(means, [60.0, 65.0, 70.0])
        np.testing.assert_array_equal(stds, [1.0, 1.0, 1.0])

    def test_levels_of_short_sequence(self, pore_model):
        means, stds = pore_model.expected_levels('AAA')
        assert len(means) == 0 and len(stds) == 0


class TestFromTsv:

    def test_header_and_comments(self, temp_dir):
        path = write_tsv(os.path.join(temp_dir, 'model.tsv'), [
            '#model_name\ttemplate_r9.4',
            'kmer\tlevel_mean\tlevel_stdv\tsd_mean',
            'AAAAA\t80.5\t1.5\t0.9',
            'aaaac\t82.25\t2.0\t0.8',
        ])
        model = PoreModel.from_tsv(path)

        assert len(model) == 2
        assert model.lookup('AAAAA') == (80.5, 1.5)
        assert model.lookup('AAAAC') == (82.25, 2.0)

    def test_without_header(self, temp_dir):
        path = write_tsv(os.path.join(temp_dir, 'model.tsv'), [
            'AAA\t80.0\t1.0',
            'AAC\t81.0\t1.0',
        ])
        model = PoreModel.from_tsv(path)
        assert model.k == 3

    def test_malformed_row(self, temp_dir):
        path = write_tsv(os.path.join(temp_dir, 'model.tsv'), [
            'kmer\tlevel_mean\tlevel_stdv',
            'AAAAA\tabc\t1.0',
        ])
        with pytest.raises(ValueError):
            PoreModel.from_tsv(path)
