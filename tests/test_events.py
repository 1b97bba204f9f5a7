"""
Tests for event detection and shift/scale normalisation.
"""
import pytest
import numpy as np

from osirishmm.core.training_data import TrainingRead
from osirishmm.training.events import detect_events, normalise_events, segment_and_normalise


REFERENCE = "AAAAATGCGCATTGACCTAG"


def kmers_of(sequence, k=5):
    return [sequence[i:i + k] for i in range(len(sequence) - k + 1)]


def step_signal(levels, samples_per_level=20):
    return np.repeat(np.asarray(levels, dtype=np.float64), samples_per_level)


class TestDetectEvents:

    def test_step_signal(self):
        events = detect_events(step_signal([80.0, 100.0, 90.0]))
        np.testing.assert_allclose(events, [80.0, 100.0, 90.0])

    def test_flat_signal_is_one_event(self):
        events = detect_events(np.full(50, 75.0))
        np.testing.assert_allclose(events, [75.0])

    def test_empty_signal(self):
        assert len(detect_events(np.array([]))) == 0

    def test_short_signal(self):
        events = detect_events([1.0, 2.0, 3.0], window=5)
        np.testing.assert_allclose(events, [2.0])

    def test_small_steps_below_threshold(self):
        events = detect_events(step_signal([80.0, 80.5, 80.0]), threshold=1.0)
        assert len(events) == 1


class TestNormaliseEvents:

    @pytest.fixture
    def levels(self, pore_model):
        return np.array([pore_model.lookup(km)[0] for km in kmers_of(REFERENCE)])

    def test_already_normalised(self, pore_model, levels):
        result = normalise_events(levels, kmers_of(REFERENCE), pore_model)
        assert result.scale == pytest.approx(1.0)
        assert result.shift == pytest.approx(0.0, abs=1e-9)
        assert result.quality_score == pytest.approx(0.0, abs=1e-9)
        np.testing.assert_allclose(result.normalised_events, levels)

    def test_recovers_shift_and_scale(self, pore_model, levels):
        result = normalise_events(2.0 * levels + 10.0, kmers_of(REFERENCE), pore_model)
        assert result.scale == pytest.approx(0.5)
        assert result.shift == pytest.approx(-5.0)
        np.testing.assert_allclose(result.normalised_events, levels)
        assert result.quality_score < 1e-6

    def test_fits_only_the_given_kmers(self, pore_model, levels):
        # One event per modelled position: the trailing context k-mer has no event
        modelled = kmers_of(REFERENCE)[:-1]
        result = normalise_events(3.0 * levels[:-1] - 40.0, modelled, pore_model)
        assert result.scale == pytest.approx(1.0 / 3.0)
        np.testing.assert_allclose(result.normalised_events, levels[:-1])
        assert result.quality_score == pytest.approx(0.0, abs=1e-9)

    def test_uniform_noise_fails_quality(self, pore_model):
        rng = np.random.default_rng(0)
        result = normalise_events(rng.uniform(0.0, 1.0, 40), kmers_of(REFERENCE), pore_model)
        assert result.quality_score > 1.0

    def test_reversed_read_fails_quality(self, pore_model, levels):
        result = normalise_events(levels[::-1], kmers_of(REFERENCE), pore_model)
        assert result.quality_score > 1.0

    def test_too_few_events(self, pore_model):
        result = normalise_events([80.0], kmers_of(REFERENCE), pore_model)
        assert result.quality_score == np.inf

    def test_kmers_unknown_to_pore_model(self, pore_model, levels):
        result = normalise_events(levels, kmers_of("CCCCCCCC"), pore_model)
        assert result.quality_score == np.inf

    def test_lowercase_kmers(self, pore_model, levels):
        result = normalise_events(levels, kmers_of(REFERENCE.lower()), pore_model)
        assert result.quality_score == pytest.approx(0.0, abs=1e-9)


class TestSegmentAndNormalise:

    def test_defaults_to_basecall_kmers(self, pore_model):
        levels = [pore_model.lookup(km)[0] for km in kmers_of(REFERENCE)]
        read = TrainingRead(basecalls=REFERENCE, roi_bounds=(0, len(REFERENCE)),
                            raw=3.0 * step_signal(levels) - 40.0)

        result = segment_and_normalise(read, pore_model)

        assert len(result.normalised_events) == len(levels)
        np.testing.assert_allclose(result.normalised_events, levels, atol=1e-6)
        assert result.scale == pytest.approx(1.0 / 3.0)

    def test_one_segment_per_modelled_position(self, pore_model):
        modelled = kmers_of(REFERENCE)[:len(REFERENCE) - 5]
        levels = [pore_model.lookup(km)[0] for km in modelled]
        read = TrainingRead(basecalls=REFERENCE, roi_bounds=(0, len(REFERENCE)),
                            raw=step_signal(levels))

        result = segment_and_normalise(read, pore_model, modelled)

        np.testing.assert_allclose(result.normalised_events, levels, atol=1e-6)
        assert result.scale == pytest.approx(1.0)
        assert result.quality_score < 1e-6
