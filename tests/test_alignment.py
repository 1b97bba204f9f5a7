"""
Tests for the per-read module grammar and event alignment.
"""
import pytest
import numpy as np

from osirishmm.core.errors import UnalignableError
from osirishmm.core.hmm import StateRole
from osirishmm.training.alignment import (
    MODULE_ROLES,
    align_events,
    align_read,
    build_read_model,
    modelled_kmers,
)
from osirishmm.training.parameters import TrainingConfig
from osirishmm.training.pileup import EventPileup


class TestModelledKmers:

    def test_last_kmer_is_context_only(self, reference):
        kmers = modelled_kmers(reference, 5)
        assert len(kmers) == len(reference) - 5
        assert kmers[0] == reference[:5]
        assert kmers[-1] == reference[-6:-1]

    def test_too_short(self):
        with pytest.raises(UnalignableError):
            modelled_kmers("ACGTA", 5)


class TestBuildReadModel:

    def test_state_count_and_names(self, reference, pore_model):
        hmm = build_read_model(reference, 0, pore_model, TrainingConfig())
        n_modules = len(reference) - 5
        assert hmm.n_states == 6 * n_modules + 2
        names = {s.name for s in hmm.states}
        for role in ('SS', 'D', 'I', 'M1', 'M2', 'SE'):
            assert f"0_{role}" in names
            assert f"{n_modules - 1}_{role}" in names
        assert hmm.finalised

    def test_structured_identity(self, reference, pore_model):
        hmm = build_read_model(reference[3:], 3, pore_model, TrainingConfig())
        m1 = next(s for s in hmm.states if s.name == '3_M1')
        m2 = next(s for s in hmm.states if s.name == '3_M2')
        assert m1.position == 3
        assert m1.role is StateRole.MATCH1
        assert m1.meta == reference[3:8]
        assert m1.distribution is m2.distribution
        assert m1.tied_group == m2.tied_group == '3_match'

    def test_every_module_has_six_roles(self, reference, pore_model):
        hmm = build_read_model(reference, 0, pore_model, TrainingConfig())
        for pos in range(len(reference) - 5):
            roles = [s.role for s in hmm.states if s.position == pos]
            assert roles == list(MODULE_ROLES)

    def test_shared_insertion_distribution(self, reference, pore_model):
        hmm = build_read_model(reference, 0, pore_model, TrainingConfig())
        inserts = [s for s in hmm.states if s.role is StateRole.INSERTION]
        assert len({id(s.distribution) for s in inserts}) == 1

    def test_start_and_end_transitions(self, reference, pore_model):
        config = TrainingConfig()
        t = config.transitions
        hmm = build_read_model(reference, 0, pore_model, config)
        by_name = {s.name: s for s in hmm.states}
        last = len(reference) - 6

        assert hmm.transition_weight(hmm.start, by_name['0_SS']) == 0.5
        assert hmm.transition_weight(hmm.start, by_name['0_D']) == 0.5
        assert hmm.transition_weight(by_name[f'{last}_D'], hmm.end) == pytest.approx(
            t.d_to_next_d + t.d_to_next_ss)
        assert hmm.transition_weight(by_name[f'{last}_SE'], hmm.end) == pytest.approx(
            t.se_to_next_ss + t.se_to_next_d)

    def test_window_too_short(self, pore_model):
        with pytest.raises(UnalignableError):
            build_read_model("AAAAA", 0, pore_model, TrainingConfig())

    def test_missing_kmer(self, pore_model):
        with pytest.raises(KeyError):
            build_read_model("CCCCCCCC", 0, pore_model, TrainingConfig())


class TestAlignEvents:

    def test_seeded_events_align_to_their_positions(self, reference, pore_model, seeded_events):
        events = seeded_events(reference)
        alignment = align_read(reference, 0, events, pore_model, TrainingConfig())

        n_modules = len(reference) - 5
        assert len(alignment) == n_modules
        np.testing.assert_array_equal(alignment.positions, np.arange(n_modules))
        assert all(role.is_match for role in alignment.roles)

        pileup = EventPileup()
        pileup.add_alignment(alignment)
        assert len(pileup) == n_modules
        assert pileup.positions() == list(range(n_modules))

    def test_offset_region_of_interest(self, reference, pore_model, seeded_events):
        window = reference[4:16]
        events = seeded_events(window)
        alignment = align_read(window, 4, events, pore_model, TrainingConfig())
        np.testing.assert_array_equal(alignment.positions, 4 + np.arange(len(window) - 5))

    def test_missing_event_is_a_deletion(self, reference, pore_model, seeded_events):
        events = np.delete(seeded_events(reference), 6)
        alignment = align_read(reference, 0, events, pore_model, TrainingConfig())

        assert len(alignment) == len(events)
        assert 6 not in alignment.positions
        assert np.all(np.diff(alignment.positions) >= 0)

    def test_positions_never_decrease(self, reference, pore_model):
        rng = np.random.default_rng(3)
        events = rng.uniform(60.0, 130.0, 25)
        alignment = align_read(reference, 0, events, pore_model, TrainingConfig())

        assert len(alignment) == 25
        assert np.all(np.diff(alignment.positions) >= 0)
        assert all(role.is_emitting for role in alignment.roles)

    def test_deterministic(self, reference, pore_model, seeded_events):
        hmm = build_read_model(reference, 0, pore_model, TrainingConfig())
        events = seeded_events(reference)
        a = align_events(hmm, events)
        b = align_events(hmm, events)
        assert a.log_prob == b.log_prob
        np.testing.assert_array_equal(a.positions, b.positions)

    def test_event_outside_insertion_bounds_is_a_match(self, reference, pore_model, seeded_events):
        events = seeded_events(reference)
        events[3] = 1000.0
        alignment = align_read(reference, 0, events, pore_model, TrainingConfig())

        assert len(alignment) == len(events)
        assert alignment.roles[3].is_match
