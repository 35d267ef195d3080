from __future__ import annotations

import pytest

from wordy.mastery import (
    LegacyCounters,
    ModalCounters,
    compute_mastery,
    mastery_score,
    resolve_counters,
)
from wordy.schemas import Word
from wordy.srs.constants import CounterSlot


def _word(**fields) -> Word:
    base = {"id": "w", "text": "w", "next_review_at": 0, "created_at": 0, "updated_at": 0}
    base.update(fields)
    return Word(**base)


def test_unreviewed_word_has_zero_mastery():
    assert compute_mastery(_word()) == 0.0


def test_single_good_review_score():
    word = _word(
        srs_stability=2.5,
        times_shown=1,
        times_correct=1,
        lesson_correct=1,
    )
    # 0.6 * 2.5/21 + 0.4 * 1.0 * (0.5 + 0.5 * 1/3)
    assert compute_mastery(word) == pytest.approx(0.3381, abs=1e-4)


def test_breadth_rewards_more_modalities():
    one = _word(srs_stability=10.0, lesson_correct=6, times_correct=6, times_shown=6)
    three = _word(
        srs_stability=10.0,
        lesson_correct=2,
        matching_correct=2,
        translation_correct=2,
        times_correct=6,
        times_shown=6,
    )
    assert compute_mastery(three) > compute_mastery(one)


def test_mature_and_perfect_word_scores_one():
    word = _word(
        srs_stability=100.0,
        lesson_correct=1,
        matching_correct=1,
        translation_correct=1,
        times_correct=3,
        times_shown=3,
    )
    assert compute_mastery(word) == 1.0


def test_score_stays_in_unit_interval():
    word = _word(srs_stability=500.0, lesson_wrong=10, times_wrong=10, times_shown=10)
    score = compute_mastery(word)
    assert 0.0 <= score <= 1.0
    assert score == pytest.approx(0.6)


def test_modal_counters_resolved_per_slot():
    counters = resolve_counters(_word(matching_correct=2, matching_wrong=1, lesson_wrong=3))

    assert isinstance(counters, ModalCounters)
    assert counters.slots[CounterSlot.MATCHING] == (2, 1)
    assert counters.correct == 2
    assert counters.wrong == 4
    assert counters.modalities_with_success == 1


def test_legacy_rows_fall_back_to_aggregate_counters():
    word = _word(counter_scheme="legacy", times_shown=4, times_correct=3)
    counters = resolve_counters(word)

    assert isinstance(counters, LegacyCounters)
    assert counters.correct == 3
    assert counters.wrong == 1
    # 0.4 * 0.75 * (0.5 + 0.5 * 1/3)
    assert compute_mastery(word) == pytest.approx(0.2)


def test_legacy_counts_as_single_modality():
    legacy = mastery_score(None, LegacyCounters(correct=5, wrong=0))
    modal = mastery_score(None, ModalCounters(slots={
        CounterSlot.TRANSLATION: (0, 0),
        CounterSlot.MATCHING: (0, 0),
        CounterSlot.LESSON: (5, 0),
    }))
    assert legacy == modal


def test_result_rounded_to_four_decimals():
    score = mastery_score(1.0, LegacyCounters(correct=1, wrong=2))
    assert score == round(score, 4)
