from __future__ import annotations

import pytest

from wordy.analytics import build_progress_summary
from wordy.srs.constants import Exercise, Grade
from wordy.srs.scheduling import grade_word, record_exercise_result

from conftest import DAY, NOW


def test_empty_store_summary(store):
    summary = build_progress_summary(store, now_ms=NOW)

    assert summary.total_words == 0
    assert summary.by_status == {"new": 0, "learning": 0, "known": 0}
    assert summary.mean_mastery == 0.0
    assert summary.accuracy_today == 0.0
    assert summary.accuracy_daily.empty


def test_summary_counts_and_daily_series(store, words):
    huis = words.add({"text": "huis"})
    boom = words.add({"text": "boom"})
    words.add({"text": "fiets"})

    grade_word(store, huis.id, Grade.GOOD, now_ms=NOW - DAY)
    grade_word(store, huis.id, Grade.GOOD, now_ms=NOW)
    record_exercise_result(store, boom.id, Exercise.MATCHING, is_correct=False, now_ms=NOW)

    summary = build_progress_summary(store, now_ms=NOW)

    assert summary.total_words == 3
    assert summary.by_status == {"new": 2, "learning": 1, "known": 0}
    assert summary.due_now == 3
    assert summary.reviews_today == 2
    assert summary.accuracy_today == pytest.approx(0.5)
    assert 0.0 < summary.mean_mastery < 1.0

    assert list(summary.reviews_daily) == [1, 2]
    assert list(summary.accuracy_daily) == pytest.approx([1.0, 0.5])
    assert list(summary.studied_cumulative_daily) == [1, 2]
