from __future__ import annotations

import threading

import pytest

from wordy.errors import InvalidGradeError, NotFoundError
from wordy.srs.constants import Exercise, Grade
from wordy.srs.scheduling import grade_word, record_exercise_result

from conftest import DAY, MINUTE, NOW


def test_first_good_review_of_new_word(store, words, review_log):
    word = words.add({"text": "resilient", "source": "lookup"})

    graded = grade_word(store, word.id, Grade.GOOD, time_taken_ms=1800, now_ms=NOW)

    assert graded.status == "learning"
    assert graded.srs_stability == pytest.approx(2.5)
    assert graded.last_reviewed_at == NOW
    assert NOW < graded.next_review_at <= NOW + 3 * DAY
    assert graded.times_shown == 1
    assert graded.times_correct == 1
    assert graded.times_wrong == 0
    assert graded.review_count == 1
    assert graded.lesson_correct == 1
    assert graded.mastery_score == pytest.approx(0.3381, abs=1e-4)
    assert graded.updated_at == max(NOW, word.updated_at)

    [entry] = review_log.for_word(word.id)
    assert entry.grade == 3
    assert entry.reviewed_at == NOW
    assert entry.time_taken_ms == 1800
    assert entry.exercise == "lesson"
    assert entry.stability_after == pytest.approx(2.5)


def test_lapse_of_known_word(store, words):
    word = words.add({"text": "bestaan"})
    words.update(word.id, {
        "status": "known",
        "srs_stability": 30.0,
        "srs_difficulty": 5.0,
        "last_reviewed_at": NOW - 30 * DAY,
        "next_review_at": NOW,
    })

    graded = grade_word(store, word.id, Grade.AGAIN, now_ms=NOW)

    assert graded.status == "learning"
    assert graded.srs_stability <= 15.0
    assert graded.next_review_at == NOW + 10 * MINUTE
    assert graded.times_wrong == 1
    assert graded.lesson_wrong == 1


def test_again_on_new_word_keeps_it_new_but_schedules(store, words):
    word = words.add({"text": "moeilijk"})

    graded = grade_word(store, word.id, Grade.AGAIN, now_ms=NOW)

    assert graded.status == "new"
    assert graded.srs_stability == pytest.approx(0.4)
    assert graded.next_review_at >= NOW + 10 * MINUTE
    assert graded.times_shown == 1
    assert graded.times_wrong == 1


def test_hard_counts_as_correct(store, words):
    word = words.add({"text": "lastig"})
    graded = grade_word(store, word.id, Grade.HARD, now_ms=NOW)
    assert graded.times_correct == 1
    assert graded.times_wrong == 0


def test_invalid_grade_writes_nothing(store, words, review_log):
    word = words.add({"text": "niets"})

    for bad in (0, 5, True, 2.5):
        with pytest.raises(InvalidGradeError):
            grade_word(store, word.id, bad, now_ms=NOW)

    assert review_log.for_word(word.id) == []
    assert words.get(word.id).times_shown == 0


def test_grading_missing_word(store):
    with pytest.raises(NotFoundError):
        grade_word(store, "missing", Grade.GOOD, now_ms=NOW)


def test_exercise_results_update_modality_counters(store, words, review_log):
    word = words.add({"text": "spreken"})

    record_exercise_result(store, word.id, Exercise.MATCHING, is_correct=False, now_ms=NOW)
    record_exercise_result(store, word.id, Exercise.TRANSLATION, is_correct=True, now_ms=NOW + MINUTE * 15)
    graded = record_exercise_result(
        store, word.id, Exercise.LISTENING, is_correct=True, now_ms=NOW + MINUTE * 30
    )

    assert graded.matching_wrong == 1
    assert graded.translation_correct == 1
    assert graded.lesson_correct == 1
    assert graded.times_shown == 3
    assert graded.times_correct == 2
    assert graded.times_wrong == 1

    # Per-modality sums match the lifetime counters for modal rows
    assert graded.translation_correct + graded.matching_correct + graded.lesson_correct == graded.times_correct
    assert graded.translation_wrong + graded.matching_wrong + graded.lesson_wrong == graded.times_wrong

    entries = review_log.for_word(word.id)
    assert [e.grade for e in entries] == [1, 3, 3]
    assert [e.exercise for e in entries] == ["matching", "translation", "listening"]


def test_counters_monotonic_across_reviews(store, words):
    word = words.add({"text": "lopen"})
    previous = words.get(word.id)
    now = NOW
    for grade in (Grade.GOOD, Grade.AGAIN, Grade.EASY, Grade.HARD, Grade.AGAIN):
        current = grade_word(store, word.id, grade, now_ms=now)
        assert current.times_shown == previous.times_shown + 1
        assert current.times_correct >= previous.times_correct
        assert current.times_wrong >= previous.times_wrong
        assert current.review_count == previous.review_count + 1
        previous = current
        now += DAY


def test_concurrent_enrichment_and_review_both_land(store, words):
    word = words.add({"text": "samen"})
    errors = []

    def enrich():
        try:
            for i in range(10):
                words.update(word.id, {"definition": f"together {i}"})
        except Exception as exc:  # surfaced through the errors list
            errors.append(exc)

    def review():
        try:
            for i in range(10):
                grade_word(store, word.id, Grade.GOOD, now_ms=NOW + i * DAY)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=enrich), threading.Thread(target=review)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    final = words.get(word.id)
    assert final.definition == "together 9"
    assert final.times_shown == 10
    assert final.review_count == 10


def test_degraded_store_grading_raises(tmp_path):
    from wordy.config import Settings
    from wordy.errors import StoreUnavailableError
    from wordy.storage import open_store

    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    store = open_store(Settings(database_url=f"sqlite:///{blocker / 'wordy.db'}"))

    with pytest.raises(StoreUnavailableError):
        grade_word(store, "any", Grade.GOOD, now_ms=NOW)


def test_backdated_review_does_not_move_updated_at_backwards(store, words):
    word = words.add({"text": "vandaag"})
    later = word.updated_at + DAY

    first = grade_word(store, word.id, Grade.GOOD, now_ms=later)
    backdated = grade_word(store, word.id, Grade.GOOD, now_ms=later - 2 * DAY)

    assert first.updated_at == later
    assert backdated.updated_at == later
    assert backdated.last_reviewed_at == later - 2 * DAY
