from __future__ import annotations

import pytest
from pydantic import ValidationError

from wordy.errors import InvalidGradeError, NotFoundError
from wordy.srs.constants import Grade
from wordy.storage.models import GrammarReviewLogRow

from conftest import DAY, MINUTE, NOW


def _concept(name="Present Perfect", **extra):
    data = {
        "name": name,
        "native_name": "Voltooid tegenwoordige tijd",
        "description": "Completed action relevant now",
        "rule": "hebben/zijn + past participle",
        "examples": ["Ik heb gegeten.", "  ", "Zij is gegaan."],
    }
    data.update(extra)
    return data


def _log_count(store, concept_id) -> int:
    with store.session() as session:
        return session.query(GrammarReviewLogRow).filter(GrammarReviewLogRow.concept_id == concept_id).count()


def test_add_and_lookup(grammar):
    concept = grammar.add(_concept())

    assert concept.name == "present perfect"
    assert concept.examples == ["Ik heb gegeten.", "Zij is gegaan."]
    assert concept.status == "new"
    assert concept.error_count == 0
    assert grammar.get(concept.id) == concept
    assert grammar.get_by_name("PRESENT PERFECT ").id == concept.id


def test_duplicate_name_returns_existing(grammar):
    first = grammar.add(_concept())
    second = grammar.add(_concept(name="present perfect", description="changed"))

    assert second.id == first.id
    assert second.description == first.description
    assert len(grammar.get_all()) == 1


def test_empty_name_rejected(grammar):
    with pytest.raises(ValidationError):
        grammar.add({"name": " "})


def test_record_error_adds_then_increments(grammar):
    created = grammar.record_error({"name": "word order"})
    assert created.error_count == 1

    again = grammar.record_error({"name": "Word Order", "rule": "verb second", "examples": ["Morgen ga ik."]})
    assert again.id == created.id
    assert again.error_count == 2
    assert again.rule == "verb second"
    assert again.examples == ["Morgen ga ik."]


def test_grade_runs_scheduler_and_logs(store, grammar):
    concept = grammar.add(_concept())

    graded = grammar.grade(concept.id, Grade.GOOD, time_taken_ms=500, now_ms=NOW)

    assert graded.status == "learning"
    assert graded.srs_stability == pytest.approx(2.5)
    assert graded.times_shown == 1
    assert graded.times_correct == 1
    # 0.6 * 2.5/21 + 0.4 * 1.0 * (0.5 + 0.5 * 1/3)
    assert graded.mastery_score == pytest.approx(0.3381, abs=1e-4)
    assert _log_count(store, concept.id) == 1


def test_grade_validation(grammar):
    concept = grammar.add(_concept())
    with pytest.raises(InvalidGradeError):
        grammar.grade(concept.id, 0, now_ms=NOW)
    with pytest.raises(NotFoundError):
        grammar.grade("missing", Grade.GOOD, now_ms=NOW)


def test_lapse_on_known_concept(grammar):
    concept = grammar.add(_concept())
    grammar.update(concept.id, {
        "status": "known",
        "srs_stability": 30.0,
        "srs_difficulty": 5.0,
        "last_reviewed_at": NOW - 30 * DAY,
    })

    graded = grammar.grade(concept.id, Grade.AGAIN, now_ms=NOW)

    assert graded.status == "learning"
    assert graded.srs_stability <= 15.0
    assert graded.next_review_at == NOW + 10 * MINUTE


def test_record_practice_counts_and_grades(grammar):
    concept = grammar.add(_concept())

    wrong = grammar.record_practice(concept.id, is_correct=False, now_ms=NOW)
    right = grammar.record_practice(concept.id, is_correct=True, now_ms=NOW + DAY)

    assert wrong.practice_count == 1
    assert wrong.times_wrong == 1
    assert right.practice_count == 2
    assert right.times_correct == 1


def test_practice_queue_ordering(grammar):
    few = grammar.record_error({"name": "articles"})
    many = grammar.record_error({"name": "word order"})
    grammar.record_error({"name": "word order"})
    grammar.record_error({"name": "word order"})
    mastered = grammar.add(_concept(name="plurals"))
    grammar.update(mastered.id, {"srs_stability": 30.0, "times_shown": 3, "times_correct": 3})

    queue = grammar.get_for_practice(limit=3)

    assert [c.id for c in queue] == [many.id, few.id]


def test_due_queue(grammar):
    new = grammar.add(_concept(name="a"))
    known = grammar.add(_concept(name="b"))
    grammar.update(known.id, {"status": "known", "next_review_at": NOW + DAY})

    assert [c.id for c in grammar.get_due(now_ms=NOW)] == [new.id]


def test_update_and_delete(store, grammar):
    concept = grammar.add(_concept())
    grammar.grade(concept.id, Grade.GOOD, now_ms=NOW)

    updated = grammar.update(concept.id, {"examples": ["Wij hebben gewerkt."]})
    assert updated.examples == ["Wij hebben gewerkt."]
    with pytest.raises(ValueError):
        grammar.update(concept.id, {"times_shown": 0})

    grammar.delete(concept.id)
    assert grammar.get_by_name("present perfect") is None
    assert _log_count(store, concept.id) == 0
    with pytest.raises(NotFoundError):
        grammar.delete(concept.id)


def test_status_cannot_move_back_to_new(grammar):
    concept = grammar.add(_concept())
    grammar.update(concept.id, {"status": "known"})

    with pytest.raises(ValueError):
        grammar.update(concept.id, {"status": "new"})
    assert grammar.get(concept.id).status == "known"

    assert grammar.update(concept.id, {"status": "learning"}).status == "learning"
    with pytest.raises(ValueError):
        grammar.update(concept.id, {"status": "new"})
