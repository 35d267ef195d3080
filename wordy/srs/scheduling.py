"""
Scheduling - Main API for graded reviews

Ties the pure scheduler to the store: one call grades one word and
persists everything that follows from the grade in a single transaction.

Main workflow:
1. Fetch the word under the store lock
2. Run the scheduler on its SRS state
3. Update lifetime and per-modality counters
4. Recompute mastery
5. Save the row and append the review log entry
"""

from __future__ import annotations
import logging
import random
from typing import Optional

from wordy.errors import NotFoundError
from wordy.log_repo import insert_entry
from wordy.mastery import SLOT_COLUMNS, compute_mastery
from wordy.schemas import GrammarConcept, Word
from wordy.srs import scheduler
from wordy.srs.constants import EXERCISE_SLOT, Exercise, Grade
from wordy.srs.memory_state import SrsState, now_ms as current_ms
from wordy.storage.models import GrammarConceptRow, GrammarReviewLogRow, WordRow

logger = logging.getLogger(__name__)


def _apply_state(row, outcome: scheduler.ReviewOutcome) -> None:
    state = outcome.state
    row.status = state.status.value
    row.srs_stability = state.srs_stability
    row.srs_difficulty = state.srs_difficulty
    row.last_reviewed_at = state.last_reviewed_at
    row.next_review_at = state.next_review_at


def _count_outcome(row, is_correct: bool) -> None:
    row.times_shown = (row.times_shown or 0) + 1
    if is_correct:
        row.times_correct = (row.times_correct or 0) + 1
    else:
        row.times_wrong = (row.times_wrong or 0) + 1


def _count_modality(row: WordRow, exercise: Exercise, is_correct: bool) -> None:
    correct_col, wrong_col = SLOT_COLUMNS[EXERCISE_SLOT[exercise]]
    column = correct_col if is_correct else wrong_col
    setattr(row, column, (getattr(row, column) or 0) + 1)


def _jitter(store) -> float:
    return store.settings.srs_jitter if store.settings is not None else scheduler.DEFAULT_JITTER


def grade_word(
    store,
    word_id: str,
    grade,
    time_taken_ms: int = 0,
    exercise: Exercise = Exercise.LESSON,
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None
) -> Word:
    """
    Grade a review of one word.

    This is the main entry point for exercise screens.

    Args:
        store: Opened store
        word_id: Word being reviewed
        grade: 1 (Again) .. 4 (Easy)
        time_taken_ms: Time the user took to answer
        exercise: Exercise modality that produced the grade
        now_ms: Review time in epoch millis (defaults to now)
        rng: Random source for interval jitter

    Returns:
        The updated Word

    Raises:
        InvalidGradeError: if grade is outside 1..4 (nothing is written)
        NotFoundError: if the word does not exist
        StoreUnavailableError: if the store is degraded or busy
    """
    grade = scheduler.validate_grade(grade)
    exercise = Exercise(exercise)
    now = now_ms if now_ms is not None else current_ms()

    with store.transaction() as session:
        row = session.get(WordRow, word_id)
        if row is None:
            raise NotFoundError("word", word_id)

        outcome = scheduler.process_review(
            SrsState.from_record(row),
            grade,
            now_ms=now,
            rng=rng,
            jitter=_jitter(store),
        )

        _apply_state(row, outcome)
        _count_outcome(row, outcome.is_correct)
        _count_modality(row, exercise, outcome.is_correct)
        row.review_count = (row.review_count or 0) + 1
        row.mastery_score = compute_mastery(row)
        row.updated_at = max(now, row.updated_at or 0)

        insert_entry(
            session,
            word_id,
            grade,
            now,
            time_taken_ms,
            exercise,
            stability_after=row.srs_stability,
            difficulty_after=row.srs_difficulty,
        )
        word = Word.model_validate(row)

    if outcome.status_changed:
        logger.info(
            "Word %r %s -> %s (grade %d, S=%.2f)",
            word.text,
            outcome.previous_status.value,
            word.status,
            int(grade),
            word.srs_stability,
        )
    return word


def record_exercise_result(
    store,
    word_id: str,
    exercise: Exercise,
    is_correct: bool,
    time_taken_ms: int = 0,
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None
) -> Word:
    """
    Record a right/wrong outcome from a binary exercise screen.

    Correct answers are graded Good and wrong answers Again.
    """
    grade = Grade.GOOD if is_correct else Grade.AGAIN
    return grade_word(
        store,
        word_id,
        grade,
        time_taken_ms=time_taken_ms,
        exercise=exercise,
        now_ms=now_ms,
        rng=rng,
    )


def grade_concept(
    store,
    concept_id: str,
    grade,
    time_taken_ms: int = 0,
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None,
    count_practice: bool = False
) -> GrammarConcept:
    """
    Grade a review of one grammar concept.

    Same pipeline as grade_word, without per-modality counters. With
    count_practice the concept's practice_count is bumped in the same
    transaction.

    Raises:
        InvalidGradeError: if grade is outside 1..4
        NotFoundError: if the concept does not exist
    """
    grade = scheduler.validate_grade(grade)
    now = now_ms if now_ms is not None else current_ms()

    with store.transaction() as session:
        row = session.get(GrammarConceptRow, concept_id)
        if row is None:
            raise NotFoundError("grammar concept", concept_id)

        outcome = scheduler.process_review(
            SrsState.from_record(row),
            grade,
            now_ms=now,
            rng=rng,
            jitter=_jitter(store),
        )

        _apply_state(row, outcome)
        _count_outcome(row, outcome.is_correct)
        if count_practice:
            row.practice_count = (row.practice_count or 0) + 1
        row.mastery_score = compute_mastery(row)
        row.updated_at = max(now, row.updated_at or 0)

        session.add(GrammarReviewLogRow(
            concept_id=concept_id,
            grade=int(grade),
            reviewed_at=now,
            time_taken_ms=max(0, int(time_taken_ms or 0)),
            stability_after=row.srs_stability,
            difficulty_after=row.srs_difficulty,
        ))
        session.flush()
        concept = GrammarConcept.model_validate(row)

    if outcome.status_changed:
        logger.info(
            "Grammar concept %r %s -> %s (grade %d)",
            concept.name,
            outcome.previous_status.value,
            concept.status,
            int(grade),
        )
    return concept
