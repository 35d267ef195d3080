"""
Review Log - append-only history of graded word reviews.

Entries are inserted once and never updated. Accuracy, exposure counts and
recency for analytics are computed from the log at query time.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from wordy.errors import NotFoundError
from wordy.schemas import ReviewLogEntry
from wordy.srs.constants import Exercise
from wordy.srs.memory_state import now_ms as current_ms
from wordy.srs.scheduler import validate_grade
from wordy.storage.models import ReviewLogRow, WordRow


# ---- Session-level helpers (used inside an open transaction) ----

def insert_entry(
    session: Session,
    word_id: str,
    grade,
    reviewed_at: int,
    time_taken_ms: int = 0,
    exercise: Optional[Exercise] = None,
    stability_after: Optional[float] = None,
    difficulty_after: Optional[float] = None
) -> ReviewLogRow:
    """
    Insert one log row in the caller's transaction.

    Raises:
        InvalidGradeError: if grade is outside 1..4
    """
    grade = validate_grade(grade)
    row = ReviewLogRow(
        word_id=word_id,
        grade=int(grade),
        reviewed_at=reviewed_at,
        time_taken_ms=max(0, int(time_taken_ms or 0)),
        exercise=Exercise(exercise).value if exercise is not None else None,
        stability_after=stability_after,
        difficulty_after=difficulty_after,
    )
    session.add(row)
    session.flush()
    return row


# ---- Repository ----

class ReviewLog:
    """Append and query review log entries."""

    def __init__(self, store):
        self.store = store

    def append(
        self,
        word_id: str,
        grade,
        time_taken_ms: int = 0,
        reviewed_at: Optional[int] = None,
        exercise: Optional[Exercise] = None
    ) -> ReviewLogEntry:
        """
        Append a review entry for an existing word.

        This records history only; it does not touch the word's schedule.
        Use grade_word for a full review.

        Raises:
            InvalidGradeError: if grade is outside 1..4
            NotFoundError: if the word does not exist
        """
        grade = validate_grade(grade)
        with self.store.transaction() as session:
            if session.get(WordRow, word_id) is None:
                raise NotFoundError("word", word_id)
            row = insert_entry(
                session,
                word_id,
                grade,
                reviewed_at if reviewed_at is not None else current_ms(),
                time_taken_ms,
                exercise,
            )
            return ReviewLogEntry.model_validate(row)

    def for_word(self, word_id: str) -> list[ReviewLogEntry]:
        """All entries for one word, oldest first."""
        if not self.store.available:
            return []
        with self.store.session() as session:
            rows = (
                session.query(ReviewLogRow)
                .filter(ReviewLogRow.word_id == word_id)
                .order_by(ReviewLogRow.reviewed_at.asc(), ReviewLogRow.id.asc())
                .all()
            )
            return [ReviewLogEntry.model_validate(row) for row in rows]

    def recent(self, limit: int = 10) -> list[ReviewLogEntry]:
        """Most recent entries, newest first."""
        if not self.store.available:
            return []
        with self.store.session() as session:
            rows = (
                session.query(ReviewLogRow)
                .order_by(ReviewLogRow.reviewed_at.desc(), ReviewLogRow.id.desc())
                .limit(max(1, limit))
                .all()
            )
            return [ReviewLogEntry.model_validate(row) for row in rows]

    def all_entries(self, since_ms: Optional[int] = None) -> list[ReviewLogEntry]:
        """Every entry (optionally since a timestamp), oldest first."""
        if not self.store.available:
            return []
        with self.store.session() as session:
            query = session.query(ReviewLogRow)
            if since_ms is not None:
                query = query.filter(ReviewLogRow.reviewed_at >= since_ms)
            rows = query.order_by(ReviewLogRow.reviewed_at.asc(), ReviewLogRow.id.asc()).all()
            return [ReviewLogEntry.model_validate(row) for row in rows]
