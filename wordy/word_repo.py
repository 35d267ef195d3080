"""
Word Store - repository for vocabulary rows.

Owns every Word row. Mutations run inside Store.transaction() so a
background enrichment patch and a foreground review of the same word are
applied one after the other on fresh reads, never on stale copies.

Read methods on a degraded store return empty results; writes raise
StoreUnavailableError.
"""

from __future__ import annotations

import logging
import random
import uuid
from typing import Optional, Union

from sqlalchemy import case, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wordy.errors import DuplicateTextError, NotFoundError
from wordy.mastery import SLOT_COLUMNS, compute_mastery
from wordy.schemas import CounterScheme, Word, WordCreate, WordPatch, WordSource, normalize_text
from wordy.srs.constants import DAY_MS, WordStatus
from wordy.srs.memory_state import now_ms as current_ms
from wordy.srs.scheduler import check_status_transition
from wordy.storage.models import WordRow

logger = logging.getLogger(__name__)

SEARCH_LIMIT_MAX = 500

# Practice queue weights: (1 - mastery) * 0.6 + days_since_review * 0.4
PRACTICE_MASTERY_WEIGHT = 0.6
PRACTICE_RECENCY_WEIGHT = 0.4

COUNTER_FIELDS = frozenset(
    ["times_shown", "times_correct", "times_wrong", "review_count"]
    + [col for pair in SLOT_COLUMNS.values() for col in pair]
)
SRS_FIELDS = frozenset(["srs_stability", "srs_difficulty", "last_reviewed_at", "next_review_at"])


def find_by_text(session: Session, text: str) -> Optional[WordRow]:
    return session.query(WordRow).filter(WordRow.text == normalize_text(text)).first()


def _escape_like(prefix: str) -> str:
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _check_patch(row: WordRow, changes: dict) -> None:
    """Reject patches that move counters backwards or break the status machine."""
    for field in COUNTER_FIELDS & changes.keys():
        current = getattr(row, field) or 0
        if changes[field] < current:
            raise ValueError(f"{field} cannot decrease ({current} -> {changes[field]})")

    if changes.get("status") is not None:
        check_status_transition(row.status, changes["status"])


class WordRepo:
    """CRUD and queue queries over the words table."""

    def __init__(self, store):
        self.store = store

    # ---- Reads ----

    def get_all(self) -> list[Word]:
        """All words, newest-created first."""
        if not self.store.available:
            return []
        with self.store.session() as session:
            rows = session.query(WordRow).order_by(WordRow.created_at.desc()).all()
            return [Word.model_validate(row) for row in rows]

    def get(self, word_id: str) -> Word:
        """
        Fetch one word by id.

        Raises:
            NotFoundError: if no word has this id
        """
        with self.store.session() as session:
            row = session.get(WordRow, word_id)
            if row is None:
                raise NotFoundError("word", word_id)
            return Word.model_validate(row)

    def get_by_text(self, text: str) -> Optional[Word]:
        """Case-insensitive exact lookup on the normalized text."""
        if not self.store.available or not normalize_text(text):
            return None
        with self.store.session() as session:
            row = find_by_text(session, text)
            return Word.model_validate(row) if row is not None else None

    def search(self, prefix: str, limit: int = 20) -> list[Word]:
        """
        Prefix search on normalized text, ordered alphabetically.

        LIKE wildcards in the prefix match literally. An empty prefix
        returns nothing rather than the whole store.
        """
        prefix = normalize_text(prefix)
        if not prefix or not self.store.available:
            return []
        limit = max(1, min(SEARCH_LIMIT_MAX, limit))

        with self.store.session() as session:
            rows = (
                session.query(WordRow)
                .filter(WordRow.text.like(_escape_like(prefix) + "%", escape="\\"))
                .order_by(WordRow.text.asc())
                .limit(limit)
                .all()
            )
            return [Word.model_validate(row) for row in rows]

    def get_due(self, limit: int = 20, now_ms: Optional[int] = None) -> list[Word]:
        """
        Words to review now.

        Everything not yet known, plus known words whose next review has
        passed. New words come first, then by ascending next_review_at.
        """
        if not self.store.available:
            return []
        now = now_ms if now_ms is not None else current_ms()

        with self.store.session() as session:
            rows = (
                session.query(WordRow)
                .filter(or_(
                    WordRow.status != WordStatus.KNOWN.value,
                    WordRow.next_review_at <= now,
                ))
                .order_by(
                    case((WordRow.status == WordStatus.NEW.value, 0), else_=1),
                    WordRow.next_review_at.asc(),
                    WordRow.created_at.asc(),
                )
                .limit(max(1, limit))
                .all()
            )
            return [Word.model_validate(row) for row in rows]

    def get_for_practice(
        self,
        limit: int = 10,
        exclude_known: bool = True,
        now_ms: Optional[int] = None
    ) -> list[Word]:
        """
        Words for a practice session, weakest and stalest first.

        priority = (1 - mastery) * 0.6 + days_since_review * 0.4
        Never-reviewed words count as reviewed one day ago. Ties are broken
        randomly so sessions vary.
        """
        if not self.store.available:
            return []
        now = now_ms if now_ms is not None else current_ms()

        days_since_review = case(
            (WordRow.last_reviewed_at.is_(None), 1.0),
            else_=(now - WordRow.last_reviewed_at) / float(DAY_MS),
        )
        priority = (
            (1.0 - WordRow.mastery_score) * PRACTICE_MASTERY_WEIGHT
            + days_since_review * PRACTICE_RECENCY_WEIGHT
        )

        with self.store.session() as session:
            query = session.query(WordRow)
            if exclude_known:
                query = query.filter(WordRow.status != WordStatus.KNOWN.value)
            rows = query.order_by(priority.desc(), func.random()).limit(max(1, limit)).all()
            return [Word.model_validate(row) for row in rows]

    def get_random(self, limit: int = 5, rng: Optional[random.Random] = None) -> list[Word]:
        """Random sample of words (distractors for matching exercises)."""
        if not self.store.available:
            return []
        with self.store.session() as session:
            if rng is None:
                rows = session.query(WordRow).order_by(func.random()).limit(max(1, limit)).all()
            else:
                rows = session.query(WordRow).order_by(WordRow.id).all()
                rows = rng.sample(rows, min(len(rows), max(1, limit)))
            return [Word.model_validate(row) for row in rows]

    def count(self) -> int:
        if not self.store.available:
            return 0
        with self.store.session() as session:
            return session.query(func.count(WordRow.id)).scalar() or 0

    def count_by_status(self) -> dict[str, int]:
        counts = {status.value: 0 for status in WordStatus}
        if not self.store.available:
            return counts
        with self.store.session() as session:
            rows = session.query(WordRow.status, func.count(WordRow.id)).group_by(WordRow.status).all()
        for status, total in rows:
            counts[status] = total
        return counts

    # ---- Writes ----

    def add(self, data: Union[WordCreate, dict]) -> Word:
        """
        Insert a word, or return the existing one with the same normalized text.

        The existing row is returned unchanged; new metadata is not merged in.

        Raises:
            pydantic.ValidationError: if the text is empty after normalization
            StoreUnavailableError: if the store is degraded
        """
        create = data if isinstance(data, WordCreate) else WordCreate.model_validate(data)

        with self.store.lock:
            existing = self.get_by_text(create.text)
            if existing is not None:
                logger.debug("Word %r already stored as %s", create.text, existing.id)
                return existing
            try:
                return self._insert(create)
            except DuplicateTextError:
                logger.info("Word %r inserted concurrently; returning stored row", create.text)
                return self.get_by_text(create.text)

    def _insert(self, create: WordCreate) -> Word:
        now = current_ms()
        row = WordRow(
            id=str(uuid.uuid4()),
            text=create.text,
            definition=create.definition,
            translation=create.translation,
            cefr_level=create.cefr_level,
            status=WordStatus.NEW.value,
            source=WordSource(create.source).value,
            frequency_rank=create.frequency_rank,
            times_shown=0,
            times_correct=0,
            times_wrong=0,
            review_count=0,
            translation_correct=0,
            translation_wrong=0,
            matching_correct=0,
            matching_wrong=0,
            lesson_correct=0,
            lesson_wrong=0,
            counter_scheme=CounterScheme.MODAL.value,
            next_review_at=now,
            mastery_score=0.0,
            created_at=now,
            updated_at=now,
        )
        try:
            with self.store.transaction() as session:
                session.add(row)
                session.flush()
                word = Word.model_validate(row)
        except IntegrityError as exc:
            raise DuplicateTextError(create.text) from exc

        logger.info("Added word %r (%s)", word.text, word.source)
        return word

    def update(self, word_id: str, patch: Union[WordPatch, dict]) -> Word:
        """
        Apply a partial update.

        Only fields set in the patch are written (explicit None values are
        ignored). updated_at always moves; mastery is recomputed only when
        counters or scheduler fields change.

        Raises:
            NotFoundError: if no word has this id
            ValueError: if a counter would decrease or the status move is invalid
            pydantic.ValidationError: for unknown or immutable fields
        """
        patch = patch if isinstance(patch, WordPatch) else WordPatch.model_validate(patch)
        changes = {
            field: value
            for field, value in patch.model_dump(exclude_unset=True).items()
            if value is not None
        }

        with self.store.transaction() as session:
            row = session.get(WordRow, word_id)
            if row is None:
                raise NotFoundError("word", word_id)

            _check_patch(row, changes)
            previous_status = row.status
            for field, value in changes.items():
                setattr(row, field, value)
            row.updated_at = max(current_ms(), row.updated_at or 0)

            if changes.keys() & (COUNTER_FIELDS | SRS_FIELDS):
                row.mastery_score = compute_mastery(row)
            session.flush()
            word = Word.model_validate(row)

        if word.status != previous_status:
            logger.info("Word %r status %s -> %s (patch)", word.text, previous_status, word.status)
        return word

    def delete(self, word_id: str) -> None:
        """
        Delete a word and its review log.

        Raises:
            NotFoundError: if no word has this id
        """
        with self.store.transaction() as session:
            row = session.get(WordRow, word_id)
            if row is None:
                raise NotFoundError("word", word_id)
            session.delete(row)
        logger.info("Deleted word %s", word_id)
