"""
Grammar Concept Store.

Grammar concepts follow the same lifecycle as words (status machine, SRS
fields, cached mastery) but are keyed by normalized name and track how
often the learner got the rule wrong in free production.
"""

from __future__ import annotations

import json
import logging
import random
import uuid
from typing import Optional, Union

from sqlalchemy import case, or_
from sqlalchemy.exc import IntegrityError

from wordy.errors import DuplicateTextError, NotFoundError
from wordy.mastery import compute_mastery
from wordy.schemas import (
    GrammarConcept,
    GrammarConceptCreate,
    GrammarConceptPatch,
    normalize_text,
)
from wordy.srs.constants import Grade, WordStatus
from wordy.srs.memory_state import now_ms as current_ms
from wordy.srs.scheduler import check_status_transition
from wordy.srs.scheduling import grade_concept
from wordy.storage.models import GrammarConceptRow

logger = logging.getLogger(__name__)

PRACTICE_MASTERY_CEILING = 0.8

COUNTER_FIELDS = frozenset(["error_count", "practice_count", "times_shown", "times_correct", "times_wrong"])
MASTERY_FIELDS = frozenset(["times_shown", "times_correct", "times_wrong", "srs_stability"])


class GrammarRepo:
    """CRUD, queue queries and grading for grammar concepts."""

    def __init__(self, store):
        self.store = store

    # ---- Reads ----

    def get(self, concept_id: str) -> GrammarConcept:
        with self.store.session() as session:
            row = session.get(GrammarConceptRow, concept_id)
            if row is None:
                raise NotFoundError("grammar concept", concept_id)
            return GrammarConcept.model_validate(row)

    def get_by_name(self, name: str) -> Optional[GrammarConcept]:
        if not self.store.available or not normalize_text(name):
            return None
        with self.store.session() as session:
            row = (
                session.query(GrammarConceptRow)
                .filter(GrammarConceptRow.name == normalize_text(name))
                .first()
            )
            return GrammarConcept.model_validate(row) if row is not None else None

    def get_all(self) -> list[GrammarConcept]:
        """All concepts, newest-created first."""
        if not self.store.available:
            return []
        with self.store.session() as session:
            rows = session.query(GrammarConceptRow).order_by(GrammarConceptRow.created_at.desc()).all()
            return [GrammarConcept.model_validate(row) for row in rows]

    def get_due(self, limit: int = 20, now_ms: Optional[int] = None) -> list[GrammarConcept]:
        """Same ordering as WordRepo.get_due: new first, then by next review time."""
        if not self.store.available:
            return []
        now = now_ms if now_ms is not None else current_ms()
        with self.store.session() as session:
            rows = (
                session.query(GrammarConceptRow)
                .filter(or_(
                    GrammarConceptRow.status != WordStatus.KNOWN.value,
                    GrammarConceptRow.next_review_at <= now,
                ))
                .order_by(
                    case((GrammarConceptRow.status == WordStatus.NEW.value, 0), else_=1),
                    GrammarConceptRow.next_review_at.asc(),
                )
                .limit(max(1, limit))
                .all()
            )
            return [GrammarConcept.model_validate(row) for row in rows]

    def get_for_practice(self, limit: int = 3) -> list[GrammarConcept]:
        """
        Concepts that most need practice.

        Only concepts below 0.8 mastery, the ones with the most unpracticed
        errors first, then the weakest.
        """
        if not self.store.available:
            return []
        with self.store.session() as session:
            rows = (
                session.query(GrammarConceptRow)
                .filter(GrammarConceptRow.mastery_score < PRACTICE_MASTERY_CEILING)
                .order_by(
                    (GrammarConceptRow.error_count - GrammarConceptRow.practice_count).desc(),
                    GrammarConceptRow.mastery_score.asc(),
                    GrammarConceptRow.created_at.asc(),
                )
                .limit(max(1, limit))
                .all()
            )
            return [GrammarConcept.model_validate(row) for row in rows]

    # ---- Writes ----

    def add(self, data: Union[GrammarConceptCreate, dict], error_count: int = 0) -> GrammarConcept:
        """Insert a concept, or return the existing one with the same name unchanged."""
        create = data if isinstance(data, GrammarConceptCreate) else GrammarConceptCreate.model_validate(data)

        with self.store.lock:
            existing = self.get_by_name(create.name)
            if existing is not None:
                return existing
            try:
                return self._insert(create, error_count)
            except DuplicateTextError:
                return self.get_by_name(create.name)

    def _insert(self, create: GrammarConceptCreate, error_count: int) -> GrammarConcept:
        now = current_ms()
        row = GrammarConceptRow(
            id=str(uuid.uuid4()),
            name=create.name,
            native_name=create.native_name,
            description=create.description,
            rule=create.rule,
            examples=json.dumps(create.examples, ensure_ascii=False),
            cefr_level=create.cefr_level,
            status=WordStatus.NEW.value,
            error_count=max(0, error_count),
            practice_count=0,
            times_shown=0,
            times_correct=0,
            times_wrong=0,
            next_review_at=now,
            mastery_score=0.0,
            created_at=now,
            updated_at=now,
        )
        try:
            with self.store.transaction() as session:
                session.add(row)
                session.flush()
                concept = GrammarConcept.model_validate(row)
        except IntegrityError as exc:
            raise DuplicateTextError(create.name) from exc

        logger.info("Added grammar concept %r", concept.name)
        return concept

    def record_error(self, data: Union[GrammarConceptCreate, dict]) -> GrammarConcept:
        """
        Note that the learner got a grammar rule wrong.

        A new concept is added with error_count 1; an existing one has its
        error_count incremented, and empty description, rule or examples
        are filled in from the new data.
        """
        create = data if isinstance(data, GrammarConceptCreate) else GrammarConceptCreate.model_validate(data)

        with self.store.lock:
            if self.get_by_name(create.name) is None:
                return self.add(create, error_count=1)

            with self.store.transaction() as session:
                row = (
                    session.query(GrammarConceptRow)
                    .filter(GrammarConceptRow.name == create.name)
                    .one()
                )
                row.error_count = (row.error_count or 0) + 1
                if not row.description and create.description:
                    row.description = create.description
                if not row.rule and create.rule:
                    row.rule = create.rule
                if row.examples in (None, "", "[]") and create.examples:
                    row.examples = json.dumps(create.examples, ensure_ascii=False)
                row.updated_at = current_ms()
                session.flush()
                return GrammarConcept.model_validate(row)

    def update(self, concept_id: str, patch: Union[GrammarConceptPatch, dict]) -> GrammarConcept:
        """
        Partial update; same rules as WordRepo.update.

        Raises:
            NotFoundError: if the concept does not exist
            ValueError: if a counter would decrease or the status move is invalid
        """
        patch = patch if isinstance(patch, GrammarConceptPatch) else GrammarConceptPatch.model_validate(patch)
        changes = {
            field: value
            for field, value in patch.model_dump(exclude_unset=True).items()
            if value is not None
        }

        with self.store.transaction() as session:
            row = session.get(GrammarConceptRow, concept_id)
            if row is None:
                raise NotFoundError("grammar concept", concept_id)

            for field in COUNTER_FIELDS & changes.keys():
                if changes[field] < (getattr(row, field) or 0):
                    raise ValueError(f"{field} cannot decrease")
            if changes.get("status") is not None:
                check_status_transition(row.status, changes["status"])
            if "examples" in changes:
                changes["examples"] = json.dumps(changes["examples"], ensure_ascii=False)

            for field, value in changes.items():
                setattr(row, field, value)
            row.updated_at = max(current_ms(), row.updated_at or 0)
            if changes.keys() & MASTERY_FIELDS:
                row.mastery_score = compute_mastery(row)
            session.flush()
            return GrammarConcept.model_validate(row)

    def delete(self, concept_id: str) -> None:
        with self.store.transaction() as session:
            row = session.get(GrammarConceptRow, concept_id)
            if row is None:
                raise NotFoundError("grammar concept", concept_id)
            session.delete(row)
        logger.info("Deleted grammar concept %s", concept_id)

    # ---- Grading ----

    def grade(
        self,
        concept_id: str,
        grade,
        time_taken_ms: int = 0,
        now_ms: Optional[int] = None,
        rng: Optional[random.Random] = None
    ) -> GrammarConcept:
        """Run a graded review through the scheduler."""
        return grade_concept(self.store, concept_id, grade, time_taken_ms, now_ms=now_ms, rng=rng)

    def record_practice(
        self,
        concept_id: str,
        is_correct: bool,
        now_ms: Optional[int] = None,
        rng: Optional[random.Random] = None
    ) -> GrammarConcept:
        """Count a practice attempt and grade it Good (correct) or Again (wrong)."""
        grade = Grade.GOOD if is_correct else Grade.AGAIN
        return grade_concept(self.store, concept_id, grade, now_ms=now_ms, rng=rng, count_practice=True)
