"""
Legacy import - one-time bulk copy of the old key-value word list.

The previous app kept every word in a single JSON list. On first open the
list is copied into the words table in batches; a completion flag in
store_meta makes sure it never runs twice.

Failure semantics:
- each batch commits in its own transaction
- a failing batch rolls back only itself; earlier batches stay
- the flag is only set after the last batch, so re-running resumes safely
  (rows already present are skipped by INSERT OR IGNORE on text)
"""

from __future__ import annotations
import json
import logging
import uuid
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError
from sqlalchemy import func, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wordy.config import DEFAULT_IMPORT_BATCH_SIZE
from wordy.errors import MigrationFailedError, StoreUnavailableError
from wordy.mastery import LegacyCounters, mastery_score
from wordy.schemas import CounterScheme, LegacyWordRecord, WordSource
from wordy.srs.constants import WordStatus
from wordy.srs.memory_state import now_ms as current_ms
from wordy.storage.models import StoreMeta, WordRow

logger = logging.getLogger(__name__)

LEGACY_IMPORT_FLAG = "legacy_import_complete"


# ---- Loading ----

def load_legacy_export(path: Path) -> list[LegacyWordRecord]:
    """
    Parse a legacy JSON export.

    Records that fail validation (or normalize to empty text) are skipped
    with a warning; a file that is not a JSON list fails the import.

    Raises:
        MigrationFailedError: if the file cannot be read or parsed
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise MigrationFailedError(f"cannot read legacy export {path}: {exc}") from exc

    if not isinstance(raw, list):
        raise MigrationFailedError(f"legacy export {path} is not a list of words")

    records = []
    skipped = 0
    for item in raw:
        try:
            record = LegacyWordRecord.model_validate(item)
        except ValidationError as exc:
            skipped += 1
            logger.warning("Skipping malformed legacy record: %s", exc.errors()[0].get("msg"))
            continue
        if not record.normalized_text:
            skipped += 1
            continue
        records.append(record)

    logger.info("Loaded %d legacy words from %s (%d skipped)", len(records), path, skipped)
    return records


# ---- Import ----

def is_legacy_import_complete(session: Session) -> bool:
    flag = session.get(StoreMeta, LEGACY_IMPORT_FLAG)
    return flag is not None and flag.value == "1"


def _row_values(record: LegacyWordRecord, word_id: str, now: int) -> dict:
    created_at = record.created_at or now
    wrong = max(0, record.times_shown - record.times_correct)
    return {
        "id": word_id,
        "text": record.normalized_text,
        "definition": record.definition,
        "translation": record.translation,
        "cefr_level": record.cefr_level,
        "status": WordStatus(record.status).value,
        "source": WordSource(record.source).value,
        "times_shown": record.times_shown,
        "times_correct": record.times_correct,
        "times_wrong": wrong,
        "review_count": record.times_shown,
        "counter_scheme": CounterScheme.LEGACY.value,
        "last_reviewed_at": record.last_reviewed_at,
        "next_review_at": record.next_review_at or created_at,
        "mastery_score": mastery_score(None, LegacyCounters(correct=record.times_correct, wrong=wrong)),
        "created_at": created_at,
        "updated_at": now,
    }


def _assign_ids(session: Session, batch: list[LegacyWordRecord]) -> list[str]:
    """Keep each legacy id unless another row (or batch record) already holds it."""
    legacy_ids = [record.id for record in batch if record.id]
    taken = {
        word_id
        for (word_id,) in session.query(WordRow.id).filter(WordRow.id.in_(legacy_ids))
    } if legacy_ids else set()

    ids = []
    for record in batch:
        if record.id and record.id not in taken:
            word_id = record.id
        else:
            word_id = str(uuid.uuid4())
        taken.add(word_id)
        ids.append(word_id)
    return ids


def _insert_batch(session: Session, batch: list[LegacyWordRecord], now: int) -> int:
    """Insert one batch, skipping texts that already exist."""
    before = session.query(func.count(WordRow.id)).scalar()
    stmt = insert(WordRow.__table__).prefix_with("OR IGNORE")
    values = [
        _row_values(record, word_id, now)
        for record, word_id in zip(batch, _assign_ids(session, batch))
    ]
    session.execute(stmt, values)
    return session.query(func.count(WordRow.id)).scalar() - before


def import_legacy_words(
    store,
    records: Iterable[LegacyWordRecord],
    batch_size: int = DEFAULT_IMPORT_BATCH_SIZE,
    now_ms: Optional[int] = None
) -> int:
    """
    Copy legacy records into the words table.

    Args:
        store: Opened store
        records: Parsed legacy records
        batch_size: Rows per transaction
        now_ms: Import time (defaults to now)

    Returns:
        Number of rows inserted by this run (0 when the import already completed)

    Raises:
        MigrationFailedError: a batch failed; `committed` holds the number of
            records in batches that did commit
        StoreUnavailableError: the store is degraded
    """
    if not store.available:
        raise StoreUnavailableError("cannot import legacy words without a store")

    batch_size = max(1, batch_size)
    now = now_ms if now_ms is not None else current_ms()
    records = list(records)

    with store.lock:
        with store.session() as session:
            if is_legacy_import_complete(session):
                logger.info("Legacy import already completed; skipping")
                return 0

        inserted = 0
        for start in range(0, len(records), batch_size):
            batch = records[start:start + batch_size]
            try:
                with store.transaction() as session:
                    inserted += _insert_batch(session, batch, now)
            except (SQLAlchemyError, StoreUnavailableError) as exc:
                logger.error(
                    "Legacy import batch %d failed after %d records: %s",
                    start // batch_size + 1,
                    start,
                    exc,
                )
                raise MigrationFailedError(
                    f"legacy import stopped at record {start}", committed=start
                ) from exc

        with store.transaction() as session:
            session.merge(StoreMeta(key=LEGACY_IMPORT_FLAG, value="1"))

    logger.info("Legacy import complete: %d of %d words inserted", inserted, len(records))
    return inserted
