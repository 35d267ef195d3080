"""
Schema migrations

Brings a store from whatever schema version it was last written with up
to LATEST_VERSION. Steps are additive only (new columns with defaults, new
tables, new indexes) and each one commits in its own transaction and bumps
the stored version, so an interrupted upgrade resumes at the failed step.

Schema history:
    v1  words and review_logs as shipped in the first release
    v2  per-modality counters, review_count, mastery_score, counter_scheme
    v3  times_wrong, srs columns, updated_at, frequency_rank, review log
        audit columns, grammar concept tables
"""

from __future__ import annotations
import logging
from typing import Callable

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wordy.errors import MigrationFailedError, StoreUnavailableError
from wordy.mastery import compute_mastery
from wordy.storage.models import (
    Base,
    GrammarConceptRow,
    GrammarReviewLogRow,
    ReviewLogRow,
    StoreMeta,
    WordRow,
)

logger = logging.getLogger(__name__)

LATEST_VERSION = 3
SCHEMA_VERSION_KEY = "schema_version"


# ---- Version bookkeeping ----

def get_schema_version(store) -> int:
    """
    Read the schema version of a store.

    Returns 0 for an empty database and 1 for a database that has tables
    but no version record (written before versioning existed).
    """
    tables = set(inspect(store.engine).get_table_names())
    if not tables:
        return 0
    if StoreMeta.__tablename__ not in tables:
        return 1

    with store.session() as session:
        row = session.get(StoreMeta, SCHEMA_VERSION_KEY)
        return int(row.value) if row is not None else 1


def _set_version(session: Session, version: int) -> None:
    session.merge(StoreMeta(key=SCHEMA_VERSION_KEY, value=str(version)))


def _columns(session: Session, table: str) -> set[str]:
    return {col["name"] for col in inspect(session.connection()).get_columns(table)}


def _add_missing_columns(session: Session, table: str, columns: dict[str, str]) -> list[str]:
    """ALTER TABLE ADD COLUMN for every column not already present."""
    existing = _columns(session, table)
    added = []
    for name, ddl in columns.items():
        if name not in existing:
            session.execute(text(f"ALTER TABLE {table} ADD COLUMN {name} {ddl}"))
            added.append(name)
    return added


# ---- Steps ----

def _upgrade_to_v2(session: Session) -> None:
    added = _add_missing_columns(session, "words", {
        "translation_correct": "INTEGER NOT NULL DEFAULT 0",
        "translation_wrong": "INTEGER NOT NULL DEFAULT 0",
        "matching_correct": "INTEGER NOT NULL DEFAULT 0",
        "matching_wrong": "INTEGER NOT NULL DEFAULT 0",
        "lesson_correct": "INTEGER NOT NULL DEFAULT 0",
        "lesson_wrong": "INTEGER NOT NULL DEFAULT 0",
        "review_count": "INTEGER NOT NULL DEFAULT 0",
        "mastery_score": "REAL NOT NULL DEFAULT 0",
        "counter_scheme": "VARCHAR(16) NOT NULL DEFAULT 'legacy'",
    })
    if "review_count" in added:
        session.execute(text("UPDATE words SET review_count = times_shown"))
    session.execute(text("CREATE INDEX IF NOT EXISTS idx_words_mastery ON words (mastery_score)"))


def _upgrade_to_v3(session: Session) -> None:
    added = _add_missing_columns(session, "words", {
        "times_wrong": "INTEGER NOT NULL DEFAULT 0",
        "srs_stability": "FLOAT",
        "srs_difficulty": "FLOAT",
        "updated_at": "BIGINT NOT NULL DEFAULT 0",
        "frequency_rank": "INTEGER",
    })
    if "times_wrong" in added:
        session.execute(text(
            "UPDATE words SET times_wrong = times_shown - times_correct "
            "WHERE times_shown > times_correct"
        ))
    session.execute(text("UPDATE words SET updated_at = created_at WHERE updated_at = 0"))
    session.execute(text(
        "UPDATE words SET next_review_at = created_at WHERE next_review_at IS NULL"
    ))

    ReviewLogRow.__table__.create(bind=session.connection(), checkfirst=True)
    _add_missing_columns(session, "review_logs", {
        "exercise": "VARCHAR(32)",
        "stability_after": "FLOAT",
        "difficulty_after": "FLOAT",
    })

    session.execute(text("CREATE INDEX IF NOT EXISTS idx_words_status ON words (status)"))
    session.execute(text("CREATE INDEX IF NOT EXISTS idx_words_next_review ON words (next_review_at)"))
    session.execute(text(
        "CREATE INDEX IF NOT EXISTS ix_review_logs_word_id ON review_logs (word_id)"
    ))

    bind = session.connection()
    GrammarConceptRow.__table__.create(bind=bind, checkfirst=True)
    GrammarReviewLogRow.__table__.create(bind=bind, checkfirst=True)

    # Every counter the score depends on now exists
    for row in session.query(WordRow).all():
        row.mastery_score = compute_mastery(row)


STEPS: dict[int, Callable[[Session], None]] = {
    2: _upgrade_to_v2,
    3: _upgrade_to_v3,
}


# ---- Public API ----

def migrate(store, from_version: int, to_version: int = LATEST_VERSION) -> int:
    """
    Apply the ordered upgrade steps from_version -> to_version.

    Args:
        store: Opened store
        from_version: Version the database is currently at (>= 1)
        to_version: Target version

    Returns:
        The version the store ends at

    Raises:
        MigrationFailedError: if a step fails; earlier steps stay committed
    """
    if to_version > LATEST_VERSION:
        raise MigrationFailedError(f"unknown schema version {to_version}")
    if from_version >= to_version:
        return from_version

    StoreMeta.__table__.create(bind=store.engine, checkfirst=True)

    version = from_version
    for target in range(from_version + 1, to_version + 1):
        step = STEPS[target]
        try:
            with store.transaction() as session:
                step(session)
                _set_version(session, target)
        except (SQLAlchemyError, StoreUnavailableError) as exc:
            logger.error("Schema upgrade v%d -> v%d failed: %s", version, target, exc)
            raise MigrationFailedError(f"schema upgrade to v{target} failed") from exc
        logger.info("Schema upgraded v%d -> v%d", version, target)
        version = target
    return version


def upgrade(store) -> int:
    """
    Bring a store to LATEST_VERSION.

    An empty database is created directly at the latest version. Running
    this against an up-to-date store changes nothing.
    """
    version = get_schema_version(store)

    if version == 0:
        Base.metadata.create_all(store.engine)
        with store.transaction() as session:
            _set_version(session, LATEST_VERSION)
        logger.info("Created vocabulary schema at v%d", LATEST_VERSION)
        return LATEST_VERSION

    if version > LATEST_VERSION:
        raise MigrationFailedError(
            f"database schema v{version} is newer than supported v{LATEST_VERSION}"
        )

    return migrate(store, version, LATEST_VERSION)
