"""
Database - store handle and session management

Opens the SQLite database, brings its schema up to date and hands out
sessions. Every read-modify-write goes through Store.transaction(), which
serializes writers on a re-entrant lock so concurrent flows updating the
same word merge instead of overwriting each other.

This module handles ONLY connection and transaction plumbing.
Schema changes live in migrations, queries in the repositories.
"""

from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from wordy.config import Settings
from wordy.errors import MigrationFailedError, StoreUnavailableError
from wordy.storage import legacy_import, migrations

logger = logging.getLogger(__name__)


class Store:
    """
    Handle to an opened vocabulary store.

    A store without an engine is degraded: repositories return empty
    results for reads and raise StoreUnavailableError for writes.
    """

    def __init__(self, engine: Optional[Engine], settings: Settings):
        self.engine = engine
        self.settings = settings
        self.lock = threading.RLock()
        self._session_factory = (
            sessionmaker(bind=engine, expire_on_commit=False) if engine is not None else None
        )

    @property
    def available(self) -> bool:
        return self.engine is not None

    def _require_available(self) -> None:
        if not self.available:
            raise StoreUnavailableError("vocabulary store is not available")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Read-only session; closed on exit."""
        self._require_available()
        session = self._session_factory()
        try:
            yield session
        except OperationalError as exc:
            raise StoreUnavailableError(f"database read failed: {exc.orig}") from exc
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Write transaction under the store lock.

        Commits on normal exit and rolls back on any exception. A busy or
        locked database surfaces as StoreUnavailableError.
        """
        self._require_available()
        with self.lock:
            session = self._session_factory()
            try:
                with session.begin():
                    yield session
            except OperationalError as exc:
                raise StoreUnavailableError(f"database write failed: {exc.orig}") from exc
            finally:
                session.close()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()

    def __repr__(self):
        url = self.engine.url if self.engine is not None else "unavailable"
        return f"<Store({url})>"


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_store_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    Creates the parent directory of a file-backed SQLite database and
    switches foreign keys on for every connection.
    """
    url = make_url(settings.database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, "timeout": settings.db_timeout_seconds}
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, connect_args=connect_args, echo=False)
    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def open_store(settings: Optional[Settings] = None) -> Store:
    """
    Open (or create) the vocabulary store.

    Safe to call repeatedly against the same database: the schema is only
    migrated when it is behind, and the legacy import only runs until it
    has completed once.

    Workflow:
    1. Create the engine
    2. Create or migrate the schema
    3. Import the legacy export, if configured and not yet imported

    Args:
        settings: Engine settings (defaults to Settings.from_env())

    Returns:
        Store handle. If the database cannot be opened the returned store
        is degraded rather than an exception being raised.
    """
    if settings is None:
        settings = Settings.from_env()

    engine = None
    try:
        engine = create_store_engine(settings)
        store = Store(engine, settings)
        migrations.upgrade(store)
    except (SQLAlchemyError, OSError, StoreUnavailableError, MigrationFailedError) as exc:
        if engine is not None:
            engine.dispose()
        logger.warning("Could not open vocabulary store at %s: %s", settings.database_url, exc)
        logger.warning("Running without persistence; writes will be rejected")
        return Store(None, settings)

    export_path = settings.legacy_export_path
    if export_path is not None and export_path.exists():
        _run_legacy_import(store, export_path)

    return store


def _run_legacy_import(store: Store, export_path: Path) -> None:
    try:
        with store.session() as session:
            if legacy_import.is_legacy_import_complete(session):
                return
        records = legacy_import.load_legacy_export(export_path)
        legacy_import.import_legacy_words(store, records, batch_size=store.settings.import_batch_size)
    except MigrationFailedError as exc:
        logger.error(
            "Legacy import incomplete (%d words committed): %s; will retry on next open",
            exc.committed,
            exc,
        )
    except StoreUnavailableError as exc:
        logger.error("Legacy import skipped, store busy: %s; will retry on next open", exc)
