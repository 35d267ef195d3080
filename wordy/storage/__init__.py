"""
Storage layer: ORM tables, schema migrations, legacy import and the store handle.
"""

from wordy.storage.database import Store, open_store, create_store_engine
from wordy.storage.migrations import LATEST_VERSION, get_schema_version, migrate, upgrade
from wordy.storage.legacy_import import (
    import_legacy_words,
    is_legacy_import_complete,
    load_legacy_export,
)


__all__ = [
    "Store",
    "open_store",
    "create_store_engine",
    "LATEST_VERSION",
    "get_schema_version",
    "migrate",
    "upgrade",
    "import_legacy_words",
    "is_legacy_import_complete",
    "load_legacy_export",
]
