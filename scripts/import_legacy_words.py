"""
Legacy Word List Import Script

Copies a word list exported from the old key-value store into the
vocabulary database.

Usage:
    python scripts/import_legacy_words.py path/to/export.json
    python scripts/import_legacy_words.py export.json --database-url sqlite:///data/wordy.db

This will:
1. Open (and if needed create or migrate) the store
2. Parse the export, skipping malformed records
3. Insert the words in batches, skipping texts already present
4. Mark the import complete so it never runs again
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wordy.config import Settings
from wordy.errors import MigrationFailedError, StoreUnavailableError
from wordy.logging_config import setup_logging
from wordy.storage import import_legacy_words, load_legacy_export, open_store
from wordy.word_repo import WordRepo


def run_import(export_path: Path, settings: Settings) -> int:
    """
    Import one export file.

    Returns:
        Process exit code (0 on success)
    """
    # Open without the automatic import so this run reports its own result
    store = open_store(replace(settings, legacy_export_path=None))
    if not store.available:
        print(f"✗ Could not open store at {settings.database_url}")
        return 2

    try:
        records = load_legacy_export(export_path)
        inserted = import_legacy_words(store, records, batch_size=settings.import_batch_size)
        total = WordRepo(store).count()
    except MigrationFailedError as exc:
        print(f"✗ Import stopped: {exc} ({exc.committed} records committed, re-run to resume)")
        return 1
    except StoreUnavailableError as exc:
        print(f"✗ Store unavailable: {exc}")
        return 2
    finally:
        store.dispose()

    print(f"\n{'='*60}")
    print(f"✓ Records in export: {len(records)}")
    print(f"✓ Words inserted:    {inserted}")
    print(f"✓ Words in store:    {total}")
    print(f"{'='*60}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Import a legacy JSON word list into the vocabulary store"
    )
    parser.add_argument(
        "export_path",
        type=Path,
        help="Path to the legacy JSON export (a list of word objects)"
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (default: WORDY_DATABASE_URL or data/wordy.db)"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="Words per transaction (default: WORDY_IMPORT_BATCH_SIZE or 100)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: WORDY_LOG_LEVEL or INFO)"
    )

    args = parser.parse_args()

    settings = Settings.from_env()
    if args.database_url:
        settings = replace(settings, database_url=args.database_url)
    if args.batch_size:
        settings = replace(settings, import_batch_size=max(1, args.batch_size))

    setup_logging(args.log_level or settings.log_level)

    if not args.export_path.exists():
        print(f"✗ Export file not found: {args.export_path}")
        sys.exit(1)

    sys.exit(run_import(args.export_path, settings))


if __name__ == "__main__":
    main()
