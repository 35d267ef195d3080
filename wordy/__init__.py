"""
Wordy - vocabulary persistence and spaced-repetition engine

Quick start:
    import wordy

    store = wordy.open_store()
    words = wordy.WordRepo(store)

    word = words.add({"text": "resilient", "source": "lookup"})
    word = wordy.grade_word(store, word.id, wordy.Grade.GOOD)

    due = words.get_due(limit=20)
"""

from wordy.config import Settings
from wordy.errors import (
    WordyError,
    NotFoundError,
    InvalidGradeError,
    DuplicateTextError,
    StoreUnavailableError,
    MigrationFailedError,
)
from wordy.schemas import (
    Word,
    WordCreate,
    WordPatch,
    ReviewLogEntry,
    GrammarConcept,
    GrammarConceptCreate,
    GrammarConceptPatch,
    LegacyWordRecord,
    WordSource,
    CounterScheme,
)
from wordy.srs.constants import Grade, WordStatus, Exercise
from wordy.storage import Store, open_store, import_legacy_words
from wordy.word_repo import WordRepo
from wordy.log_repo import ReviewLog
from wordy.grammar_repo import GrammarRepo
from wordy.mastery import compute_mastery
from wordy.srs.scheduling import grade_word, record_exercise_result
from wordy.analytics import build_progress_summary, ProgressSummary


__all__ = [
    # Store
    "Settings",
    "Store",
    "open_store",
    "import_legacy_words",

    # Repositories
    "WordRepo",
    "ReviewLog",
    "GrammarRepo",

    # Scheduling
    "grade_word",
    "record_exercise_result",
    "compute_mastery",

    # Analytics
    "build_progress_summary",
    "ProgressSummary",

    # Values
    "Word",
    "WordCreate",
    "WordPatch",
    "ReviewLogEntry",
    "GrammarConcept",
    "GrammarConceptCreate",
    "GrammarConceptPatch",
    "LegacyWordRecord",
    "WordSource",
    "CounterScheme",
    "Grade",
    "WordStatus",
    "Exercise",

    # Errors
    "WordyError",
    "NotFoundError",
    "InvalidGradeError",
    "DuplicateTextError",
    "StoreUnavailableError",
    "MigrationFailedError",
]
