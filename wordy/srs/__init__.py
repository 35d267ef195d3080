"""
SRS - spaced repetition scheduler

Interpretable memory model per word:
- Stability (S): days until recall probability falls to 90%
- Difficulty (D): how hard the word is for this learner, 1-10
- Retrievability (R): recall probability now, R = 0.9 ^ (Δt / S)

Quick start:
    from wordy import srs

    # Pure algorithm (no DB calls)
    outcome = srs.process_review(state, srs.Grade.GOOD)

    # Full pipeline against a store
    from wordy.srs.scheduling import grade_word
    word = grade_word(store, word_id, srs.Grade.GOOD)
"""

# Core scheduler API (algorithm logic)
from wordy.srs.scheduler import (
    ReviewOutcome,
    next_interval_ms,
    next_status,
    process_review,
    validate_grade,
)

# Constants and parameters
from wordy.srs.constants import (
    Grade,
    WordStatus,
    Exercise,
    CounterSlot,
    EXERCISE_SLOT,
    DESIRED_RETENTION,
    S_MIN,
    D_MIN,
    D_MAX,
    INITIAL_STABILITY,
    MATURITY_THRESHOLD_DAYS,
    MIN_INTERVAL_MS,
    RELEARN_STEP_MS,
    MAX_INTERVAL_DAYS,
)

# Memory state (for advanced usage)
from wordy.srs.memory_state import (
    SrsState,
    calculate_retrievability,
    elapsed_days,
    interval_days_for,
)


__all__ = [
    # Core algorithm
    "process_review",
    "validate_grade",
    "next_status",
    "next_interval_ms",
    "ReviewOutcome",

    # Enums
    "Grade",
    "WordStatus",
    "Exercise",
    "CounterSlot",
    "EXERCISE_SLOT",

    # Memory state
    "SrsState",
    "calculate_retrievability",
    "elapsed_days",
    "interval_days_for",

    # Parameters
    "DESIRED_RETENTION",
    "S_MIN",
    "D_MIN",
    "D_MAX",
    "INITIAL_STABILITY",
    "MATURITY_THRESHOLD_DAYS",
    "MIN_INTERVAL_MS",
    "RELEARN_STEP_MS",
    "MAX_INTERVAL_DAYS",
]
