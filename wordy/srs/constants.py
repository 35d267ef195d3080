"""
SRS Constants and Parameters

All tunable parameters for scheduling and mastery in one place.
These are deliberate defaults, not fitted weights.
"""

from enum import Enum, IntEnum


# ---- Grades ----

class Grade(IntEnum):
    """User-reported recall quality for one review."""
    AGAIN = 1   # Retrieval failed
    HARD = 2    # Retrieved with high effort
    GOOD = 3    # Retrieved normally
    EASY = 4    # Retrieved fluently


# ---- Word status ----

class WordStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    KNOWN = "known"


# ---- Exercise modalities ----

class Exercise(str, Enum):
    """Exercise screen that produced an outcome."""
    LOOKUP = "lookup"
    MANUAL = "manual"
    LESSON = "lesson"
    MATCHING = "matching"
    TRANSLATION = "translation"
    LISTENING = "listening"


class CounterSlot(str, Enum):
    """Per-modality counter pair stored on a word."""
    TRANSLATION = "translation"
    MATCHING = "matching"
    LESSON = "lesson"


# Listening and fill-blank roll into lesson; dictionary re-encounters too.
EXERCISE_SLOT = {
    Exercise.TRANSLATION: CounterSlot.TRANSLATION,
    Exercise.MATCHING: CounterSlot.MATCHING,
    Exercise.LESSON: CounterSlot.LESSON,
    Exercise.LISTENING: CounterSlot.LESSON,
    Exercise.LOOKUP: CounterSlot.LESSON,
    Exercise.MANUAL: CounterSlot.LESSON,
}


# ---- Time ----

MINUTE_MS = 60 * 1000
DAY_MS = 24 * 60 * MINUTE_MS


# ---- Memory model ----

DESIRED_RETENTION = 0.90  # Recall probability at which a word is scheduled
S_MIN = 0.1               # Minimum stability (days)
D_MIN = 1.0               # Minimum difficulty
D_MAX = 10.0              # Maximum difficulty

# Initial stability (days) by first grade
INITIAL_STABILITY = {
    Grade.AGAIN: 0.4,
    Grade.HARD: 1.2,
    Grade.GOOD: 2.5,
    Grade.EASY: 4.0,
}

D_INITIAL_GOOD = 5.0      # Initial difficulty for a Good first review
D_INITIAL_STEP = 1.5      # Difficulty added per grade below Good

# ---- Learning parameters ----

STABILITY_GAIN = 1.45     # exp() scale of the success growth term
STABILITY_DECAY = 0.12    # Larger stabilities grow proportionally slower
RETRIEVABILITY_GAIN = 1.0 # How strongly forgetting boosts the next gain
K_FAIL = 0.6              # Stability loss on failure, scaled by retrievability
LAPSE_PENALTY = 0.5       # Known words that lapse keep at most this share of S
ETA = 0.8                 # Difficulty learning rate
MEAN_REVERSION = 0.05     # Pull of difficulty back toward D_INITIAL_GOOD

# Success gain multiplier by grade
BASE_GAIN = {
    Grade.HARD: 0.3,
    Grade.GOOD: 1.0,
    Grade.EASY: 2.0,
}

# Difficulty update direction by grade
U_RATING = {
    Grade.AGAIN: +1.0,
    Grade.HARD: +0.35,
    Grade.GOOD: -0.20,
    Grade.EASY: -0.60,
}

# ---- Scheduling ----

MATURITY_THRESHOLD_DAYS = 21.0   # Stability at which a learning word becomes known
MIN_INTERVAL_MS = 10 * MINUTE_MS # Hard floor for any interval
RELEARN_STEP_MS = 10 * MINUTE_MS # Interval after an Again
MAX_INTERVAL_DAYS = 3650.0
DEFAULT_JITTER = 0.05            # +/- share applied to review intervals

# ---- Mastery ----

MASTERY_SRS_WEIGHT = 0.6
MASTERY_ACCURACY_WEIGHT = 0.4
BREADTH_BASE = 0.5               # Accuracy share earned with a single modality
