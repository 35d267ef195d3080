"""
Scheduler - SRS Algorithm Logic

Pure scheduling and state updates (no database calls).

Main workflow:
1. Load word state (caller's responsibility)
2. Validate the grade
3. Calculate retrievability from the elapsed time
4. Apply first-review or subsequent-review update rules
5. Derive the new status and the next review time

Database I/O is handled by the scheduling module.
"""

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Optional

from wordy.errors import InvalidGradeError
from wordy.srs import memory_state, stability_updates
from wordy.srs.constants import (
    Grade,
    WordStatus,
    DAY_MS,
    DESIRED_RETENTION,
    MATURITY_THRESHOLD_DAYS,
    MAX_INTERVAL_DAYS,
    MIN_INTERVAL_MS,
    RELEARN_STEP_MS,
    DEFAULT_JITTER,
)


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of scheduling one review: the new state plus audit values."""
    state: memory_state.SrsState
    grade: Grade
    previous_status: WordStatus
    stability_before: Optional[float]
    difficulty_before: Optional[float]
    retrievability_before: Optional[float]
    interval_ms: int

    @property
    def is_correct(self) -> bool:
        return self.grade != Grade.AGAIN

    @property
    def status_changed(self) -> bool:
        return self.state.status != self.previous_status

    @property
    def is_lapse(self) -> bool:
        return self.previous_status == WordStatus.KNOWN and self.grade == Grade.AGAIN


def validate_grade(grade) -> Grade:
    """
    Convert a caller-supplied grade to a Grade.

    Raises:
        InvalidGradeError: for anything that is not an integer in 1..4
    """
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise InvalidGradeError(f"grade must be an integer 1-4, got {grade!r}")
    try:
        return Grade(grade)
    except ValueError:
        raise InvalidGradeError(f"grade must be between 1 and 4, got {grade}") from None


def next_status(status: WordStatus, grade: Grade, new_stability: float) -> WordStatus:
    """
    Status machine.

    - new -> learning on Good/Easy; Again/Hard keep it new
    - learning -> known once a successful review pushes stability past maturity
    - known -> learning on Again (lapse)
    """
    if status == WordStatus.NEW:
        return WordStatus.LEARNING if grade >= Grade.GOOD else WordStatus.NEW

    if status == WordStatus.KNOWN:
        return WordStatus.LEARNING if grade == Grade.AGAIN else WordStatus.KNOWN

    if grade != Grade.AGAIN and new_stability >= MATURITY_THRESHOLD_DAYS:
        return WordStatus.KNOWN
    return WordStatus.LEARNING


# Allowed status moves through a patch; known -> learning is the only way back
STATUS_TRANSITIONS = {
    WordStatus.NEW: {WordStatus.NEW, WordStatus.LEARNING, WordStatus.KNOWN},
    WordStatus.LEARNING: {WordStatus.LEARNING, WordStatus.KNOWN},
    WordStatus.KNOWN: {WordStatus.KNOWN, WordStatus.LEARNING},
}


def check_status_transition(current, target) -> None:
    """
    Reject a manual status change the status machine does not allow.

    Raises:
        ValueError: for a move back to new, or any unknown status
    """
    current, target = WordStatus(current), WordStatus(target)
    if target not in STATUS_TRANSITIONS[current]:
        raise ValueError(f"status cannot move from {current.value} to {target.value}")


def next_interval_ms(
    stability: float,
    grade: Grade,
    rng: random.Random,
    jitter: float = DEFAULT_JITTER
) -> int:
    """
    Map stability to a calendar interval.

    Again schedules the short relearning step. Other grades wait until
    retrievability falls to DESIRED_RETENTION, spread by +/- jitter so words
    reviewed together do not all fall due together. The result is never
    shorter than MIN_INTERVAL_MS nor longer than MAX_INTERVAL_DAYS.
    """
    if grade == Grade.AGAIN:
        return max(MIN_INTERVAL_MS, RELEARN_STEP_MS)

    days = memory_state.interval_days_for(stability, DESIRED_RETENTION)
    if jitter > 0:
        days *= 1.0 + rng.uniform(-jitter, jitter)
    days = min(MAX_INTERVAL_DAYS, days)
    return max(MIN_INTERVAL_MS, int(round(days * DAY_MS)))


def process_review(
    state: memory_state.SrsState,
    grade,
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None,
    jitter: float = DEFAULT_JITTER
) -> ReviewOutcome:
    """
    Process a review and return the updated state.

    This is the core algorithm. No database calls.

    Args:
        state: Current SRS state of the word
        grade: User grade, 1 (Again) .. 4 (Easy)
        now_ms: Review time in epoch millis (defaults to now)
        rng: Random source for interval jitter
        jitter: Interval jitter fraction

    Returns:
        ReviewOutcome with the new state

    Raises:
        InvalidGradeError: if grade is outside 1..4
    """
    grade = validate_grade(grade)
    if now_ms is None:
        now_ms = memory_state.now_ms()
    if rng is None:
        rng = random.Random()

    if state.is_first_review:
        retrievability_before = None
        new_stability = stability_updates.initial_stability(grade)
        new_difficulty = stability_updates.initial_difficulty(grade)
    else:
        days = memory_state.elapsed_days(state.last_reviewed_at, now_ms)
        retrievability_before = memory_state.calculate_retrievability(state.srs_stability, days)
        new_stability, new_difficulty = stability_updates.apply_review_update(
            stability=state.srs_stability,
            difficulty=state.srs_difficulty,
            retrievability=retrievability_before,
            grade=grade,
            is_lapse=state.status == WordStatus.KNOWN and grade == Grade.AGAIN,
        )

    status = next_status(state.status, grade, new_stability)
    interval_ms = next_interval_ms(new_stability, grade, rng, jitter)

    return ReviewOutcome(
        state=memory_state.SrsState(
            status=status,
            srs_stability=new_stability,
            srs_difficulty=new_difficulty,
            last_reviewed_at=now_ms,
            next_review_at=now_ms + interval_ms,
        ),
        grade=grade,
        previous_status=state.status,
        stability_before=state.srs_stability,
        difficulty_before=state.srs_difficulty,
        retrievability_before=retrievability_before,
        interval_ms=interval_ms,
    )
