"""
Memory State - SRS state of a word and derived quantities

Key concepts:
- Stability (S): days until recall probability falls to 90%
- Difficulty (D): how hard the item is to learn (1-10 scale)
- Retrievability (R): probability of successful recall at time t
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import math

from wordy.srs.constants import DAY_MS, WordStatus


# Recall probability after exactly S days
CURVE_RETENTION = 0.9


@dataclass
class SrsState:
    """
    Scheduling state of one word (or grammar concept).

    srs_stability and srs_difficulty are None until the first review.
    """
    status: WordStatus
    srs_stability: Optional[float]
    srs_difficulty: Optional[float]
    last_reviewed_at: Optional[int]  # epoch millis
    next_review_at: int              # epoch millis

    @property
    def is_first_review(self) -> bool:
        return self.srs_stability is None or self.srs_difficulty is None

    @classmethod
    def from_record(cls, record) -> "SrsState":
        """Build state from any object carrying the SRS attributes (ORM row or model)."""
        return cls(
            status=WordStatus(record.status),
            srs_stability=record.srs_stability,
            srs_difficulty=record.srs_difficulty,
            last_reviewed_at=record.last_reviewed_at,
            next_review_at=record.next_review_at,
        )


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def to_ms(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds (naive values are treated as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def elapsed_days(last_reviewed_at: Optional[int], now: int) -> float:
    """
    Days since the last review.

    Returns 0 for never-reviewed items and for a last review stamped in the
    future (clock skew).
    """
    if last_reviewed_at is None:
        return 0.0
    return max(0, now - last_reviewed_at) / DAY_MS


def calculate_retrievability(stability: float, days_since_review: float) -> float:
    """
    Calculate retrievability using exponential decay.

    Formula: R = 0.9 ^ (Δt / S)

    Immediately after a review R = 1.0; after S days R = 0.9.

    Args:
        stability: Current stability in days
        days_since_review: Time since last review in days

    Returns:
        Retrievability between 0 and 1
    """
    if days_since_review <= 0:
        return 1.0
    return math.exp(math.log(CURVE_RETENTION) * days_since_review / stability)


def interval_days_for(stability: float, desired_retention: float) -> float:
    """Days until retrievability drops to desired_retention."""
    return stability * math.log(desired_retention) / math.log(CURVE_RETENTION)
