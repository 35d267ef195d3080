"""
Mastery Aggregator

Collapses scheduler confidence and per-modality practice outcomes into one
score in [0, 1] that the UI and the practice queue can sort by.

Score:
    srs_confidence      = min(1, S / maturity_threshold)     (0 before the first review)
    accuracy            = correct / max(1, correct + wrong)
    breadth             = modalities with a correct answer / 3
    multimodal_accuracy = accuracy * (BREADTH_BASE + (1 - BREADTH_BASE) * breadth)

    mastery = 0.6 * srs_confidence + 0.4 * multimodal_accuracy

Rows imported from the legacy store never split their counters by modality;
their aggregate counters count as a single modality.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from wordy.srs.constants import (
    CounterSlot,
    BREADTH_BASE,
    MASTERY_ACCURACY_WEIGHT,
    MASTERY_SRS_WEIGHT,
    MATURITY_THRESHOLD_DAYS,
)


# Column pair backing each counter slot
SLOT_COLUMNS = {
    CounterSlot.TRANSLATION: ("translation_correct", "translation_wrong"),
    CounterSlot.MATCHING: ("matching_correct", "matching_wrong"),
    CounterSlot.LESSON: ("lesson_correct", "lesson_wrong"),
}


@dataclass(frozen=True)
class LegacyCounters:
    """Aggregate counters only."""
    correct: int
    wrong: int

    @property
    def modalities_with_success(self) -> int:
        return 1 if self.correct > 0 else 0


@dataclass(frozen=True)
class ModalCounters:
    """(correct, wrong) per counter slot."""
    slots: dict

    @property
    def correct(self) -> int:
        return sum(correct for correct, _ in self.slots.values())

    @property
    def wrong(self) -> int:
        return sum(wrong for _, wrong in self.slots.values())

    @property
    def modalities_with_success(self) -> int:
        return sum(1 for correct, _ in self.slots.values() if correct > 0)


Counters = Union[LegacyCounters, ModalCounters]


def resolve_counters(record) -> Counters:
    """
    Pick the counter representation for a word, ORM row or grammar concept.

    Records without per-modality columns (grammar concepts) and rows
    flagged with the legacy counter scheme use the aggregate counters.
    Legacy rows never tracked wrong answers, so wrong is derived from
    shown minus correct.
    """
    scheme = getattr(record, "counter_scheme", None)
    if scheme is None or scheme == "legacy":
        correct = record.times_correct or 0
        shown = record.times_shown or 0
        wrong = max(record.times_wrong or 0, shown - correct)
        return LegacyCounters(correct=correct, wrong=max(0, wrong))

    return ModalCounters(slots={
        slot: (getattr(record, correct_col) or 0, getattr(record, wrong_col) or 0)
        for slot, (correct_col, wrong_col) in SLOT_COLUMNS.items()
    })


def srs_confidence(stability: Optional[float]) -> float:
    if stability is None:
        return 0.0
    return min(1.0, max(0.0, stability) / MATURITY_THRESHOLD_DAYS)


def multimodal_accuracy(counters: Counters) -> float:
    attempts = counters.correct + counters.wrong
    accuracy = counters.correct / max(1, attempts)
    breadth = counters.modalities_with_success / len(SLOT_COLUMNS)
    return accuracy * (BREADTH_BASE + (1.0 - BREADTH_BASE) * breadth)


def mastery_score(stability: Optional[float], counters: Counters) -> float:
    """
    Combine scheduler confidence and practice accuracy.

    Args:
        stability: Current SRS stability in days (None before the first review)
        counters: Resolved counters of the item

    Returns:
        Mastery in [0, 1], rounded to 4 decimals
    """
    score = (
        MASTERY_SRS_WEIGHT * srs_confidence(stability)
        + MASTERY_ACCURACY_WEIGHT * multimodal_accuracy(counters)
    )
    return round(min(1.0, max(0.0, score)), 4)


def compute_mastery(record) -> float:
    """Mastery of a word (or grammar concept) from its current fields."""
    return mastery_score(record.srs_stability, resolve_counters(record))
