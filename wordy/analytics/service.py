"""
Service layer to assemble the progress summary.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

from wordy.analytics.metrics import (
    build_day_index,
    compute_accuracy_daily,
    compute_day_stats,
    compute_due_now,
    compute_mean_mastery,
    compute_reviews_daily,
    compute_status_counts,
    compute_studied_cumulative,
)
from wordy.analytics.queries import load_review_log_df, load_words_df
from wordy.analytics.types import ProgressSummary
from wordy.srs.memory_state import now_ms as current_ms


def build_progress_summary(store, now_ms: Optional[int] = None) -> ProgressSummary:
    """
    Build all counts and series needed by the progress screen.

    A degraded store yields an all-zero summary.
    """
    now = now_ms if now_ms is not None else current_ms()
    today = pd.Timestamp(now, unit="ms", tz="UTC").floor("D")

    words_df = load_words_df(store)
    events_df = load_review_log_df(store)
    day_index = build_day_index(events_df)
    reviews_today, accuracy_today = compute_day_stats(events_df, today)

    return ProgressSummary(
        total_words=int(len(words_df)),
        by_status=compute_status_counts(words_df),
        due_now=compute_due_now(words_df, now),
        mean_mastery=compute_mean_mastery(words_df),
        reviews_today=reviews_today,
        accuracy_today=accuracy_today,
        reviews_daily=compute_reviews_daily(events_df, day_index),
        accuracy_daily=compute_accuracy_daily(events_df, day_index),
        studied_cumulative_daily=compute_studied_cumulative(events_df, day_index),
    )
