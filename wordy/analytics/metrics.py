"""
Metric computations for progress analytics.
"""

from __future__ import annotations

import pandas as pd

from wordy.srs.constants import WordStatus


def build_day_index(events_df: pd.DataFrame) -> pd.DatetimeIndex:
    """
    Build a dense UTC day index spanning the event range.
    """
    if events_df.empty:
        return pd.DatetimeIndex([], tz="UTC")
    start = events_df["day_utc"].min()
    end = events_df["day_utc"].max()
    return pd.date_range(start=start, end=end, freq="D")


def compute_status_counts(words_df: pd.DataFrame) -> dict[str, int]:
    counts = {status.value: 0 for status in WordStatus}
    if words_df.empty:
        return counts
    for status, total in words_df["status"].value_counts().items():
        counts[status] = int(total)
    return counts


def compute_due_now(words_df: pd.DataFrame, now_ms: int) -> int:
    """
    Words that get_due would return right now (ignoring its limit).
    """
    if words_df.empty:
        return 0
    due = (words_df["status"] != WordStatus.KNOWN.value) | (words_df["next_review_at"] <= now_ms)
    return int(due.sum())


def compute_mean_mastery(words_df: pd.DataFrame) -> float:
    if words_df.empty:
        return 0.0
    return round(float(words_df["mastery_score"].mean()), 4)


def compute_reviews_daily(events_df: pd.DataFrame, day_index: pd.DatetimeIndex) -> pd.Series:
    """
    Number of graded reviews per UTC day.
    """
    if events_df.empty or len(day_index) == 0:
        return pd.Series(dtype="int64")
    daily = events_df.groupby("day_utc").size()
    return daily.reindex(day_index, fill_value=0).astype("int64")


def compute_accuracy_daily(events_df: pd.DataFrame, day_index: pd.DatetimeIndex) -> pd.Series:
    """
    Share of correct reviews per UTC day; days without reviews are NaN.
    """
    if events_df.empty or len(day_index) == 0:
        return pd.Series(dtype="float64")
    daily = events_df.groupby("day_utc")["is_correct"].mean()
    return daily.reindex(day_index).astype("float64")


def compute_studied_cumulative(events_df: pd.DataFrame, day_index: pd.DatetimeIndex) -> pd.Series:
    """
    Cumulative unique reviewed words by first-seen day.
    """
    if events_df.empty or len(day_index) == 0:
        return pd.Series(dtype="int64")

    first_seen = events_df.groupby("word_id")["timestamp"].min().dt.floor("D")
    counts = first_seen.value_counts().sort_index()
    return counts.reindex(day_index, fill_value=0).cumsum().astype("int64")


def compute_day_stats(events_df: pd.DataFrame, day: pd.Timestamp) -> tuple[int, float]:
    """
    (review count, accuracy) for one UTC day. Accuracy is 0.0 without reviews.
    """
    if events_df.empty:
        return 0, 0.0
    scoped = events_df[events_df["day_utc"] == day]
    if scoped.empty:
        return 0, 0.0
    return int(len(scoped)), round(float(scoped["is_correct"].mean()), 4)
