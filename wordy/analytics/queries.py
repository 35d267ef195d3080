"""
Data-loading helpers for analytics.
"""

from __future__ import annotations

import pandas as pd

from wordy.log_repo import ReviewLog
from wordy.srs.constants import Grade
from wordy.word_repo import WordRepo


WORD_COLUMNS = ["word_id", "status", "mastery_score", "next_review_at", "created_at"]
EVENT_COLUMNS = ["word_id", "grade", "exercise", "timestamp", "is_correct", "day_utc"]


def load_words_df(store) -> pd.DataFrame:
    """
    Load the current word table into a dataframe.
    """
    words = WordRepo(store).get_all()
    if not words:
        return pd.DataFrame(columns=WORD_COLUMNS)

    return pd.DataFrame([
        {
            "word_id": w.id,
            "status": w.status,
            "mastery_score": w.mastery_score,
            "next_review_at": w.next_review_at,
            "created_at": w.created_at,
        }
        for w in words
    ])


def load_review_log_df(store) -> pd.DataFrame:
    """
    Load the review log into a dataframe with UTC timestamps and day buckets.
    """
    entries = ReviewLog(store).all_entries()
    if not entries:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    df = pd.DataFrame([
        {
            "word_id": e.word_id,
            "grade": e.grade,
            "exercise": e.exercise,
            "reviewed_at": e.reviewed_at,
        }
        for e in entries
    ])
    df["timestamp"] = pd.to_datetime(df["reviewed_at"], unit="ms", utc=True)
    df["is_correct"] = df["grade"] >= int(Grade.HARD)
    df["day_utc"] = df["timestamp"].dt.floor("D")
    df = df.sort_values("timestamp").reset_index(drop=True)
    return df[EVENT_COLUMNS]
