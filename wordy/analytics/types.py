"""
Types for progress analytics.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True)
class ProgressSummary:
    """
    Precomputed counts and daily series for the progress screen.
    """
    total_words: int
    by_status: dict[str, int]
    due_now: int
    mean_mastery: float
    reviews_today: int
    accuracy_today: float
    reviews_daily: pd.Series
    accuracy_daily: pd.Series
    studied_cumulative_daily: pd.Series
