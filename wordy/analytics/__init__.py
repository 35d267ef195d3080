"""
Analytics package exports.
"""

from wordy.analytics.service import build_progress_summary
from wordy.analytics.types import ProgressSummary

__all__ = [
    "build_progress_summary",
    "ProgressSummary",
]
