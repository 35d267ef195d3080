from __future__ import annotations

import itertools
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from wordy.config import Settings
from wordy.grammar_repo import GrammarRepo
from wordy.log_repo import ReviewLog
from wordy.storage import open_store
from wordy.word_repo import WordRepo

# 2025-10-09T09:46:40Z
NOW = 1_760_003_200_000
MINUTE = 60 * 1000
DAY = 24 * 60 * MINUTE


@pytest.fixture()
def settings(tmp_path):
    return Settings(database_url=f"sqlite:///{tmp_path / 'wordy_test.db'}", srs_jitter=0.0)


@pytest.fixture()
def store(settings):
    s = open_store(settings)
    assert s.available
    yield s
    s.dispose()


@pytest.fixture()
def words(store):
    return WordRepo(store)


@pytest.fixture()
def review_log(store):
    return ReviewLog(store)


@pytest.fixture()
def grammar(store):
    return GrammarRepo(store)


@pytest.fixture()
def rng():
    return random.Random(7)


@pytest.fixture()
def ticking_clock(monkeypatch):
    """Make word creation times strictly increasing, one millisecond apart."""
    ticks = itertools.count(NOW)
    monkeypatch.setattr("wordy.word_repo.current_ms", lambda: next(ticks))
    return ticks
