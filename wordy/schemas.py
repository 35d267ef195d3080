"""
Pydantic models for words, review logs and grammar concepts.

These models are the values the engine hands to the UI layer, plus the
input shapes it accepts (creates, partial patches, legacy export records).
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from wordy.srs.constants import Exercise, WordStatus


def normalize_text(text: str) -> str:
    """Normalized surface form: trimmed and lower-cased."""
    return (text or "").strip().lower()


class WordSource(str, Enum):
    """Where a word came from. Fixed at creation."""
    MANUAL = "manual"
    LOOKUP = "lookup"
    YOUTUBE = "youtube"
    LESSON = "lesson"


class CounterScheme(str, Enum):
    """Legacy rows only have aggregate counters; modal rows split them per modality."""
    LEGACY = "legacy"
    MODAL = "modal"


# ---- Words ----

class Word(BaseModel):
    """A learnable vocabulary item as stored."""
    id: str
    text: str
    definition: str = ""
    translation: str = ""
    cefr_level: str = ""
    status: WordStatus = WordStatus.NEW
    source: WordSource = WordSource.LOOKUP
    frequency_rank: Optional[int] = None

    # Lifetime counters
    times_shown: int = 0
    times_correct: int = 0
    times_wrong: int = 0
    review_count: int = 0

    # Per-modality counters
    translation_correct: int = 0
    translation_wrong: int = 0
    matching_correct: int = 0
    matching_wrong: int = 0
    lesson_correct: int = 0
    lesson_wrong: int = 0
    counter_scheme: CounterScheme = CounterScheme.MODAL

    # Scheduler state
    srs_stability: Optional[float] = None
    srs_difficulty: Optional[float] = None
    last_reviewed_at: Optional[int] = None
    next_review_at: int

    mastery_score: float = 0.0
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True
        use_enum_values = True

    # Rows migrated from the first schema may carry NULL metadata
    @field_validator("definition", "translation", "cefr_level", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class WordCreate(BaseModel):
    """Fields accepted when adding a word."""
    text: str = Field(..., description="Surface form; normalized before storage")
    definition: str = ""
    translation: str = ""
    cefr_level: str = ""
    source: WordSource = WordSource.LOOKUP
    frequency_rank: Optional[int] = None

    class Config:
        use_enum_values = True

    @field_validator("text")
    @classmethod
    def _normalize(cls, value: str) -> str:
        normalized = normalize_text(value)
        if not normalized:
            raise ValueError("word text is empty")
        return normalized

    @field_validator("definition", "translation", "cefr_level", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class WordPatch(BaseModel):
    """
    Partial update of a word.

    Only fields that were explicitly set are written. Identity fields
    (id, text, source, created_at) cannot be patched.
    """
    definition: Optional[str] = None
    translation: Optional[str] = None
    cefr_level: Optional[str] = None
    status: Optional[WordStatus] = None
    frequency_rank: Optional[int] = None

    times_shown: Optional[int] = Field(None, ge=0)
    times_correct: Optional[int] = Field(None, ge=0)
    times_wrong: Optional[int] = Field(None, ge=0)
    review_count: Optional[int] = Field(None, ge=0)
    translation_correct: Optional[int] = Field(None, ge=0)
    translation_wrong: Optional[int] = Field(None, ge=0)
    matching_correct: Optional[int] = Field(None, ge=0)
    matching_wrong: Optional[int] = Field(None, ge=0)
    lesson_correct: Optional[int] = Field(None, ge=0)
    lesson_wrong: Optional[int] = Field(None, ge=0)

    srs_stability: Optional[float] = Field(None, gt=0)
    srs_difficulty: Optional[float] = Field(None, ge=1, le=10)
    last_reviewed_at: Optional[int] = None
    next_review_at: Optional[int] = None

    class Config:
        extra = "forbid"
        use_enum_values = True


# ---- Review log ----

class ReviewLogEntry(BaseModel):
    """One graded review. Immutable once written."""
    id: int
    word_id: str
    grade: int = Field(..., ge=1, le=4)
    reviewed_at: int
    time_taken_ms: int = 0
    exercise: Optional[Exercise] = None
    stability_after: Optional[float] = None
    difficulty_after: Optional[float] = None

    class Config:
        from_attributes = True
        use_enum_values = True


# ---- Grammar concepts ----

class GrammarConcept(BaseModel):
    """A grammar rule tracked with the same lifecycle as a word."""
    id: str
    name: str
    native_name: str = ""
    description: str = ""
    rule: str = ""
    examples: list[str] = Field(default_factory=list)
    cefr_level: str = ""
    status: WordStatus = WordStatus.NEW

    error_count: int = 0
    practice_count: int = 0
    times_shown: int = 0
    times_correct: int = 0
    times_wrong: int = 0

    srs_stability: Optional[float] = None
    srs_difficulty: Optional[float] = None
    last_reviewed_at: Optional[int] = None
    next_review_at: int

    mastery_score: float = 0.0
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True
        use_enum_values = True

    # Stored as a JSON array in a text column
    @field_validator("examples", mode="before")
    @classmethod
    def _decode_examples(cls, value):
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return json.loads(value)
        return value


class GrammarConceptCreate(BaseModel):
    name: str = Field(..., description="Concept name, e.g. 'Present Perfect'")
    native_name: str = ""
    description: str = ""
    rule: str = ""
    examples: list[str] = Field(default_factory=list)
    cefr_level: str = ""

    @field_validator("name")
    @classmethod
    def _normalize(cls, value: str) -> str:
        normalized = normalize_text(value)
        if not normalized:
            raise ValueError("concept name is empty")
        return normalized

    @field_validator("examples")
    @classmethod
    def _clean_examples(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]


class GrammarConceptPatch(BaseModel):
    native_name: Optional[str] = None
    description: Optional[str] = None
    rule: Optional[str] = None
    examples: Optional[list[str]] = None
    cefr_level: Optional[str] = None
    status: Optional[WordStatus] = None

    error_count: Optional[int] = Field(None, ge=0)
    practice_count: Optional[int] = Field(None, ge=0)
    times_shown: Optional[int] = Field(None, ge=0)
    times_correct: Optional[int] = Field(None, ge=0)
    times_wrong: Optional[int] = Field(None, ge=0)

    srs_stability: Optional[float] = Field(None, gt=0)
    srs_difficulty: Optional[float] = Field(None, ge=1, le=10)
    last_reviewed_at: Optional[int] = None
    next_review_at: Optional[int] = None

    class Config:
        extra = "forbid"
        use_enum_values = True


# ---- Legacy export ----

class LegacyWordRecord(BaseModel):
    """
    One record of the legacy flat-list export.

    Keys are camelCase as written by the old key-value store; missing keys
    take defaults and unknown keys are ignored.
    """
    id: Optional[str] = None
    text: str
    definition: str = ""
    translation: str = ""
    cefr_level: str = Field("", alias="cefrLevel")
    status: WordStatus = WordStatus.NEW
    times_shown: int = Field(0, alias="timesShown", ge=0)
    times_correct: int = Field(0, alias="timesCorrect", ge=0)
    last_reviewed_at: Optional[int] = Field(None, alias="lastReviewedAt")
    next_review_at: Optional[int] = Field(None, alias="nextReviewAt")
    source: WordSource = WordSource.LOOKUP
    created_at: Optional[int] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value):
        return None if value in (None, "") else str(value)

    @field_validator("definition", "translation", "cefr_level", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @property
    def normalized_text(self) -> str:
        return normalize_text(self.text)
