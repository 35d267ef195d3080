"""
SQLAlchemy ORM Models for the vocabulary store

Defines the words, review log, grammar concept and store metadata tables.
All timestamps are epoch milliseconds stored as integers.
"""

from sqlalchemy import (
    BigInteger,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class WordRow(Base):
    """
    Persistent record for a single vocabulary item.

    text holds the normalized (trimmed, lower-cased) surface form and is unique.
    """
    __tablename__ = 'words'

    id = Column(String(64), primary_key=True)
    text = Column(String(255), nullable=False, unique=True)

    # Descriptive metadata (may be empty until enrichment fills it in)
    definition = Column(Text, nullable=False, default="")
    translation = Column(Text, nullable=False, default="")
    cefr_level = Column(String(8), nullable=False, default="")

    status = Column(String(16), nullable=False, default="new")
    source = Column(String(16), nullable=False, default="lookup")
    frequency_rank = Column(Integer, nullable=True)

    # Lifetime counters
    times_shown = Column(Integer, nullable=False, default=0)
    times_correct = Column(Integer, nullable=False, default=0)
    times_wrong = Column(Integer, nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)

    # Per-modality counters
    translation_correct = Column(Integer, nullable=False, default=0)
    translation_wrong = Column(Integer, nullable=False, default=0)
    matching_correct = Column(Integer, nullable=False, default=0)
    matching_wrong = Column(Integer, nullable=False, default=0)
    lesson_correct = Column(Integer, nullable=False, default=0)
    lesson_wrong = Column(Integer, nullable=False, default=0)
    counter_scheme = Column(String(16), nullable=False, default="modal")

    # Scheduler state
    srs_stability = Column(Float, nullable=True)
    srs_difficulty = Column(Float, nullable=True)
    last_reviewed_at = Column(BigInteger, nullable=True)
    next_review_at = Column(BigInteger, nullable=False)

    mastery_score = Column(Float, nullable=False, default=0.0)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index('idx_words_status', 'status'),
        Index('idx_words_next_review', 'next_review_at'),
        Index('idx_words_mastery', 'mastery_score'),
    )

    def __repr__(self):
        return f"<WordRow({self.id}, {self.text!r}, {self.status})>"


class ReviewLogRow(Base):
    """
    Log entry for a single graded review of a word.

    Rows are only ever inserted; they go away with their word.
    """
    __tablename__ = 'review_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    word_id = Column(
        String(64),
        ForeignKey('words.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    grade = Column(Integer, nullable=False)  # 1=AGAIN, 2=HARD, 3=GOOD, 4=EASY
    reviewed_at = Column(BigInteger, nullable=False)
    time_taken_ms = Column(Integer, nullable=False, default=0)

    # Audit columns
    exercise = Column(String(32), nullable=True)
    stability_after = Column(Float, nullable=True)
    difficulty_after = Column(Float, nullable=True)

    def __repr__(self):
        return f"<ReviewLogRow(id={self.id}, {self.word_id}, grade={self.grade})>"


class GrammarConceptRow(Base):
    """Persistent record for a grammar concept, keyed by normalized name."""
    __tablename__ = 'grammar_concepts'

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    native_name = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    rule = Column(Text, nullable=False, default="")
    examples = Column(Text, nullable=False, default="[]")  # JSON array of strings
    cefr_level = Column(String(8), nullable=False, default="")
    status = Column(String(16), nullable=False, default="new")

    error_count = Column(Integer, nullable=False, default=0)
    practice_count = Column(Integer, nullable=False, default=0)
    times_shown = Column(Integer, nullable=False, default=0)
    times_correct = Column(Integer, nullable=False, default=0)
    times_wrong = Column(Integer, nullable=False, default=0)

    srs_stability = Column(Float, nullable=True)
    srs_difficulty = Column(Float, nullable=True)
    last_reviewed_at = Column(BigInteger, nullable=True)
    next_review_at = Column(BigInteger, nullable=False)

    mastery_score = Column(Float, nullable=False, default=0.0)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index('idx_grammar_status', 'status'),
        Index('idx_grammar_next_review', 'next_review_at'),
    )

    def __repr__(self):
        return f"<GrammarConceptRow({self.id}, {self.name!r}, {self.status})>"


class GrammarReviewLogRow(Base):
    """Log entry for a single graded review of a grammar concept."""
    __tablename__ = 'grammar_review_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    concept_id = Column(
        String(64),
        ForeignKey('grammar_concepts.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    grade = Column(Integer, nullable=False)
    reviewed_at = Column(BigInteger, nullable=False)
    time_taken_ms = Column(Integer, nullable=False, default=0)
    stability_after = Column(Float, nullable=True)
    difficulty_after = Column(Float, nullable=True)

    def __repr__(self):
        return f"<GrammarReviewLogRow(id={self.id}, {self.concept_id}, grade={self.grade})>"


class StoreMeta(Base):
    """Key/value metadata: schema_version, legacy_import_complete."""
    __tablename__ = 'store_meta'

    key = Column(String(64), primary_key=True)
    value = Column(String(255), nullable=False)
