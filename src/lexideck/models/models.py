"""Database models for the flashcard core."""
from sqlalchemy import (
    BigInteger,
    Column,
    Float,
    Integer,
    String,
    UniqueConstraint,
)

from lexideck.models.base import Base, TimestampMixin


class Word(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"

    id = Column(String, primary_key=True)  # e.g., "kitchen_12"
    text = Column(String, nullable=False)
    translation = Column(String, nullable=False)
    phonetic = Column(String)
    example = Column(String)
    category = Column(String, nullable=False, index=True)
    level = Column(String, nullable=False, index=True)  # a1 .. c1

    def __repr__(self) -> str:
        return f"<Word {self.id} {self.text!r}>"


class ProgressRecord(Base, TimestampMixin):
    """Persisted spaced repetition state of one word within one scope."""

    __tablename__ = "progress"
    __table_args__ = (UniqueConstraint("scope", "word_id", name="uq_progress_scope_word"),)

    id = Column(Integer, primary_key=True)
    scope = Column(String, nullable=False, index=True)
    word_id = Column(String, nullable=False)
    interval = Column(Integer, nullable=False, default=0)  # in minutes
    repetition = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False, default=2.5)
    next_review = Column(BigInteger, nullable=True)  # ms since epoch
    last_review = Column(BigInteger, nullable=True)  # ms since epoch
    status = Column(String, nullable=False, default="new")


class Streak(Base, TimestampMixin):
    """Study streak model."""

    __tablename__ = "streaks"

    id = Column(Integer, primary_key=True)
    current = Column(Integer, nullable=False, default=0)
    longest = Column(Integer, nullable=False, default=0)
    last_date = Column(String, nullable=True)  # ISO date, e.g. "2024-05-01"


class UserStats(Base, TimestampMixin):
    """Lifetime study statistics."""

    __tablename__ = "user_stats"

    id = Column(Integer, primary_key=True)
    total_xp = Column(Integer, nullable=False, default=0)
    words_learned = Column(Integer, nullable=False, default=0)
    quizzes_taken = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    total_answers = Column(Integer, nullable=False, default=0)


class UserPreferences(Base, TimestampMixin):
    """Study preferences chosen by the user."""

    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True)
    daily_goal = Column(Integer, nullable=True)  # words per day; None uses the configured default


class DailyLog(Base, TimestampMixin):
    """Per-day activity counters."""

    __tablename__ = "daily_logs"

    id = Column(Integer, primary_key=True)
    date = Column(String, unique=True, nullable=False)  # ISO date
    words_studied = Column(Integer, nullable=False, default=0)
    quizzes_done = Column(Integer, nullable=False, default=0)
    xp_earned = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    total_answers = Column(Integer, nullable=False, default=0)
    time_started = Column(BigInteger, nullable=True)  # ms since epoch
