"""Tests for models."""
import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lexideck.models.models import DailyLog, ProgressRecord, Streak, UserPreferences, UserStats, Word
from lexideck.models.progress_models import (
    Status,
    StudySummary,
    WordProgress,
    coerce_progress,
)


def test_word_creation(db: Session) -> None:
    """Test word creation."""
    word = Word(
        id="kitchen_1",
        text="spoon",
        translation="kaşık",
        phonetic="/spuːn/",
        category="kitchen",
        level="a1",
    )
    db.add(word)
    db.commit()
    db.refresh(word)

    assert word.text == "spoon"
    assert word.example is None
    assert word.created_at is not None


def test_progress_record_defaults(db: Session) -> None:
    """Test progress record defaults match a new word."""
    record = ProgressRecord(scope="a1", word_id="kitchen_1")
    db.add(record)
    db.commit()
    db.refresh(record)

    assert record.interval == 0
    assert record.repetition == 0
    assert record.ease_factor == 2.5
    assert record.next_review is None
    assert record.status == "new"


def test_progress_record_unique_per_scope(db: Session) -> None:
    """Test one record per scope and word."""
    db.add(ProgressRecord(scope="a1", word_id="kitchen_1"))
    db.add(ProgressRecord(scope="a1", word_id="kitchen_1"))

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_stats_rows(db: Session) -> None:
    """Test streak, stats and daily log defaults."""
    db.add_all([Streak(), UserStats(), DailyLog(date="2024-05-01")])
    db.commit()

    assert db.query(Streak).one().current == 0
    assert db.query(UserStats).one().total_xp == 0
    assert db.query(DailyLog).one().words_studied == 0


def test_word_progress_default() -> None:
    """Test the default record of an untouched word."""
    progress = WordProgress.default()

    assert progress.status is Status.NEW
    assert progress.interval == 0
    assert progress.repetition == 0
    assert progress.ease_factor == 2.5
    assert progress.next_review is None
    assert progress.last_review is None


def test_word_progress_dict_round_trip() -> None:
    """Test conversion to and from plain mappings."""
    progress = WordProgress(interval=4320, repetition=2, ease_factor=2.2,
                            next_review=2000, last_review=1000, status=Status.REVIEW)

    data = progress.to_dict()

    assert data["status"] == "review"
    assert WordProgress.from_dict(data) == progress


@pytest.mark.parametrize("data", [
    None,
    {},
    {"status": "unknown"},
    {"status": "review", "interval": "soon"},
    {"status": "new", "interval": 500, "repetition": 4},
])
def test_word_progress_from_malformed(data) -> None:
    """Test malformed records fall back to a new record."""
    assert WordProgress.from_dict(data) == WordProgress.default()


def test_word_progress_is_frozen() -> None:
    """Test records cannot be changed in place."""
    progress = WordProgress.default()

    with pytest.raises(AttributeError):
        progress.interval = 10


def test_coerce_progress() -> None:
    """Test snapshot values are normalised."""
    progress = WordProgress.default()

    assert coerce_progress(None) is None
    assert coerce_progress(progress) is progress
    assert coerce_progress({"status": "learning", "interval": 10}).interval == 10
    assert coerce_progress("garbage") == WordProgress.default()


def test_study_summary_total() -> None:
    """Test the total excludes the due count."""
    summary = StudySummary(due=3, new=1, learning=2, review=3, mastered=4)

    assert summary.total == 10
    assert summary.to_dict()["total"] == 10


def test_user_preferences_goal_unset_by_default(db: Session) -> None:
    """Test the daily goal is empty until the user chooses one."""
    preferences = UserPreferences()
    db.add(preferences)
    db.commit()
    db.refresh(preferences)

    assert preferences.daily_goal is None
