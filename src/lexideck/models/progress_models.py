"""Domain data structures for spaced repetition progress."""
from dataclasses import dataclass, asdict, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional
import logging

from lexideck.models.models import Word


logger = logging.getLogger(__name__)

DEFAULT_EASE_FACTOR = 2.5


class Status(Enum):
    """Mastery stage of a word."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


class Quality(IntEnum):
    """Supported answer ratings."""
    HARD = 1
    GOOD = 3
    EASY = 5


@dataclass(frozen=True)
class WordProgress:
    """Scheduling state of one word within one scope."""
    interval: int = 0  # minutes until next review
    repetition: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    next_review: Optional[int] = None  # ms since epoch
    last_review: Optional[int] = None  # ms since epoch
    status: Status = Status.NEW

    @classmethod
    def default(cls) -> "WordProgress":
        """Return the record of a word that was never studied."""
        return cls()

    def is_due(self, now: int) -> bool:
        """Check if the word's scheduled review has passed."""
        return self.next_review is not None and self.next_review <= now

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain mapping for storage."""
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WordProgress":
        """Create a record from stored data, falling back to a new record."""
        if not data:
            return cls.default()
        try:
            status = Status(data.get("status", Status.NEW.value))
        except ValueError:
            logger.warning(f"Unknown progress status {data.get('status')!r}, treating as new")
            return cls.default()
        if status is Status.NEW:
            return cls.default()
        try:
            return cls(
                interval=int(data.get("interval") or 0),
                repetition=int(data.get("repetition") or 0),
                ease_factor=float(data.get("ease_factor") or DEFAULT_EASE_FACTOR),
                next_review=_optional_int(data.get("next_review")),
                last_review=_optional_int(data.get("last_review")),
                status=status,
            )
        except (TypeError, ValueError):
            logger.warning(f"Malformed progress record {data!r}, treating as new")
            return cls.default()


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


@dataclass
class SessionItem:
    """Candidate word during session selection."""
    word: Word
    priority: int  # 1 = due, 2 = new, 3 = learning
    tiebreak: float
    overdue: int = 0


@dataclass
class StudySummary:
    """Status breakdown of one scope."""
    due: int = 0
    new: int = 0
    learning: int = 0
    review: int = 0
    mastered: int = 0

    @property
    def total(self) -> int:
        return self.new + self.learning + self.review + self.mastered

    def to_dict(self) -> Dict[str, int]:
        return {
            "due": self.due,
            "new": self.new,
            "learning": self.learning,
            "review": self.review,
            "mastered": self.mastered,
            "total": self.total,
        }


@dataclass
class DueWord:
    """A word whose review is due, with its progress."""
    word_id: str
    progress: WordProgress
    overdue: int  # ms past next_review


@dataclass
class LevelInfo:
    """Experience level derived from total XP."""
    level: int
    current_xp: int
    required_xp: int
    progress_percent: int


@dataclass
class DailyGoalProgress:
    """Today's progress towards the daily word goal."""
    current: int
    goal: int
    percent: int
    completed: bool


@dataclass
class ReviewOutcome:
    """Result of rating one word."""
    word_id: str
    scope: str
    previous: WordProgress
    progress: WordProgress
    xp: int


@dataclass
class Quiz:
    """Multiple choice question for one word."""
    word: Word
    options: List[Word] = field(default_factory=list)
    correct_index: int = -1


def coerce_progress(value: Any) -> Optional[WordProgress]:
    """Normalise a snapshot value; plain mappings are parsed, None stays None."""
    if value is None or isinstance(value, WordProgress):
        return value
    if isinstance(value, dict):
        return WordProgress.from_dict(value)
    logger.warning(f"Ignoring malformed progress value {value!r}")
    return WordProgress.default()
