"""Service for streaks, experience points and daily activity."""
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from lexideck.config import settings
from lexideck.models.models import DailyLog, Streak, UserPreferences, UserStats
from lexideck.models.progress_models import DailyGoalProgress, LevelInfo
from lexideck.services.scheduler import round_half_up

logger = logging.getLogger(__name__)

DAILY_COUNTERS = (
    "words_studied",
    "quizzes_done",
    "xp_earned",
    "correct_answers",
    "total_answers",
)


def calculate_level(xp: int) -> LevelInfo:
    """Level reached with the given XP; level n needs n * 100 XP on top of level n - 1."""
    level = 1
    xp_required = 100
    total_xp_needed = 100

    while xp >= total_xp_needed:
        level += 1
        xp_required = level * 100
        total_xp_needed += xp_required

    xp_for_current_level = total_xp_needed - xp_required
    progress_in_level = xp - xp_for_current_level
    return LevelInfo(
        level=level,
        current_xp=progress_in_level,
        required_xp=xp_required,
        progress_percent=round_half_up(progress_in_level / xp_required * 100),
    )


class StatsService:
    """Service for streaks, experience points and daily activity."""

    def __init__(self, db: Session, default_daily_goal: Optional[int] = None):
        """Initialize the service with a database session.

        The default daily goal applies until the user sets one.
        """
        self.db = db
        self.default_daily_goal = default_daily_goal or settings.study.daily_goal

    def _get_streak(self) -> Streak:
        streak = self.db.query(Streak).first()
        if not streak:
            streak = Streak(current=0, longest=0, last_date=None)
            self.db.add(streak)
            self.db.commit()
            self.db.refresh(streak)
        return streak

    def _get_stats(self) -> UserStats:
        stats = self.db.query(UserStats).first()
        if not stats:
            stats = UserStats(
                total_xp=0,
                words_learned=0,
                quizzes_taken=0,
                correct_answers=0,
                total_answers=0,
            )
            self.db.add(stats)
            self.db.commit()
            self.db.refresh(stats)
        return stats

    # Streak

    def get_streak(self) -> Streak:
        """Get the study streak."""
        return self._get_streak()

    def update_streak(self, today: Optional[date] = None) -> Streak:
        """Record study activity for today."""
        today = today or date.today()
        yesterday = today - timedelta(days=1)
        streak = self._get_streak()

        if streak.last_date == today.isoformat():
            return streak
        if streak.last_date == yesterday.isoformat():
            streak.current += 1
        else:
            streak.current = 1
        streak.last_date = today.isoformat()
        streak.longest = max(streak.longest, streak.current)
        self.db.commit()
        logger.info(f"Streak updated: current={streak.current}, longest={streak.longest}")
        return streak

    def check_streak_status(self, today: Optional[date] = None) -> Streak:
        """Reset the current streak if a day was missed."""
        today = today or date.today()
        yesterday = today - timedelta(days=1)
        streak = self._get_streak()

        if streak.last_date not in (today.isoformat(), yesterday.isoformat()) and streak.current:
            logger.info(f"Streak of {streak.current} days broken")
            streak.current = 0
            self.db.commit()
        return streak

    # Stats

    def get_stats(self) -> UserStats:
        """Get lifetime statistics."""
        return self._get_stats()

    def add_xp(self, amount: int) -> int:
        """Add experience points and return the new total."""
        stats = self._get_stats()
        stats.total_xp += amount
        self.db.commit()
        return stats.total_xp

    def increment_words_learned(self) -> None:
        """Count one more word learned."""
        stats = self._get_stats()
        stats.words_learned += 1
        self.db.commit()

    def record_quiz_answer(self, is_correct: bool) -> None:
        """Record one quiz answer."""
        stats = self._get_stats()
        stats.total_answers += 1
        if is_correct:
            stats.correct_answers += 1
        self.db.commit()

    def increment_quizzes_taken(self) -> None:
        """Count one more finished quiz."""
        stats = self._get_stats()
        stats.quizzes_taken += 1
        self.db.commit()

    def get_accuracy(self) -> int:
        """Percentage of correct quiz answers."""
        stats = self._get_stats()
        if stats.total_answers == 0:
            return 0
        return round_half_up(stats.correct_answers / stats.total_answers * 100)

    def get_level(self) -> LevelInfo:
        """Level reached with the current XP."""
        return calculate_level(self._get_stats().total_xp)

    # Daily log

    def get_daily_log(self, day: date) -> Dict[str, Optional[int]]:
        """Counters of one day; zeros when nothing was recorded."""
        log = self.db.query(DailyLog).filter(DailyLog.date == day.isoformat()).first()
        result = {name: getattr(log, name) if log else 0 for name in DAILY_COUNTERS}
        result["time_started"] = log.time_started if log else None
        return result

    def update_daily_log(self, day: date, now: int, **increments: int) -> Dict[str, Optional[int]]:
        """Add the given increments to the counters of one day."""
        unknown = set(increments) - set(DAILY_COUNTERS)
        if unknown:
            raise ValueError(f"Unknown daily log counters: {', '.join(sorted(unknown))}")

        log = self.db.query(DailyLog).filter(DailyLog.date == day.isoformat()).first()
        if not log:
            log = DailyLog(date=day.isoformat(), **{name: 0 for name in DAILY_COUNTERS})
            self.db.add(log)
        if not log.time_started:
            log.time_started = now
        for name, value in increments.items():
            setattr(log, name, (getattr(log, name) or 0) + value)
        self.db.commit()
        return self.get_daily_log(day)

    def _logs_for_days(self, today: date, days: int) -> List[Dict]:
        result = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            entry = {"date": day.isoformat(), "is_today": offset == 0}
            entry.update(self.get_daily_log(day))
            result.append(entry)
        return result

    def get_weekly_logs(self, today: Optional[date] = None) -> List[Dict]:
        """Daily counters of the last 7 days, oldest first."""
        return self._logs_for_days(today or date.today(), 7)

    def get_monthly_logs(self, today: Optional[date] = None) -> List[Dict]:
        """Daily counters of the last 30 days, oldest first."""
        return self._logs_for_days(today or date.today(), 30)

    def _get_preferences(self) -> UserPreferences:
        preferences = self.db.query(UserPreferences).first()
        if not preferences:
            preferences = UserPreferences(daily_goal=None)
            self.db.add(preferences)
            self.db.commit()
            self.db.refresh(preferences)
        return preferences

    def get_daily_goal(self) -> int:
        """Words per day the user aims for."""
        return self._get_preferences().daily_goal or self.default_daily_goal

    def set_daily_goal(self, goal: int) -> int:
        """Store the user's daily goal."""
        if goal < 1:
            raise ValueError(f"Daily goal must be positive, got {goal}")
        preferences = self._get_preferences()
        preferences.daily_goal = goal
        self.db.commit()
        logger.info(f"Daily goal set to {goal} words")
        return goal

    def get_daily_goal_progress(
        self,
        goal: Optional[int] = None,
        today: Optional[date] = None,
    ) -> DailyGoalProgress:
        """Words studied today against the daily goal."""
        goal = goal or self.get_daily_goal()
        current = self.get_daily_log(today or date.today())["words_studied"]
        return DailyGoalProgress(
            current=current,
            goal=goal,
            percent=min(100, round_half_up(current / goal * 100)),
            completed=current >= goal,
        )
