"""Command line entry point: load the word corpus and report progress."""
import logging
import sys
from pathlib import Path

from lexideck.config import ensure_directories, settings
from lexideck.monitoring import start_monitoring
from lexideck.logging_config import setup_logging
from lexideck.models.base import SessionLocal, init_db
from lexideck.services.study_service import StudyService
from lexideck.services.summary import format_interval
from lexideck.services.word_service import WordService

logger = logging.getLogger(__name__)


def main(argv: list[str]) -> int:
    """Load categories into the database and log a summary per category."""
    categories_dir = Path(argv[0]) if argv else settings.paths.categories_dir
    if settings.monitoring.port:
        start_monitoring(settings.monitoring.port)
        logger.info(f"Metrics served on port {settings.monitoring.port}")
    init_db()

    db = SessionLocal()
    try:
        word_service = WordService(db)
        word_service.load_categories(categories_dir)
        study_service = StudyService(db)

        for category in word_service.get_categories():
            summary = study_service.summary(category)
            logger.info(f"{category}: {summary.to_dict()}")

        summary = study_service.summary()
        logger.info(f"{settings.study.default_scope}: {summary.to_dict()}")
        level = study_service.stats_service.get_level()
        streak = study_service.stats_service.check_streak_status()
        logger.info(
            f"Level {level.level} ({level.current_xp}/{level.required_xp} XP), "
            f"streak {streak.current} days (longest {streak.longest})"
        )
        goal = study_service.stats_service.get_daily_goal_progress()
        logger.info(f"Daily goal: {goal.current}/{goal.goal} words ({goal.percent}%)")
        logger.info(f"Hard answers come back in {format_interval(settings.scheduler.hard_interval)}")
    finally:
        db.close()
    return 0


def run() -> None:
    """Console script entry point."""
    ensure_directories()
    setup_logging("Starting lexideck ...")
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
