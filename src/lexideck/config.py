"""Configuration settings for the flashcard core."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
CATEGORIES_DIR = DATA_DIR / "categories"

# Scheduler constants (minutes)
HARD_INTERVAL = 10
GOOD_INTERVAL = 1440  # 1 day
EASY_INTERVAL = 4320  # 3 days
MASTERY_INTERVAL = 43200  # 30 days

BASE_XP = {1: 2, 3: 5, 5: 10}
STATUS_XP_MULTIPLIER = {"new": 1.5, "learning": 1.0, "review": 0.8, "mastered": 0.5}


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        CATEGORIES_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    categories_dir: Path = CATEGORIES_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///lexideck.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class SchedulerSettings:
    """Spaced repetition constants passed explicitly to the scheduler."""
    min_ease_factor: float = 1.3
    default_ease_factor: float = 2.5
    hard_interval: int = HARD_INTERVAL
    good_interval: int = GOOD_INTERVAL
    good_second_interval: int = EASY_INTERVAL
    easy_interval: int = EASY_INTERVAL
    easy_bonus: float = 1.3
    easy_ease_bonus: float = 0.15
    mastery_repetitions: int = 5
    mastery_interval: int = MASTERY_INTERVAL
    base_xp: dict[int, int] = field(default_factory=lambda: dict(BASE_XP))
    status_multiplier: dict[str, float] = field(
        default_factory=lambda: dict(STATUS_XP_MULTIPLIER)
    )


@dataclass
class StudySettings:
    """Study session settings."""
    session_size: int = int(os.getenv("SESSION_SIZE", "20"))
    daily_goal: int = int(os.getenv("DAILY_GOAL", "10"))
    quiz_options: int = int(os.getenv("QUIZ_OPTIONS", "4"))
    default_scope: str = os.getenv("DEFAULT_SCOPE", "all")


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    port: Optional[int] = int(os.environ["METRICS_PORT"]) if os.getenv("METRICS_PORT") else None


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_scheduler_settings() -> SchedulerSettings:
    """Get scheduler settings."""
    return SchedulerSettings()


def get_study_settings() -> StudySettings:
    """Get study settings."""
    return StudySettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    scheduler: SchedulerSettings = field(default_factory=get_scheduler_settings)
    study: StudySettings = field(default_factory=get_study_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.scheduler.min_ease_factor > self.scheduler.default_ease_factor:
            raise ValueError("min_ease_factor cannot be greater than default_ease_factor")

        if self.study.session_size < 1:
            raise ValueError("SESSION_SIZE must be positive")

        if self.study.daily_goal < 1:
            raise ValueError("DAILY_GOAL must be positive")

        if self.study.quiz_options < 2:
            raise ValueError("QUIZ_OPTIONS must be at least 2")


# Create global settings instance
settings = Settings()
settings.validate()
