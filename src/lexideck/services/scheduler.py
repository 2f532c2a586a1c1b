"""SM-2 derived review scheduler.

Quality ratings are reduced to three buttons: Hard (1), Good (3) and Easy (5).
Intervals are expressed in minutes, timestamps in milliseconds since the epoch.
All functions are pure: they never mutate the record they are given.
"""
import logging
import math
import time
from typing import Optional, Union

from lexideck.config import SchedulerSettings
from lexideck.models.progress_models import Quality, Status, WordProgress

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60 * 1000


class InvalidQualityError(ValueError):
    """Raised when a rating other than Hard, Good or Easy is supplied."""


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return int(math.floor(value + 0.5))


def validate_quality(quality: Union[int, Quality]) -> Quality:
    """Return the rating as a Quality or raise InvalidQualityError."""
    if isinstance(quality, bool):
        raise InvalidQualityError(f"Invalid quality {quality!r}, expected one of 1, 3, 5")
    try:
        return Quality(quality)
    except ValueError as e:
        logger.warning(f"Rejected quality rating {quality!r}")
        raise InvalidQualityError(f"Invalid quality {quality!r}, expected one of 1, 3, 5") from e


def compute_next_review(
    current: WordProgress,
    quality: Union[int, Quality],
    now: int,
    config: Optional[SchedulerSettings] = None,
) -> WordProgress:
    """Compute the state following one rating of a word.

    Args:
        current: Progress before the rating.
        quality: 1 (Hard), 3 (Good) or 5 (Easy).
        now: Current time in milliseconds since the epoch.
        config: Scheduler constants; defaults are used when omitted.

    Returns:
        A new WordProgress; ``current`` is left untouched.
    """
    config = config or SchedulerSettings()
    quality = validate_quality(quality)

    interval = current.interval
    repetition = current.repetition
    ease_factor = current.ease_factor

    # Stale values on a new record are ignored
    if current.status is Status.NEW:
        interval = 0
        repetition = 0
        ease_factor = config.default_ease_factor

    if quality < Quality.GOOD:
        repetition = 0
        interval = config.hard_interval
        status = Status.LEARNING
    elif quality == Quality.GOOD:
        if repetition == 0:
            interval = config.good_interval
        elif repetition == 1:
            interval = config.good_second_interval
        else:
            interval = round_half_up(interval * ease_factor)
        repetition += 1
        status = Status.REVIEW if repetition >= 3 else Status.LEARNING
    else:
        if repetition == 0:
            interval = config.easy_interval
        else:
            interval = round_half_up(interval * ease_factor * config.easy_bonus)
        repetition += 1
        ease_factor += config.easy_ease_bonus
        status = Status.REVIEW if repetition >= 2 else Status.LEARNING

    if repetition >= config.mastery_repetitions and interval >= config.mastery_interval:
        status = Status.MASTERED

    distance = 5 - int(quality)
    ease_factor += 0.1 - distance * (0.08 + distance * 0.02)
    ease_factor = max(config.min_ease_factor, ease_factor)

    result = WordProgress(
        interval=interval,
        repetition=repetition,
        ease_factor=ease_factor,
        next_review=now + interval * MS_PER_MINUTE,
        last_review=now,
        status=status,
    )
    logger.debug(
        f"Quality {int(quality)}: {current.status.value} -> {status.value}, "
        f"interval {current.interval} -> {interval}, ease {ease_factor:.2f}"
    )
    return result


def reward_for(
    quality: Union[int, Quality],
    previous_status: Union[Status, str],
    config: Optional[SchedulerSettings] = None,
) -> int:
    """Experience points earned for a rating given the word's status before it."""
    config = config or SchedulerSettings()
    quality = validate_quality(quality)
    if isinstance(previous_status, Status):
        previous_status = previous_status.value
    multiplier = config.status_multiplier.get(previous_status, 1.0)
    return round_half_up(config.base_xp[int(quality)] * multiplier)


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)
