"""Selection and ordering of the words presented in a study session."""
import logging
import random
from typing import Any, Dict, List, Mapping, Optional, Sequence

from lexideck.models.models import Word
from lexideck.models.progress_models import SessionItem, Status, coerce_progress
from lexideck.services.progress_store import progress_key
from lexideck.services.scheduler import now_ms

logger = logging.getLogger(__name__)

DUE_PRIORITY = 1
NEW_PRIORITY = 2
LEARNING_PRIORITY = 3


def _partition(
    words: Sequence[Word],
    progress: Mapping[str, Any],
    scope: str,
    now: int,
    rng: random.Random,
) -> Dict[int, List[SessionItem]]:
    buckets: Dict[int, List[SessionItem]] = {
        DUE_PRIORITY: [],
        NEW_PRIORITY: [],
        LEARNING_PRIORITY: [],
    }
    for word in words:
        record = coerce_progress(progress.get(progress_key(scope, word.id)))
        if record is None or record.status is Status.NEW:
            buckets[NEW_PRIORITY].append(SessionItem(word, NEW_PRIORITY, rng.random()))
        elif record.is_due(now):
            buckets[DUE_PRIORITY].append(
                SessionItem(word, DUE_PRIORITY, rng.random(), overdue=now - record.next_review)
            )
        elif record.status is Status.LEARNING:
            buckets[LEARNING_PRIORITY].append(
                SessionItem(word, LEARNING_PRIORITY, rng.random())
            )
        # review/mastered words that are not due yet stay out of the session
    return buckets


def build_session(
    words: Sequence[Word],
    progress: Mapping[str, Any],
    scope: str,
    count: int,
    now: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Word]:
    """Choose the next batch of words to study.

    Due words come first, most overdue first, then new words, then words
    still being learned. Order inside a tier is randomised with ``rng``;
    due words with the same overdue amount are shuffled among themselves.
    """
    if count <= 0 or not words:
        return []
    now = now_ms() if now is None else now
    rng = rng or random.Random()

    buckets = _partition(words, progress, scope, now, rng)
    due = sorted(buckets[DUE_PRIORITY], key=lambda item: (-item.overdue, item.tiebreak))
    new = sorted(buckets[NEW_PRIORITY], key=lambda item: item.tiebreak)
    learning = sorted(buckets[LEARNING_PRIORITY], key=lambda item: item.tiebreak)
    logger.info(
        f"Session candidates for scope {scope}: due={len(due)}, new={len(new)}, "
        f"learning={len(learning)}"
    )

    combined = due + new + learning
    return [item.word for item in combined[:count]]
