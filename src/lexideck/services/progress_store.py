"""Persistence of word progress keyed by (scope, word id)."""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lexideck.models.models import ProgressRecord
from lexideck.models.progress_models import WordProgress

logger = logging.getLogger(__name__)

# Shared by every store instance so two stores never update one key at once
LOCK_STRIPES = 64
_locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

MAX_UPDATE_ATTEMPTS = 3


def progress_key(scope: str, word_id: str) -> str:
    """Snapshot key of a word within a scope."""
    return f"{scope}_{word_id}"


class ProgressStore(ABC):
    """Key-value store of WordProgress records."""

    @abstractmethod
    def get(self, scope: str, word_id: str) -> WordProgress:
        """Return the stored record, or a new one if the word was never studied."""

    @abstractmethod
    def put(self, scope: str, word_id: str, progress: WordProgress) -> None:
        """Store a record, replacing any previous one."""

    @abstractmethod
    def snapshot(self, scope: Optional[str] = None) -> Dict[str, WordProgress]:
        """Return all records, optionally limited to one scope, by progress key."""

    @staticmethod
    def _lock_for(scope: str, word_id: str) -> threading.Lock:
        return _locks[hash((scope, word_id)) % LOCK_STRIPES]

    def _update_locked(
        self,
        scope: str,
        word_id: str,
        transform: Callable[[WordProgress], WordProgress],
    ) -> Tuple[WordProgress, WordProgress]:
        previous = self.get(scope, word_id)
        updated = transform(previous)
        self.put(scope, word_id, updated)
        return previous, updated

    def update(
        self,
        scope: str,
        word_id: str,
        transform: Callable[[WordProgress], WordProgress],
    ) -> Tuple[WordProgress, WordProgress]:
        """Read, transform and write one record without interleaved writes.

        Returns:
            The previous and the new record.
        """
        with self._lock_for(scope, word_id):
            return self._update_locked(scope, word_id, transform)


class InMemoryProgressStore(ProgressStore):
    """Dictionary backed store."""

    def __init__(self, records: Optional[Dict[Tuple[str, str], WordProgress]] = None):
        self._records: Dict[Tuple[str, str], WordProgress] = dict(records or {})

    def get(self, scope: str, word_id: str) -> WordProgress:
        return self._records.get((scope, word_id)) or WordProgress.default()

    def put(self, scope: str, word_id: str, progress: WordProgress) -> None:
        self._records[(scope, word_id)] = progress

    def snapshot(self, scope: Optional[str] = None) -> Dict[str, WordProgress]:
        return {
            progress_key(record_scope, word_id): progress
            for (record_scope, word_id), progress in self._records.items()
            if scope is None or record_scope == scope
        }


class SqlProgressStore(ProgressStore):
    """Store backed by the progress table."""

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        self.db = db

    def _get_record(
        self, scope: str, word_id: str, for_update: bool = False
    ) -> Optional[ProgressRecord]:
        query = self.db.query(ProgressRecord).filter(
            and_(
                ProgressRecord.scope == scope,
                ProgressRecord.word_id == word_id,
            )
        )
        if for_update:
            # Row lock held until commit; always reread what other sessions wrote
            query = query.with_for_update().populate_existing()
        return query.first()

    @staticmethod
    def _to_progress(record: ProgressRecord) -> WordProgress:
        return WordProgress.from_dict({
            "interval": record.interval,
            "repetition": record.repetition,
            "ease_factor": record.ease_factor,
            "next_review": record.next_review,
            "last_review": record.last_review,
            "status": record.status,
        })

    def get(self, scope: str, word_id: str) -> WordProgress:
        record = self._get_record(scope, word_id)
        if not record:
            return WordProgress.default()
        return self._to_progress(record)

    def _write(
        self,
        record: Optional[ProgressRecord],
        scope: str,
        word_id: str,
        progress: WordProgress,
    ) -> None:
        if not record:
            record = ProgressRecord(scope=scope, word_id=word_id)
            self.db.add(record)
        record.interval = progress.interval
        record.repetition = progress.repetition
        record.ease_factor = progress.ease_factor
        record.next_review = progress.next_review
        record.last_review = progress.last_review
        record.status = progress.status.value

    def put(self, scope: str, word_id: str, progress: WordProgress) -> None:
        self._write(self._get_record(scope, word_id), scope, word_id, progress)
        self.db.commit()
        logger.debug(f"Stored progress for {progress_key(scope, word_id)}: {progress.status.value}")

    def _update_locked(
        self,
        scope: str,
        word_id: str,
        transform: Callable[[WordProgress], WordProgress],
    ) -> Tuple[WordProgress, WordProgress]:
        """Read and write the row in one transaction.

        The row is selected FOR UPDATE where the database supports it. When
        another process inserts the first record of the same key meanwhile,
        the unique constraint fails and the update is retried on its row.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                record = self._get_record(scope, word_id, for_update=True)
                previous = self._to_progress(record) if record else WordProgress.default()
                updated = transform(previous)
                self._write(record, scope, word_id, updated)
                self.db.commit()
                return previous, updated
            except IntegrityError:
                self.db.rollback()
                if attempt >= MAX_UPDATE_ATTEMPTS:
                    raise
                logger.warning(
                    f"Concurrent insert of {progress_key(scope, word_id)}, retrying ({attempt})"
                )

    def snapshot(self, scope: Optional[str] = None) -> Dict[str, WordProgress]:
        query = self.db.query(ProgressRecord)
        if scope is not None:
            query = query.filter(ProgressRecord.scope == scope)
        return {
            progress_key(record.scope, record.word_id): self._to_progress(record)
            for record in query.all()
        }
