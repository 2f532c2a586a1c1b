"""Tests for progress stores."""
import threading

import pytest
from sqlalchemy.orm import Session

from lexideck.models.base import SessionLocal
from lexideck.models.models import ProgressRecord
from lexideck.models.progress_models import Quality, Status, WordProgress
from lexideck.services.progress_store import (
    InMemoryProgressStore,
    ProgressStore,
    SqlProgressStore,
    progress_key,
)
from lexideck.services.scheduler import compute_next_review

NOW = 1_700_000_000_000


def bump(current: WordProgress) -> WordProgress:
    """Increase the interval by one minute."""
    return WordProgress(
        interval=current.interval + 1,
        repetition=1,
        status=Status.LEARNING,
    )


@pytest.fixture(params=["memory", "sql"])
def store(request) -> ProgressStore:
    """Create each store flavour."""
    if request.param == "memory":
        return InMemoryProgressStore()
    db = request.getfixturevalue("db")
    return SqlProgressStore(db)


def test_progress_key() -> None:
    """Test snapshot keys join scope and word ID."""
    assert progress_key("a1", "kitchen_3") == "a1_kitchen_3"


def test_get_missing_returns_new(store: ProgressStore) -> None:
    """Test unknown words read as new records."""
    assert store.get("a1", "kitchen_1") == WordProgress.default()


def test_round_trip(store: ProgressStore) -> None:
    """Test a written record reads back unchanged."""
    written = compute_next_review(store.get("a1", "kitchen_1"), Quality.EASY, NOW)
    store.put("a1", "kitchen_1", written)

    assert store.get("a1", "kitchen_1") == written


def test_put_replaces(store: ProgressStore) -> None:
    """Test a second write replaces the first."""
    first = compute_next_review(WordProgress.default(), Quality.GOOD, NOW)
    second = compute_next_review(first, Quality.HARD, NOW + 1000)
    store.put("a1", "kitchen_1", first)
    store.put("a1", "kitchen_1", second)

    assert store.get("a1", "kitchen_1") == second
    assert len(store.snapshot()) == 1


def test_snapshot_by_scope(store: ProgressStore) -> None:
    """Test snapshots can be limited to one scope."""
    record = compute_next_review(WordProgress.default(), Quality.GOOD, NOW)
    store.put("a1", "kitchen_1", record)
    store.put("a1", "kitchen_2", record)
    store.put("kitchen", "kitchen_1", record)

    assert set(store.snapshot("a1")) == {"a1_kitchen_1", "a1_kitchen_2"}
    assert set(store.snapshot()) == {"a1_kitchen_1", "a1_kitchen_2", "kitchen_kitchen_1"}


def test_update_returns_previous_and_new(store: ProgressStore) -> None:
    """Test update applies the transform to the stored record."""
    previous, updated = store.update(
        "a1", "kitchen_1", lambda current: compute_next_review(current, Quality.GOOD, NOW)
    )

    assert previous.status is Status.NEW
    assert updated.status is Status.LEARNING
    assert store.get("a1", "kitchen_1") == updated


def test_concurrent_updates_are_serialised() -> None:
    """Test read-modify-write cycles on one key do not lose updates."""
    store = InMemoryProgressStore()

    threads = [
        threading.Thread(target=lambda: [store.update("a1", "w", bump) for _ in range(50)])
        for _ in range(4)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert store.get("a1", "w").interval == 200


def test_sql_malformed_status_reads_as_new(db: Session) -> None:
    """Test unknown stored statuses are treated as new words."""
    db.add(ProgressRecord(scope="a1", word_id="kitchen_1", interval=10,
                          repetition=1, ease_factor=2.0, status="forgotten"))
    db.commit()

    assert SqlProgressStore(db).get("a1", "kitchen_1") == WordProgress.default()


def test_stores_share_key_locks() -> None:
    """Test separate store instances use the same lock for one key."""
    first = InMemoryProgressStore()
    second = InMemoryProgressStore()

    assert first._lock_for("a1", "w") is second._lock_for("a1", "w")


def test_sql_concurrent_updates_from_separate_stores(setup_database) -> None:
    """Test two database stores updating one word do not lose updates."""
    errors = []

    def worker() -> None:
        session = SessionLocal()
        try:
            store = SqlProgressStore(session)
            for _ in range(20):
                store.update("a1", "w", bump)
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    session = SessionLocal()
    try:
        assert errors == []
        assert SqlProgressStore(session).get("a1", "w").interval == 40
        assert session.query(ProgressRecord).count() == 1
    finally:
        session.close()


def test_sql_update_retries_after_concurrent_insert(db: Session) -> None:
    """Test a first insert racing with another writer is retried on its row."""
    store = SqlProgressStore(db)
    seen = []

    def insert_elsewhere_then_bump(current: WordProgress) -> WordProgress:
        seen.append(current)
        if len(seen) == 1:
            other = SessionLocal()
            try:
                SqlProgressStore(other).put(
                    "a1", "w", WordProgress(interval=5, repetition=1, status=Status.LEARNING)
                )
            finally:
                other.close()
        return bump(current)

    previous, updated = store.update("a1", "w", insert_elsewhere_then_bump)

    assert len(seen) == 2
    assert seen[0] == WordProgress.default()
    assert previous.interval == 5
    assert updated.interval == 6
    assert store.get("a1", "w") == updated
    assert db.query(ProgressRecord).count() == 1
