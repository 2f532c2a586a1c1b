"""Aggregations over a progress snapshot."""
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional

from lexideck.models.progress_models import (
    DueWord,
    Status,
    StudySummary,
    WordProgress,
    coerce_progress,
)
from lexideck.services.scheduler import now_ms, round_half_up


def _record(value: Any) -> WordProgress:
    return coerce_progress(value) or WordProgress.default()


def _in_scope(progress: Mapping[str, Any], scope: str):
    prefix = f"{scope}_"
    for key, value in progress.items():
        if key.startswith(prefix):
            yield key[len(prefix):], _record(value)


def _count(summary: StudySummary, record: WordProgress, now: int) -> None:
    if record.status is Status.NEW:
        summary.new += 1
    elif record.status is Status.LEARNING:
        summary.learning += 1
    elif record.status is Status.REVIEW:
        summary.review += 1
    elif record.status is Status.MASTERED:
        summary.mastered += 1
    if record.is_due(now):
        summary.due += 1


def summarize(
    progress: Mapping[str, Any],
    scope: str,
    now: Optional[int] = None,
) -> StudySummary:
    """Count the words of a scope per status, plus those due for review."""
    now = now_ms() if now is None else now
    summary = StudySummary()
    for _, record in _in_scope(progress, scope):
        _count(summary, record, now)
    return summary


def words_due_for_review(
    progress: Mapping[str, Any],
    scope: str,
    now: Optional[int] = None,
) -> List[DueWord]:
    """List the due words of a scope, most overdue first."""
    now = now_ms() if now is None else now
    due = [
        DueWord(word_id=word_id, progress=record, overdue=now - record.next_review)
        for word_id, record in _in_scope(progress, scope)
        if record.is_due(now)
    ]
    due.sort(key=lambda item: item.overdue, reverse=True)
    return due


def category_breakdown(
    progress: Mapping[str, Any],
    now: Optional[int] = None,
) -> Dict[str, StudySummary]:
    """Per-scope status counts across the whole snapshot.

    The scope is the part of the key before the first underscore.
    """
    now = now_ms() if now is None else now
    breakdown: Dict[str, StudySummary] = defaultdict(StudySummary)
    for key, value in progress.items():
        scope = key.split("_", 1)[0]
        _count(breakdown[scope], _record(value), now)
    return dict(breakdown)


def status_counts(progress: Mapping[str, Any]) -> Dict[str, int]:
    """Number of records per status across all scopes."""
    counts = {status.value: 0 for status in Status}
    for value in progress.values():
        counts[_record(value).status.value] += 1
    return counts


def format_interval(minutes: int) -> str:
    """Human readable interval."""
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    if minutes < 1440:
        hours = round_half_up(minutes / 60)
        return f"{hours} hour{'s' if hours != 1 else ''}"
    if minutes < 43200:
        days = round_half_up(minutes / 1440)
        return f"{days} day{'s' if days != 1 else ''}"
    months = round_half_up(minutes / 43200)
    return f"{months} month{'s' if months != 1 else ''}"
