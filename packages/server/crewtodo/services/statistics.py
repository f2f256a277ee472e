"""
Statistics over a caller-scoped set of tasks.

Everything here is a pure function of the task views passed in; the caller
decides which tasks are in scope. Percentages are whole numbers rounded half
up and an empty input yields 0, never a division error.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional, Sequence

NO_PRIORITY = "none"
UNTAGGED = "untagged"
MIN_WINDOW_DAYS = 1
MAX_WINDOW_DAYS = 365


def percent(part: int, whole: int) -> int:
    """``round(100 * part / whole)`` with halves rounded up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def _priority_key(task: Any) -> str:
    priority = task.priority
    if priority is None:
        return NO_PRIORITY
    return getattr(priority, "value", priority)


def _utc_date(value: datetime) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(timezone.utc).date()


def _by_count(counter: Counter) -> dict[str, int]:
    # Counter keeps first-seen order and sorted() is stable, so ties keep it too.
    return dict(sorted(counter.items(), key=lambda item: -item[1]))


def by_priority(tasks: Iterable[Any]) -> dict[str, int]:
    """Counts per priority, ``none`` for unprioritized tasks, in first-seen order."""
    return dict(Counter(_priority_key(t) for t in tasks))


def by_status(tasks: Iterable[Any]) -> dict[str, int]:
    counts = {"completed": 0, "pending": 0}
    for task in tasks:
        counts["completed" if task.is_complete else "pending"] += 1
    return counts


def by_tag(tasks: Iterable[Any]) -> dict[str, int]:
    """Each task counted once, under its first tag (``untagged`` if it has none)."""
    counter: Counter = Counter(t.tags[0] if t.tags else UNTAGGED for t in tasks)
    return _by_count(counter)


def tag_usage(tasks: Iterable[Any]) -> dict[str, int]:
    """Every tag occurrence counted, so a task with two tags contributes twice."""
    counter: Counter = Counter()
    for task in tasks:
        if task.tags:
            counter.update(task.tags)
        else:
            counter[UNTAGGED] += 1
    return _by_count(counter)


def completion_rate(tasks: Sequence[Any]) -> int:
    completed = sum(1 for t in tasks if t.is_complete)
    return percent(completed, len(tasks))


def completion_rate_series(
    tasks: Iterable[Any],
    window_days: int,
    today: Optional[date] = None,
) -> list[dict]:
    """Daily completion rate for tasks created on each day of the window.

    The window is ``[today - window_days, today]`` inclusive; days without
    tasks appear with rate 0 and tasks outside the window are ignored.
    """
    today = today or datetime.now(timezone.utc).date()
    start = today - timedelta(days=window_days)

    created: Counter = Counter()
    completed: Counter = Counter()
    for task in tasks:
        day = _utc_date(task.created_at)
        if start <= day <= today:
            created[day] += 1
            if task.is_complete:
                completed[day] += 1

    return [
        {"date": day, "rate": percent(completed[day], created[day])}
        for day in (start + timedelta(days=offset) for offset in range(window_days + 1))
    ]


def summarize(
    tasks: Sequence[Any],
    window_days: int,
    today: Optional[date] = None,
) -> dict:
    """Everything the statistics view shows, in one pass over the inputs."""
    return {
        "total": len(tasks),
        "completion_rate": completion_rate(tasks),
        "by_status": by_status(tasks),
        "by_priority": [{"priority": k, "count": v} for k, v in by_priority(tasks).items()],
        "by_tag": [{"tag": k, "count": v} for k, v in by_tag(tasks).items()],
        "tag_usage": [{"tag": k, "count": v} for k, v in tag_usage(tasks).items()],
        "window_days": window_days,
        "completion_rate_series": completion_rate_series(tasks, window_days, today),
    }
