"""
Greedy shift auto-assignment.

For every date and work item, the first candidate holding one of the
item's required job roles gets the shift, provided they are neither
unavailable nor already assigned that day. Items without required roles
accept anyone holding a job role in the store. Candidates are tried in the
order their job roles were recorded.

Shift times come from the store's business hours for the weekday, or
09:00-18:00 when the day has none.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

DEFAULT_START = "09:00"
DEFAULT_END = "18:00"
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class AutoAssignment:
    user_id: str
    work_item_id: str
    date: str


def date_range(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def shift_times(day: date, business_hours: list[dict[str, Any]]) -> tuple[str, str]:
    """Opening and closing time for ``day``; a close of 0 means midnight."""
    weekday = (day.weekday() + 1) % 7  # day_of_week counts from Sunday
    for row in business_hours:
        if row.get("day_of_week") != weekday:
            continue
        open_min, close_min = row.get("open_min"), row.get("close_min")
        if open_min is None or close_min is None:
            break
        return minutes_to_hhmm(open_min), minutes_to_hhmm(close_min or MINUTES_PER_DAY)
    return DEFAULT_START, DEFAULT_END


def plan_assignments(
    days: Iterable[date],
    work_item_ids: list[str],
    required_codes: dict[str, list[str]],
    user_codes: list[tuple[str, str | None]],
    taken: set[tuple[str, str]],
    only_user: str | None = None,
) -> list[AutoAssignment]:
    """Pick at most one user per date and work item.

    ``user_codes`` pairs each user with a job role code they hold (None when
    the role has no code). ``taken`` holds ``(user_id, iso_date)`` pairs that
    are unavailable or already assigned; it is not modified.
    """
    candidates_by_code: dict[str, list[str]] = {}
    for user_id, code in user_codes:
        if code:
            candidates_by_code.setdefault(code, []).append(user_id)
    everyone = list(dict.fromkeys(user_id for user_id, _ in user_codes))

    busy = set(taken)
    chosen: list[AutoAssignment] = []
    for day in days:
        iso_day = day.isoformat()
        for item_id in work_item_ids:
            codes = required_codes.get(item_id) or []
            if codes:
                pool = list(
                    dict.fromkeys(
                        user_id
                        for code in codes
                        for user_id in candidates_by_code.get(code, [])
                    )
                )
            else:
                pool = everyone
            if only_user:
                pool = [user_id for user_id in pool if user_id == only_user]

            pick = next(
                (user_id for user_id in pool if (user_id, iso_day) not in busy), None
            )
            if pick:
                chosen.append(AutoAssignment(pick, item_id, iso_day))
                busy.add((pick, iso_day))
    return chosen
