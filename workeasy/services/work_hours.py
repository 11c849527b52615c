"""
Paid work hours per store user.

Only ASSIGNED and CONFIRMED assignments count. A shift whose end is not
after its start runs past midnight. The work item's unpaid break is
deducted from every shift.
"""

from dataclasses import dataclass
from math import floor
from typing import Any

INCLUDED_STATUSES = ("ASSIGNED", "CONFIRMED")
MINUTES_PER_DAY = 24 * 60


def parse_minutes(value: str | None) -> int:
    """Minutes since midnight for ``HH:mm`` (seconds ignored), 0 when unparseable."""
    if not value:
        return 0
    try:
        hours, minutes = value.split(":")[:2]
        return int(hours) * 60 + int(minutes)
    except ValueError:
        return 0


def paid_minutes(row: dict[str, Any]) -> int:
    start = parse_minutes(row.get("start_time"))
    end = parse_minutes(row.get("end_time"))
    if end <= start:
        end += MINUTES_PER_DAY

    work_item = row.get("work_items")
    if isinstance(work_item, list):
        work_item = work_item[0] if work_item else None
    unpaid = (work_item or {}).get("unpaid_break_min") or 0
    return max(0, end - start - unpaid)


def to_hours(minutes: int) -> float:
    """Hours rounded half up to one decimal."""
    return floor(minutes / 6 + 0.5) / 10


@dataclass
class HoursWindow:
    start: str
    end: str

    def contains(self, day: str) -> bool:
        return self.start <= day <= self.end


def _store_user_name(row: dict[str, Any]) -> str:
    store_user = row.get("store_users")
    if isinstance(store_user, list):
        store_user = store_user[0] if store_user else None
    name = ((store_user or {}).get("name") or "").strip()
    return name or row["user_id"]


def summarize_window(
    rows: list[dict[str, Any]], window: HoursWindow
) -> tuple[int, list[dict[str, Any]]]:
    total = 0
    by_user: dict[str, dict[str, Any]] = {}
    for row in rows:
        if not window.contains(row["date"]):
            continue
        minutes = paid_minutes(row)
        total += minutes
        entry = by_user.setdefault(
            row["user_id"], {"userName": _store_user_name(row), "minutes": 0}
        )
        entry["minutes"] += minutes

    users = [
        {"userId": user_id, "userName": entry["userName"], "hours": to_hours(entry["minutes"])}
        for user_id, entry in by_user.items()
    ]
    users.sort(key=lambda u: (-u["hours"], u["userName"]))
    return total, users


def summarize_work_hours(
    rows: list[dict[str, Any]], week: HoursWindow, month: HoursWindow
) -> dict[str, Any]:
    weekly_total, weekly_by_user = summarize_window(rows, week)
    monthly_total, monthly_by_user = summarize_window(rows, month)
    return {
        "summary": {
            "weeklyTotalHours": to_hours(weekly_total),
            "monthlyTotalHours": to_hours(monthly_total),
        },
        "weeklyByUser": weekly_by_user,
        "monthlyByUser": monthly_by_user,
        "period": {
            "weekFrom": week.start,
            "weekTo": week.end,
            "monthFrom": month.start,
            "monthTo": month.end,
        },
    }
