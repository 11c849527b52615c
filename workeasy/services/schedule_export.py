"""
Schedule export as CSV.

Each export produces one sheet: a grid of work items per user and date, the
flat assignment list, or the job role roster. Rows are built as plain lists
and written with the csv module; a UTF-8 BOM keeps spreadsheet tools from
misreading Korean and Japanese names.
"""

import csv
import io
from datetime import date
from typing import Any
from urllib.parse import quote

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
UNKNOWN_USER = "Unknown User"


def _embedded(row: dict[str, Any], key: str) -> dict[str, Any]:
    value = row.get(key)
    if isinstance(value, list):
        return value[0] if value else {}
    return value or {}


def user_directory(store_users: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Index store users by both ``store_users.id`` and auth user id."""
    directory: dict[str, dict[str, Any]] = {}
    for row in store_users:
        directory[row["id"]] = row
        if row.get("user_id"):
            directory.setdefault(row["user_id"], row)
    return directory


def _name(directory: dict[str, dict[str, Any]], user_id: str) -> str:
    return (directory.get(user_id) or {}).get("name") or UNKNOWN_USER


def _email(directory: dict[str, dict[str, Any]], user_id: str) -> str:
    return (directory.get(user_id) or {}).get("email") or ""


def grid_rows(
    assignments: list[dict[str, Any]], directory: dict[str, dict[str, Any]]
) -> list[list[str]]:
    dates = sorted({row["date"] for row in assignments})
    users = list(dict.fromkeys(row["user_id"] for row in assignments))

    cells: dict[tuple[str, str], list[str]] = {}
    for row in assignments:
        name = _embedded(row, "work_items").get("name") or ""
        cells.setdefault((row["user_id"], row["date"]), []).append(name)

    header = ["User"] + [
        f"{day} ({DAY_NAMES[date.fromisoformat(day).weekday()]})" for day in dates
    ]
    rows = [header]
    for user_id in users:
        rows.append(
            [_name(directory, user_id)]
            + ["\n".join(cells.get((user_id, day), [])) for day in dates]
        )
    return rows


def assignment_rows(
    assignments: list[dict[str, Any]],
    directory: dict[str, dict[str, Any]],
    include_private: bool = False,
) -> list[list[str]]:
    header = ["Date", "Day", "User", "Work Item", "Start Time", "End Time", "Role", "Notes"]
    if include_private:
        header.insert(3, "Email")

    rows = [header]
    for row in assignments:
        work_item = _embedded(row, "work_items")
        line = [
            row["date"],
            DAY_NAMES[date.fromisoformat(row["date"]).weekday()],
            _name(directory, row["user_id"]),
            work_item.get("name") or "",
            (row.get("start_time") or "")[:5],
            (row.get("end_time") or "")[:5],
            work_item.get("role_hint") or "",
            row.get("notes") or "",
        ]
        if include_private:
            line.insert(3, _email(directory, row["user_id"]))
        rows.append(line)
    return rows


def role_rows(
    job_roles: list[dict[str, Any]],
    user_roles: list[dict[str, Any]],
    directory: dict[str, dict[str, Any]],
    include_private: bool = False,
) -> list[list[str]]:
    counts: dict[str, int] = {}
    by_user: dict[str, list[str]] = {}
    for row in user_roles:
        counts[row["job_role_id"]] = counts.get(row["job_role_id"], 0) + 1
        name = _embedded(row, "store_job_roles").get("name")
        if name:
            by_user.setdefault(row["user_id"], []).append(name)

    rows: list[list[str]] = [["Role", "Code", "Active", "Users"]]
    for role in job_roles:
        rows.append(
            [
                role.get("name") or "",
                role.get("code") or "",
                "Y" if role.get("active", True) else "N",
                str(counts.get(role["id"], 0)),
            ]
        )

    rows.append([])
    rows.append(["User", "Email", "Roles"] if include_private else ["User", "Roles"])
    for user_id, names in by_user.items():
        line = [_name(directory, user_id), ", ".join(names)]
        if include_private:
            line.insert(1, _email(directory, user_id))
        rows.append(line)
    return rows


def to_csv(rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer).writerows(rows)
    return "\ufeff" + buffer.getvalue()


def content_disposition(
    store_name: str, date_from: str, date_to: str, sheet: str
) -> str:
    """Attachment header with an ASCII fallback and the UTF-8 store name."""
    fallback = f"workeasy_{date_from}_to_{date_to}_{sheet}.csv"
    named = "_".join(store_name.split()) or "store"
    full = f"workeasy_{named}_{date_from}_to_{date_to}_{sheet}.csv"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(full)}"
