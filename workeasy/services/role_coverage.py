"""
Role coverage for a shift.

Work items can require a minimum number of staff holding particular job
roles. Coverage counts, per required job role, how many of the assigned
users hold that role.
"""

from dataclasses import dataclass, field
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from workeasy.core.i18n import t
from workeasy.core.observability import get_logger

logger = get_logger(__name__)


@dataclass
class RoleCoverage:
    job_role_id: str
    job_role_name: str | None
    job_role_code: str | None
    required_count: int
    current_count: int
    is_sufficient: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobRoleId": self.job_role_id,
            "jobRoleName": self.job_role_name,
            "jobRoleCode": self.job_role_code,
            "requiredCount": self.required_count,
            "currentCount": self.current_count,
            "isSufficient": self.is_sufficient,
        }


@dataclass
class WorkItemRoleRequirement:
    work_item_id: str
    job_role_id: str
    job_role_name: str | None
    job_role_code: str | None
    min_count: int


@dataclass
class UserJobRole:
    user_id: str
    job_role_id: str
    job_role_name: str | None = None
    job_role_code: str | None = None


@dataclass
class RoleValidationResult:
    is_valid: bool
    message: str
    role_coverage: list[RoleCoverage] = field(default_factory=list)
    insufficient_roles: list[RoleCoverage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "message": self.message,
            "roleCoverage": [c.to_dict() for c in self.role_coverage],
            "insufficientRoles": [c.to_dict() for c in self.insufficient_roles],
        }


def _embedded(row: dict[str, Any], key: str) -> dict[str, Any]:
    # PostgREST embeds a to-one relation as an object, older clients as a list
    value = row.get(key)
    if isinstance(value, list):
        return value[0] if value else {}
    return value or {}


def get_work_item_role_requirements(
    db: Client, work_item_ids: list[str]
) -> list[WorkItemRoleRequirement]:
    if not work_item_ids:
        return []

    try:
        rows = (
            db.table("work_item_required_roles")
            .select("work_item_id, min_count, store_job_roles (id, name, code)")
            .in_("work_item_id", [str(i) for i in work_item_ids])
            .execute()
            .data
        )
    except APIError as e:
        logger.error("Role requirement lookup failed", error=e.message)
        return []

    requirements = []
    for row in rows or []:
        job_role = _embedded(row, "store_job_roles")
        if not job_role.get("id"):
            continue
        requirements.append(
            WorkItemRoleRequirement(
                work_item_id=row["work_item_id"],
                job_role_id=job_role["id"],
                job_role_name=job_role.get("name"),
                job_role_code=job_role.get("code"),
                min_count=row.get("min_count") or 0,
            )
        )
    return requirements


def get_user_job_roles(
    db: Client, store_id: str, user_ids: list[str]
) -> list[UserJobRole]:
    if not user_ids:
        return []

    try:
        rows = (
            db.table("user_store_job_roles")
            .select("user_id, store_job_roles (id, name, code)")
            .eq("store_id", str(store_id))
            .in_("user_id", [str(u) for u in user_ids])
            .execute()
            .data
        )
    except APIError as e:
        logger.error("User job role lookup failed", error=e.message)
        return []

    roles = []
    for row in rows or []:
        job_role = _embedded(row, "store_job_roles")
        if not job_role.get("id"):
            continue
        roles.append(
            UserJobRole(
                user_id=row["user_id"],
                job_role_id=job_role["id"],
                job_role_name=job_role.get("name"),
                job_role_code=job_role.get("code"),
            )
        )
    return roles


def calculate_role_coverage(
    role_requirements: list[WorkItemRoleRequirement],
    user_job_roles: list[UserJobRole],
    assigned_users: list[str],
) -> list[RoleCoverage]:
    """Coverage per required job role; a later requirement for the same role wins."""
    requirements_by_role: dict[str, WorkItemRoleRequirement] = {}
    for requirement in role_requirements:
        requirements_by_role[requirement.job_role_id] = requirement

    roles_by_user: dict[str, list[str]] = {}
    for user_role in user_job_roles:
        roles_by_user.setdefault(user_role.user_id, []).append(user_role.job_role_id)

    role_counts: dict[str, int] = {}
    for user_id in assigned_users:
        for role_id in roles_by_user.get(str(user_id), []):
            role_counts[role_id] = role_counts.get(role_id, 0) + 1

    coverage = []
    for requirement in requirements_by_role.values():
        current = role_counts.get(requirement.job_role_id, 0)
        coverage.append(
            RoleCoverage(
                job_role_id=requirement.job_role_id,
                job_role_name=requirement.job_role_name,
                job_role_code=requirement.job_role_code,
                required_count=requirement.min_count,
                current_count=current,
                is_sufficient=current >= requirement.min_count,
            )
        )
    return coverage


def validate_role_coverage(
    role_coverage: list[RoleCoverage],
) -> tuple[bool, list[RoleCoverage]]:
    insufficient = [c for c in role_coverage if not c.is_sufficient]
    return not insufficient, insufficient


def format_role_coverage_message(
    insufficient_roles: list[RoleCoverage], locale: str | None = None
) -> str:
    if not insufficient_roles:
        return t("roleCoverage.allSatisfied", locale)

    parts = [
        t(
            "roleCoverage.count",
            locale,
            name=role.job_role_code or role.job_role_name,
            current=role.current_count,
            required=role.required_count,
        )
        for role in insufficient_roles
    ]
    return t("roleCoverage.insufficient", locale, roles=", ".join(parts))


def validate_schedule_role_requirements(
    db: Client,
    store_id: str,
    work_item_ids: list[str],
    assigned_users: list[str],
    locale: str | None = None,
) -> RoleValidationResult:
    requirements = get_work_item_role_requirements(db, work_item_ids)
    if not requirements:
        return RoleValidationResult(
            is_valid=True, message=t("roleCoverage.noRequirements", locale)
        )

    assigned = [str(u) for u in assigned_users]
    user_roles = get_user_job_roles(db, store_id, assigned)
    coverage = calculate_role_coverage(requirements, user_roles, assigned)
    is_valid, insufficient = validate_role_coverage(coverage)

    return RoleValidationResult(
        is_valid=is_valid,
        message=format_role_coverage_message(insufficient, locale),
        role_coverage=coverage,
        insufficient_roles=insufficient,
    )
