"""
Role-Based Access Control

Store roles, the permission matrix and the helpers used by route
dependencies to authorize callers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .i18n import t


class UserRole(str, Enum):
    """Roles a user can hold, highest first."""

    MASTER = "MASTER"  # Store owner, full access
    SUB_MANAGER = "SUB_MANAGER"  # Day-to-day store management
    PART_TIMER = "PART_TIMER"  # Staff member


class Permission(str, Enum):
    # Store permissions
    CREATE_STORE = "CREATE_STORE"
    MANAGE_STORE = "MANAGE_STORE"
    DELETE_STORE = "DELETE_STORE"

    # User permissions
    INVITE_USER = "INVITE_USER"
    MANAGE_USER_ROLES = "MANAGE_USER_ROLES"
    REMOVE_USER = "REMOVE_USER"

    # Schedule permissions
    CREATE_SCHEDULE = "CREATE_SCHEDULE"
    EDIT_SCHEDULE = "EDIT_SCHEDULE"
    DELETE_SCHEDULE = "DELETE_SCHEDULE"
    VIEW_SCHEDULE = "VIEW_SCHEDULE"

    # Shift request permissions
    CREATE_SHIFT_REQUEST = "CREATE_SHIFT_REQUEST"
    APPROVE_SHIFT_REQUEST = "APPROVE_SHIFT_REQUEST"
    VIEW_SHIFT_REQUESTS = "VIEW_SHIFT_REQUESTS"

    # Communication permissions
    GLOBAL_CHAT = "GLOBAL_CHAT"
    STORE_CHAT = "STORE_CHAT"
    SEND_ANNOUNCEMENT = "SEND_ANNOUNCEMENT"

    # Admin permissions
    VIEW_ANALYTICS = "VIEW_ANALYTICS"
    VIEW_ADMIN_DASHBOARD = "VIEW_ADMIN_DASHBOARD"


ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.MASTER: frozenset(Permission),
    UserRole.SUB_MANAGER: frozenset(
        {
            Permission.MANAGE_STORE,
            Permission.INVITE_USER,
            Permission.MANAGE_USER_ROLES,
            Permission.REMOVE_USER,
            Permission.CREATE_SCHEDULE,
            Permission.EDIT_SCHEDULE,
            Permission.DELETE_SCHEDULE,
            Permission.VIEW_SCHEDULE,
            Permission.APPROVE_SHIFT_REQUEST,
            Permission.VIEW_SHIFT_REQUESTS,
            Permission.GLOBAL_CHAT,
            Permission.STORE_CHAT,
            Permission.SEND_ANNOUNCEMENT,
            Permission.VIEW_ADMIN_DASHBOARD,
        }
    ),
    UserRole.PART_TIMER: frozenset(
        {
            Permission.VIEW_SCHEDULE,
            Permission.CREATE_SHIFT_REQUEST,
            Permission.GLOBAL_CHAT,
            Permission.STORE_CHAT,
        }
    ),
}

MASTER_ONLY_PERMISSIONS = frozenset(
    {
        Permission.CREATE_STORE,
        Permission.DELETE_STORE,
        Permission.MANAGE_USER_ROLES,
        Permission.VIEW_ANALYTICS,
    }
)

MANAGER_PERMISSIONS = frozenset(
    {
        Permission.MANAGE_STORE,
        Permission.INVITE_USER,
        Permission.REMOVE_USER,
        Permission.CREATE_SCHEDULE,
        Permission.EDIT_SCHEDULE,
        Permission.DELETE_SCHEDULE,
        Permission.APPROVE_SHIFT_REQUEST,
        Permission.VIEW_SHIFT_REQUESTS,
        Permission.SEND_ANNOUNCEMENT,
        Permission.VIEW_ADMIN_DASHBOARD,
    }
)

ROLE_LEVELS: dict[UserRole, int] = {
    UserRole.PART_TIMER: 1,
    UserRole.SUB_MANAGER: 2,
    UserRole.MASTER: 3,
}

MANAGER_ROLES = frozenset({UserRole.MASTER, UserRole.SUB_MANAGER})


class HasRole(Protocol):
    id: str
    role: UserRole


@dataclass(frozen=True)
class PermissionCheck:
    allowed: bool
    reason: str | None = None
    required_role: UserRole | None = None


def coerce_role(value: str | UserRole | None) -> UserRole | None:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def get_role_permissions(role: UserRole) -> frozenset[Permission]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role: UserRole, permission: Permission) -> bool:
    return permission in get_role_permissions(role)


def has_all_permissions(role: UserRole, permissions: list[Permission]) -> bool:
    return all(has_permission(role, p) for p in permissions)


def has_any_permission(role: UserRole, permissions: list[Permission]) -> bool:
    return any(has_permission(role, p) for p in permissions)


def get_minimum_role_for_permission(permission: Permission) -> UserRole:
    if permission in MASTER_ONLY_PERMISSIONS:
        return UserRole.MASTER
    if permission in MANAGER_PERMISSIONS:
        return UserRole.SUB_MANAGER
    return UserRole.PART_TIMER


def check_all_permissions(
    role: UserRole, permissions: list[Permission]
) -> PermissionCheck:
    missing = [p for p in permissions if not has_permission(role, p)]
    if not missing:
        return PermissionCheck(allowed=True)

    return PermissionCheck(
        allowed=False,
        reason=f"Missing permissions: {', '.join(p.value for p in missing)}",
        required_role=get_minimum_role_for_permission(missing[0]),
    )


def check_any_permission(
    role: UserRole, permissions: list[Permission]
) -> PermissionCheck:
    if has_any_permission(role, permissions):
        return PermissionCheck(allowed=True)

    return PermissionCheck(
        allowed=False,
        reason=(
            "Requires at least one of: "
            f"{', '.join(p.value for p in permissions)}"
        ),
        required_role=get_minimum_role_for_permission(permissions[0])
        if permissions
        else None,
    )


def check_user_permission(
    user: HasRole | None, permission: Permission
) -> PermissionCheck:
    if user is None:
        return PermissionCheck(allowed=False, reason="User not authenticated")

    if has_permission(user.role, permission):
        return PermissionCheck(allowed=True)

    return PermissionCheck(
        allowed=False,
        reason=f"Permission {permission.value} is required",
        required_role=get_minimum_role_for_permission(permission),
    )


def get_role_level(role: str | UserRole | None) -> int:
    resolved = coerce_role(role)
    return ROLE_LEVELS.get(resolved, 0) if resolved else 0


def has_higher_role(role: UserRole, other: UserRole) -> bool:
    return get_role_level(role) > get_role_level(other)


def has_equal_or_higher_role(role: UserRole, other: UserRole) -> bool:
    return get_role_level(role) >= get_role_level(other)


def is_manager_role(role: str | UserRole | None) -> bool:
    return coerce_role(role) in MANAGER_ROLES


def can_change_user_role(
    current_user: HasRole,
    target_user_id: str,
    target_role: UserRole,
    new_role: UserRole,
) -> bool:
    """Whether ``current_user`` may move ``target_user_id`` to ``new_role``."""
    if current_user.id == target_user_id:
        return False

    if current_user.role == UserRole.MASTER:
        return True

    if current_user.role == UserRole.SUB_MANAGER:
        return target_role == UserRole.PART_TIMER and new_role == UserRole.PART_TIMER

    return False


def get_role_display_name(role: UserRole, locale: str | None = None) -> str:
    return t(f"roles.{role.value}", locale)
