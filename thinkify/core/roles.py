"""Roles, permissions and the tables keyed by them.

Shared by the API and the client package, so it stays free of database imports.
"""
import enum
from typing import Dict, Iterable, List, Optional, TypeVar

T = TypeVar("T")


class UserRole(str, enum.Enum):
    """User roles"""
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class Permission(str, enum.Enum):
    """Capabilities granted independently of role"""
    READ_POSTS = "read_posts"
    CREATE_POSTS = "create_posts"
    MANAGE_TASKS = "manage_tasks"
    SUBMIT_ASSIGNMENTS = "submit_assignments"
    PARTICIPATE_POLLS = "participate_polls"
    CREATE_ASSIGNMENTS = "create_assignments"
    CREATE_POLLS = "create_polls"
    MANAGE_RESOURCES = "manage_resources"
    GRADE_ASSIGNMENTS = "grade_assignments"
    ALL = "all"


def exhaustive(table: Dict[UserRole, T], name: str) -> Dict[UserRole, T]:
    """Fail at import time if a role-keyed table misses a role"""
    missing = set(UserRole) - set(table)
    if missing:
        raise RuntimeError(f"{name} has no entry for: {', '.join(sorted(r.value for r in missing))}")
    return table


ROLE_PERMISSIONS: Dict[UserRole, List[Permission]] = exhaustive({
    UserRole.STUDENT: [
        Permission.READ_POSTS,
        Permission.CREATE_POSTS,
        Permission.MANAGE_TASKS,
        Permission.SUBMIT_ASSIGNMENTS,
        Permission.PARTICIPATE_POLLS,
    ],
    UserRole.TEACHER: [
        Permission.READ_POSTS,
        Permission.CREATE_POSTS,
        Permission.CREATE_ASSIGNMENTS,
        Permission.CREATE_POLLS,
        Permission.MANAGE_RESOURCES,
        Permission.GRADE_ASSIGNMENTS,
    ],
    UserRole.ADMIN: [Permission.ALL],
}, "ROLE_PERMISSIONS")

# Where a signed-in user lands, and where a wrong-role navigation is sent
ROLE_HOME_PATHS: Dict[UserRole, str] = exhaustive({
    UserRole.STUDENT: "/profile",
    UserRole.TEACHER: "/teacher/dashboard",
    UserRole.ADMIN: "/dashboard",
}, "ROLE_HOME_PATHS")

UNAUTHORIZED_PATH = "/unauthorized"
LOGIN_PATH = "/login"


def parse_role(value) -> Optional[UserRole]:
    """UserRole for a value, or None when it is not a known role"""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def default_permissions(role) -> List[str]:
    """Permission strings a new account of this role starts with"""
    parsed = parse_role(role)
    if parsed is None:
        return []
    return [p.value for p in ROLE_PERMISSIONS[parsed]]


def has_permissions(role, granted: Optional[Iterable[str]], required: Iterable[str]) -> bool:
    """Admins hold every permission; everyone else needs each required one"""
    if parse_role(role) is UserRole.ADMIN:
        return True
    granted_set = set(granted or [])
    return all(
        (p.value if isinstance(p, Permission) else p) in granted_set
        for p in required
    )


def home_path(role) -> str:
    parsed = parse_role(role)
    if parsed is None:
        return UNAUTHORIZED_PATH
    return ROLE_HOME_PATHS[parsed]
