"""Route guards: decide, before a view runs, whether the session may enter it"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from thinkify.core.roles import LOGIN_PATH, UNAUTHORIZED_PATH, Permission, UserRole, home_path
from thinkify_client.session import AuthSession


@dataclass(frozen=True)
class Route:
    path: str
    allowed_roles: Tuple[UserRole, ...] = ()
    required_permissions: Tuple[Permission, ...] = ()


@dataclass(frozen=True)
class GuardResult:
    allowed: bool
    redirect: Optional[str] = None


STUDENT = (UserRole.STUDENT,)
TEACHER = (UserRole.TEACHER,)
ADMIN = (UserRole.ADMIN,)
ALL_ROLES = tuple(UserRole)

ROUTES: Dict[str, Route] = {
    route.path: route
    for route in (
        Route("/profile", STUDENT),
        Route("/student/assignments", STUDENT),
        Route("/student/submit", STUDENT, (Permission.SUBMIT_ASSIGNMENTS,)),
        Route("/polls", ALL_ROLES),
        Route("/polls/vote", ALL_ROLES, (Permission.PARTICIPATE_POLLS,)),
        Route("/teacher/dashboard", TEACHER),
        Route("/teacher/assignments", TEACHER),
        Route("/teacher/grade", TEACHER, (Permission.GRADE_ASSIGNMENTS,)),
        Route("/teacher/polls", TEACHER),
        Route("/teacher/students", TEACHER),
        Route("/dashboard", ADMIN),
    )
}


@dataclass
class RouteGuard:
    session: AuthSession
    routes: Dict[str, Route] = field(default_factory=lambda: dict(ROUTES))

    def check(self, route: Route) -> GuardResult:
        """Unauthenticated -> login; wrong role -> that role's home; missing permission -> unauthorized"""
        if not self.session.is_authenticated:
            return GuardResult(False, LOGIN_PATH)

        role = self.session.role
        if route.allowed_roles and role not in route.allowed_roles:
            return GuardResult(False, home_path(role))

        if route.required_permissions and not self.session.has_permissions(route.required_permissions):
            return GuardResult(False, UNAUTHORIZED_PATH)

        return GuardResult(True)

    def check_path(self, path: str) -> GuardResult:
        return self.check(self.routes[path])
