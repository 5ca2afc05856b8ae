"""
Unit Tests for roles and permission tables
"""
import pytest

from thinkify.core.roles import (
    LOGIN_PATH,
    ROLE_HOME_PATHS,
    ROLE_PERMISSIONS,
    UNAUTHORIZED_PATH,
    Permission,
    UserRole,
    default_permissions,
    exhaustive,
    has_permissions,
    home_path,
    parse_role,
)


class TestRoleTables:
    """Every role has an entry in each role-keyed table"""

    def test_permission_table_covers_all_roles(self):
        assert set(ROLE_PERMISSIONS) == set(UserRole)

    def test_home_table_covers_all_roles(self):
        assert set(ROLE_HOME_PATHS) == set(UserRole)

    def test_exhaustive_rejects_missing_role(self):
        with pytest.raises(RuntimeError, match="admin"):
            exhaustive({UserRole.STUDENT: 1, UserRole.TEACHER: 2}, "PARTIAL")

    def test_student_defaults(self):
        perms = default_permissions(UserRole.STUDENT)

        assert Permission.SUBMIT_ASSIGNMENTS.value in perms
        assert Permission.PARTICIPATE_POLLS.value in perms
        assert Permission.GRADE_ASSIGNMENTS.value not in perms

    def test_teacher_defaults(self):
        perms = default_permissions("teacher")

        assert Permission.CREATE_ASSIGNMENTS.value in perms
        assert Permission.GRADE_ASSIGNMENTS.value in perms
        assert Permission.PARTICIPATE_POLLS.value not in perms

    def test_admin_defaults(self):
        assert default_permissions(UserRole.ADMIN) == ["all"]

    def test_unknown_role_has_no_defaults(self):
        assert default_permissions("janitor") == []


class TestParseRole:

    def test_parse_string(self):
        assert parse_role("student") is UserRole.STUDENT

    def test_parse_enum(self):
        assert parse_role(UserRole.ADMIN) is UserRole.ADMIN

    @pytest.mark.parametrize("value", [None, "", "Student", "root"])
    def test_parse_unknown(self, value):
        assert parse_role(value) is None


class TestHasPermissions:

    def test_all_required_present(self):
        assert has_permissions("student", ["submit_assignments", "participate_polls"], ["participate_polls"])

    def test_one_missing(self):
        assert not has_permissions(
            "student", ["submit_assignments"], [Permission.SUBMIT_ASSIGNMENTS, Permission.PARTICIPATE_POLLS]
        )

    def test_admin_bypasses_list(self):
        assert has_permissions(UserRole.ADMIN, [], [Permission.GRADE_ASSIGNMENTS])

    def test_empty_requirement(self):
        assert has_permissions("teacher", None, [])


class TestHomePath:

    def test_home_per_role(self):
        assert home_path("student") == "/profile"
        assert home_path("teacher") == "/teacher/dashboard"
        assert home_path("admin") == "/dashboard"

    def test_unknown_role_goes_to_unauthorized(self):
        assert home_path("ghost") == UNAUTHORIZED_PATH
        assert LOGIN_PATH == "/login"
