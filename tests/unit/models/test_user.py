"""
Unit Tests for the User model
"""
import pytest

from thinkify.core.exceptions import ValidationError
from thinkify.core.roles import UserRole
from thinkify.models import User


def make_user(**overrides) -> User:
    fields = {
        'full_name': 'Asha Rao',
        'email': 'asha@example.com',
        'hashed_password': 'x',
        'role': UserRole.STUDENT,
        'student_id': 'STU-1',
    }
    fields.update(overrides)
    return User(**fields)


class TestUserDefaults:
    """Permissions and normalization at construction"""

    def test_student_gets_student_permissions(self):
        user = make_user()

        assert 'submit_assignments' in user.permissions
        assert 'participate_polls' in user.permissions
        assert user.is_active is True

    def test_teacher_gets_teacher_permissions(self):
        user = make_user(role=UserRole.TEACHER, student_id=None, teacher_id='T-1', department='Physics')

        assert 'grade_assignments' in user.permissions
        assert 'submit_assignments' not in user.permissions

    def test_explicit_permissions_kept(self):
        user = make_user(permissions=['read_posts'])

        assert user.permissions == ['read_posts']

    def test_email_is_lowercased(self):
        user = make_user(email='  Asha@Example.COM ')

        assert user.email == 'asha@example.com'

    def test_role_string_is_parsed(self):
        user = make_user(role='student')

        assert user.role is UserRole.STUDENT


class TestRoleImmutability:

    def test_role_cannot_change_once_permissions_assigned(self):
        user = make_user()

        with pytest.raises(ValidationError, match='Role cannot be changed'):
            user.role = UserRole.TEACHER

    def test_same_role_reassignment_allowed(self):
        user = make_user()
        user.role = UserRole.STUDENT

        assert user.role is UserRole.STUDENT

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError, match='Invalid role'):
            make_user(role='janitor')


class TestUserValidation:

    def test_valid_student(self):
        make_user().validate()

    def test_student_requires_student_id(self):
        with pytest.raises(ValidationError, match='Student ID'):
            make_user(student_id=None).validate()

    def test_teacher_requires_department(self):
        user = make_user(role=UserRole.TEACHER, student_id=None, teacher_id='T-1')

        with pytest.raises(ValidationError, match='Department'):
            user.validate()

    def test_teacher_requires_teacher_id(self):
        user = make_user(role=UserRole.TEACHER, student_id=None, department='Physics')

        with pytest.raises(ValidationError, match='Teacher ID'):
            user.validate()

    def test_admin_needs_no_role_fields(self):
        make_user(role=UserRole.ADMIN, student_id=None).validate()

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError, match='Full name'):
            make_user(full_name='   ').validate()

    def test_has_permissions(self):
        user = make_user()

        assert user.has_permissions(['participate_polls'])
        assert not user.has_permissions(['grade_assignments'])

    def test_admin_has_every_permission(self):
        admin = make_user(role=UserRole.ADMIN, student_id=None)

        assert admin.has_permissions(['grade_assignments', 'submit_assignments'])
