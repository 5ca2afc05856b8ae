"""
Unit Tests for request/response schemas
"""
import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError

from thinkify.schemas.assignment import AssignmentCreate, GradeRequest, SubmissionCreate
from thinkify.schemas.auth import UserRegister
from thinkify.schemas.common import to_naive_utc
from thinkify.schemas.poll import PollCreate, PollResponse


def student_payload(**overrides):
    payload = {
        'full_name': 'Asha Rao',
        'email': 'asha@example.com',
        'password': 'secret1',
        'role': 'student',
        'student_id': 'STU-1',
    }
    payload.update(overrides)
    return payload


class TestUserRegister:
    """Role-specific registration fields"""

    def test_student_registration(self):
        data = UserRegister(**student_payload())

        assert data.role.value == 'student'

    def test_student_requires_student_id(self):
        with pytest.raises(ValidationError, match='Student ID'):
            UserRegister(**student_payload(student_id='  '))

    def test_teacher_requires_department_and_id(self):
        with pytest.raises(ValidationError, match='Department, Teacher ID'):
            UserRegister(**student_payload(role='teacher', student_id=None))

    def test_admin_self_registration_rejected(self):
        with pytest.raises(ValidationError, match='Registration is open to'):
            UserRegister(**student_payload(role='admin'))

    def test_short_password(self):
        with pytest.raises(ValidationError):
            UserRegister(**student_payload(password='12345'))

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            UserRegister(**student_payload(email='not-an-email'))


class TestAssignmentSchemas:

    def test_deadline_normalized_to_naive_utc(self):
        deadline = datetime(2030, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))
        data = AssignmentCreate(
            title=' Essay ', description='Write', subject='English', deadline=deadline, total_marks=10
        )

        assert data.deadline == datetime(2030, 1, 1, 6, 30)
        assert data.title == 'Essay'

    @pytest.mark.parametrize('marks', [0, 1001])
    def test_total_marks_bounds(self, marks):
        with pytest.raises(ValidationError):
            AssignmentCreate(title='T', description='D', subject='S', deadline=datetime(2030, 1, 1),
                             total_marks=marks)

    def test_grade_marks_non_negative(self):
        with pytest.raises(ValidationError):
            GradeRequest(marks=-1)

    def test_submission_content_required(self):
        with pytest.raises(ValidationError):
            SubmissionCreate(content='')


class TestPollSchemas:

    def base(self, **overrides):
        payload = {
            'title': 'Lunch',
            'description': 'Where?',
            'options': [' Canteen ', 'Cafe'],
            'deadline': datetime(2030, 1, 1),
        }
        payload.update(overrides)
        return payload

    def test_options_stripped(self):
        assert PollCreate(**self.base()).options == ['Canteen', 'Cafe']

    def test_needs_two_options(self):
        with pytest.raises(ValidationError):
            PollCreate(**self.base(options=['Only']))

    def test_blank_option(self):
        with pytest.raises(ValidationError, match='Option text is required'):
            PollCreate(**self.base(options=['A', ' ']))

    def test_long_tag(self):
        with pytest.raises(ValidationError, match='Tags are limited'):
            PollCreate(**self.base(tags=['x' * 31]))

    def test_anonymous_response_hides_voters(self):
        now = datetime(2030, 1, 1)
        response = PollResponse(
            id='p1', title='T', description='D', type='single',
            options=[{'text': 'A', 'votes': 1, 'voters': ['u1']}, {'text': 'B', 'votes': 0}],
            deadline=now, is_anonymous=True, audience='all', status='active',
            allow_multiple_votes=False, show_results='always', max_votes_per_user=1,
            created_by='t1', voters=[{'user_id': 'u1', 'voted_at': now, 'selected_options': [0]}],
            total_votes=1, unique_voter_count=1, is_expired=False, created_at=now, updated_at=now,
        )

        assert response.options[0].voters == []
        assert response.voters == []


class TestNaiveUtc:

    def test_naive_passthrough(self):
        value = datetime(2030, 1, 1)
        assert to_naive_utc(value) is value

    def test_none(self):
        assert to_naive_utc(None) is None
