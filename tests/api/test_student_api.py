"""
API Tests for student assignment routes
"""
import pytest
from httpx import AsyncClient

from thinkify.models import AssignmentAudience, ItemStatus

from helpers import headers_for, past

API = '/api/v1/student'


class TestStudentAssignments:

    @pytest.mark.asyncio
    async def test_lists_visible_assignments(self, client: AsyncClient, teacher_user, student_user,
                                             other_student, student_headers, make_assignment):
        open_to_all = await make_assignment(teacher_user)
        targeted = await make_assignment(
            teacher_user, audience=AssignmentAudience.SPECIFIC, target_students=[str(student_user.id)]
        )
        await make_assignment(
            teacher_user, audience=AssignmentAudience.SPECIFIC, target_students=[str(other_student.id)]
        )
        await make_assignment(teacher_user, status=ItemStatus.DRAFT)

        response = await client.get(f'{API}/assignments', headers=student_headers)

        assert response.status_code == 200
        ids = {a['id'] for a in response.json()['data']}
        assert ids == {str(open_to_all.id), str(targeted.id)}

    @pytest.mark.asyncio
    async def test_student_view_shape(self, client: AsyncClient, teacher_user, student_headers, make_assignment):
        await make_assignment(teacher_user)

        item = (await client.get(f'{API}/assignments', headers=student_headers)).json()['data'][0]

        assert item['can_submit'] is True
        assert item['my_submissions'] == []
        assert 'submissions' not in item
        assert 'target_students' not in item

    @pytest.mark.asyncio
    async def test_teacher_cannot_use_student_routes(self, client: AsyncClient, teacher_headers):
        response = await client.get(f'{API}/assignments', headers=teacher_headers)

        assert response.status_code == 403
        assert response.json()['allowedRoles'] == ['student']

    @pytest.mark.asyncio
    async def test_hidden_assignment_is_not_found(self, client: AsyncClient, teacher_user, other_student,
                                                  student_headers, make_assignment):
        assignment = await make_assignment(
            teacher_user, audience=AssignmentAudience.SPECIFIC, target_students=[str(other_student.id)]
        )

        response = await client.get(f'{API}/assignments/{assignment.id}', headers=student_headers)

        assert response.status_code == 404


class TestSubmission:

    @pytest.mark.asyncio
    async def test_submit(self, client: AsyncClient, teacher_user, student_user, student_headers,
                          make_assignment):
        assignment = await make_assignment(teacher_user)

        response = await client.post(
            f'{API}/assignments/{assignment.id}/submit',
            json={'content': 'Here is my work', 'attachments': [{'filename': 'work.pdf', 'size': 1024}]},
            headers=student_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body['message'] == 'Assignment submitted successfully'
        assert body['data']['student_id'] == str(student_user.id)
        assert body['data']['is_late'] is False
        assert body['data']['attachments'][0]['filename'] == 'work.pdf'

        detail = (await client.get(f'{API}/assignments/{assignment.id}', headers=student_headers)).json()['data']
        assert len(detail['my_submissions']) == 1
        assert detail['can_submit'] is False

    @pytest.mark.asyncio
    async def test_second_submission_rejected(self, client: AsyncClient, teacher_user, student_headers,
                                              make_assignment):
        assignment = await make_assignment(teacher_user)
        url = f'{API}/assignments/{assignment.id}/submit'
        await client.post(url, json={'content': 'First'}, headers=student_headers)

        response = await client.post(url, json={'content': 'Second'}, headers=student_headers)

        assert response.status_code == 500
        assert response.json()['message'] == 'Failed to submit assignment'

    @pytest.mark.asyncio
    async def test_late_submission(self, client: AsyncClient, db_session, teacher_user, student_headers,
                                   make_assignment):
        assignment = await make_assignment(teacher_user)
        assignment.deadline = past()
        await db_session.commit()

        response = await client.post(
            f'{API}/assignments/{assignment.id}/submit', json={'content': 'Late work'}, headers=student_headers
        )

        assert response.status_code == 201
        assert response.json()['data']['is_late'] is True

    @pytest.mark.asyncio
    async def test_late_submission_disallowed(self, client: AsyncClient, db_session, teacher_user,
                                              student_headers, make_assignment):
        assignment = await make_assignment(teacher_user, allow_late_submission=False)
        assignment.deadline = past()
        await db_session.commit()

        response = await client.post(
            f'{API}/assignments/{assignment.id}/submit', json={'content': 'Late work'}, headers=student_headers
        )

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_submit_requires_permission(self, client: AsyncClient, db_session, teacher_user,
                                              student_user, make_assignment):
        assignment = await make_assignment(teacher_user)
        student_user.permissions = ['read_posts']
        await db_session.commit()

        response = await client.post(
            f'{API}/assignments/{assignment.id}/submit', json={'content': 'Work'}, headers=headers_for(student_user)
        )

        assert response.status_code == 403
        assert response.json()['requiredPermissions'] == ['submit_assignments']

    @pytest.mark.asyncio
    async def test_empty_content(self, client: AsyncClient, teacher_user, student_headers, make_assignment):
        assignment = await make_assignment(teacher_user)

        response = await client.post(
            f'{API}/assignments/{assignment.id}/submit', json={'content': ''}, headers=student_headers
        )

        assert response.status_code == 422
