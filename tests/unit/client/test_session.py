"""
Unit Tests for client session state
Tests for: session file storage, sign in/out, verification on load
"""
import json
import os
from datetime import datetime, timedelta

import httpx
import pytest

from thinkify.core.roles import UserRole
from thinkify_client.api_client import ThinkifyApi
from thinkify_client.session import AuthSession, Severity, SessionStore

from fakes import envelope, user_payload


class TestSessionStore:
    """Persisted token and role"""

    def test_save_and_load(self, store):
        store.save('tok', 'student', {'email': 'a@example.com'})

        assert store.load() == {'token': 'tok', 'role': 'student', 'user': {'email': 'a@example.com'}}

    def test_configured_key_names(self, tmp_path):
        store = SessionStore(str(tmp_path / 's.json'), token_key='auth_token', role_key='user_role')
        store.save('tok', 'teacher')

        data = json.loads((tmp_path / 's.json').read_text())
        assert data['auth_token'] == 'tok'
        assert data['user_role'] == 'teacher'

    @pytest.mark.skipif(os.name != 'posix', reason='file modes are POSIX only')
    def test_file_is_private(self, store):
        store.save('tok', 'student')

        assert oct(store.path.stat().st_mode & 0o777) == '0o600'

    def test_missing_file(self, store):
        assert store.load() is None

    def test_expired_session_is_cleared(self, store):
        store.save('tok', 'student')
        data = json.loads(store.path.read_text())
        data['expires_at'] = (datetime.utcnow() - timedelta(minutes=1)).isoformat()
        store.path.write_text(json.dumps(data))

        assert store.load() is None
        assert not store.path.exists()

    def test_corrupt_file_is_cleared(self, store):
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text('{not json')

        assert store.load() is None
        assert not store.path.exists()

    @pytest.mark.parametrize('expires_at', ['next tuesday', 42, '2030-01-01T00:00:00+00:00'])
    def test_unparseable_expiry_is_cleared(self, store, expires_at):
        store.save('tok', 'student')
        data = json.loads(store.path.read_text())
        data['expires_at'] = expires_at
        store.path.write_text(json.dumps(data))

        assert store.load() is None
        assert not store.path.exists()

    def test_non_object_file_is_cleared(self, store):
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text('["tok", "student"]')

        assert store.load() is None
        assert not store.path.exists()

    def test_missing_role_is_no_session(self, store):
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text(json.dumps({'token': 'tok'}))

        assert store.load() is None


class TestSignIn:

    def test_login_success(self, session, server, store):
        server.on('POST', '/users/login', body=envelope({'token': 'tok', 'user': user_payload('teacher')}))

        assert session.login('teacher@example.com', 'pw') is True
        assert session.is_authenticated
        assert session.role is UserRole.TEACHER
        assert session.alert.severity == Severity.SUCCESS
        assert session.alert.message == 'Login successful. Welcome, Test Teacher!'
        assert store.load()['token'] == 'tok'

    def test_login_failure(self, session, server, store):
        server.on('POST', '/users/login', 401, {'status': False, 'message': 'Invalid email or password'})

        assert session.login('teacher@example.com', 'bad') is False
        assert not session.is_authenticated
        assert session.alert.severity == Severity.ERROR
        assert session.alert.message == 'Invalid email or password'
        assert store.load() is None

    def test_register_success(self, session, server):
        server.on('POST', '/users/registration', 201, envelope({'token': 'tok', 'user': user_payload()}))

        assert session.register({'full_name': 'Test Student'}) is True
        assert session.alert.message.startswith('Registration successful')

    def test_permissions_from_user(self, session, server):
        server.on('POST', '/users/login', body=envelope({'token': 'tok', 'user': user_payload()}))
        session.login('student@example.com', 'pw')

        assert session.has_permissions(['participate_polls'])
        assert not session.has_permissions(['grade_assignments'])


class TestLoad:

    def test_load_without_verification(self, session, store):
        store.save('tok', 'student', user_payload())

        assert session.load() is True
        assert session.token == 'tok'
        assert session.role is UserRole.STUDENT

    def test_verified_load_refreshes_user(self, session, server, store):
        store.save('tok', 'student', user_payload(full_name='Old Name'))
        server.on('GET', '/users/validate-token',
                  body=envelope({'valid': True, 'user': user_payload(full_name='New Name')}))

        assert session.load(verify=True) is True
        assert session.user['full_name'] == 'New Name'

    def test_rejected_token_ends_session(self, session, server, store):
        store.save('tok', 'student', user_payload())
        server.on('GET', '/users/validate-token', 401, {'status': False, 'message': 'Token expired'})

        assert session.load(verify=True) is False
        assert not session.is_authenticated
        assert store.load() is None
        assert session.alert.severity == Severity.WARNING
        assert 'Token expired' in session.alert.message

    def test_unreachable_server_keeps_session(self, store, client_config):
        def refuse(request):
            raise httpx.ConnectError('refused', request=request)

        store.save('tok', 'student', user_payload())
        session = AuthSession(store, ThinkifyApi(client_config.api_base_url, transport=httpx.MockTransport(refuse)))

        assert session.load(verify=True) is True
        assert session.is_authenticated
        assert session.alert.severity == Severity.WARNING


class TestLogout:

    def test_logout_clears_everything(self, session, server, store):
        store.save('tok', 'student', user_payload())
        session.load()
        server.on('POST', '/users/logout', body=envelope(message='Logged out successfully'))

        session.logout()

        assert not session.is_authenticated
        assert store.load() is None
        assert session.alert.message == 'Logged out'
        assert server.requests[-1].headers['Authorization'] == 'Bearer tok'

    def test_logout_survives_server_failure(self, session, server, store):
        store.save('tok', 'student', user_payload())
        session.load()
        server.on('POST', '/users/logout', 500, {'status': False, 'message': 'boom'})

        session.logout()

        assert not session.is_authenticated
        assert store.load() is None
