"""
Thinkify - Middleware and error envelope tests
"""
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from thinkify.core.middleware import RequestSizeLimitMiddleware


class TestResponseHeaders:
    """Tracing and security headers on every response"""

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client: AsyncClient):
        response = await client.get('/health')
        assert len(response.headers['X-Request-ID']) == 8
        assert response.headers['X-Response-Time'].endswith('ms')

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client: AsyncClient):
        response = await client.get('/health', headers={'X-Request-ID': 'trace-42'})
        assert response.headers['X-Request-ID'] == 'trace-42'

    @pytest.mark.asyncio
    async def test_security_headers(self, client: AsyncClient):
        response = await client.get('/health')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'


class TestErrorEnvelopes:
    """Framework errors use the failure envelope"""

    @pytest.mark.asyncio
    async def test_malformed_body_is_422(self, client: AsyncClient):
        response = await client.post('/api/v1/users/login', json={'email': 'not-an-email'})

        assert response.status_code == 422
        body = response.json()
        assert body['status'] is False
        assert body['message'] == 'Invalid request'
        assert isinstance(body['error'], list)

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client: AsyncClient):
        response = await client.get('/api/v1/users/me')
        assert response.status_code == 401
        assert response.json()['status'] is False


class TestRequestSizeLimit:
    """Declared bodies above the limit are refused before routing"""

    @pytest.fixture
    def small_app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(RequestSizeLimitMiddleware, max_size=16)

        @app.post('/echo')
        async def echo():
            return {'ok': True}

        return app

    @pytest.mark.asyncio
    async def test_oversized_body_rejected(self, small_app: FastAPI):
        async with AsyncClient(transport=ASGITransport(app=small_app), base_url='http://test') as ac:
            response = await ac.post('/echo', content=b'x' * 64)

        assert response.status_code == 413
        assert response.json()['status'] is False
        assert 'too large' in response.json()['message']

    @pytest.mark.asyncio
    async def test_small_body_allowed(self, small_app: FastAPI):
        async with AsyncClient(transport=ASGITransport(app=small_app), base_url='http://test') as ac:
            response = await ac.post('/echo', content=b'x' * 8)

        assert response.status_code == 200


class TestOpenApi:
    """Protected routes advertise bearer authentication"""

    @pytest.mark.asyncio
    async def test_bearer_scheme_declared(self, client: AsyncClient):
        schema = (await client.get('/openapi.json')).json()

        assert schema['components']['securitySchemes']['HTTPBearer']['scheme'] == 'bearer'
        assert {'HTTPBearer': []} in schema['paths']['/api/v1/users/me']['get']['security']
        assert 'security' not in schema['paths']['/api/v1/users/login']['post']
