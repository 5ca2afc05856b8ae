"""
Client test fixtures
"""
import httpx
import pytest

from thinkify_client.api_client import ThinkifyApi
from thinkify_client.config import ClientConfig
from thinkify_client.session import AuthSession, SessionStore

from fakes import BASE_URL, FakeServer


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def client_config(tmp_path) -> ClientConfig:
    return ClientConfig(api_base_url=BASE_URL, config_dir=str(tmp_path))


@pytest.fixture
def store(client_config) -> SessionStore:
    return SessionStore.from_config(client_config)


@pytest.fixture
def session(server, store):
    holder = {}
    api = ThinkifyApi(BASE_URL, token_provider=lambda: holder['session'].token,
                      transport=httpx.MockTransport(server.handler))
    holder['session'] = AuthSession(store, api)
    yield holder['session']
    api.close()
