import pytest
from fastapi.testclient import TestClient

from conifer import Client, ClientConfig
from conifer_local.config import Settings
from conifer_local.main import create_app


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def emulator():
    """Emulator with a live gRPC server per index, stopped on teardown."""
    with TestClient(create_app(make_settings(grpc_enabled=True))) as tc:
        yield tc


@pytest.fixture
def client(emulator):
    cli = Client(ClientConfig.with_api_key("test-key", host="http://testserver"), http_client=emulator)
    yield cli
    cli.close()
