import pytest
from fastapi.testclient import TestClient

from crop_api.config import Settings
from crop_api.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path,
        db_path=tmp_path / "test.db",
        uploads_dir=tmp_path / "uploads",
        valid_delay_ms=0,
        invalid_delay_ms=0,
    )


@pytest.fixture
def make_client(settings):
    clients = []

    def _make(**kwargs):
        client = TestClient(create_app(settings, **kwargs))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
