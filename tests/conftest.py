import pytest
from fastapi.testclient import TestClient

from gallery.config import Settings
from gallery.main import create_app


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    (path / ".gitkeep").touch()
    return path


@pytest.fixture
def make_settings(upload_dir, tmp_path):
    def _make(**overrides) -> Settings:
        values = {
            "upload_dir": str(upload_dir),
            "public_dir": str(tmp_path / "no-public"),
            "log_level": "DEBUG",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def client(make_settings):
    with TestClient(create_app(make_settings())) as test_client:
        yield test_client
