import pytest
from fastapi.testclient import TestClient

from scribe.config import Settings
from scribe.db.database import Database
from scribe.db.stores import TranscriptStore, UserStore
from scribe.main import create_app


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("JWT_SECRET", "test-secret-key")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("DATA_ROOT", str(tmp_path / "data"))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("BLOB_BACKEND", "local")
    monkeypatch.delenv("UPLOAD_DIR", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("CANCEL_ON_DELETE", raising=False)
    monkeypatch.delenv("MAX_UPLOAD_SIZE_MB", raising=False)
    return Settings()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def database() -> Database:
    db = Database("sqlite:///:memory:")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def users(database) -> UserStore:
    return UserStore(database)


@pytest.fixture
def transcripts(database) -> TranscriptStore:
    return TranscriptStore(database)


@pytest.fixture
def register(client):
    """Register a user through the API and return ``(auth_headers, user_json)``."""

    def _register(name="A", email="a@x.com", password="secret1"):
        response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]

    return _register
