from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from tasktrack.config import Settings
from tasktrack.database import create_db_engine
from tasktrack.main import create_app

TEST_PASSWORD = "secret-pass"


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-access-secret",
        refresh_secret="test-refresh-secret",
        port=8000,
        database_url="sqlite://",
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=7),
        bcrypt_rounds=4,
    )


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings.database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def signup(client):
    """Register a user and return ``(body, auth_headers)``."""

    def _signup(email="alice@example.com", password=TEST_PASSWORD):
        response = client.post("/auth/register", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        return body, {"Authorization": f"Bearer {body['accessToken']}"}

    return _signup
