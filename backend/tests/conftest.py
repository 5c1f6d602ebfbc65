import os
from pathlib import Path
from types import SimpleNamespace

from dotenv import load_dotenv

# In-memory database and no Redis unless a test swaps in fakeredis.
os.environ.setdefault("PYTEST_RUN", "1")
os.environ["REDIS_URL"] = "disabled"

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / ".env.test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from factories import NOW, make_world, setup_db  # noqa: E402


@pytest.fixture
def db():
    session = setup_db()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def world(db):
    return make_world(db)


@pytest.fixture
def api(db, world):
    """TestClient wired to the test session, with the clock pinned to NOW.

    ``api.as_user(user)`` switches the authenticated identity.
    """
    from app.main import app
    from app.api import dependencies
    from app.database import get_db

    state = SimpleNamespace(user=world.client)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[dependencies.get_current_user] = lambda: state.user
    app.dependency_overrides[dependencies.get_now] = lambda: NOW
    client = TestClient(app)

    def as_user(user):
        state.user = user
        return client

    client.as_user = as_user
    try:
        yield client
    finally:
        app.dependency_overrides.clear()
