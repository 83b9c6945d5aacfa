# flake8: noqa
import sys
from pathlib import Path

# Ensure project root is on sys.path so `recipebox` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import jwt
import pytest
from fastapi.testclient import TestClient  # noqa: E402

from recipebox import db as db_module
from recipebox.app import create_app
from recipebox.config import Settings


TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


def make_token(user_id, secret=TEST_SECRET, **claims):
    return jwt.encode({"id": user_id, **claims}, secret, algorithm="HS256")


def auth_header(user_id="user-1"):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def recipe_payload(title="Garlic Bread", ingredients=None, categories=None, **extra):
    payload = {
        "title": title,
        "description": "Crispy bread with garlic butter",
        "instructions": "1. Mix butter and garlic\n2. Spread on bread\n3. Bake",
        "imageUrl": None,
        "ingredients": [
            {"quantity": q, "unit": u, "ingredient": {"name": n}}
            for n, q, u in (ingredients or [("Garlic", 3, "cloves"), ("Bread", 1, "loaf")])
        ],
        "categories": [{"category": {"name": c}} for c in (categories or ["Appetizer"])],
    }
    payload.update(extra)
    return payload


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", jwt_secret=TEST_SECRET)


@pytest.fixture
def engine():
    # in-memory database shared across connections through StaticPool
    engine = db_module.make_engine("sqlite://")
    db_module.init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return db_module.make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(settings, session_factory):
    app = create_app(settings)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[db_module.get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)
