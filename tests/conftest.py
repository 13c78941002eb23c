import os

os.environ["ENV"] = "test"
os.environ["OUTBOUND_DRY_RUN"] = "false"

import pytest
from fastapi.testclient import TestClient

import replydesk.models  # noqa: F401
from replydesk.db import Base, SessionLocal, engine, get_db

pytest_plugins = [
    "tests.fixtures.business_fixtures",
    "tests.fixtures.message_fixtures",
    "tests.fixtures.knowledge_fixtures",
    "tests.fixtures.follow_up_fixtures",
]


@pytest.fixture(scope="function")
def db():
    """Fresh schema on the shared in-memory SQLite engine for every test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """Client with db override."""
    from replydesk.main import create_app

    app = create_app(testing=True)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
