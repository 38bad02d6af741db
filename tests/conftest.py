import os

# set up the test environment before the app reads it
os.environ["APP_ENV"] = "test"
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker
from blogcms.main import app
from blogcms.core.security import create_access_token
from blogcms.db.database import build_engine, create_tables, get_session, SQLITE_TEST_DB

# test database configuration
test_engine = build_engine(SQLITE_TEST_DB)
TestSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)

TABLES = ("posts_tags", "posts", "tags", "categories")


def drop_tables():
    with test_engine.connect() as conn:
        # drop in dependency order
        for table in TABLES:
            conn.execute(text(f"DROP TABLE IF EXISTS {table}"))
        conn.commit()


def make_token(role: str | None = "admin", expired: bool = False) -> str:
    claims = {"sub": "user-1", "user_metadata": {"role": role} if role else {}}
    expires = timedelta(seconds=-1) if expired else timedelta(hours=1)
    return create_access_token(claims, expires_delta=expires)


def auth_headers(role: str | None = "admin") -> dict:
    return {"Authorization": f"Bearer {make_token(role)}"}


@pytest.fixture(autouse=True)
def clean_db():
    """Drop and rebuild the test database"""
    drop_tables()
    create_tables(test_engine)
    yield
    drop_tables()


@pytest.fixture
def db_session(clean_db):
    """Session on the test database for direct store access"""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(clean_db):
    """Unauthenticated test client"""
    def override_get_session():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    """Test client carrying an admin token"""
    client.headers.update(auth_headers())
    return client


@pytest.fixture
def create_tag(admin_client):
    def _create(name: str) -> str:
        response = admin_client.post("/api/tags", json={"name": name})
        assert response.status_code == 201
        return response.json()["id"]
    return _create


@pytest.fixture
def create_category(admin_client):
    def _create(name: str) -> str:
        response = admin_client.post("/api/categories", json={"name": name})
        assert response.status_code == 201
        return response.json()["id"]
    return _create


@pytest.fixture
def create_post(admin_client):
    def _create(**fields) -> str:
        body = {"title": "Test Post", "summary": "A summary", "content": "Test content"}
        body.update(fields)
        response = admin_client.post("/api/posts", json=body)
        assert response.status_code == 201, response.text
        return response.json()["id"]
    return _create


@pytest.fixture
def token_factory():
    """Build bearer tokens for a given role"""
    return make_token
