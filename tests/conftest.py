import mongomock
import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app


@pytest.fixture
def db():
    return mongomock.MongoClient()["portfolio_test"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def offline_client():
    """A client whose database is not configured."""
    app.dependency_overrides[get_db] = lambda: None
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_project(client):
    def _make(**fields):
        body = {"title": "Project", "slug": "project", "description": "desc", **fields}
        resp = client.post("/api/projects", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make


@pytest.fixture
def make_post(client):
    def _make(**fields):
        body = {"title": "Post", "slug": "post", "excerpt": "short", "content": "long", **fields}
        resp = client.post("/api/blog", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make
