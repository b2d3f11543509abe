"""
Pytest configuration and fixtures
"""
import os
import tempfile
from types import SimpleNamespace

import pytest

# Never touch PostgreSQL or OpenAI from the test run
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.gettempdir(), "listings-api-tests.db")
os.environ["CREATE_SCHEMA"] = "false"
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from api.deps import get_conn, get_generator
from api.describer import DescriptionGenerator
from api.main import app
from api.sql import create_schema


class FakeCompletions:
    """Stands in for client.chat.completions; records prompts."""

    def __init__(self, reply="A bright, spacious home."):
        self.reply = reply
        self.calls = []
        self.error = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def completions():
    return FakeCompletions()


@pytest.fixture
def generator(completions):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return DescriptionGenerator(model="test-model", max_tokens=100, client=client)


@pytest.fixture
def client(engine, generator):
    def _conn():
        conn = engine.connect()
        try:
            yield conn
        finally:
            conn.close()

    app.dependency_overrides[get_conn] = _conn
    app.dependency_overrides[get_generator] = lambda: generator
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def as_user(user_id):
    return {"X-User-Id": user_id}


def make_listing(client, user_id="owner-1", **overrides):
    body = {
        "name": "Lakeview",
        "area": 120.5,
        "bedrooms": 3,
        "features": ["pool", "garage"],
        "type": "sale",
    }
    body.update(overrides)
    resp = client.post("/api/listings", json=body, headers=as_user(user_id))
    assert resp.status_code == 201, resp.text
    return resp.json()
