"""
Shared fixtures: in-memory database, auth headers and a fake language model
"""
import json
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.auth import create_access_token
from app.db import get_session
from app.main import app


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def client(engine):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user-1')}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user-2')}"}


@pytest.fixture
def fake_model(monkeypatch):
    """Model that highlights the first sentence it is shown, with exact offsets."""
    prompts = []

    async def chat_json(prompt):
        prompts.append(prompt)
        window = prompt.split("<<TEXT_START>>\n", 1)[1].rsplit("\n<<TEXT_END>>", 1)[0]
        first = window.split(". ")[0] + "."
        return json.dumps({
            "summary": "## Main Points\n\n" + first,
            "keyPhrases": [
                {"text": first, "startPos": 0, "endPos": len(first), "importance": "high", "category": "fact"}
            ],
        })

    monkeypatch.setattr("app.services.summary.chat_json", chat_json)
    return prompts
