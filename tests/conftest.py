"""
Pytest configuration and fixtures for the Enigmate API tests.

The environment is pinned before the application is imported: an in-memory
SQLite database, a known HS256 secret for Supabase tokens, and no Gemini or
storage credentials. Tests that need the model install a FakeGemini client
through the `fake_gemini` fixture.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["SUPABASE_JWT_PUBLIC_KEY"] = ""
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""

import time
from datetime import timedelta
from typing import Callable, Iterator, Optional, Union

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend import app
from enigmate.database import Base, get_db
from enigmate.models import Riddle, Score
from enigmate.services import judge, llm
from enigmate.services.riddles import utc_today

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"


def make_token(user_id: str = USER_ID, email: str = "player@example.com", **claims) -> str:
    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
        "app_metadata": {"provider": "email"},
        "user_metadata": {},
    }
    payload.update(claims)
    return jwt.encode(payload, "test-jwt-secret", algorithm="HS256")


class FakeResponse:
    def __init__(self, text: Optional[str]):
        self.text = text


class FakeModels:
    def __init__(self, owner: "FakeGemini"):
        self._owner = owner

    def generate_content(self, model, contents, config=None):
        self._owner.calls.append({"model": model, "contents": contents, "config": config})
        if self._owner.handler is not None:
            reply = self._owner.handler(model, contents, config)
        elif self._owner.replies:
            reply = self._owner.replies.pop(0)
        else:
            raise AssertionError("FakeGemini has no reply queued")
        if isinstance(reply, Exception):
            raise reply
        return FakeResponse(reply)


class FakeGemini:
    """Stands in for genai.Client; replies are queued strings or exceptions."""

    def __init__(self):
        self.calls: list[dict] = []
        self.replies: list[Union[str, Exception, None]] = []
        self.handler: Optional[Callable] = None
        self.models = FakeModels(self)

    def queue(self, *replies: Union[str, Exception, None]) -> "FakeGemini":
        self.replies.extend(replies)
        return self


@pytest.fixture(autouse=True)
def reset_judge_cache() -> Iterator[None]:
    judge.clear_calibration_cache()
    yield
    judge.clear_calibration_cache()


@pytest.fixture
def fake_gemini(monkeypatch: pytest.MonkeyPatch) -> FakeGemini:
    fake = FakeGemini()
    monkeypatch.setattr(llm, "get_gemini_client", lambda: fake)
    return fake


@pytest.fixture
def db_session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session: Session) -> Iterator[TestClient]:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def riddle(db_session: Session) -> Riddle:
    """Today's riddle."""
    riddle = Riddle(
        title="The silent keeper",
        question="What has hands but cannot clap?",
        answer="A clock",
        solution="A clock: its hands point at the time but never meet to applaud.",
        hint1="It lives on a wall.",
        hint2="It ticks.",
        hint3="It tells you something every second.",
        difficulty=2,
        duration=300,
        image_path=None,
        release_date=utc_today(),
    )
    db_session.add(riddle)
    db_session.commit()
    db_session.refresh(riddle)
    return riddle


@pytest.fixture
def yesterday_riddle(db_session: Session) -> Riddle:
    riddle = Riddle(
        title="Yesterday",
        question="The more you take, the more you leave behind. What am I?",
        answer="Footsteps",
        release_date=utc_today() - timedelta(days=1),
    )
    db_session.add(riddle)
    db_session.commit()
    db_session.refresh(riddle)
    return riddle


def add_score(db: Session, user_id: str, riddle_id: int, score: int, correct: bool = True) -> Score:
    row = Score(user_id=user_id, riddle_id=riddle_id, score=score, duration=60, msg_count=1, hints_used=0, correct=correct)
    db.add(row)
    db.commit()
    return row
