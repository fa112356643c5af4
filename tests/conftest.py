"""
Общие фикстуры: SQLite в памяти на каждый тест, фабрика пользователей
и TestClient с подменой get_db / get_current_user.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi import HTTPException, Request
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.db import Base, get_db
from src.models.user import User
from src.schemas.challenge import ChallengeCreate
from src.services import follow_graph


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _fk_on(dbapi_conn, _record):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(name: str, **fields) -> User:
        counter["n"] += 1
        user = User(telegram_id=1000 + counter["n"], name=name, first_name=name, **fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def users(db, make_user):
    """U1 подписан на U2, U3 и U4; U5: посторонний."""
    u1, u2, u3, u4, u5 = (make_user(n) for n in ("Asha", "Ravi", "Meera", "Kiran", "Dev"))
    for friend in (u2, u3, u4):
        follow_graph.follow(db, u1.id, friend.id)
    return {"U1": u1, "U2": u2, "U3": u3, "U4": u4, "U5": u5}


@pytest.fixture
def challenge_config():
    def _config(friend_ids, **overrides) -> ChallengeCreate:
        data = dict(
            subject="Physics",
            lesson="Kinematics",
            question_count=10,
            difficulty="Medium",
            exam_filter=None,
            friend_ids=list(friend_ids),
            duration_minutes=30,
        )
        data.update(overrides)
        return ChallengeCreate(**data)

    return _config


@pytest.fixture
def client(session_factory):
    """
    Клиент API. Текущий пользователь задаётся заголовком x-test-user-id,
    вместо проверки Telegram initData.
    """
    from src.main import app
    from src.utils.telegram_dep import get_current_user

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def _current_user(request: Request) -> User:
        raw = request.headers.get("x-test-user-id")
        if not raw:
            raise HTTPException(status_code=401, detail={"code": "not_authenticated"})
        session = session_factory()
        try:
            user = session.get(User, int(raw))
        finally:
            session.close()
        if user is None:
            raise HTTPException(status_code=401, detail={"code": "user_not_registered"})
        return user

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = _current_user
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def app_client(session_factory):
    """Клиент без подмены пользователя: работает настоящая зависимость из telegram_dep."""
    from src.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
