"""Resolving the current student from Telegram initData, with the signature check stubbed out."""

from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query

from src.models.user import User
from src.services.errors import AuthenticationError, TransientStoreError
from src.utils import telegram_dep


def tg_user(tg_id=777, **fields):
    base = {"first_name": "Asha", "last_name": "Rao", "username": "asha_r", "photo_url": None}
    base.update(fields)
    return SimpleNamespace(id=tg_id, **base)


class FakeAuthenticator:
    def __init__(self, user):
        self.user = user

    def validate(self, init_data):
        if init_data == "bad":
            raise ValueError("hash mismatch")
        return SimpleNamespace(user=self.user)


@pytest.fixture
def tg(monkeypatch):
    state = {"user": tg_user()}
    monkeypatch.setattr(telegram_dep, "_authenticator", lambda: FakeAuthenticator(state["user"]))
    return state


class TestResolveUser:
    def test_missing_init_data(self, db, tg):
        with pytest.raises(AuthenticationError) as exc:
            telegram_dep.resolve_user(db, None, register=True)
        assert exc.value.code == "not_authenticated"

    def test_bad_signature(self, db, tg):
        with pytest.raises(AuthenticationError) as exc:
            telegram_dep.resolve_user(db, "bad", register=True)
        assert exc.value.code == "invalid_init_data"

    def test_unregistered_user_rejected(self, db, tg):
        with pytest.raises(AuthenticationError) as exc:
            telegram_dep.resolve_user(db, "ok", register=False)
        assert exc.value.code == "user_not_registered"
        assert db.query(User).count() == 0

    def test_first_login_registers(self, db, tg):
        user = telegram_dep.resolve_user(db, "ok", register=True)
        assert user.telegram_id == 777
        assert user.name == "Asha Rao"
        assert telegram_dep.resolve_user(db, "ok", register=False).id == user.id

    def test_profile_changes_synced(self, db, tg):
        user = telegram_dep.resolve_user(db, "ok", register=True)
        tg["user"] = tg_user(first_name="Asha", last_name=None, photo_url="https://t.me/p.jpg")
        again = telegram_dep.resolve_user(db, "ok", register=False)
        assert again.id == user.id
        assert again.name == "Asha"
        assert again.photo_url == "https://t.me/p.jpg"


class TestAuthEndpoint:
    def test_login_via_header(self, app_client, tg):
        resp = app_client.post("/api/auth/telegram", headers={"x-telegram-initdata": "ok"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["telegram_id"] == 777
        assert body["name"] == "Asha Rao"

    def test_login_via_json_body(self, app_client, tg):
        resp = app_client.post("/api/auth/telegram", json={"initData": "ok"})
        assert resp.status_code == 200

    def test_protected_route_without_init_data(self, app_client, tg):
        resp = app_client.get("/api/challenges/active")
        assert resp.status_code == 401
        assert resp.json()["detail"]["code"] == "not_authenticated"


def _store_down(monkeypatch):
    def broken_all(self):
        raise OperationalError("SELECT", {}, Exception("server closed the connection"))

    monkeypatch.setattr(Query, "all", broken_all)


class TestStoreOutageDuringSignIn:
    def test_lookup_error_is_transient(self, db, tg, monkeypatch):
        _store_down(monkeypatch)
        with pytest.raises(TransientStoreError):
            telegram_dep.resolve_user(db, "ok", register=False)

    def test_get_route_degrades_to_retry(self, app_client, tg, monkeypatch):
        _store_down(monkeypatch)
        resp = app_client.get("/api/challenges/active", headers={"x-telegram-initdata": "ok"})
        assert resp.status_code == 503
        assert resp.json()["detail"]["code"] == "could_not_load"
