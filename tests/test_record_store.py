"""Tests for the record-store adapter: error translation, timestamps, subscriptions."""

from datetime import datetime

import pytest
from sqlalchemy.exc import DataError, DBAPIError, OperationalError

from src.models.challenge_invite import ChallengeInvite
from src.models.user import User
from src.services import record_store
from src.services.errors import ConflictError, NotFoundError, StoreError, TransientStoreError, ValidationError


class TestCrud:
    def test_create_sets_timestamps(self, db):
        user = record_store.create(db, "users", telegram_id=1, name="Asha")
        assert user.id is not None
        assert isinstance(user.created_at, datetime)
        assert isinstance(user.updated_at, datetime)

    def test_get_missing(self, db):
        with pytest.raises(NotFoundError) as exc:
            record_store.get(db, "users", 12345)
        assert exc.value.code == "users_not_found"

    def test_update_missing(self, db):
        with pytest.raises(NotFoundError):
            record_store.update(db, "users", 12345, name="x")

    def test_update_unknown_field(self, db, make_user):
        u = make_user("Asha")
        with pytest.raises(ValidationError) as exc:
            record_store.update(db, "users", u.id, no_such_field=1)
        assert exc.value.field == "no_such_field"

    def test_unknown_field_leaves_no_partial_update(self, db, make_user):
        u = make_user("Asha")
        with pytest.raises(ValidationError):
            record_store.update(db, "users", u.id, name="Half", no_such_field=1)
        assert not db.dirty
        db.commit()
        db.expire_all()
        assert record_store.get(db, "users", u.id).name == "Asha"

    def test_unknown_collection(self, db):
        with pytest.raises(ValidationError):
            record_store.get_list(db, "leaderboards")

    def test_get_list_filters_and_sorts(self, db, make_user):
        make_user("Ravi")
        make_user("Asha")
        make_user("Meera")
        rows = record_store.get_list(db, "users", User.name != "Meera", order_by=User.name.asc())
        assert [u.name for u in rows] == ["Asha", "Ravi"]

    def test_integrity_error_becomes_conflict(self, db, make_user):
        u = make_user("Asha")
        with pytest.raises(ConflictError):
            record_store.create(db, "users", telegram_id=u.telegram_id, name="Dup")
        # сессия пригодна после отката
        assert record_store.get(db, "users", u.id).name == "Asha"

    def test_operational_error_becomes_transient(self, db, monkeypatch):
        def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("server closed the connection"))

        monkeypatch.setattr(db, "commit", broken_commit)
        with pytest.raises(TransientStoreError):
            record_store.create(db, "users", telegram_id=7, name="Nobody")

    def test_data_error_becomes_validation(self, db, monkeypatch):
        def broken_commit():
            raise DataError("INSERT", {}, Exception("value too long for type character varying(64)"))

        monkeypatch.setattr(db, "commit", broken_commit)
        with pytest.raises(ValidationError) as exc:
            record_store.create(db, "users", telegram_id=8, name="Nobody")
        assert exc.value.code == "invalid_value"
        assert exc.value.status_code == 422

    def test_other_db_error_is_typed(self, db, monkeypatch):
        def broken_commit():
            raise DBAPIError("INSERT", {}, Exception("something odd"))

        monkeypatch.setattr(db, "commit", broken_commit)
        with pytest.raises(StoreError) as exc:
            record_store.create(db, "users", telegram_id=9, name="Nobody")
        assert exc.value.status_code == 500

    def test_get_list_pages(self, db, make_user):
        for name in ("A", "B", "C", "D"):
            make_user(name)
        rows = record_store.get_list(db, "users", order_by=User.name.asc(), limit=2, offset=1)
        assert [u.name for u in rows] == ["B", "C"]


class TestUpdateWhere:
    def test_updates_when_condition_holds(self, db, make_user):
        u = make_user("Asha")
        rec = record_store.update_where(db, "users", u.id, User.target_exam.is_(None), target_exam="NEET")
        assert rec.target_exam == "NEET"

    def test_returns_none_when_condition_fails(self, db, make_user):
        u = make_user("Asha", target_exam="JEE")
        events = []
        unsubscribe = record_store.subscribe("users", lambda a, r: events.append(a))
        try:
            rec = record_store.update_where(db, "users", u.id, User.target_exam.is_(None), target_exam="NEET")
        finally:
            unsubscribe()
        assert rec is None
        assert events == []
        assert record_store.get(db, "users", u.id).target_exam == "JEE"

    def test_unknown_field(self, db, make_user):
        u = make_user("Asha")
        with pytest.raises(ValidationError):
            record_store.update_where(db, "users", u.id, nope=1)


class TestSubscribe:
    def test_handler_receives_creates_and_updates(self, db, make_user):
        events = []
        unsubscribe = record_store.subscribe("users", lambda action, rec: events.append((action, rec.name)))
        try:
            u = make_user("Asha")  # напрямую через сессию: не публикуется
            record_store.update(db, "users", u.id, name="Asha K")
            record_store.create(db, "users", telegram_id=99, name="Ravi")
        finally:
            unsubscribe()

        assert events == [(record_store.UPDATED, "Asha K"), (record_store.CREATED, "Ravi")]

    def test_predicate_filters(self, db, users):
        seen = []
        unsubscribe = record_store.subscribe(
            "invites",
            lambda action, rec: seen.append(rec.invited_user_id),
            predicate=lambda rec: rec.invited_user_id == users["U2"].id,
        )
        try:
            from src.services import challenges, invite_dispatcher
            from src.schemas.challenge import ChallengeCreate

            cfg = ChallengeCreate(subject="Physics", lesson="Optics", friend_ids=[users["U2"].id, users["U3"].id])
            ch = challenges.create_challenge(db, users["U1"].id, cfg)
            invite_dispatcher.dispatch_invites(db, ch, [users["U2"].id, users["U3"].id])
        finally:
            unsubscribe()
        assert seen == [users["U2"].id]

    def test_failing_handler_does_not_break_write(self, db):
        def bad(action, rec):
            raise RuntimeError("ui went away")

        unsubscribe = record_store.subscribe("users", bad)
        try:
            user = record_store.create(db, "users", telegram_id=5, name="Kiran")
        finally:
            unsubscribe()
        assert record_store.get(db, "users", user.id).name == "Kiran"

    def test_unsubscribe_stops_delivery(self, db):
        events = []
        unsubscribe = record_store.subscribe("users", lambda a, r: events.append(a))
        unsubscribe()
        unsubscribe()
        record_store.create(db, "users", telegram_id=6, name="Dev")
        assert events == []
