"""Tests for the invite state machine: ownership, write-once, creator notification, routing."""

from datetime import datetime, timedelta

import pytest

from src.models.challenge import ChallengeStatus
from src.models.challenge_invite import ChallengeInvite
from src.models.notification import Notification
from src.services import challenges, invite_dispatcher, invite_responses, record_store
from src.services.challenge_status import RouteAction
from src.services.errors import AuthorizationError, ConflictError, NotFoundError, TransientStoreError, ValidationError
from src.services.notifications import CHALLENGE_ACCEPTED, CHALLENGE_INVITE, CHALLENGE_REJECTED

T0 = datetime(2026, 3, 2, 12, 0, 0)


@pytest.fixture
def setup(db, users, challenge_config):
    cfg = challenge_config([users["U2"].id, users["U3"].id], duration_minutes=30)
    ch = challenges.create_challenge(db, users["U1"].id, cfg, now=T0)
    report = invite_dispatcher.dispatch_invites(db, ch, [users["U2"].id, users["U3"].id], now=T0)
    invites = {i.invited_user_id: i for i in report.invites}
    return ch, invites


def _responses(db):
    return db.query(Notification).filter(Notification.type.in_([CHALLENGE_ACCEPTED, CHALLENGE_REJECTED])).all()


class TestRespond:
    def test_accept(self, db, users, setup):
        ch, invites = setup
        invite = invites[users["U2"].id]
        at = T0 + timedelta(minutes=10)

        result = invite_responses.respond(db, invite.id, users["U2"].id, True, now=at)

        assert result.invite.response is True
        assert result.invite.updated_at == at
        assert result.action is RouteAction.lobby

        note = result.notification
        assert note.type == CHALLENGE_ACCEPTED
        assert note.sender_id == users["U2"].id
        assert note.recipient_ids == [users["U1"].id]
        assert note.related_challenge_id == ch.id
        assert note.related_invite_id == invite.id
        assert note.approved is True
        assert "Ravi has accepted your challenge" in note.message
        assert "Physics / Kinematics" in note.message

    def test_reject(self, db, users, setup):
        _, invites = setup
        result = invite_responses.respond(db, invites[users["U3"].id].id, users["U3"].id, False, now=T0)
        assert result.invite.response is False
        assert result.action is None
        assert result.notification.type == CHALLENGE_REJECTED
        assert result.notification.approved is False

    def test_other_invites_untouched(self, db, users, setup):
        _, invites = setup
        invite_responses.respond(db, invites[users["U2"].id].id, users["U2"].id, True, now=T0)
        other = db.get(ChallengeInvite, invites[users["U3"].id].id)
        assert other.response is None

    @pytest.mark.parametrize("intruder", ["U1", "U3", "U5"])
    def test_only_invited_user_may_respond(self, db, users, setup, intruder):
        _, invites = setup
        invite = invites[users["U2"].id]
        with pytest.raises(AuthorizationError) as exc:
            invite_responses.respond(db, invite.id, users[intruder].id, True, now=T0)
        assert exc.value.code == "not_your_invite"
        assert db.get(ChallengeInvite, invite.id).response is None
        assert _responses(db) == []

    def test_unknown_invite(self, db, users, setup):
        with pytest.raises(NotFoundError):
            invite_responses.respond(db, 424242, users["U2"].id, True, now=T0)

    @pytest.mark.parametrize("first, second", [(True, False), (False, True), (True, True)])
    def test_response_is_write_once(self, db, users, setup, first, second):
        _, invites = setup
        invite = invites[users["U2"].id]
        invite_responses.respond(db, invite.id, users["U2"].id, first, now=T0)

        with pytest.raises(ConflictError) as exc:
            invite_responses.respond(db, invite.id, users["U2"].id, second, now=T0 + timedelta(minutes=1))

        assert exc.value.code == "invite_already_answered"
        assert db.get(ChallengeInvite, invite.id).response is first
        assert len(_responses(db)) == 1

    def test_concurrent_answer_wins_once(self, db, session_factory, users, setup):
        _, invites = setup
        invite = invites[users["U2"].id]
        # эта сессия уже видела инвайт без ответа
        assert db.get(ChallengeInvite, invite.id).response is None

        other = session_factory()
        try:
            invite_responses.respond(other, invite.id, users["U2"].id, False, now=T0)
        finally:
            other.close()

        with pytest.raises(ConflictError) as exc:
            invite_responses.respond(db, invite.id, users["U2"].id, True, now=T0)

        assert exc.value.code == "invite_already_answered"
        db.expire_all()
        assert db.get(ChallengeInvite, invite.id).response is False
        assert [n.type for n in _responses(db)] == [CHALLENGE_REJECTED]

    def test_notification_failure_does_not_roll_back(self, db, users, setup, monkeypatch):
        _, invites = setup
        invite = invites[users["U2"].id]

        def boom(*args, **kwargs):
            raise TransientStoreError("store down")

        monkeypatch.setattr(invite_responses, "create_notification", boom)

        result = invite_responses.respond(db, invite.id, users["U2"].id, True, now=T0)
        assert result.notification is None
        assert result.action is RouteAction.lobby
        assert db.get(ChallengeInvite, invite.id).response is True


class TestAcceptRouting:
    def test_expired_pending_challenge(self, db, users, setup):
        _, invites = setup
        result = invite_responses.respond(
            db, invites[users["U2"].id].id, users["U2"].id, True, now=T0 + timedelta(minutes=50)
        )
        assert result.invite.response is True
        assert result.action is RouteAction.expired

    def test_completed_challenge_routes_to_results(self, db, users, setup):
        ch, invites = setup
        record_store.update(db, "challenges", ch.id, status=ChallengeStatus.completed)
        result = invite_responses.respond(
            db, invites[users["U2"].id].id, users["U2"].id, True, now=T0 + timedelta(hours=5)
        )
        assert result.action is RouteAction.results

    def test_active_live_challenge_routes_to_lobby(self, db, users, setup):
        ch, invites = setup
        record_store.update(db, "challenges", ch.id, status=ChallengeStatus.active)
        result = invite_responses.respond(
            db, invites[users["U2"].id].id, users["U2"].id, True, now=T0 + timedelta(minutes=20)
        )
        assert result.action is RouteAction.lobby


class TestRespondFromNotification:
    def _invite_note(self, db, invite_id):
        return (
            db.query(Notification)
            .filter(Notification.type == CHALLENGE_INVITE, Notification.related_invite_id == invite_id)
            .one()
        )

    def test_marks_invite_notification(self, db, users, setup):
        _, invites = setup
        invite = invites[users["U2"].id]
        note = self._invite_note(db, invite.id)

        result = invite_responses.respond_from_notification(db, note.id, users["U2"].id, False, now=T0)

        assert result.invite.response is False
        db.refresh(note)
        assert note.seen is True
        assert note.approved is False

    def test_not_addressed_to_user(self, db, users, setup):
        _, invites = setup
        note = self._invite_note(db, invites[users["U2"].id].id)
        with pytest.raises(AuthorizationError):
            invite_responses.respond_from_notification(db, note.id, users["U3"].id, True, now=T0)

    def test_response_notification_cannot_be_answered(self, db, users, setup):
        _, invites = setup
        result = invite_responses.respond(db, invites[users["U2"].id].id, users["U2"].id, True, now=T0)
        with pytest.raises(ValidationError) as exc:
            invite_responses.respond_from_notification(db, result.notification.id, users["U1"].id, True, now=T0)
        assert exc.value.code == "not_an_invite"
