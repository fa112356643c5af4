# src/services/invite_responses.py
"""
Ответ на приглашение в челлендж.

Инвайт: Pending (response = NULL) -> Accepted (True) | Rejected (False). Оба конечные.
Ответить может только сам приглашённый, и только один раз (повтор: ConflictError).

Запись ответа: главное действие. Уведомление создателю: вспомогательное:
если оно не создалось, ответ не откатываем, только пишем в лог.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models.challenge import Challenge
from src.models.challenge_invite import ChallengeInvite
from src.models.notification import Notification
from src.services import record_store
from src.services.challenge_status import RouteAction, route_for
from src.services.errors import AuthorizationError, ChallengeError, ConflictError, ValidationError
from src.services.notifications import (
    CHALLENGE_ACCEPTED,
    CHALLENGE_INVITE,
    CHALLENGE_REJECTED,
    create_notification,
    response_message,
)
from src.services.users import display_name_for
from src.utils.dt import to_naive_utc, utc_now

log = logging.getLogger(__name__)


@dataclass
class InviteResponse:
    invite: ChallengeInvite
    challenge: Challenge
    # None: уведомление создателю не записалось
    notification: Optional[Notification] = None
    # только для accept: lobby | results | expired
    action: Optional[RouteAction] = None


def respond(
    db: Session,
    invite_id: int,
    user_id: int,
    accept: bool,
    *,
    now: Optional[datetime] = None,
) -> InviteResponse:
    now = to_naive_utc(now) if now is not None else utc_now()

    invite = record_store.get(db, "invites", invite_id)
    if invite.invited_user_id != user_id:
        raise AuthorizationError("not_your_invite", "Only the invited user can respond to this invite.")
    if invite.response is not None:
        raise ConflictError(
            "invite_already_answered",
            f"Invite was already {'accepted' if invite.response else 'rejected'}.",
        )

    challenge = record_store.get(db, "challenges", invite.challenge_id)

    answered = record_store.update_where(
        db, "invites", invite.id,
        ChallengeInvite.response.is_(None),
        response=bool(accept), updated_at=now,
    )
    if answered is None:
        # между проверкой и записью успел пройти другой ответ (двойное нажатие)
        raise ConflictError("invite_already_answered", "Invite was already answered.")
    invite = answered
    log.info(
        "invite %s on challenge %s %s by user %s",
        invite.id, challenge.id, "accepted" if accept else "rejected", user_id,
    )

    notification = None
    try:
        notification = create_notification(
            db,
            type=CHALLENGE_ACCEPTED if accept else CHALLENGE_REJECTED,
            sender_id=user_id,
            recipient_ids=[challenge.creator_id],
            message=response_message(
                display_name_for(db, user_id),
                bool(accept),
                challenge.display_name,
                challenge.subject,
                challenge.lesson,
            ),
            related_challenge_id=challenge.id,
            related_invite_id=invite.id,
            approved=bool(accept),
            now=now,
        )
    except (ChallengeError, SQLAlchemyError):
        log.exception("invite %s: response stored, creator notification failed", invite.id)

    action = route_for(challenge, now) if accept else None
    return InviteResponse(invite=invite, challenge=challenge, notification=notification, action=action)


def respond_from_notification(
    db: Session,
    notification_id: int,
    user_id: int,
    accept: bool,
    *,
    now: Optional[datetime] = None,
) -> InviteResponse:
    """
    Ответ прямо из колокольчика: по уведомлению challenge_invite находим инвайт,
    отвечаем обычным путём и помечаем само уведомление seen/approved.
    """
    notification = record_store.get(db, "notifications", notification_id)
    if user_id not in (notification.recipient_ids or []):
        raise AuthorizationError("not_your_notification", "This notification is not addressed to you.")
    if notification.type != CHALLENGE_INVITE or notification.related_invite_id is None:
        raise ValidationError("not_an_invite", "Only challenge invites can be answered.")

    result = respond(db, notification.related_invite_id, user_id, accept, now=now)

    try:
        record_store.update(db, "notifications", notification.id, seen=True, approved=bool(accept))
    except (ChallengeError, SQLAlchemyError):
        log.exception("notification %s: invite answered, marking as seen failed", notification.id)

    return result
