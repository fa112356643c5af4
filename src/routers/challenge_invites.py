# src/routers/challenge_invites.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.db import get_db
from src.models.user import User
from src.schemas.challenge import ChallengeOut
from src.schemas.challenge_invite import (
    ChallengeInviteOut,
    InviteCardOut,
    InviteInboxOut,
    InviteRespondIn,
    InviteResponseOut,
)
from src.schemas.notification import NotificationOut
from src.services.active_challenges import InviteCard, list_invites
from src.services.invite_responses import InviteResponse, respond
from src.utils.telegram_dep import get_current_user

router = APIRouter(tags=["Приглашения в челленджи"])


def _card_out(card: InviteCard) -> InviteCardOut:
    return InviteCardOut(
        invite=ChallengeInviteOut.model_validate(card.invite),
        challenge=ChallengeOut.from_challenge(card.challenge),
        creator_name=card.creator_name,
        action=card.action.value if card.action else None,
    )


def response_out(result: InviteResponse) -> InviteResponseOut:
    return InviteResponseOut(
        invite=ChallengeInviteOut.model_validate(result.invite),
        notification=NotificationOut.model_validate(result.notification) if result.notification else None,
        action=result.action.value if result.action else None,
    )


@router.get("/", response_model=InviteInboxOut)
def get_my_invites(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Мои приглашения: ждущие ответа и история (у принятых ещё и куда вести, lobby/results/expired)."""
    inbox = list_invites(db, current_user.id)
    return InviteInboxOut(
        pending=[_card_out(c) for c in inbox.pending],
        past=[_card_out(c) for c in inbox.past],
    )


@router.post("/{invite_id}/respond", response_model=InviteResponseOut)
def respond_to_invite(
    invite_id: int,
    payload: InviteRespondIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return response_out(respond(db, invite_id, current_user.id, payload.accept))
