# src/routers/challenges.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from src.db import get_db
from src.models.user import User
from src.schemas.challenge import (
    ActiveChallengeOut,
    ChallengeCreate,
    ChallengeCreatedOut,
    ChallengeOut,
    DispatchFailure,
    DispatchReportOut,
    LobbyOut,
    LobbyPlayerOut,
)
from src.services.active_challenges import get_lobby, list_active_challenges
from src.services.challenges import create_challenge, get_challenge, normalize_friend_ids
from src.services.invite_dispatcher import dispatch_invites
from src.utils.telegram_dep import get_current_user

router = APIRouter(tags=["Челленджи"])


@router.post("/", response_model=ChallengeCreatedOut, status_code=status.HTTP_201_CREATED)
def create_challenge_endpoint(
    payload: ChallengeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Создать челлендж и сразу разослать приглашения.
    Два независимых шага: если рассылка частично не удалась, челлендж остаётся,
    а в ответе видно, кого не получилось позвать.
    """
    challenge = create_challenge(db, current_user.id, payload)
    report = dispatch_invites(db, challenge, normalize_friend_ids(payload.friend_ids))

    return ChallengeCreatedOut(
        challenge=ChallengeOut.from_challenge(challenge),
        dispatch=DispatchReportOut(
            invite_ids=report.invite_ids,
            failed=[DispatchFailure(friend_id=fid, code=code) for fid, code in report.failed],
            notification_failed_for=report.notification_failed_for,
        ),
    )


@router.get("/active", response_model=List[ActiveChallengeOut])
def get_active_challenges(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Принятые и ещё живые челленджи текущего пользователя; раньше истекающие выше."""
    return [
        ActiveChallengeOut(
            challenge_id=s.challenge.id,
            invite_id=s.invite.id,
            display_name=s.challenge.display_name,
            creator_id=s.challenge.creator_id,
            creator_name=s.creator_name,
            subject=s.challenge.subject,
            lesson=s.challenge.lesson,
            expires_at=s.expires_at,
            seconds_remaining=s.seconds_remaining,
            status=s.status.value,
        )
        for s in list_active_challenges(db, current_user.id)
    ]


@router.get("/{challenge_id}", response_model=ChallengeOut)
def get_challenge_detail(
    challenge_id: int,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
):
    return ChallengeOut.from_challenge(get_challenge(db, challenge_id))


@router.get("/{challenge_id}/lobby", response_model=LobbyOut)
def get_challenge_lobby(
    challenge_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    view = get_lobby(db, challenge_id, current_user.id)
    return LobbyOut(
        challenge=ChallengeOut.from_challenge(view.challenge),
        creator_name=view.creator_name,
        is_creator=view.is_creator,
        joined_players=[
            LobbyPlayerOut(user_id=p.user_id, name=p.name, responded_at=p.responded_at)
            for p in view.joined_players
        ],
        pending_count=view.pending_count,
        rejected_count=view.rejected_count,
        action=view.action.value,
    )
