# src/routers/notifications.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.db import get_db
from src.models.user import User
from src.routers.challenge_invites import response_out
from src.schemas.challenge_invite import InviteRespondIn, InviteResponseOut
from src.schemas.notification import NotificationOut
from src.services.invite_responses import respond_from_notification
from src.services.notifications import list_notifications
from src.utils.telegram_dep import get_current_user

router = APIRouter(tags=["Уведомления"])


@router.get("/", response_model=List[NotificationOut])
def get_my_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    unseen_only: bool = False,
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    return list_notifications(db, current_user.id, unseen_only=unseen_only, limit=limit, offset=offset)


@router.post("/{notification_id}/respond", response_model=InviteResponseOut)
def respond_from_bell(
    notification_id: int,
    payload: InviteRespondIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Принять/отклонить приглашение прямо из уведомления challenge_invite."""
    return response_out(respond_from_notification(db, notification_id, current_user.id, payload.accept))
