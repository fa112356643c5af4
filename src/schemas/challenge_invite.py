# src/schemas/challenge_invite.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.schemas.challenge import ChallengeOut
from src.schemas.notification import NotificationOut


class InviteRespondIn(BaseModel):
    accept: bool


class ChallengeInviteOut(BaseModel):
    id: int
    challenge_id: int
    invited_user_id: int
    response: Optional[bool] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InviteCardOut(BaseModel):
    """Карточка в списке приглашений: инвайт + челлендж + кто позвал + куда вести."""
    invite: ChallengeInviteOut
    challenge: ChallengeOut
    creator_name: str
    action: Optional[str] = None


class InviteInboxOut(BaseModel):
    pending: List[InviteCardOut]
    past: List[InviteCardOut]


class InviteResponseOut(BaseModel):
    invite: ChallengeInviteOut
    notification: Optional[NotificationOut] = None
    action: Optional[str] = None
