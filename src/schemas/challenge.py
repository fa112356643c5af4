# src/schemas/challenge.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from src.services import challenge_status


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class ChallengeCreate(BaseModel):
    """
    Конфигурация челленджа от фронта.
    Границы (1..50 вопросов, 5..180 минут, 1..10 друзей) проверяет сервис,
    чтобы фронт получил единый формат ошибки с code.
    """
    subject: Optional[str] = None
    lesson: Optional[str] = None
    question_count: int = 10
    difficulty: str = "All"
    exam_filter: Optional[str] = None
    friend_ids: List[int] = Field(default_factory=list)
    duration_minutes: int = 30


class ChallengeOut(BaseModel):
    id: int
    creator_id: int
    display_name: str
    subject: str
    lesson: str
    difficulty: str
    question_count: int
    duration_minutes: int
    exam_filter: Optional[str] = None
    status: str
    created_at: datetime
    expiry_offset_minutes: int

    # производные поля (не хранятся)
    expires_at: Optional[datetime] = None
    live_status: Optional[str] = None
    seconds_remaining: Optional[int] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_challenge(cls, challenge: Any, now: Optional[datetime] = None) -> "ChallengeOut":
        """ORM -> схема. Enum-поля разворачиваем в строки, статус Live/Expired считаем на лету."""
        return cls(
            id=challenge.id,
            creator_id=challenge.creator_id,
            display_name=challenge.display_name,
            subject=challenge.subject,
            lesson=challenge.lesson,
            difficulty=_enum_value(challenge.difficulty),
            question_count=challenge.question_count,
            duration_minutes=challenge.duration_minutes,
            exam_filter=challenge.exam_filter,
            status=_enum_value(challenge.status),
            created_at=challenge.created_at,
            expiry_offset_minutes=challenge.expiry_offset_minutes,
            expires_at=challenge_status.expires_at(challenge),
            live_status=challenge_status.status(challenge, now).value,
            seconds_remaining=challenge_status.seconds_remaining(challenge, now),
        )


class DispatchFailure(BaseModel):
    friend_id: int
    code: str


class DispatchReportOut(BaseModel):
    invite_ids: List[int]
    failed: List[DispatchFailure] = []
    notification_failed_for: List[int] = []


class ChallengeCreatedOut(BaseModel):
    challenge: ChallengeOut
    dispatch: DispatchReportOut


class ActiveChallengeOut(BaseModel):
    challenge_id: int
    invite_id: int
    display_name: str
    creator_id: int
    creator_name: str
    subject: str
    lesson: str
    expires_at: datetime
    seconds_remaining: int
    status: str


class LobbyPlayerOut(BaseModel):
    user_id: int
    name: str
    responded_at: Optional[datetime] = None


class LobbyOut(BaseModel):
    challenge: ChallengeOut
    creator_name: str
    is_creator: bool
    joined_players: List[LobbyPlayerOut]
    pending_count: int
    rejected_count: int
    action: str
