# src/schemas/user.py
# Профиль в карточках челленджей и списке подписок: только то, что видно другу.

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserOut(BaseModel):
    id: int
    name: Optional[str] = None
    username: Optional[str] = None
    photo_url: Optional[str] = None
    target_exam: Optional[str] = None

    class Config:
        from_attributes = True


class UserMeOut(UserOut):
    """Свой профиль: плюс поля из Telegram и дата регистрации."""
    telegram_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime


class TargetExamIn(BaseModel):
    # пусто или null: фильтра по экзамену нет
    target_exam: Optional[str] = Field(None, max_length=64)
