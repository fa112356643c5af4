# src/schemas/follow.py
from pydantic import BaseModel
from src.schemas.user import UserOut


class FollowedListOut(BaseModel):
    """Список подписок текущего пользователя: кандидаты в челлендж."""
    total: int
    users: list[UserOut]
