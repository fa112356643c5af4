# src/services/users.py
from __future__ import annotations
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from src.models.user import User
from src.services import record_store
from src.services.errors import NotFoundError

FALLBACK_NAME = "A friend"


def compose_name(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    username: Optional[str] = None,
    telegram_id: Optional[int] = None,
) -> str:
    """Имя и фамилия, иначе @username, иначе telegram id."""
    full = " ".join(p.strip() for p in (first_name, last_name) if p and p.strip())
    if full:
        return full
    if username:
        return username
    return str(telegram_id) if telegram_id is not None else ""


def display_name_for(db: Session, user_id: int, default: str = FALLBACK_NAME) -> str:
    """Имя для текстов уведомлений и карточек; пропавшего пользователя подменяем default."""
    try:
        user = record_store.get(db, "users", user_id)
    except NotFoundError:
        return default
    return user.name or default


def display_names_for(db: Session, user_ids: Iterable[int], default: str = FALLBACK_NAME) -> Dict[int, str]:
    ids = set(user_ids)
    if not ids:
        return {}
    users = record_store.get_list(db, "users", User.id.in_(ids))
    names = {u.id: (u.name or default) for u in users}
    return {uid: names.get(uid, default) for uid in ids}
