# src/utils/telegram_dep.py
"""
Кто делает запрос: студент из Telegram WebApp initData.

get_current_user            -- для всех ручек челленджей, нового пользователя не заводит
get_current_user_or_create  -- только /api/auth/telegram: первый вход регистрирует студента

Дальше в сервисы уходит только user.id; про Telegram они ничего не знают.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from src import config
from src.db import get_db
from src.models.user import User
from src.services import record_store
from src.services.errors import AuthenticationError, ConflictError
from src.services.users import compose_name
from telegram_webapp_auth.auth import TelegramAuthenticator, generate_secret_key

log = logging.getLogger(__name__)

INIT_DATA_HEADER = "x-telegram-initdata"

# поля Telegram-профиля, которые копируем в users как есть
_PROFILE_FIELDS = ("first_name", "last_name", "username", "photo_url")


@lru_cache(maxsize=1)
def _authenticator() -> TelegramAuthenticator:
    # без токена бота приложение поднимается, но войти нельзя
    if not config.TELEGRAM_BOT_TOKEN:
        raise HTTPException(status_code=503, detail={"code": "auth_not_configured"})
    return TelegramAuthenticator(generate_secret_key(config.TELEGRAM_BOT_TOKEN))


async def read_init_data(request: Request) -> Optional[str]:
    """Заголовок, потом ?init_data=, потом "initData" в JSON-теле (для POST/PUT/PATCH)."""
    value = request.headers.get(INIT_DATA_HEADER) or request.query_params.get("init_data")
    if value:
        return value
    if request.method not in ("POST", "PUT", "PATCH"):
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    value = body.get("initData") if isinstance(body, dict) else None
    return value if isinstance(value, str) and value.strip() else None


def profile_from_tg(tg_user: Any) -> Dict[str, Any]:
    profile = {f: getattr(tg_user, f, None) for f in _PROFILE_FIELDS}
    profile["name"] = compose_name(
        profile["first_name"], profile["last_name"], profile["username"], tg_user.id
    )
    return profile


def _verify(init_data: str):
    try:
        return _authenticator().validate(init_data)
    except HTTPException:
        raise
    except Exception as e:
        # библиотека бросает свои исключения на подпись/срок/формат, для фронта это одно и то же
        raise AuthenticationError("invalid_init_data", str(e))


def _find_by_telegram_id(db: Session, telegram_id: int) -> Optional[User]:
    rows = record_store.get_list(db, "users", User.telegram_id == telegram_id, limit=1)
    return rows[0] if rows else None


def resolve_user(db: Session, init_data: Optional[str], *, register: bool) -> User:
    """
    Проверяет подпись initData, находит студента по telegram_id и подтягивает
    изменившиеся поля профиля. register=True заводит пользователя, если его нет.
    """
    if not init_data:
        raise AuthenticationError(
            "not_authenticated",
            f"initData required: header '{INIT_DATA_HEADER}', '?init_data=' or JSON 'initData'.",
        )

    tg_user = _verify(init_data).user
    profile = profile_from_tg(tg_user)

    user = _find_by_telegram_id(db, tg_user.id)
    if user is None:
        if not register:
            raise AuthenticationError("user_not_registered", "Sign in through /api/auth/telegram first.")
        try:
            user = record_store.create(db, "users", telegram_id=tg_user.id, **profile)
            log.info("registered user %s (tg %s)", user.id, tg_user.id)
            return user
        except ConflictError:
            # параллельный первый вход с того же аккаунта
            user = _find_by_telegram_id(db, tg_user.id)
            if user is None:
                raise

    changed = {k: v for k, v in profile.items() if getattr(user, k) != v}
    if changed:
        user = record_store.update(db, "users", user.id, **changed)
    return user


async def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    return resolve_user(db, await read_init_data(request), register=False)


async def get_current_user_or_create(request: Request, db: Session = Depends(get_db)) -> User:
    return resolve_user(db, await read_init_data(request), register=True)
