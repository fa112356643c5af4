# src/routers/auth.py
"""
Вход студента через Telegram WebApp.
Валидирует initData, регистрирует (если нет) или лениво обновляет пользователя и возвращает его.
"""

from fastapi import APIRouter, Depends

from src.schemas.user import UserMeOut
from src.models.user import User
from src.utils.telegram_dep import get_current_user_or_create

router = APIRouter()


@router.post("/telegram", response_model=UserMeOut)
async def auth_via_telegram(user: User = Depends(get_current_user_or_create)) -> User:
    """
    Точка входа для фронта (/api/auth/telegram).
    initData принимается в JSON { "initData": "..." }, в заголовке x-telegram-initdata или в ?init_data=.
    """
    return user
