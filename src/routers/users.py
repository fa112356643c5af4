# src/routers/users.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.db import get_db
from src.models.user import User
from src.schemas.user import TargetExamIn, UserMeOut, UserOut
from src.services import record_store
from src.utils.telegram_dep import get_current_user

router = APIRouter()


@router.get("/me", response_model=UserMeOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me/target-exam", response_model=UserMeOut)
def set_target_exam(
    payload: TargetExamIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Целевой экзамен подставляется фронтом как фильтр по умолчанию при создании челленджа."""
    value = (payload.target_exam or "").strip() or None
    return record_store.update(db, "users", current_user.id, target_exam=value)


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _current_user: User = Depends(get_current_user),
):
    # например, чтобы найти человека и подписаться
    return record_store.get(db, "users", user_id)
