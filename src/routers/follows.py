# src/routers/follows.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from src.db import get_db
from src.models.user import User
from src.schemas.follow import FollowedListOut
from src.schemas.user import UserOut
from src.services.follow_graph import follow, list_followed, unfollow
from src.utils.telegram_dep import get_current_user

router = APIRouter(tags=["Подписки"])


@router.get("/", response_model=FollowedListOut)
def get_followed(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """На кого я подписан: из этого списка выбираются друзья для челленджа."""
    users = list_followed(db, current_user.id)
    return {"total": len(users), "users": [UserOut.model_validate(u) for u in users]}


@router.post("/{user_id}", response_model=dict, status_code=status.HTTP_201_CREATED)
def follow_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    follow(db, current_user.id, user_id)
    return {"success": True}


@router.delete("/{user_id}", response_model=dict)
def unfollow_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    unfollow(db, current_user.id, user_id)
    return {"success": True}
