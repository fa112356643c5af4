# src/services/follow_graph.py
from __future__ import annotations
from typing import List, Set

from sqlalchemy.orm import Session

from src.models.follow import Follow
from src.models.user import User
from src.services import record_store
from src.services.errors import ConflictError, NotFoundError, ValidationError


def followed_ids(db: Session, user_id: int) -> Set[int]:
    """id всех, на кого подписан user_id: кандидаты для приглашения в челлендж."""
    rows = record_store.get_list(db, "follow_graph", Follow.follower_id == user_id)
    return {r.followed_id for r in rows}


def list_followed(db: Session, user_id: int) -> List[User]:
    ids = followed_ids(db, user_id)
    if not ids:
        return []
    return record_store.get_list(
        db, "users", User.id.in_(ids),
        order_by=[User.name.asc(), User.id.asc()],
    )


def follow(db: Session, follower_id: int, followed_id: int) -> Follow:
    """
    Идемпотентно подписывает follower_id на followed_id.
    Если подписка уже есть: возвращает её.
    """
    if follower_id == followed_id:
        raise ValidationError("cannot_follow_self", "You cannot follow yourself")

    existing = record_store.get_list(
        db, "follow_graph",
        Follow.follower_id == follower_id, Follow.followed_id == followed_id,
    )
    if existing:
        return existing[0]

    # пользователь должен существовать
    record_store.get(db, "users", followed_id)
    try:
        return record_store.create(db, "follow_graph", follower_id=follower_id, followed_id=followed_id)
    except ConflictError:
        # гонка по uq_follow_pair: перечитаем
        rows = record_store.get_list(
            db, "follow_graph",
            Follow.follower_id == follower_id, Follow.followed_id == followed_id,
        )
        if rows:
            return rows[0]
        raise


def unfollow(db: Session, follower_id: int, followed_id: int) -> None:
    rows = record_store.get_list(
        db, "follow_graph",
        Follow.follower_id == follower_id, Follow.followed_id == followed_id,
    )
    if not rows:
        raise NotFoundError("follow_not_found", "You do not follow this user")
    record_store.delete(db, "follow_graph", rows[0].id)
