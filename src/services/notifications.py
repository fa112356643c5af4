# src/services/notifications.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from sqlalchemy import type_coerce
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session

from src.models.notification import Notification
from src.services import record_store
from src.utils.dt import utc_now

# Типы уведомлений челленджей
CHALLENGE_INVITE = "challenge_invite"
CHALLENGE_ACCEPTED = "challenge_accepted"
CHALLENGE_REJECTED = "challenge_rejected"

CHALLENGE_TYPES = (CHALLENGE_INVITE, CHALLENGE_ACCEPTED, CHALLENGE_REJECTED)


def invite_message(creator_name: str, subject: str, lesson: str, challenge_name: str) -> str:
    return (
        f'{creator_name} has challenged you to a {subject} test on "{lesson}"! '
        f"Challenge: {challenge_name}. Check your Challenge Invites."
    )


def response_message(responder_name: str, accepted: bool, challenge_name: str, subject: str, lesson: str) -> str:
    verb = "accepted" if accepted else "rejected"
    return f"{responder_name} has {verb} your challenge for {challenge_name} ({subject} / {lesson})."


def create_notification(
    db: Session,
    *,
    type: str,
    sender_id: int,
    recipient_ids: List[int],
    message: str,
    related_challenge_id: Optional[int] = None,
    related_invite_id: Optional[int] = None,
    approved: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> Notification:
    """
    Единая точка записи уведомлений. Один вызов: одна запись, свой коммит.
    Доставка: не часть транзакции бизнес-операции: вызывающий сам решает, что делать при ошибке.
    """
    return record_store.create(
        db,
        "notifications",
        type=type,
        sender_id=sender_id,
        recipient_ids=list(recipient_ids),
        message=message,
        related_challenge_id=related_challenge_id,
        related_invite_id=related_invite_id,
        seen=False,
        approved=approved,
        created_at=now or utc_now(),
    )


# без фильтра по получателю в SQL (SQLite) просматриваем ленту такими пачками
SCAN_BATCH = 200


def recipient_filter(user_id: int):
    """recipient_ids @> [user_id]; на PostgreSQL покрывается GIN-индексом по JSONB."""
    return type_coerce(Notification.recipient_ids, JSONB).contains([user_id])


def _scan_for_recipient(db: Session, user_id: int, criteria, order_by, limit: int, offset: int) -> List[Notification]:
    # читаем пачками и останавливаемся, как только набралась страница
    page: List[Notification] = []
    skipped = 0
    start = 0
    while len(page) < limit:
        rows = record_store.get_list(
            db, "notifications", *criteria, order_by=order_by, limit=SCAN_BATCH, offset=start,
        )
        for n in rows:
            if user_id not in (n.recipient_ids or []):
                continue
            if skipped < offset:
                skipped += 1
                continue
            page.append(n)
            if len(page) == limit:
                break
        if len(rows) < SCAN_BATCH:
            break
        start += SCAN_BATCH
    return page


def list_notifications(
    db: Session,
    user_id: int,
    *,
    unseen_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> List[Notification]:
    """Входящие пользователя, новые сверху."""
    criteria = [Notification.type.in_(CHALLENGE_TYPES)]
    if unseen_only:
        criteria.append(Notification.seen.is_(False))
    order_by = [Notification.created_at.desc(), Notification.id.desc()]

    if db.get_bind().dialect.name == "postgresql":
        return record_store.get_list(
            db, "notifications", *criteria, recipient_filter(user_id),
            order_by=order_by, limit=limit, offset=offset,
        )
    return _scan_for_recipient(db, user_id, criteria, order_by, limit, offset)
