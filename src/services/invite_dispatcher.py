# src/services/invite_dispatcher.py
"""
Рассылка приглашений по созданному челленджу.

Для каждого друга: запись в invites (response = NULL), затем уведомление challenge_invite.
Best-effort, без общей транзакции:
  • не создался инвайт #k        -> фиксируем в отчёте и идём к другу #k+1;
  • инвайт есть, уведомления нет -> инвайт остаётся рабочим, друг увидит его в списке приглашений.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models.challenge import Challenge
from src.models.challenge_invite import ChallengeInvite
from src.services import record_store
from src.services.challenges import normalize_friend_ids
from src.services.errors import ChallengeError
from src.services.notifications import CHALLENGE_INVITE, create_notification, invite_message
from src.services.users import display_name_for
from src.utils.dt import to_naive_utc, utc_now

log = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    invites: List[ChallengeInvite] = field(default_factory=list)
    # (friend_id, code): инвайт не записан
    failed: List[Tuple[int, str]] = field(default_factory=list)
    # инвайт записан, уведомление: нет
    notification_failed_for: List[int] = field(default_factory=list)

    @property
    def invite_ids(self) -> List[int]:
        return [i.id for i in self.invites]


def _error_code(e: Exception) -> str:
    return e.code if isinstance(e, ChallengeError) else "store_error"


def dispatch_invites(
    db: Session,
    challenge: Challenge,
    friend_ids: Iterable[int],
    *,
    now: Optional[datetime] = None,
) -> DispatchReport:
    """
    Друзья обрабатываются по очереди в переданном порядке (дубли отбрасываются).
    Порядок потребителям не важен: инвайты независимы друг от друга.
    """
    now = to_naive_utc(now) if now is not None else utc_now()
    report = DispatchReport()
    creator_name = display_name_for(db, challenge.creator_id)
    message = invite_message(creator_name, challenge.subject, challenge.lesson, challenge.display_name)

    for friend_id in normalize_friend_ids(friend_ids):
        try:
            invite = record_store.create(
                db,
                "invites",
                challenge_id=challenge.id,
                invited_user_id=friend_id,
                response=None,
                created_at=now,
                updated_at=now,
            )
        except (ChallengeError, SQLAlchemyError) as e:
            log.warning(
                "dispatch: invite for user %s on challenge %s not created: %s",
                friend_id, challenge.id, e,
            )
            report.failed.append((friend_id, _error_code(e)))
            continue

        report.invites.append(invite)

        try:
            create_notification(
                db,
                type=CHALLENGE_INVITE,
                sender_id=challenge.creator_id,
                recipient_ids=[friend_id],
                message=message,
                related_challenge_id=challenge.id,
                related_invite_id=invite.id,
                now=now,
            )
        except (ChallengeError, SQLAlchemyError):
            log.exception(
                "dispatch: invite %s created but notification for user %s failed",
                invite.id, friend_id,
            )
            report.notification_failed_for.append(friend_id)

    log.info(
        "dispatch summary for challenge %s: invites=%s failed=%s notification_failed=%s",
        challenge.id, report.invite_ids, report.failed, report.notification_failed_for,
    )
    return report
