# src/services/active_challenges.py
"""
Витрины для чтения: активные челленджи (панель Test Series), список приглашений, лобби.

Ничего не пишут. Статус Live/Expired и маршрут берут только из challenge_status,
поэтому все три витрины отвечают одинаково про один и тот же челлендж.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from src.models.challenge import Challenge
from src.models.challenge_invite import ChallengeInvite
from src.services import challenge_status, record_store
from src.services.challenge_status import LiveStatus, RouteAction
from src.services.errors import AuthorizationError
from src.services.users import display_names_for
from src.utils.dt import to_naive_utc, utc_now


@dataclass
class ActiveChallengeSummary:
    challenge: Challenge
    invite: ChallengeInvite
    creator_name: str
    expires_at: datetime
    seconds_remaining: int
    status: LiveStatus


@dataclass
class InviteCard:
    invite: ChallengeInvite
    challenge: Challenge
    creator_name: str
    # только у принятых: куда вести (лобби / результаты / истёк)
    action: Optional[RouteAction] = None


@dataclass
class InviteInbox:
    pending: List[InviteCard] = field(default_factory=list)
    past: List[InviteCard] = field(default_factory=list)


@dataclass
class LobbyPlayer:
    user_id: int
    name: str
    responded_at: Optional[datetime] = None


@dataclass
class LobbyView:
    challenge: Challenge
    creator_name: str
    is_creator: bool
    joined_players: List[LobbyPlayer]
    pending_count: int
    rejected_count: int
    action: RouteAction


def _now(now: Optional[datetime]) -> datetime:
    return to_naive_utc(now) if now is not None else utc_now()


def _challenges_by_id(db: Session, ids) -> Dict[int, Challenge]:
    ids = set(ids)
    if not ids:
        return {}
    return {c.id: c for c in record_store.get_list(db, "challenges", Challenge.id.in_(ids))}


def list_active_challenges(db: Session, user_id: int, *, now: Optional[datetime] = None) -> List[ActiveChallengeSummary]:
    """
    Принятые пользователем челленджи, которые ещё Live.
    Сортировка: раньше истекающие выше.
    """
    now = _now(now)
    accepted = record_store.get_list(
        db, "invites",
        ChallengeInvite.invited_user_id == user_id,
        ChallengeInvite.response.is_(True),
    )
    challenges = _challenges_by_id(db, (i.challenge_id for i in accepted))
    names = display_names_for(db, (c.creator_id for c in challenges.values()))

    result: List[ActiveChallengeSummary] = []
    for invite in accepted:
        ch = challenges.get(invite.challenge_id)
        if ch is None:
            continue
        st = challenge_status.status(ch, now)
        if st is not LiveStatus.live:
            continue
        result.append(
            ActiveChallengeSummary(
                challenge=ch,
                invite=invite,
                creator_name=names[ch.creator_id],
                expires_at=challenge_status.expires_at(ch),
                seconds_remaining=challenge_status.seconds_remaining(ch, now),
                status=st,
            )
        )

    result.sort(key=lambda s: (s.expires_at, s.challenge.id))
    return result


def list_invites(db: Session, user_id: int, *, now: Optional[datetime] = None) -> InviteInbox:
    """Все приглашения пользователя, новые сверху: ждущие ответа и отвеченные."""
    now = _now(now)
    invites = record_store.get_list(
        db, "invites",
        ChallengeInvite.invited_user_id == user_id,
        order_by=[ChallengeInvite.created_at.desc(), ChallengeInvite.id.desc()],
    )
    challenges = _challenges_by_id(db, (i.challenge_id for i in invites))
    names = display_names_for(db, (c.creator_id for c in challenges.values()))

    inbox = InviteInbox()
    for invite in invites:
        ch = challenges.get(invite.challenge_id)
        if ch is None:
            continue
        card = InviteCard(invite=invite, challenge=ch, creator_name=names[ch.creator_id])
        if invite.response is None:
            inbox.pending.append(card)
        else:
            if invite.response:
                card.action = challenge_status.route_for(ch, now)
            inbox.past.append(card)
    return inbox


def get_lobby(db: Session, challenge_id: int, user_id: int, *, now: Optional[datetime] = None) -> LobbyView:
    """Лобби видят создатель и приглашённые; остальным AuthorizationError."""
    now = _now(now)
    ch = record_store.get(db, "challenges", challenge_id)
    invites = record_store.get_list(
        db, "invites",
        ChallengeInvite.challenge_id == ch.id,
        order_by=[ChallengeInvite.updated_at.asc(), ChallengeInvite.id.asc()],
    )

    is_creator = ch.creator_id == user_id
    if not is_creator and all(i.invited_user_id != user_id for i in invites):
        raise AuthorizationError("not_in_challenge", "You are not part of this challenge.")

    joined = [i for i in invites if i.response is True]
    names = display_names_for(db, [ch.creator_id] + [i.invited_user_id for i in joined])

    return LobbyView(
        challenge=ch,
        creator_name=names[ch.creator_id],
        is_creator=is_creator,
        joined_players=[
            LobbyPlayer(user_id=i.invited_user_id, name=names[i.invited_user_id], responded_at=i.updated_at)
            for i in joined
        ],
        pending_count=sum(1 for i in invites if i.response is None),
        rejected_count=sum(1 for i in invites if i.response is False),
        action=challenge_status.route_for(ch, now),
    )
