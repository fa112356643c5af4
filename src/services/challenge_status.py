# src/services/challenge_status.py
"""
Единственная точка расчёта «Live / Expired» для челленджа.

Статус не хранится: каждый раз считается из created_at и expiry_offset_minutes.
Список приглашений, панель активных челленджей и лобби должны звать только эти функции,
тогда все поверхности отвечают одинаково про один и тот же челлендж.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta
from typing import Any, Optional

from src.models.challenge import ChallengeStatus
from src.utils.dt import to_naive_utc, utc_now

GRACE_MINUTES = 20


class LiveStatus(str, enum.Enum):
    live = "Live"
    expired = "Expired"


class RouteAction(str, enum.Enum):
    lobby = "lobby"
    results = "results"
    expired = "expired"


def expiry_offset_for(duration_minutes: int) -> int:
    return duration_minutes + GRACE_MINUTES


def expires_at(challenge: Any) -> datetime:
    return to_naive_utc(challenge.created_at) + timedelta(minutes=challenge.expiry_offset_minutes)


def status(challenge: Any, now: Optional[datetime] = None) -> LiveStatus:
    """Live, пока now < created_at + expiry_offset_minutes. Больше ничего не учитывается."""
    now = to_naive_utc(now) if now is not None else utc_now()
    return LiveStatus.live if now < expires_at(challenge) else LiveStatus.expired


def is_live(challenge: Any, now: Optional[datetime] = None) -> bool:
    return status(challenge, now) is LiveStatus.live


def seconds_remaining(challenge: Any, now: Optional[datetime] = None) -> int:
    now = to_naive_utc(now) if now is not None else utc_now()
    left = (expires_at(challenge) - now).total_seconds()
    return max(0, int(left))


def _stored_status(challenge: Any) -> ChallengeStatus:
    value = challenge.status
    return value if isinstance(value, ChallengeStatus) else ChallengeStatus(value)


def route_for(challenge: Any, now: Optional[datetime] = None) -> RouteAction:
    """
    Куда вести пользователя с принятым инвайтом:
      • pending/active и ещё Live -> лобби
      • completed                 -> результаты
      • иначе                     -> «челлендж истёк», без действий
    """
    stored = _stored_status(challenge)
    if stored in (ChallengeStatus.pending, ChallengeStatus.active) and is_live(challenge, now):
        return RouteAction.lobby
    if stored is ChallengeStatus.completed:
        return RouteAction.results
    return RouteAction.expired
