# src/utils/dt.py
from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Текущее время в UTC без tzinfo: в таком виде время лежит в БД."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Aware-время приводим к UTC и снимаем tzinfo; naive считаем уже UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
