# src/services/challenges.py
"""
Создание челленджа: проверка конфигурации, имя, срок жизни, одна запись в challenges.

Рассылка инвайтов сюда не входит: её вызывает роутер сразу после создания
(invite_dispatcher.dispatch_invites). Так «создать челлендж» и «позвать друзей»
можно повторять по отдельности.
"""

from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from src.models.challenge import Challenge, ChallengeDifficulty, ChallengeStatus
from src.schemas.challenge import ChallengeCreate
from src.services import record_store
from src.services.challenge_status import expiry_offset_for
from src.services.errors import AuthenticationError, ValidationError
from src.services.follow_graph import followed_ids
from src.utils.dt import to_naive_utc, utc_now

log = logging.getLogger(__name__)

MIN_QUESTIONS, MAX_QUESTIONS = 1, 50
MIN_DURATION, MAX_DURATION = 5, 180
MAX_FRIENDS = 10

NAME_SUFFIX_LEN = 4
_NAME_ALPHABET = string.ascii_uppercase + string.digits

ANY_EXAM = "Any Exam"

# длины текстовых полей совпадают с колонками challenges
MAX_SUBJECT_LEN = Challenge.__table__.c.subject.type.length
MAX_LESSON_LEN = Challenge.__table__.c.lesson.type.length
MAX_EXAM_FILTER_LEN = Challenge.__table__.c.exam_filter.type.length


def normalize_friend_ids(friend_ids: Iterable[int]) -> List[int]:
    """Убираем дубли, порядок первого появления сохраняем."""
    seen = set()
    result: List[int] = []
    for fid in friend_ids:
        if fid not in seen:
            seen.add(fid)
            result.append(fid)
    return result


def _random_suffix(length: int = NAME_SUFFIX_LEN) -> str:
    return "".join(secrets.choice(_NAME_ALPHABET) for _ in range(length))


def make_display_name(subject: str, lesson: str, suffix: Optional[str] = None) -> str:
    """
    SUB-LESSO-XXXX: 3 буквы предмета, 5 букв урока, случайный хвост.
    Коллизии допустимы: челлендж идентифицируется по id, не по имени.
    """
    suffix = suffix if suffix is not None else _random_suffix()
    return f"{subject.strip()[:3].upper()}-{lesson.strip()[:5].upper()}-{suffix}"


def _parse_difficulty(value: Optional[str]) -> ChallengeDifficulty:
    raw = (value or "All").strip()
    for d in ChallengeDifficulty:
        if d.value.lower() == raw.lower():
            return d
    raise ValidationError(
        "invalid_difficulty",
        f"Difficulty must be one of: {', '.join(d.value for d in ChallengeDifficulty)}",
        field="difficulty",
    )


def _normalize_exam_filter(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value or value == ANY_EXAM:
        return None
    return value


def _check_length(field: str, value: Optional[str], limit: int) -> None:
    if value is not None and len(value) > limit:
        raise ValidationError(
            f"{field}_too_long", f"{field} must be at most {limit} characters.", field=field
        )


def validate_config(db: Session, creator_id: int, config: ChallengeCreate) -> List[int]:
    """
    Проверяет конфигурацию до любой записи. Возвращает нормализованный список друзей.
    Ошибка: ValidationError с code/field.
    """
    if not (config.subject or "").strip():
        raise ValidationError("subject_required", "Subject is required.", field="subject")
    if not (config.lesson or "").strip():
        raise ValidationError("lesson_required", "Lesson is required.", field="lesson")

    _check_length("subject", config.subject.strip(), MAX_SUBJECT_LEN)
    _check_length("lesson", config.lesson.strip(), MAX_LESSON_LEN)
    _check_length("exam_filter", _normalize_exam_filter(config.exam_filter), MAX_EXAM_FILTER_LEN)

    if not (MIN_QUESTIONS <= config.question_count <= MAX_QUESTIONS):
        raise ValidationError(
            "invalid_question_count",
            f"Question count must be between {MIN_QUESTIONS} and {MAX_QUESTIONS}.",
            field="question_count",
        )
    if not (MIN_DURATION <= config.duration_minutes <= MAX_DURATION):
        raise ValidationError(
            "invalid_duration",
            f"Duration must be between {MIN_DURATION} and {MAX_DURATION} minutes.",
            field="duration_minutes",
        )

    _parse_difficulty(config.difficulty)

    friends = normalize_friend_ids(config.friend_ids)
    if not friends:
        raise ValidationError("friends_required", "Select at least one friend.", field="friend_ids")
    if len(friends) > MAX_FRIENDS:
        raise ValidationError(
            "too_many_friends", f"You can select up to {MAX_FRIENDS} friends.", field="friend_ids"
        )

    allowed = followed_ids(db, creator_id)
    strangers = [f for f in friends if f not in allowed]
    if strangers:
        raise ValidationError(
            "friend_not_followed",
            f"You can only challenge people you follow (not followed: {strangers}).",
            field="friend_ids",
        )
    return friends


def create_challenge(
    db: Session,
    creator_id: Optional[int],
    config: ChallengeCreate,
    *,
    now: Optional[datetime] = None,
) -> Challenge:
    """
    Создаёт челлендж со status=pending и expiry_offset_minutes = duration + 20.
    Пишется ровно одна запись; ошибка хранилища уходит вызывающему как есть.
    """
    if creator_id is None:
        raise AuthenticationError(message="You must be logged in to create a challenge.")

    validate_config(db, creator_id, config)

    subject = config.subject.strip()
    lesson = config.lesson.strip()

    challenge = record_store.create(
        db,
        "challenges",
        creator_id=creator_id,
        display_name=make_display_name(subject, lesson),
        subject=subject,
        lesson=lesson,
        difficulty=_parse_difficulty(config.difficulty),
        question_count=config.question_count,
        duration_minutes=config.duration_minutes,
        exam_filter=_normalize_exam_filter(config.exam_filter),
        status=ChallengeStatus.pending,
        created_at=to_naive_utc(now) if now is not None else utc_now(),
        expiry_offset_minutes=expiry_offset_for(config.duration_minutes),
    )
    log.info("challenge %s (%s) created by user %s", challenge.id, challenge.display_name, creator_id)
    return challenge


def get_challenge(db: Session, challenge_id: int) -> Challenge:
    return record_store.get(db, "challenges", challenge_id)
