# src/services/record_store.py
"""
Адаптер хранилища записей поверх SQLAlchemy-сессии.

Коллекции адресуются по имени (challenges, invites, notifications, users, follow_graph).
Каждая операция: отдельный коммит одной записи: межзаписных транзакций здесь нет,
и сервисы челленджей на них не рассчитывают.

Ошибки БД переводятся в типизированные:
  • обрыв соединения / отмена     -> TransientStoreError
  • нарушение ограничений         -> ConflictError
  • значение не влезло в колонку  -> ValidationError
  • прочие отказы БД              -> StoreError
  • нет записи по id              -> NotFoundError
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type

from sqlalchemy import update as sql_update
from sqlalchemy.exc import DataError, DBAPIError, DisconnectionError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from src.db import Base
from src.models.challenge import Challenge
from src.models.challenge_invite import ChallengeInvite
from src.models.follow import Follow
from src.models.notification import Notification
from src.models.user import User
from src.services.errors import ConflictError, NotFoundError, StoreError, TransientStoreError, ValidationError
from src.utils.dt import utc_now

log = logging.getLogger(__name__)

COLLECTIONS: Dict[str, Type[Base]] = {
    "challenges": Challenge,
    "invites": ChallengeInvite,
    "notifications": Notification,
    "users": User,
    "follow_graph": Follow,
}

CREATED = "create"
UPDATED = "update"

Handler = Callable[[str, Any], None]
Predicate = Callable[[Any], bool]

# collection -> [(predicate, handler)]
_subscribers: Dict[str, List[Tuple[Optional[Predicate], Handler]]] = {}


def _model(collection: str) -> Type[Base]:
    model = COLLECTIONS.get(collection)
    if model is None:
        raise ValidationError("unknown_collection", f"Unknown collection: {collection}")
    return model


@contextmanager
def _store_errors(db: Session) -> Iterator[None]:
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("integrity_error", str(e.orig)) from e
    except (OperationalError, DisconnectionError) as e:
        db.rollback()
        raise TransientStoreError(f"Store unavailable: {e}", original=e) from e
    except DataError as e:
        db.rollback()
        raise ValidationError("invalid_value", str(e.orig)) from e
    except DBAPIError as e:
        db.rollback()
        if e.connection_invalidated:
            raise TransientStoreError(f"Connection lost: {e}", original=e) from e
        log.error("record-store: unexpected DB error: %s", e)
        raise StoreError(str(e.orig), original=e) from e


def _publish(collection: str, action: str, record: Any) -> None:
    for predicate, handler in list(_subscribers.get(collection, [])):
        try:
            if predicate is None or predicate(record):
                handler(action, record)
        except Exception:
            # подписчик не должен влиять на запись
            log.exception("record-store: subscriber failed on %s/%s", collection, action)


def create(db: Session, collection: str, **fields: Any) -> Any:
    """Создать запись. created_at/updated_at проставляются, если модель их имеет и их не передали."""
    model = _model(collection)
    now = utc_now()
    for ts in ("created_at", "updated_at"):
        if hasattr(model, ts) and fields.get(ts) is None:
            fields[ts] = now

    record = model(**fields)
    with _store_errors(db):
        db.add(record)
        db.commit()
        db.refresh(record)

    _publish(collection, CREATED, record)
    return record


def get(db: Session, collection: str, record_id: int) -> Any:
    model = _model(collection)
    with _store_errors(db):
        record = db.get(model, record_id)
    if record is None:
        raise NotFoundError(f"{collection}_not_found", f"{collection}#{record_id} not found")
    return record


def _check_fields(model: Type[Base], collection: str, fields: Dict[str, Any]) -> None:
    # все имена проверяются до первого setattr
    for name in fields:
        if not hasattr(model, name):
            raise ValidationError("unknown_field", f"{collection} has no field {name}", field=name)


def _stamp_updated(model: Type[Base], fields: Dict[str, Any]) -> None:
    if hasattr(model, "updated_at") and fields.get("updated_at") is None:
        fields["updated_at"] = utc_now()


def update(db: Session, collection: str, record_id: int, **fields: Any) -> Any:
    """Частичное обновление. Нет записи: NotFoundError."""
    model = _model(collection)
    _check_fields(model, collection, fields)
    record = get(db, collection, record_id)
    _stamp_updated(model, fields)

    for name, value in fields.items():
        setattr(record, name, value)

    with _store_errors(db):
        db.commit()
        db.refresh(record)

    _publish(collection, UPDATED, record)
    return record


def update_where(db: Session, collection: str, record_id: int, *conditions: Any, **fields: Any) -> Optional[Any]:
    """
    Условное обновление одним UPDATE ... WHERE id = :id AND <conditions>.
    Если условие уже не выполняется (запись успели изменить), возвращает None и ничего не пишет.
    """
    model = _model(collection)
    _check_fields(model, collection, fields)
    _stamp_updated(model, fields)

    stmt = (
        sql_update(model)
        .where(model.id == record_id, *conditions)
        .values(**fields)
        .execution_options(synchronize_session=False)
    )
    with _store_errors(db):
        matched = db.execute(stmt).rowcount
        db.commit()
    if matched == 0:
        return None

    # после commit объекты сессии просрочены, get перечитает строку
    record = get(db, collection, record_id)
    _publish(collection, UPDATED, record)
    return record


def delete(db: Session, collection: str, record_id: int) -> None:
    record = get(db, collection, record_id)
    with _store_errors(db):
        db.delete(record)
        db.commit()


def get_list(
    db: Session,
    collection: str,
    *criteria: Any,
    order_by: Any = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[Any]:
    """Список записей по SQLAlchemy-условиям (AND) с сортировкой и страницей."""
    model = _model(collection)
    q = db.query(model)
    if criteria:
        q = q.filter(*criteria)
    if order_by is not None:
        q = q.order_by(*(order_by if isinstance(order_by, (list, tuple)) else [order_by]))
    if offset:
        q = q.offset(offset)
    if limit is not None:
        q = q.limit(limit)
    with _store_errors(db):
        return q.all()


def subscribe(collection: str, handler: Handler, predicate: Optional[Predicate] = None) -> Callable[[], None]:
    """
    Подписка на изменения коллекции (create/update) в рамках процесса.
    Для корректности не нужна: все статусы всё равно пересчитываются при чтении.
    Возвращает функцию отписки.
    """
    _model(collection)
    entry = (predicate, handler)
    _subscribers.setdefault(collection, []).append(entry)

    def unsubscribe() -> None:
        subs = _subscribers.get(collection, [])
        if entry in subs:
            subs.remove(entry)

    return unsubscribe
