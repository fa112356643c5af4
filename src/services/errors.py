# src/services/errors.py
"""
Ошибки подсистемы челленджей.

У каждой ошибки есть машинный code (уходит фронту в detail.code)
и HTTP-статус, в который её переводит обработчик в main.py.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ChallengeError(Exception):
    """Базовая ошибка: всё, что сервисы челленджей бросают наружу."""

    status_code = 400
    code = "challenge_error"

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None):
        if code:
            self.code = code
        self.message = message or self.code
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(ChallengeError):
    """Некорректная конфигурация челленджа. Ничего не записано, надо переспросить."""

    status_code = 422
    code = "validation_error"

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None, field: Optional[str] = None):
        self.field = field
        super().__init__(code, message)

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        if self.field:
            detail["field"] = self.field
        return detail


class AuthorizationError(ChallengeError):
    """Чужой инвайт / нет доступа. Не ретраится."""

    status_code = 403
    code = "forbidden"


class AuthenticationError(AuthorizationError):
    status_code = 401
    code = "not_authenticated"


class NotFoundError(ChallengeError):
    status_code = 404
    code = "not_found"


class ConflictError(ChallengeError):
    """Повторный ответ на инвайт, дубль пары и т.п."""

    status_code = 409
    code = "conflict"


class TransientStoreError(ChallengeError):
    """
    Сбой связи с хранилищем (или отмена запроса).
    Это не логическая ошибка: на чтении показываем «не удалось загрузить, повторите».
    """

    status_code = 503
    code = "store_unavailable"

    def __init__(self, message: Optional[str] = None, original: Optional[BaseException] = None):
        self.original = original
        super().__init__(None, message)


class StoreError(ChallengeError):
    """Хранилище отвергло запрос по причине, которую нельзя исправить повтором."""

    status_code = 500
    code = "store_error"

    def __init__(self, message: Optional[str] = None, original: Optional[BaseException] = None):
        self.original = original
        super().__init__(None, message)
