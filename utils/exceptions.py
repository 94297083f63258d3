"""
Исключения движка дневных меню

ValidationError и UpstreamError доходят до вызывающего кода,
ConflictError и DecodingError поглощаются внутри сервисов.
"""
from typing import Optional


class DailyMenuError(Exception):
    pass


class ValidationError(DailyMenuError, ValueError):
    """Не передан или некорректен обязательный параметр (store_id, menu_date, ...)"""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Не указано обязательное поле: {field}")


class UpstreamError(DailyMenuError):
    """Хранилище недоступно или вернуло неожиданный ответ"""


class ConflictError(DailyMenuError):
    """Нарушение уникальности, которое не удалось разрешить повторным чтением"""


class DecodingError(DailyMenuError, ValueError):
    """Некорректный JSON в поле временных слотов"""
