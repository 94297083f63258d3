import time
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message
from loguru import logger
from typing import Callable, Dict, Any, Awaitable

class LoggingMiddleware(BaseMiddleware):
    """Пишет в лог команду пользователя и время ее обработки"""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user = getattr(event, 'from_user', None)
        if user is None:
            return await handler(event, data)

        if isinstance(event, Message):
            action = (event.text or "")[:64] or type(event).__name__
        else:
            action = getattr(event, 'data', None) or type(event).__name__

        started = time.monotonic()
        try:
            return await handler(event, data)
        finally:
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(f"User {user.id} (@{user.username}) - {action} ({elapsed_ms:.0f} ms)")
