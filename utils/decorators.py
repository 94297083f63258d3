from functools import wraps
from typing import Callable
from aiogram.types import Message, CallbackQuery
from sqlalchemy.exc import SQLAlchemyError
from loguru import logger
from config.settings import settings
from utils.exceptions import UpstreamError


def translate_db_errors(func: Callable) -> Callable:
    """
    Превращает ошибки SQLAlchemy в UpstreamError

    IntegrityError при создании листа обрабатывается внутри сервисов
    и сюда не доходит.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Хранилище недоступно в {func.__name__}: {e}", exc_info=True)
            raise UpstreamError(f"Хранилище недоступно: {e}") from e

    return wrapper


def owner_required(func: Callable) -> Callable:
    """
    Пропускает к команде только владельца магазина или супер-админа

    Первый аргумент команды - store_id.
    """
    @wraps(func)
    async def wrapper(event: Message | CallbackQuery, *args, **kwargs):
        user_id = event.from_user.id if event.from_user else None
        if not user_id:
            await event.answer("사용자를 확인할 수 없습니다.")
            return

        if user_id not in settings.ADMIN_IDS:
            from database.database import get_session
            from services.store_service import get_store, parse_store_id

            command = kwargs.get("command")
            args_text = command.args if command is not None and command.args else ""
            store_id = parse_store_id(args_text.split()[0] if args_text else "")

            async for session in get_session():
                store = await get_store(session, store_id)
                if store is None or store.owner_telegram_id != user_id:
                    await event.answer("이 매장을 관리할 권한이 없습니다.")
                    return

        return await func(event, *args, **kwargs)

    return wrapper
