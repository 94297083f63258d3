import asyncio
from typing import Awaitable, Optional, Tuple, TypeVar
from aiogram.filters import CommandObject
from config.settings import settings
from services.clock_service import normalize_menu_date
from services.store_service import parse_store_id
from utils.exceptions import UpstreamError

T = TypeVar("T")


def parse_store_and_date(command: Optional[CommandObject]) -> Tuple[int, Optional[str]]:
    """Аргументы вида "<store_id> [YYYY-MM-DD]" """
    args = (command.args or "").split() if command is not None else []
    store_id = parse_store_id(args[0] if args else None)
    menu_date = normalize_menu_date(args[1]) if len(args) > 1 else None
    return store_id, menu_date


async def with_fetch_timeout(awaitable: Awaitable[T]) -> T:
    """Ограничивает ожидание данных, чтобы бот не зависал на недоступной БД"""
    try:
        return await asyncio.wait_for(awaitable, timeout=settings.MENU_FETCH_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as e:
        raise UpstreamError("Превышено время ожидания данных меню") from e
