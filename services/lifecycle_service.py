"""
Вызов внешней процедуры автодеактивации дневных листов

Правила деактивации живут в БД (хранимая процедура), сервис только
вызывает ее перед каждым чтением листа.
"""
from typing import Awaitable, Callable, Optional
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from config.settings import settings
from utils.exceptions import UpstreamError

AutoDeactivationHook = Callable[[AsyncSession], Awaitable[None]]


async def call_auto_deactivation_procedure(session: AsyncSession) -> None:
    procedure = settings.AUTO_DEACTIVATION_PROCEDURE
    if not procedure or session.bind is None or session.bind.dialect.name != "postgresql":
        return

    try:
        await session.execute(text(f"SELECT {procedure}()"))
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Ошибка процедуры автодеактивации {procedure}: {e}", exc_info=True)
        raise UpstreamError(f"Процедура автодеактивации недоступна: {e}") from e


_hook: AutoDeactivationHook = call_auto_deactivation_procedure


def set_auto_deactivation_hook(hook: Optional[AutoDeactivationHook]) -> None:
    global _hook
    _hook = hook or call_auto_deactivation_procedure


def get_auto_deactivation_hook() -> AutoDeactivationHook:
    return _hook


async def run_auto_deactivation(session: AsyncSession) -> None:
    await _hook(session)
