import asyncio
import sys
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from loguru import logger
from config.settings import settings
from handlers import start, daily_menu, admin
from database.database import init_db, close_db
from middleware.logging_middleware import LoggingMiddleware
from middleware.error_middleware import ErrorMiddleware
from services.scheduler_service import setup_scheduler
from pathlib import Path

logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/daily_menu_{time:YYYY-MM-DD}.log",
    rotation="00:00",
    retention="30 days",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
    level="DEBUG"
)

def build_dispatcher() -> Dispatcher:
    dp = Dispatcher(storage=MemoryStorage())

    dp.message.middleware(LoggingMiddleware())
    dp.callback_query.middleware(LoggingMiddleware())
    dp.message.middleware(ErrorMiddleware())
    dp.callback_query.middleware(ErrorMiddleware())

    dp.include_router(start.router)
    dp.include_router(daily_menu.router)
    dp.include_router(admin.router)
    logger.info("✅ Все роутеры зарегистрированы")
    return dp

async def main():
    Path("logs").mkdir(exist_ok=True)

    if not settings.BOT_TOKEN:
        logger.error("BOT_TOKEN не установлен в .env файле!")
        return

    bot = Bot(token=settings.BOT_TOKEN)
    dp = build_dispatcher()

    logger.info("Инициализация базы данных...")
    await init_db()
    logger.info("✅ База данных инициализирована")

    setup_scheduler()
    logger.info("✅ Планировщик настроен")

    logger.info(f"🚀 Бот запущен, часовой пояс бизнеса UTC+{settings.BUSINESS_UTC_OFFSET_HOURS}")
    try:
        await dp.start_polling(bot)
    finally:
        await close_db()

if __name__ == '__main__':
    asyncio.run(main())
