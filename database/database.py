from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.pool import NullPool
from config.settings import settings
from database.base import Base
from loguru import logger

engine = None
async_session = None

def build_engine(database_url: str) -> AsyncEngine:
    """
    Создает асинхронный движок по URL из настроек
    SQLite (aiosqlite) - для разработки и тестов, PostgreSQL (asyncpg) - для продакшена
    """
    if database_url.startswith("sqlite"):
        if not database_url.startswith("sqlite+aiosqlite"):
            database_url = database_url.replace("sqlite:///", "sqlite+aiosqlite:///")
        logger.info("Используется SQLite база данных (локальная разработка)")
        return create_async_engine(
            database_url,
            echo=False,
            poolclass=NullPool,
            connect_args={"check_same_thread": False}
        )

    if database_url.startswith("postgresql://") or database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    if database_url.startswith("postgresql+asyncpg://"):
        logger.info("Используется PostgreSQL база данных (продакшен)")
        # Уникальность (store_id, menu_date) проверяется на уровне БД, поэтому пул обычный
        return create_async_engine(
            database_url,
            echo=False,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=3600
        )

    logger.warning(f"Неизвестный тип базы данных: {database_url}. Используются стандартные настройки.")
    return create_async_engine(database_url, echo=False)

async def init_db(database_url: str | None = None):
    """
    Инициализация подключения к базе данных и создание таблиц
    """
    global engine, async_session

    engine = build_engine(database_url or settings.DATABASE_URL)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    import models  # noqa: F401  регистрирует таблицы в Base.metadata

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("База данных инициализирована успешно")
    except Exception as e:
        logger.error(f"Ошибка при инициализации базы данных: {e}")
        raise

async def close_db():
    global engine, async_session
    if engine is not None:
        await engine.dispose()
    engine = None
    async_session = None

async def get_session():
    if async_session is None:
        logger.error("База данных не инициализирована! Вызовите init_db() перед использованием.")
        raise RuntimeError("База данных не инициализирована. Вызовите init_db() перед использованием.")

    async with async_session() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Ошибка в сессии базы данных: {e}", exc_info=True)
            raise
