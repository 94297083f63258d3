"""
Проверка работоспособности системы
"""
from datetime import datetime
from database.database import get_session
from sqlalchemy import text
from loguru import logger
from services.clock_service import default_clock

async def check_database_connection() -> tuple[bool, str]:
    """
    Проверяет подключение к базе данных
    
    Returns:
        tuple[bool, str]: (успешно ли подключение, сообщение)
    """
    try:
        async for session in get_session():
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            return True, "База данных доступна"
    except Exception as e:
        logger.error(f"Ошибка подключения к БД: {e}")
        return False, f"Ошибка подключения к БД: {str(e)}"
    return False, "Сессия базы данных не получена"

async def check_system_health() -> dict:
    db_status, db_message = await check_database_connection()
    
    return {
        "status": "healthy" if db_status else "unhealthy",
        "timestamp": datetime.now().isoformat(),
        "business_now": default_clock.business_now().isoformat(),
        "checks": {
            "database": {
                "status": "ok" if db_status else "error",
                "message": db_message
            }
        }
    }

def get_system_info() -> dict:
    from config.settings import settings
    
    return {
        "bot_token_set": bool(settings.BOT_TOKEN and settings.BOT_TOKEN != "your_bot_token_here"),
        "database_type": "PostgreSQL" if settings.DATABASE_URL.startswith("postgres") else "SQLite",
        "business_utc_offset_hours": settings.BUSINESS_UTC_OFFSET_HOURS,
        "default_order_cutoff_time": settings.DEFAULT_ORDER_CUTOFF_TIME,
        "template_lookback_days": settings.TEMPLATE_LOOKBACK_DAYS,
        "cache_ttl_seconds": settings.CACHE_TTL_SECONDS
    }
