from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger
from config.settings import settings
from database.database import get_session
from services.clock_service import BUSINESS_TZ
from services.lifecycle_service import run_auto_deactivation
from utils.cache import cache

scheduler = AsyncIOScheduler(timezone=BUSINESS_TZ)

async def run_nightly_maintenance():
    """
    Ночное обслуживание после смены дня по времени бизнеса:
    автодеактивация вчерашних листов и очистка просроченных записей кэша
    """
    async for session in get_session():
        await run_auto_deactivation(session)

    purged = cache.purge_expired()
    logger.info(f"Ночное обслуживание выполнено, удалено записей кэша: {purged}")

def setup_scheduler() -> AsyncIOScheduler:
    scheduler.add_job(
        run_nightly_maintenance,
        CronTrigger(
            hour=settings.MAINTENANCE_HOUR,
            minute=settings.MAINTENANCE_MINUTE,
            timezone=BUSINESS_TZ
        ),
        id="nightly_maintenance",
        replace_existing=True
    )
    if not scheduler.running:
        scheduler.start()
    logger.info(
        f"Ночное обслуживание запланировано на "
        f"{settings.MAINTENANCE_HOUR:02d}:{settings.MAINTENANCE_MINUTE:02d} (UTC+{settings.BUSINESS_UTC_OFFSET_HOURS})"
    )
    return scheduler
