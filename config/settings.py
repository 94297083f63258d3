import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    BOT_TOKEN: str = os.getenv("BOT_TOKEN", "")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./daily_menu.db")
    ADMIN_IDS: list[int] = [int(id) for id in os.getenv("ADMIN_IDS", "").split(",") if id]
    BUSINESS_UTC_OFFSET_HOURS: int = int(os.getenv("BUSINESS_UTC_OFFSET_HOURS", "9"))
    DEFAULT_ORDER_CUTOFF_TIME: str = os.getenv("DEFAULT_ORDER_CUTOFF_TIME", "15:00")
    TEMPLATE_LOOKBACK_DAYS: int = int(os.getenv("TEMPLATE_LOOKBACK_DAYS", "7"))
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "300"))
    AUTO_DEACTIVATION_PROCEDURE: str = os.getenv(
        "AUTO_DEACTIVATION_PROCEDURE", "execute_daily_menu_auto_deactivation"
    )
    MENU_FETCH_TIMEOUT_SECONDS: float = float(os.getenv("MENU_FETCH_TIMEOUT_SECONDS", "5"))
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
    DEFAULT_DAILY_MENU_TITLE: str = os.getenv("DEFAULT_DAILY_MENU_TITLE", "오늘의 반찬")
    DEFAULT_DAILY_MENU_DESCRIPTION: str = os.getenv(
        "DEFAULT_DAILY_MENU_DESCRIPTION", "맛있는 반찬을 주문해보세요!"
    )
    MAINTENANCE_HOUR: int = int(os.getenv("MAINTENANCE_HOUR", "0"))
    MAINTENANCE_MINUTE: int = int(os.getenv("MAINTENANCE_MINUTE", "5"))

settings = Settings()
