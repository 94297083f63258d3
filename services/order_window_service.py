"""
Окно приема заказов для дневного листа

Функции здесь чистые: текущее время передается вызывающим кодом
(обычно ClockSource.business_now()), сами часы не читаются.
"""
import enum
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional
from config.settings import settings
from services.clock_service import parse_menu_date, to_business_local, format_menu_date
from utils.time_slots import minutes_of_day, normalize_hhmm

DEFAULT_ORDER_CUTOFF_TIME = settings.DEFAULT_ORDER_CUTOFF_TIME
DEFAULT_BUSINESS_HOURS_START = "09:00"


class MenuDateKind(enum.Enum):
    PAST = "past"
    YESTERDAY = "yesterday"
    TODAY = "today"
    FUTURE = "future"


def classify_menu_date(menu_date, today: date) -> MenuDateKind:
    menu_day = parse_menu_date(menu_date)
    if menu_day == today:
        return MenuDateKind.TODAY
    if menu_day > today:
        return MenuDateKind.FUTURE
    if menu_day == today - timedelta(days=1):
        return MenuDateKind.YESTERDAY
    return MenuDateKind.PAST


def _business_local(now: datetime) -> datetime:
    # naive datetime считается уже локальным временем бизнеса
    return now if now.tzinfo is None else to_business_local(now)


def is_ordering_closed(menu_date, cutoff_time: Optional[str], now_business_local: datetime) -> bool:
    """
    Закрыт ли прием заказов на лист с датой menu_date

    - прошлые даты (включая вчера) - всегда закрыто
    - будущие даты - всегда открыто, отсечка не учитывается
    - сегодня - закрыто, если текущее время строго позже отсечки
    """
    now = _business_local(now_business_local)
    kind = classify_menu_date(menu_date, now.date())

    if kind in (MenuDateKind.PAST, MenuDateKind.YESTERDAY):
        return True
    if kind is MenuDateKind.FUTURE:
        return False

    cutoff_minutes = minutes_of_day(cutoff_time or DEFAULT_ORDER_CUTOFF_TIME, "order_cutoff_time")
    current_minutes = now.hour * 60 + now.minute
    return current_minutes > cutoff_minutes


def get_order_window_status(menu_date, cutoff_time: Optional[str], now_business_local: datetime) -> Dict[str, Any]:
    now = _business_local(now_business_local)
    cutoff = normalize_hhmm(cutoff_time or DEFAULT_ORDER_CUTOFF_TIME, "order_cutoff_time")
    kind = classify_menu_date(menu_date, now.date())
    closed = is_ordering_closed(menu_date, cutoff, now)

    if kind is MenuDateKind.FUTURE:
        message = "내일 주문을 미리 받고 있습니다."
    elif kind is MenuDateKind.TODAY and not closed:
        message = f"현재 주문을 받고 있습니다. (마감 {cutoff})"
    elif kind is MenuDateKind.TODAY:
        message = "오늘 주문이 마감되었습니다."
    else:
        message = "지난 날짜의 메뉴입니다. 주문할 수 없습니다."

    return {
        "menu_date": format_menu_date(parse_menu_date(menu_date)),
        "kind": kind,
        "closed": closed,
        "cutoff_time": cutoff,
        "message": message,
    }


def suggest_order_date(cutoff_time: Optional[str], now_business_local: datetime) -> str:
    """Сегодня, пока не наступила отсечка, иначе завтра"""
    now = _business_local(now_business_local)
    cutoff_minutes = minutes_of_day(cutoff_time or DEFAULT_ORDER_CUTOFF_TIME, "order_cutoff_time")
    if now.hour * 60 + now.minute < cutoff_minutes:
        return format_menu_date(now.date())
    return format_menu_date(now.date() + timedelta(days=1))


def is_within_order_hours(business_start: Optional[str], cutoff_time: Optional[str],
                          now_business_local: datetime) -> bool:
    now = _business_local(now_business_local)
    start_minutes = minutes_of_day(business_start or DEFAULT_BUSINESS_HOURS_START, "business_hours_start")
    cutoff_minutes = minutes_of_day(cutoff_time or DEFAULT_ORDER_CUTOFF_TIME, "order_cutoff_time")
    current_minutes = now.hour * 60 + now.minute
    return start_minutes <= current_minutes < cutoff_minutes
