"""
Источник текущего времени в часовом поясе бизнеса (UTC+9)

Все вычисления "сегодня / завтра / вчера" берут одно значение
business_now() и считают от него, а не обращаются к часам повторно.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from config.settings import settings
from utils.exceptions import ValidationError

BUSINESS_TZ = timezone(timedelta(hours=settings.BUSINESS_UTC_OFFSET_HOURS))
MENU_DATE_FORMAT = "%Y-%m-%d"


class ClockSource:
    def __init__(self, now_func: Optional[Callable[[], datetime]] = None):
        self._now_func = now_func or (lambda: datetime.now(timezone.utc))

    def now_utc(self) -> datetime:
        now = self._now_func()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc)

    def business_now(self) -> datetime:
        return to_business_local(self.now_utc())

    def business_today(self) -> date:
        return self.business_now().date()

    def business_date_str(self, day_offset: int = 0) -> str:
        return format_menu_date(self.business_today() + timedelta(days=day_offset))


class FixedClock(ClockSource):
    """Часы, которые всегда показывают заданный момент"""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=BUSINESS_TZ)
        self.instant = instant
        super().__init__(lambda: self.instant)

    def advance(self, **delta) -> None:
        self.instant = self.instant + timedelta(**delta)


default_clock = ClockSource()


def to_business_local(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(BUSINESS_TZ)


def format_menu_date(value: date) -> str:
    return value.strftime(MENU_DATE_FORMAT)


def parse_menu_date(value, field: str = "menu_date") -> date:
    """Принимает date или строку YYYY-MM-DD"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str) or not value.strip():
        raise ValidationError(field)
    try:
        return datetime.strptime(value.strip(), MENU_DATE_FORMAT).date()
    except ValueError as e:
        raise ValidationError(field, f"Дата должна быть в формате YYYY-MM-DD: {value!r}") from e


def normalize_menu_date(value, field: str = "menu_date") -> str:
    return format_menu_date(parse_menu_date(value, field))
