import pytest
from datetime import date, datetime, timedelta, timezone
from services.clock_service import (
    BUSINESS_TZ,
    ClockSource,
    FixedClock,
    format_menu_date,
    parse_menu_date,
    normalize_menu_date,
    to_business_local,
)
from utils.exceptions import ValidationError


def test_business_timezone_is_utc_plus_nine():
    assert BUSINESS_TZ.utcoffset(None) == timedelta(hours=9)


def test_business_today_rolls_over_before_utc():
    clock = ClockSource(lambda: datetime(2024, 5, 31, 15, 30, tzinfo=timezone.utc))
    assert clock.business_today() == date(2024, 6, 1)
    assert clock.business_date_str() == "2024-06-01"
    assert clock.business_date_str(1) == "2024-06-02"
    assert clock.business_date_str(-1) == "2024-05-31"


def test_naive_now_func_is_treated_as_utc():
    clock = ClockSource(lambda: datetime(2024, 6, 1, 0, 0))
    assert clock.business_now().hour == 9


def test_fixed_clock_naive_instant_is_business_local():
    clock = FixedClock(datetime(2024, 6, 1, 23, 30))
    assert clock.business_now().hour == 23
    assert clock.business_date_str() == "2024-06-01"


def test_fixed_clock_advance():
    clock = FixedClock(datetime(2024, 6, 1, 23, 30))
    clock.advance(hours=1)
    assert clock.business_date_str() == "2024-06-02"


def test_to_business_local():
    moment = to_business_local(datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc))
    assert moment.hour == 9
    assert moment.utcoffset() == timedelta(hours=9)


def test_parse_menu_date_variants():
    assert parse_menu_date("2024-06-01") == date(2024, 6, 1)
    assert parse_menu_date(" 2024-06-01 ") == date(2024, 6, 1)
    assert parse_menu_date(date(2024, 6, 1)) == date(2024, 6, 1)
    assert parse_menu_date(datetime(2024, 6, 1, 12, 0)) == date(2024, 6, 1)


@pytest.mark.parametrize("value", [None, "", "   ", "2024/06/01", "2024-13-01", 20240601])
def test_parse_menu_date_rejects(value):
    with pytest.raises(ValidationError) as exc_info:
        parse_menu_date(value)
    assert exc_info.value.field == "menu_date"


def test_normalize_menu_date():
    assert normalize_menu_date(date(2024, 6, 1)) == "2024-06-01"
    assert format_menu_date(date(2024, 1, 9)) == "2024-01-09"
