"""
Тесты команд бота: хендлеры работают с тестовой БД через подмену get_session
"""
import asyncio
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch
from aiogram.filters import CommandObject
from aiogram.types import Message
from sqlalchemy import text as sql_text
from services.clock_service import FixedClock
from services.daily_menu_service import (
    create_daily_menu,
    add_daily_menu_item,
    get_daily_menu,
    get_daily_menus_by_store,
)
from services.menu_service import add_menu
from services.store_service import create_store
from handlers.common import parse_store_and_date, with_fetch_timeout
from middleware.error_middleware import ErrorMiddleware, MENU_UNAVAILABLE_TEXT, GENERIC_ERROR_TEXT
from utils.exceptions import UpstreamError, ValidationError

OWNER_ID = 555


def session_provider(test_db):
    async def _get_session():
        async with test_db() as session:
            yield session
    return _get_session


def make_command(name, args=None):
    return CommandObject(prefix="/", command=name, args=args)


@pytest.fixture
def mock_message():
    message = MagicMock()
    message.from_user.id = OWNER_ID
    message.answer = AsyncMock()
    return message


@pytest.fixture
async def store(test_db):
    async with test_db() as session:
        store = await create_store(session, "행복반찬", owner_telegram_id=OWNER_ID, order_cutoff_time="15:00")
        dish = await add_menu(session, store.id, "멸치볶음", 5000)
        daily_menu = await create_daily_menu(session, store.id, "2024-06-01")
        await add_daily_menu_item(session, daily_menu.id, dish.id, 3)
        return store


class TestCommandArgs:
    def test_store_only(self):
        assert parse_store_and_date(make_command("menu", "7")) == (7, None)

    def test_store_and_date(self):
        assert parse_store_and_date(make_command("menu", "7 2024-06-01")) == (7, "2024-06-01")

    def test_missing_store(self):
        with pytest.raises(ValidationError):
            parse_store_and_date(make_command("menu"))

    def test_bad_date(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_store_and_date(make_command("menu", "7 tomorrow"))
        assert exc_info.value.field == "menu_date"


@pytest.mark.asyncio
async def test_fetch_timeout_is_upstream_error():
    with patch("handlers.common.settings") as mock_settings:
        mock_settings.MENU_FETCH_TIMEOUT_SECONDS = 0.01
        with pytest.raises(UpstreamError):
            await with_fetch_timeout(asyncio.sleep(1))


@pytest.mark.asyncio
async def test_menu_command_shows_open_sheet(test_db, store, mock_message):
    from handlers.daily_menu import cmd_menu

    with patch("handlers.daily_menu.get_session", session_provider(test_db)), \
         patch("handlers.daily_menu.default_clock", FixedClock(datetime(2024, 6, 1, 10, 0))):
        await cmd_menu(mock_message, make_command("menu", f"{store.id} 2024-06-01"))

    text = mock_message.answer.call_args[0][0]
    assert "멸치볶음" in text
    assert "주문 가능" in text
    assert "5,000원" in text


@pytest.mark.asyncio
async def test_menu_command_after_cutoff(test_db, store, mock_message):
    from handlers.daily_menu import cmd_menu

    with patch("handlers.daily_menu.get_session", session_provider(test_db)), \
         patch("handlers.daily_menu.default_clock", FixedClock(datetime(2024, 6, 1, 15, 1))):
        await cmd_menu(mock_message, make_command("menu", f"{store.id} 2024-06-01"))

    text = mock_message.answer.call_args[0][0]
    assert "주문 마감" in text


@pytest.mark.asyncio
async def test_menu_command_before_business_hours(test_db, store, mock_message):
    from handlers.daily_menu import cmd_menu

    with patch("handlers.daily_menu.get_session", session_provider(test_db)), \
         patch("handlers.daily_menu.default_clock", FixedClock(datetime(2024, 6, 1, 8, 0))):
        await cmd_menu(mock_message, make_command("menu", f"{store.id} 2024-06-01"))

    text = mock_message.answer.call_args[0][0]
    assert "09:00부터 주문할 수 있습니다" in text
    assert "멸치볶음" in text


@pytest.mark.asyncio
async def test_menu_command_with_broken_stored_cutoff(test_db, store, mock_message):
    from handlers.daily_menu import cmd_menu

    async with test_db() as session:
        await session.execute(sql_text("UPDATE stores SET order_cutoff_time = '25:00'"))
        await session.execute(sql_text("UPDATE daily_menus SET order_cutoff_time = 'noon'"))
        await session.commit()

    with patch("handlers.daily_menu.get_session", session_provider(test_db)), \
         patch("handlers.daily_menu.default_clock", FixedClock(datetime(2024, 6, 1, 15, 30))):
        await cmd_menu(mock_message, make_command("menu", f"{store.id} 2024-06-01"))

    text = mock_message.answer.call_args[0][0]
    assert "멸치볶음" in text
    assert "주문 마감" in text

@pytest.mark.asyncio
async def test_menu_command_without_sheet(test_db, store, mock_message):
    from handlers.daily_menu import cmd_menu

    with patch("handlers.daily_menu.get_session", session_provider(test_db)):
        await cmd_menu(mock_message, make_command("menu", f"{store.id} 2023-01-01"))

    text = mock_message.answer.call_args[0][0]
    assert "등록된 메뉴가 없습니다" in text


@pytest.mark.asyncio
async def test_menu_command_usage(mock_message):
    from handlers.daily_menu import cmd_menu, MENU_USAGE

    await cmd_menu(mock_message, make_command("menu"))
    mock_message.answer.assert_awaited_once_with(MENU_USAGE)


@pytest.mark.asyncio
async def test_yesterday_preview(test_db, store, mock_message):
    from handlers.daily_menu import cmd_yesterday

    with patch("handlers.daily_menu.get_session", session_provider(test_db)), \
         patch("handlers.daily_menu.default_clock", FixedClock(datetime(2024, 6, 2, 9, 0))):
        await cmd_yesterday(mock_message, make_command("yesterday", str(store.id)))

    text = mock_message.answer.call_args[0][0]
    assert "어제의 반찬" in text
    assert "멸치볶음" in text


@pytest.mark.asyncio
async def test_sheet_command_seeds_from_template(test_db, store, mock_message):
    from handlers.admin import cmd_sheet

    provider = session_provider(test_db)
    with patch("database.database.get_session", provider), \
         patch("handlers.admin.get_session", provider):
        await cmd_sheet(mock_message, command=make_command("sheet", f"{store.id} 2024-06-03"))

    text = mock_message.answer.call_args[0][0]
    assert "메뉴를 불러왔습니다" in text
    async with test_db() as session:
        assert await get_daily_menu(session, store.id, "2024-06-03") is not None


@pytest.mark.parametrize("now, expected_date", [
    (datetime(2024, 6, 3, 14, 59), "2024-06-03"),
    (datetime(2024, 6, 3, 15, 0), "2024-06-04"),
])
@pytest.mark.asyncio
async def test_sheet_command_without_date_follows_cutoff(test_db, store, mock_message, now, expected_date):
    from handlers.admin import cmd_sheet

    provider = session_provider(test_db)
    with patch("database.database.get_session", provider), \
         patch("handlers.admin.get_session", provider), \
         patch("handlers.admin.default_clock", FixedClock(now)):
        await cmd_sheet(mock_message, command=make_command("sheet", str(store.id)))

    async with test_db() as session:
        menus = await get_daily_menus_by_store(session, store.id)
        assert [m.menu_date for m in menus] == [expected_date, "2024-06-01"]

@pytest.mark.asyncio
async def test_sheet_command_rejects_other_users(test_db, store, mock_message):
    from handlers.admin import cmd_sheet

    mock_message.from_user.id = 999
    provider = session_provider(test_db)
    with patch("database.database.get_session", provider), \
         patch("handlers.admin.get_session", provider):
        await cmd_sheet(mock_message, command=make_command("sheet", f"{store.id} 2024-06-03"))

    mock_message.answer.assert_awaited_once_with("이 매장을 관리할 권한이 없습니다.")
    async with test_db() as session:
        assert await get_daily_menu(session, store.id, "2024-06-03") is None


@pytest.mark.asyncio
async def test_sheet_off_and_cutoff(test_db, store, mock_message):
    from handlers.admin import cmd_sheet_off, cmd_cutoff

    provider = session_provider(test_db)
    with patch("database.database.get_session", provider), \
         patch("handlers.admin.get_session", provider):
        await cmd_sheet_off(mock_message, command=make_command("sheet_off", f"{store.id} 2024-06-01"))
        await cmd_cutoff(mock_message, command=make_command("cutoff", f"{store.id} 2024-06-01 9:30"))

    async with test_db() as session:
        daily_menu = await get_daily_menu(session, store.id, "2024-06-01")
        assert daily_menu.is_active is False
        assert daily_menu.order_cutoff_time == "09:30"


class TestErrorMiddleware:
    @pytest.fixture
    def event(self):
        event = MagicMock(spec=Message)
        event.answer = AsyncMock()
        return event

    @pytest.mark.asyncio
    async def test_validation_error_names_field(self, event):
        handler = AsyncMock(side_effect=ValidationError("store_id"))
        await ErrorMiddleware()(handler, event, {})

        text = event.answer.call_args[0][0]
        assert "store_id" in text

    @pytest.mark.asyncio
    async def test_upstream_error(self, event):
        handler = AsyncMock(side_effect=UpstreamError("db down"))
        await ErrorMiddleware()(handler, event, {})
        event.answer.assert_awaited_once_with(MENU_UNAVAILABLE_TEXT, parse_mode="HTML")

    @pytest.mark.asyncio
    async def test_unexpected_error(self, event):
        handler = AsyncMock(side_effect=RuntimeError("boom"))
        await ErrorMiddleware()(handler, event, {})
        event.answer.assert_awaited_once_with(GENERIC_ERROR_TEXT, parse_mode="HTML")

    @pytest.mark.asyncio
    async def test_passes_result_through(self, event):
        handler = AsyncMock(return_value="ok")
        assert await ErrorMiddleware()(handler, event, {}) == "ok"
        event.answer.assert_not_called()


@pytest.mark.asyncio
async def test_health_requires_admin(mock_message):
    from handlers.admin import cmd_health

    with patch("handlers.admin.settings") as mock_settings:
        mock_settings.ADMIN_IDS = []
        await cmd_health(mock_message)

    mock_message.answer.assert_awaited_once_with("관리자만 사용할 수 있는 명령입니다.")


@pytest.mark.asyncio
async def test_health_for_admin(test_db, mock_message):
    from handlers.admin import cmd_health

    with patch("handlers.admin.settings") as mock_settings, \
         patch("utils.health_check.get_session", session_provider(test_db)):
        mock_settings.ADMIN_IDS = [OWNER_ID]
        await cmd_health(mock_message)

    text = mock_message.answer.call_args[0][0]
    assert "healthy" in text
    assert "UTC+9" in text
