from aiogram import Router
from aiogram.types import Message
from aiogram.filters import Command, CommandObject
from loguru import logger
from database.database import get_session
from handlers.common import parse_store_and_date, with_fetch_timeout
from services.clock_service import default_clock
from services.daily_menu_service import get_menu_for_display, resolve_effective_settings, build_daily_menu_link
from services.delivery_area_service import get_daily_delivery_areas
from services.order_window_service import (
    DEFAULT_BUSINESS_HOURS_START,
    MenuDateKind,
    get_order_window_status,
    is_within_order_hours,
)
from services.store_service import get_store_settings
from services.template_service import find_yesterday_template
from utils.formatters import format_daily_menu, format_template_preview, format_error_message
from utils.keyboards import get_daily_menu_keyboard

router = Router()

MENU_USAGE = "사용법: /menu <매장번호> [YYYY-MM-DD]"

async def _load_display(store_id: int, menu_date):
    async for session in get_session():
        display = await get_menu_for_display(session, store_id, menu_date)
        if display is None:
            return None, None, []
        store_settings = await get_store_settings(session, store_id)
        areas = await get_daily_delivery_areas(session, display.daily_menu.id)
        return display, store_settings, areas
    return None, None, []

@router.message(Command("menu"))
async def cmd_menu(message: Message, command: CommandObject):
    if not command.args:
        await message.answer(MENU_USAGE)
        return

    store_id, menu_date = parse_store_and_date(command)
    display, store_settings, areas = await with_fetch_timeout(_load_display(store_id, menu_date))

    if display is None:
        await message.answer(
            format_error_message("등록된 메뉴가 없습니다", "오늘과 내일 판매 예정인 반찬이 아직 없습니다."),
            parse_mode="HTML"
        )
        return

    daily_menu = display.daily_menu
    effective = resolve_effective_settings(daily_menu, store_settings)
    now = default_clock.business_now()
    window_status = get_order_window_status(daily_menu.menu_date, effective.order_cutoff_time, now)
    closed = window_status["closed"] or not daily_menu.is_active

    business_start = store_settings.business_hours_start if store_settings is not None else None
    if (window_status["kind"] is MenuDateKind.TODAY and not closed
            and not is_within_order_hours(business_start, effective.order_cutoff_time, now)):
        window_status["message"] = f"영업 시작 전입니다. {business_start or DEFAULT_BUSINESS_HOURS_START}부터 주문할 수 있습니다."
    logger.info(
        f"Лист {store_id}/{daily_menu.menu_date} показан покупателю {message.from_user.id if message.from_user else '-'}: "
        f"closed={closed}, fallback={display.is_fallback}"
    )

    text = format_daily_menu(
        daily_menu,
        display.items,
        areas,
        window_status,
        minimum_order_amount=effective.minimum_order_amount,
        closed=closed
    )
    keyboard = get_daily_menu_keyboard(build_daily_menu_link(store_id, daily_menu.menu_date), closed)
    await message.answer(text, reply_markup=keyboard, parse_mode="HTML")

@router.message(Command("yesterday"))
async def cmd_yesterday(message: Message, command: CommandObject):
    if not command.args:
        await message.answer("사용법: /yesterday <매장번호>")
        return

    store_id, _ = parse_store_and_date(command)

    async def _load():
        async for session in get_session():
            return await find_yesterday_template(session, store_id, default_clock.business_date_str())
        return None

    template = await with_fetch_timeout(_load())
    if template is None:
        await message.answer("어제 등록된 반찬이 없습니다.")
        return

    await message.answer(format_template_preview(template.source_date, template.items), parse_mode="HTML")
