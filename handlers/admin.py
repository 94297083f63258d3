from aiogram import Router
from aiogram.types import Message
from aiogram.filters import Command, CommandObject
from loguru import logger
from config.settings import settings
from database.database import get_session
from handlers.common import parse_store_and_date
from services.clock_service import default_clock, normalize_menu_date
from services.daily_menu_service import (
    get_daily_menu,
    activate_daily_menu,
    deactivate_daily_menu,
    update_daily_menu_settings,
    load_daily_menu_items,
    build_daily_menu_link,
    resolve_effective_settings,
)
from services.delivery_area_service import get_daily_delivery_areas
from services.order_window_service import suggest_order_date
from services.store_service import get_store_settings, parse_store_id
from services.template_service import seed_daily_menu_from_template
from utils.decorators import owner_required
from utils.exceptions import ValidationError
from utils.formatters import format_success_message, format_error_message, format_menu_date_label
from utils.health_check import check_system_health, get_system_info
from utils.time_slots import normalize_hhmm

router = Router()

@router.message(Command("sheet"))
@owner_required
async def cmd_sheet(message: Message, command: CommandObject):
    """
    Открывает (и при необходимости создает) лист на дату

    Без даты берется сегодня, а после отсечки магазина - завтра.
    """
    store_id, menu_date = parse_store_and_date(command)

    async for session in get_session():
        if menu_date is None:
            store_settings = await get_store_settings(session, store_id)
            effective = resolve_effective_settings(None, store_settings)
            menu_date = suggest_order_date(effective.order_cutoff_time, default_clock.business_now())
        daily_menu, template = await seed_daily_menu_from_template(session, store_id, menu_date)
        items = await load_daily_menu_items(session, daily_menu.id)
        areas = await get_daily_delivery_areas(session, daily_menu.id)

        details = {
            "날짜": format_menu_date_label(daily_menu.menu_date),
            "상태": "활성" if daily_menu.is_active else "비활성",
            "반찬 수": len(items),
            "배달 지역 수": len(areas),
            "주문 마감": daily_menu.order_cutoff_time or "기본값",
            "링크": build_daily_menu_link(store_id, daily_menu.menu_date),
        }
        if template is not None:
            note = f"{format_menu_date_label(template.source_date)} 메뉴를 불러왔습니다."
        elif not items:
            note = "최근 7일 내에 불러올 메뉴가 없습니다. 반찬을 새로 선택해주세요."
        else:
            note = ""

        logger.info(f"Владелец {message.from_user.id} открыл лист #{daily_menu.id} ({store_id}/{daily_menu.menu_date})")
        await message.answer(format_success_message(daily_menu.title, note, details), parse_mode="HTML")

async def _set_sheet_active(message: Message, command: CommandObject, is_active: bool):
    store_id, menu_date = parse_store_and_date(command)
    if menu_date is None:
        raise ValidationError("menu_date")

    async for session in get_session():
        daily_menu = await get_daily_menu(session, store_id, menu_date)
        if daily_menu is None:
            await message.answer(format_error_message("메뉴가 없습니다", f"{menu_date} 메뉴 페이지가 아직 없습니다."), parse_mode="HTML")
            return
        if is_active:
            await activate_daily_menu(session, daily_menu.id)
        else:
            await deactivate_daily_menu(session, daily_menu.id)

    state = "활성화" if is_active else "비활성화"
    await message.answer(format_success_message(f"메뉴 페이지 {state}", f"{format_menu_date_label(menu_date)}"), parse_mode="HTML")

@router.message(Command("sheet_on"))
@owner_required
async def cmd_sheet_on(message: Message, command: CommandObject):
    await _set_sheet_active(message, command, True)

@router.message(Command("sheet_off"))
@owner_required
async def cmd_sheet_off(message: Message, command: CommandObject):
    await _set_sheet_active(message, command, False)

@router.message(Command("cutoff"))
@owner_required
async def cmd_cutoff(message: Message, command: CommandObject):
    """/cutoff <store_id> <YYYY-MM-DD> <HH:MM>"""
    args = (command.args or "").split()
    store_id = parse_store_id(args[0] if args else None)
    if len(args) < 2:
        raise ValidationError("menu_date")
    if len(args) < 3:
        raise ValidationError("order_cutoff_time")
    menu_date = normalize_menu_date(args[1])
    cutoff = normalize_hhmm(args[2], "order_cutoff_time")

    async for session in get_session():
        daily_menu = await get_daily_menu(session, store_id, menu_date)
        if daily_menu is None:
            await message.answer(format_error_message("메뉴가 없습니다", f"{menu_date} 메뉴 페이지가 아직 없습니다."), parse_mode="HTML")
            return
        await update_daily_menu_settings(session, daily_menu.id, order_cutoff_time=cutoff)

    await message.answer(
        format_success_message("주문 마감 시간 변경", f"{format_menu_date_label(menu_date)} 마감: {cutoff}"),
        parse_mode="HTML"
    )

@router.message(Command("health"))
async def cmd_health(message: Message):
    """Статус системы, только для супер-админов"""
    if not message.from_user or message.from_user.id not in settings.ADMIN_IDS:
        await message.answer("관리자만 사용할 수 있는 명령입니다.")
        return

    health = await check_system_health()
    info = get_system_info()

    status_emoji = "✅" if health["status"] == "healthy" else "❌"
    lines = [f"{status_emoji} <b>시스템 상태: {health['status']}</b>", ""]
    for check_name, check_data in health["checks"].items():
        check_emoji = "✅" if check_data["status"] == "ok" else "❌"
        lines.append(f"{check_emoji} {check_name}: {check_data['message']}")
    lines.append("")
    lines.append(f"🕘 {health['business_now'][:16].replace('T', ' ')} (UTC+{info['business_utc_offset_hours']})")
    lines.append(f"🗄 {info['database_type']}")
    lines.append(f"⏰ 기본 마감: {info['default_order_cutoff_time']}")
    lines.append(f"📚 템플릿 조회: {info['template_lookback_days']}일")

    await message.answer("\n".join(lines), parse_mode="HTML")
