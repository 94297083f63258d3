"""
Поиск и применение шаблона для нового дневного листа

Шаблоном служит ближайший предыдущий лист, в котором есть хотя бы одна
позиция. Поиск ограничен TEMPLATE_LOOKBACK_DAYS днями назад и никогда
не создает листы на пустые даты.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from config.settings import settings
from models.menu import Menu
from models.daily_menu import DailyMenu, DailyMenuItem
from services.clock_service import format_menu_date, parse_menu_date
from services.daily_menu_service import (
    lookup_daily_menu,
    load_daily_menu_items,
    get_or_create_daily_menu,
)
from services.lifecycle_service import run_auto_deactivation
from services.store_service import parse_store_id
from utils.decorators import translate_db_errors
from utils.exceptions import ValidationError

TEMPLATE_LOOKBACK_DAYS = settings.TEMPLATE_LOOKBACK_DAYS

_TEMPLATE_SETTINGS = (
    "order_cutoff_time",
    "pickup_time_slots",
    "delivery_time_slots",
    "minimum_order_amount",
)


@dataclass
class MenuTemplate:
    source_date: str
    source_menu: DailyMenu
    items: List[DailyMenuItem]


@translate_db_errors
async def find_template(session: AsyncSession, store_id: Any, before_date: Any,
                        max_lookback_days: int = TEMPLATE_LOOKBACK_DAYS) -> Optional[MenuTemplate]:
    """
    Ищет ближайший непустой лист в диапазоне [before_date - max_lookback_days, before_date - 1]

    Returns:
        MenuTemplate | None: None означает "свежего шаблона нет", это не ошибка
    """
    store_id = parse_store_id(store_id)
    start = parse_menu_date(before_date, "before_date")
    if max_lookback_days is None or max_lookback_days < 1:
        raise ValidationError("max_lookback_days", "Глубина поиска шаблона должна быть не меньше 1 дня")

    await run_auto_deactivation(session)

    for days_back in range(1, max_lookback_days + 1):
        candidate_date = format_menu_date(start - timedelta(days=days_back))
        candidate = await lookup_daily_menu(session, store_id, candidate_date)
        if candidate is None:
            continue

        items = await load_daily_menu_items(session, candidate.id)
        if items:
            logger.info(
                f"Шаблон для магазина {store_id} на {format_menu_date(start)}: "
                f"лист #{candidate.id} от {candidate_date} ({len(items)} поз.)"
            )
            return MenuTemplate(source_date=candidate_date, source_menu=candidate, items=items)

    logger.info(f"Шаблон для магазина {store_id} за {max_lookback_days} дн. до {format_menu_date(start)} не найден")
    return None


async def find_yesterday_template(session: AsyncSession, store_id: Any, today: Any) -> Optional[MenuTemplate]:
    """Вчерашний лист для предпросмотра (только чтение)"""
    return await find_template(session, store_id, today, max_lookback_days=1)


@translate_db_errors
async def apply_template(session: AsyncSession, daily_menu: DailyMenu,
                         template: MenuTemplate) -> List[DailyMenuItem]:
    """
    Копирует позиции и настройки шаблона в пустой лист

    Позиции каталога, которые сейчас недоступны, пропускаются.
    Если в листе уже есть позиции, ничего не меняется.
    """
    existing = await load_daily_menu_items(session, daily_menu.id)
    if existing:
        logger.info(f"Лист #{daily_menu.id} уже заполнен, шаблон не применяется")
        return existing

    menu_ids = [item.menu_id for item in template.items]
    result = await session.execute(
        select(Menu.id).where(Menu.id.in_(menu_ids), Menu.is_available == True)
    )
    available_ids = set(result.scalars().all())

    for item in template.items:
        if item.menu_id not in available_ids:
            continue
        session.add(DailyMenuItem(
            daily_menu_id=daily_menu.id,
            menu_id=item.menu_id,
            initial_quantity=item.initial_quantity,
            current_quantity=item.initial_quantity,
            is_available=(item.initial_quantity or 0) > 0
        ))

    for name in _TEMPLATE_SETTINGS:
        value = getattr(template.source_menu, name)
        if value is not None:
            setattr(daily_menu, name, value)

    await session.commit()
    await session.refresh(daily_menu)
    copied = await load_daily_menu_items(session, daily_menu.id)
    logger.info(f"Лист #{daily_menu.id} заполнен из шаблона от {template.source_date}: {len(copied)} поз.")
    return copied


async def seed_daily_menu_from_template(session: AsyncSession, store_id: Any,
                                        menu_date: Any) -> Tuple[DailyMenu, Optional[MenuTemplate]]:
    """
    Открывает лист на дату и, если он пуст, заполняет его из последнего шаблона

    Returns:
        tuple[DailyMenu, MenuTemplate | None]: примененный шаблон; None - шаблон не применялся
        (лист уже заполнен или свежего шаблона нет, владелец начинает с пустого выбора)
    """
    daily_menu = await get_or_create_daily_menu(session, store_id, menu_date)
    if await load_daily_menu_items(session, daily_menu.id):
        return daily_menu, None

    template = await find_template(session, daily_menu.store_id, daily_menu.menu_date)
    if template is None:
        return daily_menu, None

    await apply_template(session, daily_menu, template)
    return daily_menu, template
