"""
Сервис дневных листов заказов

Один лист на пару (магазин, дата). Создание идемпотентно: уникальность
(store_id, menu_date) проверяет БД, а конфликт при одновременном создании
разрешается повторным чтением победившей записи.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from loguru import logger
from config.settings import settings
from models.store import Store
from models.daily_menu import DailyMenu, DailyMenuItem
from services.clock_service import ClockSource, default_clock, normalize_menu_date, format_menu_date
from services.delivery_area_service import copy_store_defaults_to_sheet
from services.lifecycle_service import run_auto_deactivation
from services.order_window_service import DEFAULT_ORDER_CUTOFF_TIME
from services.store_service import StoreSettings, build_store_settings, parse_store_id
from utils.decorators import translate_db_errors
from utils.exceptions import ConflictError, ValidationError
from utils.time_slots import (
    DeliverySlot,
    decode_pickup_window,
    decode_delivery_slots,
    encode_pickup_window,
    encode_delivery_slots,
    normalize_hhmm,
)

DEFAULT_ITEM_QUANTITY = 10

_EDITABLE_FIELDS = {
    "title",
    "description",
    "is_active",
    "order_cutoff_time",
    "pickup_time_slots",
    "delivery_time_slots",
    "minimum_order_amount",
}


@dataclass(frozen=True)
class EffectiveSettings:
    order_cutoff_time: str
    pickup_window: Tuple[str, str]
    delivery_slots: List[DeliverySlot] = field(default_factory=list)
    minimum_order_amount: int = 0


@dataclass
class DisplayMenu:
    daily_menu: DailyMenu
    items: List[DailyMenuItem]
    is_fallback: bool = False


def _validate_key(store_id: Any, menu_date: Any) -> Tuple[int, str]:
    return parse_store_id(store_id), normalize_menu_date(menu_date)


async def lookup_daily_menu(session: AsyncSession, store_id: int, menu_date: str) -> Optional[DailyMenu]:
    # populate_existing: процедура автодеактивации меняет строки мимо ORM
    result = await session.execute(
        select(DailyMenu)
        .where(DailyMenu.store_id == store_id, DailyMenu.menu_date == menu_date)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def load_daily_menu_items(session: AsyncSession, daily_menu_id: int) -> List[DailyMenuItem]:
    result = await session.execute(
        select(DailyMenuItem)
        .options(selectinload(DailyMenuItem.menu))
        .where(DailyMenuItem.daily_menu_id == daily_menu_id)
        .order_by(DailyMenuItem.created_at, DailyMenuItem.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _select_item(session: AsyncSession, item_id: int) -> Optional[DailyMenuItem]:
    result = await session.execute(
        select(DailyMenuItem)
        .options(selectinload(DailyMenuItem.menu))
        .where(DailyMenuItem.id == item_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _insert_daily_menu(
    session: AsyncSession,
    store_id: int,
    menu_date: str,
    title: Optional[str] = None,
    description: Optional[str] = None
) -> Tuple[DailyMenu, bool]:
    """
    Вставляет новый лист с настройками магазина по умолчанию

    Returns:
        tuple[DailyMenu, bool]: лист и признак того, что он создан этим вызовом
    """
    store = await session.get(Store, store_id)
    if store is None:
        raise ValidationError("store_id", f"Магазин {store_id} не найден")
    defaults = build_store_settings(store)

    daily_menu = DailyMenu(
        store_id=store_id,
        menu_date=menu_date,
        title=title or settings.DEFAULT_DAILY_MENU_TITLE,
        description=description or settings.DEFAULT_DAILY_MENU_DESCRIPTION,
        is_active=True,
        order_cutoff_time=defaults.order_cutoff_time,
        pickup_time_slots=list(defaults.pickup_window),
        delivery_time_slots=encode_delivery_slots(defaults.delivery_slots),
        minimum_order_amount=defaults.minimum_order_amount
    )
    session.add(daily_menu)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        existing = await lookup_daily_menu(session, store_id, menu_date)
        if existing is None:
            raise ConflictError(f"Конфликт при создании листа {store_id}/{menu_date}, запись не найдена")
        logger.info(f"Лист {store_id}/{menu_date} уже создан параллельно, возвращается существующий #{existing.id}")
        return existing, False

    # зоны доставки копируются в той же транзакции, что и сам лист
    await copy_store_defaults_to_sheet(session, store_id, daily_menu.id)
    await session.commit()
    await session.refresh(daily_menu)
    logger.info(f"Создан дневной лист #{daily_menu.id} для магазина {store_id} на {menu_date}")
    return daily_menu, True


@translate_db_errors
async def create_daily_menu(
    session: AsyncSession,
    store_id: Any,
    menu_date: Any,
    title: Optional[str] = None,
    description: Optional[str] = None
) -> DailyMenu:
    """
    Создает дневной лист; повторное создание возвращает существующий

    Raises:
        ValidationError: не указан магазин или дата (до обращения к БД)
        UpstreamError: хранилище недоступно
    """
    store_id, menu_date = _validate_key(store_id, menu_date)
    daily_menu, _ = await _insert_daily_menu(session, store_id, menu_date, title, description)
    return daily_menu


@translate_db_errors
async def get_or_create_daily_menu(session: AsyncSession, store_id: Any, menu_date: Any) -> DailyMenu:
    """
    Возвращает лист магазина на дату, создавая его при первом обращении

    Сначала выполняется поиск, и только если листа нет - вставка.
    Конфликт уникальности при вставке не пробрасывается, а разрешается
    в пользу уже существующей записи.
    """
    store_id, menu_date = _validate_key(store_id, menu_date)
    await run_auto_deactivation(session)

    existing = await lookup_daily_menu(session, store_id, menu_date)
    if existing is not None:
        return existing

    daily_menu, _ = await _insert_daily_menu(session, store_id, menu_date)
    return daily_menu


@translate_db_errors
async def get_daily_menu(session: AsyncSession, store_id: Any, menu_date: Any) -> Optional[DailyMenu]:
    """Только чтение: если листа нет, возвращает None и ничего не создает"""
    if not menu_date or (isinstance(menu_date, str) and not menu_date.strip()):
        logger.warning(f"Запрос дневного листа магазина {store_id} с пустой датой")
        return None
    store_id, menu_date = _validate_key(store_id, menu_date)
    await run_auto_deactivation(session)
    return await lookup_daily_menu(session, store_id, menu_date)


async def get_daily_menu_for_offset(session: AsyncSession, store_id: Any, day_offset: int,
                                    clock: ClockSource = default_clock) -> Optional[DailyMenu]:
    """day_offset=0 - сегодня, 1 - завтра (по времени бизнеса)"""
    return await get_daily_menu(session, store_id, clock.business_date_str(day_offset))


@translate_db_errors
async def get_most_recent_daily_menu_before(session: AsyncSession, store_id: Any,
                                            before_date: Any) -> Optional[DailyMenu]:
    store_id, before_date = _validate_key(store_id, before_date)
    await run_auto_deactivation(session)
    result = await session.execute(
        select(DailyMenu)
        .where(DailyMenu.store_id == store_id, DailyMenu.menu_date < before_date)
        .order_by(DailyMenu.menu_date.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@translate_db_errors
async def get_daily_menus_by_store(session: AsyncSession, store_id: Any) -> List[DailyMenu]:
    store_id = parse_store_id(store_id)
    await run_auto_deactivation(session)
    result = await session.execute(
        select(DailyMenu)
        .where(DailyMenu.store_id == store_id)
        .order_by(DailyMenu.menu_date.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _set_active(session: AsyncSession, daily_menu_id: int, is_active: bool) -> Optional[DailyMenu]:
    daily_menu = await session.get(DailyMenu, daily_menu_id)
    if daily_menu is None:
        return None
    daily_menu.is_active = is_active
    await session.commit()
    await session.refresh(daily_menu)
    logger.info(f"Дневной лист #{daily_menu_id}: is_active={is_active}")
    return daily_menu


@translate_db_errors
async def activate_daily_menu(session: AsyncSession, daily_menu_id: int) -> Optional[DailyMenu]:
    return await _set_active(session, daily_menu_id, True)


@translate_db_errors
async def deactivate_daily_menu(session: AsyncSession, daily_menu_id: int) -> Optional[DailyMenu]:
    return await _set_active(session, daily_menu_id, False)


@translate_db_errors
async def update_daily_menu_settings(session: AsyncSession, daily_menu_id: int,
                                     **fields: Any) -> Optional[DailyMenu]:
    unknown = set(fields) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationError(sorted(unknown)[0], f"Поле нельзя изменить: {', '.join(sorted(unknown))}")

    prepared = dict(fields)
    if prepared.get("title") is not None and not prepared["title"].strip():
        raise ValidationError("title")
    if prepared.get("order_cutoff_time") is not None:
        prepared["order_cutoff_time"] = normalize_hhmm(prepared["order_cutoff_time"], "order_cutoff_time")
    if prepared.get("pickup_time_slots") is not None:
        prepared["pickup_time_slots"] = encode_pickup_window(prepared["pickup_time_slots"])
    if prepared.get("delivery_time_slots") is not None:
        prepared["delivery_time_slots"] = encode_delivery_slots(prepared["delivery_time_slots"])
    if prepared.get("minimum_order_amount") is not None and prepared["minimum_order_amount"] < 0:
        raise ValidationError("minimum_order_amount", "Минимальная сумма заказа не может быть отрицательной")

    daily_menu = await session.get(DailyMenu, daily_menu_id)
    if daily_menu is None:
        return None

    for key, value in prepared.items():
        setattr(daily_menu, key, value)

    await session.commit()
    await session.refresh(daily_menu)
    return daily_menu


@translate_db_errors
async def get_daily_menu_items(session: AsyncSession, daily_menu_id: int) -> List[DailyMenuItem]:
    await run_auto_deactivation(session)
    return await load_daily_menu_items(session, daily_menu_id)


def _validate_quantity(quantity: int, field_name: str = "initial_quantity") -> None:
    if quantity is None or quantity < 0:
        raise ValidationError(field_name, "Количество должно быть не меньше 0")


def _apply_initial_quantity(item: DailyMenuItem, new_quantity: int) -> None:
    # остаток сдвигается на ту же разницу, что и начальное количество
    current = (item.current_quantity or 0) + (new_quantity - (item.initial_quantity or 0))
    item.initial_quantity = new_quantity
    item.current_quantity = max(0, current)
    item.is_available = new_quantity > 0


@translate_db_errors
async def add_daily_menu_item(session: AsyncSession, daily_menu_id: int, menu_id: int,
                              initial_quantity: int = DEFAULT_ITEM_QUANTITY) -> DailyMenuItem:
    """
    Добавляет позицию каталога в лист

    Позиция может быть в листе только один раз: повторный выбор
    обновляет количество у уже существующей.
    """
    if not daily_menu_id:
        raise ValidationError("daily_menu_id")
    if not menu_id:
        raise ValidationError("menu_id")
    _validate_quantity(initial_quantity)

    result = await session.execute(
        select(DailyMenuItem).where(
            DailyMenuItem.daily_menu_id == daily_menu_id,
            DailyMenuItem.menu_id == menu_id
        )
    )
    item = result.scalar_one_or_none()

    if item is None:
        item = DailyMenuItem(
            daily_menu_id=daily_menu_id,
            menu_id=menu_id,
            initial_quantity=initial_quantity,
            current_quantity=initial_quantity,
            is_available=True
        )
        session.add(item)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            result = await session.execute(
                select(DailyMenuItem).where(
                    DailyMenuItem.daily_menu_id == daily_menu_id,
                    DailyMenuItem.menu_id == menu_id
                )
            )
            item = result.scalar_one_or_none()
            if item is None:
                raise
            _apply_initial_quantity(item, initial_quantity)
            await session.commit()
    else:
        _apply_initial_quantity(item, initial_quantity)
        await session.commit()

    return await _select_item(session, item.id)


@translate_db_errors
async def set_daily_menu_items(session: AsyncSession, daily_menu_id: int,
                               selections: Dict[int, int]) -> List[DailyMenuItem]:
    """
    Приводит состав листа к выбору владельца {menu_id: количество}

    Новые позиции добавляются, существующие обновляются, снятые с выбора удаляются.
    """
    for quantity in selections.values():
        _validate_quantity(quantity)

    result = await session.execute(
        select(DailyMenuItem).where(DailyMenuItem.daily_menu_id == daily_menu_id)
    )
    existing_items = {item.menu_id: item for item in result.scalars().all()}

    for menu_id, item in existing_items.items():
        if menu_id not in selections:
            await session.delete(item)

    for menu_id, quantity in selections.items():
        if menu_id in existing_items:
            _apply_initial_quantity(existing_items[menu_id], quantity)
        else:
            session.add(DailyMenuItem(
                daily_menu_id=daily_menu_id,
                menu_id=menu_id,
                initial_quantity=quantity,
                current_quantity=quantity,
                is_available=quantity > 0
            ))

    await session.commit()
    return await load_daily_menu_items(session, daily_menu_id)


@translate_db_errors
async def update_daily_menu_item_quantity(session: AsyncSession, item_id: int,
                                          new_quantity: int) -> Optional[DailyMenuItem]:
    _validate_quantity(new_quantity)
    item = await session.get(DailyMenuItem, item_id)
    if item is None:
        return None

    _apply_initial_quantity(item, new_quantity)
    await session.commit()
    return await _select_item(session, item_id)


@translate_db_errors
async def toggle_daily_menu_item_availability(session: AsyncSession, item_id: int,
                                              is_available: bool) -> Optional[DailyMenuItem]:
    item = await session.get(DailyMenuItem, item_id)
    if item is None:
        return None

    item.is_available = is_available
    await session.commit()
    return await _select_item(session, item_id)


@translate_db_errors
async def deduct_daily_menu_item_quantity(session: AsyncSession, item_id: int,
                                          quantity: int) -> Optional[DailyMenuItem]:
    """Списывает остаток при заказе; на нуле позиция помечается проданной"""
    if quantity is None or quantity <= 0:
        raise ValidationError("quantity", "Количество для списания должно быть больше 0")

    result = await session.execute(
        select(DailyMenuItem)
        .where(DailyMenuItem.id == item_id)
        .with_for_update()
    )
    item = result.scalar_one_or_none()
    if item is None:
        return None

    item.current_quantity = max(0, (item.current_quantity or 0) - quantity)
    item.is_available = item.current_quantity > 0
    await session.commit()
    return await _select_item(session, item_id)


@translate_db_errors
async def remove_daily_menu_item(session: AsyncSession, item_id: int) -> bool:
    item = await session.get(DailyMenuItem, item_id)
    if item is None:
        return False

    await session.delete(item)
    await session.commit()
    return True


def _stored_cutoff(*candidates: Optional[str]) -> str:
    """Первая корректная отсечка из сохраненных значений, иначе значение по умолчанию"""
    for value in candidates:
        if not value:
            continue
        try:
            return normalize_hhmm(value, "order_cutoff_time")
        except ValidationError as e:
            logger.warning(f"Некорректная сохраненная отсечка {value!r} пропущена: {e}")
    return normalize_hhmm(DEFAULT_ORDER_CUTOFF_TIME, "order_cutoff_time")


def resolve_effective_settings(daily_menu: Optional[DailyMenu],
                               store_settings: Optional[StoreSettings]) -> EffectiveSettings:
    """
    Настройки листа с приоритетом: значение листа, затем магазина, затем по умолчанию
    """
    cutoff = _stored_cutoff(
        daily_menu.order_cutoff_time if daily_menu is not None else None,
        store_settings.order_cutoff_time if store_settings is not None else None
    )

    if daily_menu is not None and daily_menu.pickup_time_slots is not None:
        pickup_window = decode_pickup_window(daily_menu.pickup_time_slots)
    elif store_settings is not None:
        pickup_window = store_settings.pickup_window
    else:
        pickup_window = decode_pickup_window(None)

    delivery_slots = decode_delivery_slots(daily_menu.delivery_time_slots) if daily_menu is not None else []
    if not delivery_slots and store_settings is not None:
        delivery_slots = list(store_settings.delivery_slots)

    if daily_menu is not None and daily_menu.minimum_order_amount is not None:
        minimum_order_amount = daily_menu.minimum_order_amount
    elif store_settings is not None:
        minimum_order_amount = store_settings.minimum_order_amount
    else:
        minimum_order_amount = 0

    return EffectiveSettings(
        order_cutoff_time=cutoff,
        pickup_window=pickup_window,
        delivery_slots=delivery_slots,
        minimum_order_amount=minimum_order_amount
    )


async def get_menu_for_display(session: AsyncSession, store_id: Any, requested_date: Any = None,
                               clock: ClockSource = default_clock) -> Optional[DisplayMenu]:
    """
    Выбирает лист для покупателя

    Берется лист на запрошенную дату (или на сегодня). Если его нет или
    он пуст, показывается лист на завтра, если он уже есть. Листы не создаются.
    """
    menu_date = normalize_menu_date(requested_date) if requested_date else clock.business_date_str()

    daily_menu = await get_daily_menu(session, store_id, menu_date)
    items = await get_daily_menu_items(session, daily_menu.id) if daily_menu else []
    if daily_menu is not None and items:
        return DisplayMenu(daily_menu=daily_menu, items=items)

    tomorrow = format_menu_date(clock.business_today() + timedelta(days=1))
    if menu_date != tomorrow:
        tomorrow_menu = await get_daily_menu(session, store_id, tomorrow)
        if tomorrow_menu is not None:
            tomorrow_items = await get_daily_menu_items(session, tomorrow_menu.id)
            return DisplayMenu(daily_menu=tomorrow_menu, items=tomorrow_items, is_fallback=True)

    if daily_menu is None:
        return None
    return DisplayMenu(daily_menu=daily_menu, items=items)


def build_daily_menu_link(store_id: Any, menu_date: Any) -> str:
    store_id, menu_date = _validate_key(store_id, menu_date)
    return f"{settings.PUBLIC_BASE_URL}/menu/daily/{store_id}/{menu_date}"
