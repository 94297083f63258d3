"""
Зоны доставки: значения магазина по умолчанию и их снимки в дневных листах
"""
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
from models.delivery_area import DeliveryArea
from models.daily_menu import DailyDeliveryArea
from utils.cache import cache, CacheKeys
from utils.decorators import translate_db_errors
from utils.exceptions import ValidationError

_MISSING = object()


def _validate_area(area_name: str, delivery_fee: int) -> str:
    if not area_name or not area_name.strip():
        raise ValidationError("area_name")
    if delivery_fee is None or delivery_fee < 0:
        raise ValidationError("delivery_fee", "Стоимость доставки не может быть отрицательной")
    return area_name.strip()


@translate_db_errors
async def get_delivery_areas(session: AsyncSession, store_id: int) -> List[DeliveryArea]:
    key = CacheKeys.delivery_areas(store_id)
    cached = cache.get(key, _MISSING)
    if cached is not _MISSING:
        return cached

    result = await session.execute(
        select(DeliveryArea)
        .where(DeliveryArea.store_id == store_id, DeliveryArea.is_active == True)
        .order_by(DeliveryArea.area_name)
    )
    areas = list(result.scalars().all())
    cache.set(key, areas)
    return areas


@translate_db_errors
async def create_delivery_area(session: AsyncSession, store_id: int, area_name: str,
                               delivery_fee: int) -> DeliveryArea:
    area = DeliveryArea(
        store_id=store_id,
        area_name=_validate_area(area_name, delivery_fee),
        delivery_fee=delivery_fee,
        is_active=True
    )
    session.add(area)
    await session.commit()
    await session.refresh(area)
    cache.delete(CacheKeys.delivery_areas(store_id))
    return area


@translate_db_errors
async def update_delivery_area(session: AsyncSession, area_id: int, area_name: str,
                               delivery_fee: int) -> Optional[DeliveryArea]:
    result = await session.execute(select(DeliveryArea).where(DeliveryArea.id == area_id))
    area = result.scalar_one_or_none()
    if not area:
        return None

    area.area_name = _validate_area(area_name, delivery_fee)
    area.delivery_fee = delivery_fee
    area.updated_at = datetime.now(timezone.utc)
    await session.commit()
    await session.refresh(area)
    cache.delete(CacheKeys.delivery_areas(area.store_id))
    return area


@translate_db_errors
async def delete_delivery_area(session: AsyncSession, area_id: int) -> bool:
    """Удаление логическое: зона помечается неактивной"""
    result = await session.execute(select(DeliveryArea).where(DeliveryArea.id == area_id))
    area = result.scalar_one_or_none()
    if not area:
        return False

    area.is_active = False
    area.updated_at = datetime.now(timezone.utc)
    await session.commit()
    cache.delete(CacheKeys.delivery_areas(area.store_id))
    return True


@translate_db_errors
async def get_delivery_fee_by_area_id(session: AsyncSession, area_id: int) -> int:
    result = await session.execute(
        select(DeliveryArea.delivery_fee)
        .where(DeliveryArea.id == area_id, DeliveryArea.is_active == True)
    )
    fee = result.scalar_one_or_none()
    return fee or 0


@translate_db_errors
async def copy_store_defaults_to_sheet(session: AsyncSession, store_id: int,
                                       daily_menu_id: int) -> List[DailyDeliveryArea]:
    """
    Копирует активные зоны доставки магазина в дневной лист

    Копия делается один раз при создании листа. Дальнейшие изменения
    зон магазина на уже созданные листы не влияют.

    Returns:
        list[DailyDeliveryArea]: созданные зоны (пустой список, если у магазина зон нет)
    """
    result = await session.execute(
        select(DeliveryArea)
        .where(DeliveryArea.store_id == store_id, DeliveryArea.is_active == True)
        .order_by(DeliveryArea.area_name)
    )
    defaults = list(result.scalars().all())
    if not defaults:
        logger.info(f"У магазина {store_id} нет зон доставки, лист {daily_menu_id} создан без зон")
        return []

    copied = [
        DailyDeliveryArea(
            daily_menu_id=daily_menu_id,
            area_name=area.area_name,
            delivery_fee=area.delivery_fee,
            is_active=True
        )
        for area in defaults
    ]
    session.add_all(copied)
    await session.commit()
    for area in copied:
        await session.refresh(area)

    logger.info(f"Скопировано {len(copied)} зон доставки магазина {store_id} в лист {daily_menu_id}")
    return copied


@translate_db_errors
async def get_daily_delivery_areas(session: AsyncSession, daily_menu_id: int) -> List[DailyDeliveryArea]:
    result = await session.execute(
        select(DailyDeliveryArea)
        .where(DailyDeliveryArea.daily_menu_id == daily_menu_id, DailyDeliveryArea.is_active == True)
        .order_by(DailyDeliveryArea.area_name)
    )
    return list(result.scalars().all())


@translate_db_errors
async def add_daily_delivery_area(session: AsyncSession, daily_menu_id: int, area_name: str,
                                  delivery_fee: int) -> DailyDeliveryArea:
    area = DailyDeliveryArea(
        daily_menu_id=daily_menu_id,
        area_name=_validate_area(area_name, delivery_fee),
        delivery_fee=delivery_fee,
        is_active=True
    )
    session.add(area)
    await session.commit()
    await session.refresh(area)
    return area


@translate_db_errors
async def update_daily_delivery_area(session: AsyncSession, area_id: int, area_name: str,
                                     delivery_fee: int) -> Optional[DailyDeliveryArea]:
    result = await session.execute(select(DailyDeliveryArea).where(DailyDeliveryArea.id == area_id))
    area = result.scalar_one_or_none()
    if not area:
        return None

    area.area_name = _validate_area(area_name, delivery_fee)
    area.delivery_fee = delivery_fee
    area.updated_at = datetime.now(timezone.utc)
    await session.commit()
    await session.refresh(area)
    return area


@translate_db_errors
async def deactivate_daily_delivery_area(session: AsyncSession, area_id: int) -> bool:
    result = await session.execute(select(DailyDeliveryArea).where(DailyDeliveryArea.id == area_id))
    area = result.scalar_one_or_none()
    if not area:
        return False

    area.is_active = False
    area.updated_at = datetime.now(timezone.utc)
    await session.commit()
    return True


@translate_db_errors
async def get_daily_delivery_fee_by_area_id(session: AsyncSession, area_id: int) -> int:
    result = await session.execute(
        select(DailyDeliveryArea.delivery_fee)
        .where(DailyDeliveryArea.id == area_id, DailyDeliveryArea.is_active == True)
    )
    fee = result.scalar_one_or_none()
    return fee or 0
