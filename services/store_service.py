"""
Магазины и снимок их настроек по умолчанию
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from models.store import Store
from utils.cache import cache, CacheKeys
from utils.decorators import translate_db_errors
from utils.exceptions import ValidationError
from utils.time_slots import (
    DeliverySlot,
    decode_pickup_window,
    decode_delivery_slots,
    encode_pickup_window,
    encode_delivery_slots,
    normalize_hhmm,
)

_MISSING = object()


@dataclass(frozen=True)
class StoreSettings:
    store_id: int
    category: Optional[str]
    order_cutoff_time: Optional[str]
    pickup_window: Tuple[str, str]
    delivery_slots: List[DeliverySlot] = field(default_factory=list)
    minimum_order_amount: int = 0
    business_hours_start: Optional[str] = None


def parse_store_id(value: Any) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("store_id")
    try:
        store_id = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError("store_id", f"Некорректный store_id: {value!r}") from e
    if store_id <= 0:
        raise ValidationError("store_id", f"Некорректный store_id: {value!r}")
    return store_id


def _invalidate_store_lists() -> None:
    cache.delete(CacheKeys.STORES)
    cache.delete_pattern(rf"^{CacheKeys.USER_STORES}:")


def _prepare_store_fields(fields: dict) -> dict:
    prepared = dict(fields)
    if prepared.get("order_cutoff_time"):
        prepared["order_cutoff_time"] = normalize_hhmm(prepared["order_cutoff_time"], "order_cutoff_time")
    if prepared.get("business_hours_start"):
        prepared["business_hours_start"] = normalize_hhmm(prepared["business_hours_start"], "business_hours_start")
    if prepared.get("pickup_time_slots") is not None:
        prepared["pickup_time_slots"] = encode_pickup_window(prepared["pickup_time_slots"])
    if prepared.get("delivery_time_slots") is not None:
        prepared["delivery_time_slots"] = encode_delivery_slots(prepared["delivery_time_slots"])
    if prepared.get("minimum_order_amount") is not None and prepared["minimum_order_amount"] < 0:
        raise ValidationError("minimum_order_amount", "Минимальная сумма заказа не может быть отрицательной")
    return prepared


@translate_db_errors
async def get_stores(session: AsyncSession) -> List[Store]:
    cached = cache.get(CacheKeys.STORES, _MISSING)
    if cached is not _MISSING:
        return cached

    result = await session.execute(select(Store).order_by(Store.created_at.desc(), Store.id.desc()))
    stores = list(result.scalars().all())
    cache.set(CacheKeys.STORES, stores)
    return stores


@translate_db_errors
async def get_user_stores(session: AsyncSession, owner_telegram_id: int) -> List[Store]:
    key = CacheKeys.user_stores(owner_telegram_id)
    cached = cache.get(key, _MISSING)
    if cached is not _MISSING:
        return cached

    result = await session.execute(
        select(Store)
        .where(Store.owner_telegram_id == owner_telegram_id)
        .order_by(Store.created_at.desc(), Store.id.desc())
    )
    stores = list(result.scalars().all())
    cache.set(key, stores)
    return stores


@translate_db_errors
async def get_store(session: AsyncSession, store_id: int) -> Optional[Store]:
    result = await session.execute(select(Store).where(Store.id == store_id))
    return result.scalar_one_or_none()


@translate_db_errors
async def create_store(session: AsyncSession, name: str, **fields: Any) -> Store:
    if not name or not name.strip():
        raise ValidationError("name")
    store = Store(name=name.strip(), **_prepare_store_fields(fields))
    session.add(store)
    await session.commit()
    await session.refresh(store)
    _invalidate_store_lists()
    return store


@translate_db_errors
async def update_store(session: AsyncSession, store_id: int, **fields: Any) -> Optional[Store]:
    store = await get_store(session, store_id)
    if not store:
        return None

    for key, value in _prepare_store_fields(fields).items():
        if hasattr(store, key):
            setattr(store, key, value)

    await session.commit()
    await session.refresh(store)
    _invalidate_store_lists()
    return store


def build_store_settings(store: Store) -> StoreSettings:
    return StoreSettings(
        store_id=store.id,
        category=store.category,
        order_cutoff_time=store.order_cutoff_time,
        pickup_window=decode_pickup_window(store.pickup_time_slots),
        delivery_slots=decode_delivery_slots(store.delivery_time_slots),
        minimum_order_amount=store.minimum_order_amount or 0,
        business_hours_start=store.business_hours_start,
    )


async def get_store_settings(session: AsyncSession, store_id: int) -> Optional[StoreSettings]:
    store = await get_store(session, store_id)
    if store is None:
        return None
    return build_store_settings(store)
