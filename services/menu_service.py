from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models.menu import Menu
from utils.cache import cache, CacheKeys
from utils.decorators import translate_db_errors
from utils.exceptions import ValidationError
from typing import Any, List, Optional

_MISSING = object()

@translate_db_errors
async def get_menus(session: AsyncSession, store_id: int) -> List[Menu]:
    key = CacheKeys.menus(store_id)
    cached = cache.get(key, _MISSING)
    if cached is not _MISSING:
        return cached

    result = await session.execute(
        select(Menu)
        .where(Menu.store_id == store_id)
        .order_by(Menu.category, Menu.name)
    )
    menus = list(result.scalars().all())
    cache.set(key, menus)
    return menus

@translate_db_errors
async def get_menu_by_id(session: AsyncSession, menu_id: int) -> Optional[Menu]:
    result = await session.execute(select(Menu).where(Menu.id == menu_id))
    return result.scalar_one_or_none()

@translate_db_errors
async def add_menu(
    session: AsyncSession,
    store_id: int,
    name: str,
    price: int,
    category: Optional[str] = None,
    description: Optional[str] = None
) -> Menu:
    if not name or not name.strip():
        raise ValidationError("name")
    if price is None or price < 0:
        raise ValidationError("price", "Цена не может быть отрицательной")

    menu = Menu(
        store_id=store_id,
        name=name.strip(),
        price=price,
        category=category,
        description=description,
        is_available=True
    )
    session.add(menu)
    await session.commit()
    await session.refresh(menu)
    cache.delete(CacheKeys.menus(store_id))
    return menu

@translate_db_errors
async def update_menu(session: AsyncSession, menu_id: int, **kwargs: Any) -> Optional[Menu]:
    menu = await get_menu_by_id(session, menu_id)
    if not menu:
        return None

    for key, value in kwargs.items():
        if hasattr(menu, key):
            setattr(menu, key, value)

    await session.commit()
    await session.refresh(menu)
    cache.delete(CacheKeys.menus(menu.store_id))
    return menu
