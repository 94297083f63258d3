import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from database.database import init_db, get_session, close_db
from models.store import Store
from services.clock_service import default_clock
from services.store_service import create_store
from services.menu_service import add_menu
from services.delivery_area_service import create_delivery_area
from services.daily_menu_service import get_or_create_daily_menu, set_daily_menu_items
from sqlalchemy import select

async def create_demo_data():
    """
    Создает демо-магазин:
    - каталог блюд по категориям
    - зоны доставки по умолчанию
    - дневной лист на вчера (служит шаблоном для сегодняшнего)
    """
    print("[INFO] Инициализация базы данных...")
    await init_db()

    async for session in get_session():
        result = await session.execute(select(Store))
        if result.scalars().first() is not None:
            print("[WARNING] Демо-данные уже существуют")
            return

        store = await create_store(
            session,
            "행복반찬",
            category="한식반찬",
            phone="010-0000-0000",
            business_hours_start="09:00",
            order_cutoff_time="15:00",
            pickup_time_slots=["09:00", "20:00"],
            delivery_time_slots=[
                {"name": "점심 배송", "start": "11:30", "end": "13:30", "enabled": True},
                {"name": "저녁 배송", "start": "17:30", "end": "20:00", "enabled": True},
            ],
            minimum_order_amount=10000,
        )
        print(f"[OK] Создан магазин #{store.id}")

        menus_data = [
            ("멸치볶음", 4000, "볶음류"),
            ("진미채볶음", 5000, "볶음류"),
            ("시금치나물", 3500, "나물류"),
            ("콩나물무침", 3000, "나물류"),
            ("배추김치", 6000, "김치류"),
            ("소고기장조림", 8000, "조림류"),
        ]
        menus = [await add_menu(session, store.id, name, price, category) for name, price, category in menus_data]
        print(f"[OK] Создано {len(menus)} позиций каталога")

        for area_name, fee in (("역삼동", 2000), ("삼성동", 3000)):
            await create_delivery_area(session, store.id, area_name, fee)

        yesterday = default_clock.business_date_str(-1)
        daily_menu = await get_or_create_daily_menu(session, store.id, yesterday)
        await set_daily_menu_items(session, daily_menu.id, {menu.id: 10 for menu in menus[:4]})
        print(f"[OK] Создан лист на {yesterday} - шаблон для /sheet {store.id}")

    await close_db()

if __name__ == "__main__":
    asyncio.run(create_demo_data())
