import pytest
from services.daily_menu_service import get_or_create_daily_menu
from services.delivery_area_service import (
    get_delivery_areas,
    create_delivery_area,
    update_delivery_area,
    delete_delivery_area,
    get_delivery_fee_by_area_id,
    copy_store_defaults_to_sheet,
    get_daily_delivery_areas,
    add_daily_delivery_area,
    update_daily_delivery_area,
    deactivate_daily_delivery_area,
    get_daily_delivery_fee_by_area_id,
)
from services.store_service import create_store
from utils.cache import cache, CacheKeys
from utils.exceptions import ValidationError


@pytest.fixture
async def store(test_db):
    async with test_db() as session:
        return await create_store(session, "행복반찬")


class TestStoreAreas:
    @pytest.mark.asyncio
    async def test_create_and_list(self, test_db, store):
        async with test_db() as session:
            await create_delivery_area(session, store.id, "역삼동", 3000)
            await create_delivery_area(session, store.id, " 대치동 ", 4000)

            areas = await get_delivery_areas(session, store.id)
            assert [a.area_name for a in areas] == ["대치동", "역삼동"]

    @pytest.mark.asyncio
    async def test_list_is_cached_and_invalidated(self, test_db, store):
        async with test_db() as session:
            assert await get_delivery_areas(session, store.id) == []
            assert cache.has(CacheKeys.delivery_areas(store.id))

            await create_delivery_area(session, store.id, "역삼동", 3000)
            assert not cache.has(CacheKeys.delivery_areas(store.id))
            assert len(await get_delivery_areas(session, store.id)) == 1

    @pytest.mark.asyncio
    async def test_soft_delete(self, test_db, store):
        async with test_db() as session:
            area = await create_delivery_area(session, store.id, "역삼동", 3000)
            assert await delete_delivery_area(session, area.id) is True
            assert await get_delivery_areas(session, store.id) == []
            assert await get_delivery_fee_by_area_id(session, area.id) == 0
            assert await delete_delivery_area(session, 9999) is False

    @pytest.mark.asyncio
    async def test_update(self, test_db, store):
        async with test_db() as session:
            area = await create_delivery_area(session, store.id, "역삼동", 3000)
            updated = await update_delivery_area(session, area.id, "역삼1동", 3500)
            assert updated.area_name == "역삼1동"
            assert await get_delivery_fee_by_area_id(session, area.id) == 3500
            assert await update_delivery_area(session, 9999, "없음", 0) is None

    @pytest.mark.asyncio
    async def test_validation(self, test_db, store):
        async with test_db() as session:
            with pytest.raises(ValidationError) as exc_info:
                await create_delivery_area(session, store.id, "  ", 3000)
            assert exc_info.value.field == "area_name"
            with pytest.raises(ValidationError) as exc_info:
                await create_delivery_area(session, store.id, "역삼동", -1)
            assert exc_info.value.field == "delivery_fee"


class TestSheetSnapshot:
    @pytest.mark.asyncio
    async def test_copy_with_no_store_areas(self, test_db, store):
        async with test_db() as session:
            daily_menu = await get_or_create_daily_menu(session, store.id, "2024-06-01")
            assert await copy_store_defaults_to_sheet(session, store.id, daily_menu.id) == []

    @pytest.mark.asyncio
    async def test_only_active_areas_are_copied(self, test_db, store):
        async with test_db() as session:
            await create_delivery_area(session, store.id, "역삼동", 3000)
            closed = await create_delivery_area(session, store.id, "대치동", 4000)
            await delete_delivery_area(session, closed.id)

            daily_menu = await get_or_create_daily_menu(session, store.id, "2024-06-01")
            areas = await get_daily_delivery_areas(session, daily_menu.id)
            assert [(a.area_name, a.delivery_fee) for a in areas] == [("역삼동", 3000)]

    @pytest.mark.asyncio
    async def test_snapshot_does_not_follow_store_changes(self, test_db, store):
        async with test_db() as session:
            area = await create_delivery_area(session, store.id, "역삼동", 3000)
            daily_menu = await get_or_create_daily_menu(session, store.id, "2024-06-01")

            await update_delivery_area(session, area.id, "역삼동", 5000)
            await create_delivery_area(session, store.id, "대치동", 4000)

            areas = await get_daily_delivery_areas(session, daily_menu.id)
            assert [(a.area_name, a.delivery_fee) for a in areas] == [("역삼동", 3000)]

            next_day = await get_or_create_daily_menu(session, store.id, "2024-06-02")
            next_areas = await get_daily_delivery_areas(session, next_day.id)
            assert {a.area_name: a.delivery_fee for a in next_areas} == {"역삼동": 5000, "대치동": 4000}

    @pytest.mark.asyncio
    async def test_sheet_area_edits(self, test_db, store):
        async with test_db() as session:
            daily_menu = await get_or_create_daily_menu(session, store.id, "2024-06-01")
            area = await add_daily_delivery_area(session, daily_menu.id, "도곡동", 2500)

            updated = await update_daily_delivery_area(session, area.id, "도곡동", 2000)
            assert updated.delivery_fee == 2000
            assert await get_daily_delivery_fee_by_area_id(session, area.id) == 2000

            assert await deactivate_daily_delivery_area(session, area.id) is True
            assert await get_daily_delivery_areas(session, daily_menu.id) == []
            assert await get_daily_delivery_fee_by_area_id(session, area.id) == 0
