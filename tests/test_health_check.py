import pytest
from unittest.mock import patch
from utils.health_check import check_database_connection, check_system_health, get_system_info


@pytest.mark.asyncio
async def test_database_available(test_db):
    async def _get_session():
        async with test_db() as session:
            yield session

    with patch("utils.health_check.get_session", _get_session):
        ok, message = await check_database_connection()
        health = await check_system_health()

    assert ok is True
    assert health["status"] == "healthy"
    assert "+09:00" in health["business_now"]


@pytest.mark.asyncio
async def test_database_not_initialized():
    async def _get_session():
        raise RuntimeError("База данных не инициализирована")
        yield

    with patch("utils.health_check.get_session", _get_session):
        ok, message = await check_database_connection()

    assert ok is False
    assert "не инициализирована" in message


def test_system_info():
    info = get_system_info()
    assert info["business_utc_offset_hours"] == 9
    assert info["template_lookback_days"] == 7
    assert info["database_type"] in ("SQLite", "PostgreSQL")
