import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from database.base import Base
from services.lifecycle_service import set_auto_deactivation_hook
from utils.cache import cache
import models  # noqa: F401

@pytest.fixture
async def test_db():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield async_session
    
    await engine.dispose()

@pytest.fixture(autouse=True)
def reset_shared_state():
    cache.clear()
    set_auto_deactivation_hook(None)
    yield
    cache.clear()
    set_auto_deactivation_hook(None)
