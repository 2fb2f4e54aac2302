"""
Testes do armazenamento durável em SQLite
"""

import pytest
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.settings import PlanQuota
from database.record_store import SQLRecordStore
from database.sqlite_db import async_database_url, init_database
from services.usage_meter import UsageMeter

JUNE = datetime(2025, 6, 3, 10, 0, tzinfo=timezone.utc)


async def make_store(tmp_path):
    engine = create_async_engine(async_database_url(f"sqlite:///{tmp_path / 'records.db'}"))
    await init_database(engine)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine, SQLRecordStore(factory)


def test_async_database_url():
    assert async_database_url("sqlite:///./chat_ledger.db") == "sqlite+aiosqlite:///./chat_ledger.db"
    assert async_database_url("postgresql+asyncpg://db/app") == "postgresql+asyncpg://db/app"


class TestSQLRecordStore:
    """Registros por chave"""

    @pytest.mark.asyncio
    async def test_get_set_clear(self, tmp_path):
        engine, store = await make_store(tmp_path)
        try:
            assert await store.get("usage_data") is None

            await store.set("usage_data", "first")
            assert await store.get("usage_data") == "first"

            await store.set("usage_data", "second")
            assert await store.get("usage_data") == "second"

            await store.clear("usage_data")
            assert await store.get("usage_data") is None
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_clear_missing_key(self, tmp_path):
        engine, store = await make_store(tmp_path)
        try:
            await store.clear("nothing-here")
            assert await store.get("nothing-here") is None
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_usage_survives_new_meter(self, tmp_path):
        """Uso registrado persiste entre instâncias do medidor"""
        engine, store = await make_store(tmp_path)
        try:
            quotas = PlanQuota({"free": 2})
            meter = UsageMeter(store, quotas, current_user_id=lambda: "user-1")
            await meter.record_turn("t-1", JUNE)
            await meter.record_turn("t-1", JUNE)

            reloaded = UsageMeter(SQLRecordStore(store._session_factory), quotas, current_user_id=lambda: "user-1")

            assert await reloaded.check_quota("free", JUNE) is False
            snapshot = await reloaded.snapshot("free", JUNE)
            assert snapshot.per_tracker_turns == {"t-1": 2}
        finally:
            await engine.dispose()
