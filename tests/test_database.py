"""Tests for engine pool configuration."""

from __future__ import annotations

from logitrack.config import settings
from logitrack.database.engine import engine, sync_engine


class TestEnginePools:
    def test_async_pool_sized_from_settings(self):
        assert engine.sync_engine.pool.size() == settings.db_pool_size
        assert engine.sync_engine.pool._max_overflow == settings.db_max_overflow

    def test_sync_pool_has_no_overflow(self):
        assert sync_engine.pool.size() == settings.db_sync_pool_size
        assert sync_engine.pool._max_overflow == 0
