"""Pytest fixtures: in-memory database and a scripted GC session."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cs2sync.core.database import Base
from cs2sync.models import db_models  # noqa: F401


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine) -> AsyncSession:
    SessionLocal = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session


class FakeGameSession:
    """
    GameSession double. `failures[casket_id]` is how many calls fail before
    the casket loads; a casket absent from `caskets` always fails.
    """

    def __init__(
        self,
        inventory: Optional[List[dict]],
        caskets: Optional[Dict[str, List[dict]]] = None,
        failures: Optional[Dict[str, int]] = None,
    ) -> None:
        self.inventory = inventory
        self.caskets = caskets or {}
        self.failures = dict(failures or {})
        self.calls: List[str] = []

    async def get_casket_contents(self, casket_id: str) -> List[dict]:
        self.calls.append(casket_id)
        if self.failures.get(casket_id, 0) > 0:
            self.failures[casket_id] -= 1
            raise ConnectionError(f"GC timeout for casket {casket_id}")
        if casket_id not in self.caskets:
            raise ConnectionError(f"unknown casket {casket_id}")
        return self.caskets[casket_id]


@pytest.fixture
def fast_expand() -> dict:
    """fetch_full_inventory options with every wait disabled."""
    return {
        "inventory_timeout": 0.05,
        "poll_interval": 0.01,
        "casket_throttle": 0,
        "casket_retry_delay": 0,
    }


def gc_item(item_id: str, **fields) -> dict:
    item = {"id": item_id, "def_index": 7, "quantity": 1}
    item.update(fields)
    return item
