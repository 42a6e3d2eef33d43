"""Integration tests for price reconciliation."""

from datetime import datetime, timedelta

import httpx
import pytest
from sqlalchemy import func, select

from cs2sync.models.db_models import CurrentPrice, ItemDef, PriceSnapshot
from cs2sync.schemas.skinport import PriceRecord
from cs2sync.services.prices import (
    get_current_prices,
    pick_price,
    reconcile_prices,
    update_prices_from_skinport,
)

T1 = datetime(2026, 3, 1, 8, 0, 0)
T2 = T1 + timedelta(days=1)

REDLINE = "AK-47 | Redline (Field-Tested)"
ASIIMOV = "AWP | Asiimov (Field-Tested)"


def _record(name, currency="EUR", **prices) -> PriceRecord:
    return PriceRecord(market_hash_name=name, currency=currency, **prices)


async def _add_defs(db, *names):
    db.add_all([ItemDef(market_hash_name=n) for n in names])
    await db.commit()
    rows = (await db.execute(select(ItemDef))).scalars().all()
    return {d.market_hash_name: d.id for d in rows}


async def _count(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


def test_pick_price_priority():
    assert pick_price(_record("x", suggested_price=None, median_price=5, mean_price=7)) == 5
    assert pick_price(_record("x", suggested_price=3, median_price=5)) == 3
    assert pick_price(_record("x", mean_price=7, min_price=1)) == 7
    assert pick_price(_record("x", max_price=9)) == 9
    assert pick_price(_record("x", suggested_price=0.0, median_price=5)) == 0.0
    assert pick_price(_record("x")) is None


@pytest.mark.asyncio
async def test_history_and_current_written(db_session):
    defs = await _add_defs(db_session, REDLINE, ASIIMOV)
    records = [
        _record(REDLINE, suggested_price=None, median_price=5, mean_price=7, quantity=10),
        _record(ASIIMOV, suggested_price=80),
    ]

    stats = await reconcile_prices(db_session, records, captured_at=T1)

    assert stats == {"fetched": 2, "updated": 2, "history": 2}
    current = {
        c.item_def_id: c for c in (await db_session.execute(select(CurrentPrice))).scalars().all()
    }
    assert current[defs[REDLINE]].price == 5
    assert current[defs[REDLINE]].extra == {"median": 5, "mean": 7, "quantity": 10}
    assert current[defs[ASIIMOV]].source == "skinport"
    assert {c.captured_at for c in current.values()} == {T1}


@pytest.mark.asyncio
async def test_unknown_names_and_missing_prices_are_dropped(db_session):
    await _add_defs(db_session, REDLINE)
    records = [
        _record("Sticker | Never Owned", suggested_price=1.0),
        _record(REDLINE),
    ]

    stats = await reconcile_prices(db_session, records, captured_at=T1)

    assert stats["fetched"] == 2
    assert stats["updated"] == 0
    assert await _count(db_session, PriceSnapshot) == 0
    assert await _count(db_session, CurrentPrice) == 0


@pytest.mark.asyncio
async def test_missing_currency_is_dropped(db_session):
    await _add_defs(db_session, REDLINE)

    stats = await reconcile_prices(db_session, [_record(REDLINE, currency=None, suggested_price=4)], captured_at=T1)

    assert stats["updated"] == 0


@pytest.mark.asyncio
async def test_second_run_appends_history_and_overwrites_current(db_session):
    defs = await _add_defs(db_session, REDLINE)
    await reconcile_prices(db_session, [_record(REDLINE, suggested_price=10)], captured_at=T1)

    await reconcile_prices(db_session, [_record(REDLINE, suggested_price=12)], captured_at=T2)

    history = (await db_session.execute(
        select(PriceSnapshot).order_by(PriceSnapshot.captured_at)
    )).scalars().all()
    assert [(h.price, h.captured_at) for h in history] == [(10, T1), (12, T2)]
    current = (await db_session.execute(select(CurrentPrice))).scalars().all()
    assert len(current) == 1
    assert current[0].item_def_id == defs[REDLINE]
    assert current[0].price == 12
    assert current[0].captured_at == T2


@pytest.mark.asyncio
async def test_currencies_are_tracked_separately(db_session):
    await _add_defs(db_session, REDLINE)
    records = [
        _record(REDLINE, currency="EUR", suggested_price=10),
        _record(REDLINE, currency="USD", suggested_price=11),
    ]

    stats = await reconcile_prices(db_session, records, captured_at=T1)

    assert stats["updated"] == 2
    rows = await get_current_prices(db_session, REDLINE)
    assert {(r["currency"], r["price"]) for r in rows} == {("EUR", 10), ("USD", 11)}


@pytest.mark.asyncio
async def test_duplicate_records_keep_last_current(db_session):
    await _add_defs(db_session, REDLINE)
    records = [_record(REDLINE, suggested_price=10), _record(REDLINE, suggested_price=9)]

    stats = await reconcile_prices(db_session, records, captured_at=T1)

    assert stats == {"fetched": 2, "updated": 1, "history": 2}
    rows = await get_current_prices(db_session, REDLINE)
    assert rows[0]["price"] == 9


@pytest.mark.asyncio
async def test_update_from_skinport_end_to_end(db_session):
    await _add_defs(db_session, REDLINE)
    body = [
        {"market_hash_name": REDLINE, "currency": "EUR", "suggested_price": None, "median_price": 5, "mean_price": 7},
        {"market_hash_name": ASIIMOV, "currency": "EUR", "suggested_price": 80},
    ]
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))

    stats = await update_prices_from_skinport(db_session, "EUR", True, transport=transport)

    assert stats == {"fetched": 2, "updated": 1, "history": 1, "dropped": 0}
    rows = await get_current_prices(db_session)
    assert [(r["market_hash_name"], r["price"]) for r in rows] == [(REDLINE, 5)]


@pytest.mark.asyncio
async def test_empty_listing_writes_nothing(db_session):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[]))

    stats = await update_prices_from_skinport(db_session, "EUR", True, transport=transport)

    assert stats == {"fetched": 0, "updated": 0, "history": 0, "dropped": 0}


@pytest.mark.asyncio
async def test_update_reports_entries_dropped_by_fetcher(db_session):
    await _add_defs(db_session, REDLINE)
    body = [
        {"market_hash_name": REDLINE, "currency": "EUR", "suggested_price": 5},
        {"suggested_price": 1.0},
        "garbage",
    ]
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))

    stats = await update_prices_from_skinport(db_session, "EUR", True, transport=transport)

    assert stats == {"fetched": 1, "updated": 1, "history": 1, "dropped": 2}
