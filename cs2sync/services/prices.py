"""
Price reconciliation

Joins fetched price records to item_def by market_hash_name, then in ONE
transaction:
  price_snapshot  ← one appended row per matched record
  price_current   ← upsert on (item_def_id, source, currency)

The representative price is the first non-null of
suggested → median → mean → min → max. Records with no price, no currency or
no matching definition are skipped (Skinport lists far more items than anyone
owns). Every row of one run shares the same captured_at.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

import httpx
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from cs2sync.core.database import dialect_insert
from cs2sync.models.db_models import CurrentPrice, ItemDef, PriceSnapshot
from cs2sync.schemas.skinport import PriceRecord
from cs2sync.services.skinport import fetch_skinport_prices

logger = logging.getLogger(__name__)

SOURCE_SKINPORT = "skinport"

_LOOKUP_CHUNK = 500


# ── Price selection / definition lookup ─────────────────────────────────────

def pick_price(record: PriceRecord) -> Optional[float]:
    for value in (
        record.suggested_price,
        record.median_price,
        record.mean_price,
        record.min_price,
        record.max_price,
    ):
        if value is not None:
            return value
    return None


async def _definition_ids(db: AsyncSession, names: Iterable[str]) -> Dict[str, int]:
    unique = list(dict.fromkeys(names))
    ids: Dict[str, int] = {}
    for i in range(0, len(unique), _LOOKUP_CHUNK):
        chunk = unique[i : i + _LOOKUP_CHUNK]
        rows = (await db.execute(
            select(ItemDef.market_hash_name, ItemDef.id).where(ItemDef.market_hash_name.in_(chunk))
        )).all()
        ids.update({name: def_id for name, def_id in rows})
    return ids


# ── Reconciliation ──────────────────────────────────────────────────────────

async def reconcile_prices(
    db: AsyncSession,
    records: List[PriceRecord],
    *,
    captured_at: Optional[datetime] = None,
    source: str = SOURCE_SKINPORT,
) -> dict:
    """Write history + current rows; returns {fetched, updated, history}."""
    captured_at = captured_at or datetime.now(timezone.utc).replace(tzinfo=None)

    history: List[dict] = []
    current: Dict[Tuple[int, str], dict] = {}

    try:
        def_ids = await _definition_ids(db, (r.market_hash_name for r in records))

        # ── Build history / current rows ──
        for record in records:
            def_id = def_ids.get(record.market_hash_name)
            price = pick_price(record)
            if def_id is None or price is None or not record.currency:
                continue
            row = {
                "item_def_id": def_id,
                "source": source,
                "currency": record.currency,
                "price": price,
                "captured_at": captured_at,
                "extra": record.extra(),
            }
            history.append(row)
            current[(def_id, record.currency)] = row

        if history:
            await db.execute(insert(PriceSnapshot), history)

        rows = list(current.values())
        for i in range(0, len(rows), _LOOKUP_CHUNK):
            stmt = dialect_insert(db)(CurrentPrice).values(rows[i : i + _LOOKUP_CHUNK])
            stmt = stmt.on_conflict_do_update(
                index_elements=["item_def_id", "source", "currency"],
                set_={
                    "price": stmt.excluded.price,
                    "captured_at": stmt.excluded.captured_at,
                    "extra": stmt.excluded.extra,
                },
            )
            await db.execute(stmt)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    stats = {"fetched": len(records), "updated": len(current), "history": len(history)}
    logger.info("reconcile_prices[%s]: %s", source, stats)
    return stats


async def update_prices_from_skinport(
    db: AsyncSession,
    currency: Optional[str] = None,
    tradable: Optional[bool] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """Fetch + reconcile; `dropped` counts listing entries the fetcher discarded."""
    records, fetched_at, dropped = await fetch_skinport_prices(currency, tradable, transport=transport)
    if not records:
        logger.warning("Skinport returned 0 usable items (%d dropped); aborting write", dropped)
        return {"fetched": 0, "updated": 0, "history": 0, "dropped": dropped}
    stats = await reconcile_prices(db, records, captured_at=fetched_at, source=SOURCE_SKINPORT)
    stats["dropped"] = dropped
    return stats


# ── Read side ───────────────────────────────────────────────────────────────

async def get_current_prices(
    db: AsyncSession,
    market_hash_name: Optional[str] = None,
) -> List[dict]:
    stmt = (
        select(ItemDef.market_hash_name, CurrentPrice)
        .join(CurrentPrice, CurrentPrice.item_def_id == ItemDef.id)
        .order_by(ItemDef.market_hash_name, CurrentPrice.source, CurrentPrice.currency)
    )
    if market_hash_name:
        stmt = stmt.where(ItemDef.market_hash_name == market_hash_name)

    return [
        {
            "market_hash_name": name,
            "source": price.source,
            "currency": price.currency,
            "price": price.price,
            "captured_at": price.captured_at.isoformat() if price.captured_at else None,
            "extra": price.extra,
        }
        for name, price in (await db.execute(stmt)).all()
    ]
