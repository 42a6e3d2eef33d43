"""
Inventory persistence

upsert_inventory_items()
  raw GC items → normalize → dedupe by id → batched INSERT ... ON CONFLICT (id)
  Each batch is its own transaction. A failing batch is rolled back and the
  error propagates; batches committed before it stay committed.

  insert   → first_seen_at = last_seen_at = seen_at, removed_at = NULL
  conflict → every descriptive column refreshed, first_seen_at kept,
             last_seen_at = seen_at, removed_at = NULL

  After the last batch, rows not touched by this run (last_seen_at < seen_at)
  that are still present get removed_at = now. Nothing is ever deleted.

sync_inventory()
  GC session → fetch_full_inventory() → upsert_inventory_items()
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cs2sync.core.config import settings
from cs2sync.core.database import dialect_insert
from cs2sync.models.db_models import CurrentPrice, InventoryItem
from cs2sync.services.casket import GameSession, fetch_full_inventory
from cs2sync.services.normalize import normalize_items

logger = logging.getLogger(__name__)

# Columns overwritten when an existing row shows up again
_MUTABLE_COLUMNS = (
    "def_index", "paint_index", "market_hash_name",
    "paint_wear", "prefab", "image_path",
    "sys_item_name", "sys_skin_name", "englishtoken",
    "sticker_id",
    "casket_id", "custom_name",
    "category", "skin_rarity", "collection", "currency",
    "quantity", "tradable", "marketable",
    "raw",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _chunked(lst: list, size: int):
    for i in range(0, len(lst), size):
        yield lst[i : i + size]


# ── Write side: upsert + retirement ─────────────────────────────────────────

async def _upsert_batch(db: AsyncSession, rows: List[dict], seen_at: datetime) -> None:
    values = [
        {**row, "first_seen_at": seen_at, "last_seen_at": seen_at, "removed_at": None, "updated_at": seen_at}
        for row in rows
    ]
    stmt = dialect_insert(db)(InventoryItem).values(values)
    set_ = {col: stmt.excluded[col] for col in _MUTABLE_COLUMNS}
    set_.update(
        last_seen_at=stmt.excluded.last_seen_at,
        updated_at=stmt.excluded.updated_at,
        removed_at=None,
    )
    stmt = stmt.on_conflict_do_update(index_elements=["id"], set_=set_)
    await db.execute(stmt)


async def retire_missing_items(db: AsyncSession, seen_at: datetime) -> int:
    """Mark rows absent from the snapshot taken at `seen_at` as removed."""
    try:
        result = await db.execute(
            update(InventoryItem)
            .where(InventoryItem.last_seen_at < seen_at, InventoryItem.removed_at.is_(None))
            .values(removed_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return result.rowcount or 0


async def upsert_inventory_items(
    db: AsyncSession,
    items: Iterable[Any],
    *,
    seen_at: Optional[datetime] = None,
    batch_size: Optional[int] = None,
) -> dict:
    """Persist one inventory snapshot; returns {total, upserted, skipped, retired, seen_at}."""
    seen_at = seen_at or _utcnow()
    batch_size = batch_size or settings.upsert_batch_size

    # ── Normalize + dedupe ──
    rows, skipped, reasons = normalize_items(items)
    if skipped:
        logger.info("skipped %d unusable items: %s", skipped, dict(reasons))

    # one row per id inside a statement (ON CONFLICT cannot touch a row twice)
    deduped: Dict[str, dict] = {}
    for row in rows:
        deduped[row["id"]] = row
    normalized = list(deduped.values())

    # ── Batched upsert, one transaction per batch ──
    upserted = 0
    for batch in _chunked(normalized, batch_size):
        try:
            await _upsert_batch(db, batch, seen_at)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.error(
                "upsert batch failed after %d/%d rows committed; rolled back",
                upserted, len(normalized),
            )
            raise
        upserted += len(batch)
        logger.info("upserted batch %d/%d", upserted, len(normalized))

    # ── Items absent from this snapshot ──
    retired = await retire_missing_items(db, seen_at)
    if retired:
        logger.info("marked %d items as removed", retired)

    return {
        "total": len(normalized),
        "upserted": upserted,
        "skipped": skipped,
        "retired": retired,
        "seen_at": seen_at.isoformat(),
    }


# ── Pipeline ────────────────────────────────────────────────────────────────

async def sync_inventory(
    db: AsyncSession,
    session: GameSession,
    **expand_opts: Any,
) -> dict:
    """Expand the GC inventory (caskets included) and persist it."""
    items, summary = await fetch_full_inventory(session, **expand_opts)
    result = await upsert_inventory_items(db, items)
    # id-less items never reach the normalizer
    result["skipped"] += summary.get("dropped_without_id", 0)
    stats = {"fetched": summary, **result}
    logger.info("sync_inventory: %s", stats)
    return stats


# ── Read side ───────────────────────────────────────────────────────────────

async def list_inventory(
    db: AsyncSession,
    include_removed: bool = False,
    source: str = "skinport",
) -> List[dict]:
    """Persisted items with their current price (when a definition is linked)."""
    stmt = (
        select(InventoryItem, CurrentPrice)
        .outerjoin(
            CurrentPrice,
            (CurrentPrice.item_def_id == InventoryItem.item_def_id)
            & (CurrentPrice.source == source),
        )
        .order_by(InventoryItem.market_hash_name, InventoryItem.id)
    )
    if not include_removed:
        stmt = stmt.where(InventoryItem.removed_at.is_(None))

    result: Dict[str, dict] = {}
    for item, price in (await db.execute(stmt)).all():
        entry = result.get(item.id)
        if entry is None:
            entry = result[item.id] = {
                "id": item.id,
                "def_index": item.def_index,
                "paint_index": item.paint_index,
                "market_hash_name": item.market_hash_name,
                "paint_wear": item.paint_wear,
                "casket_id": item.casket_id,
                "custom_name": item.custom_name,
                "quantity": item.quantity,
                "tradable": item.tradable,
                "marketable": item.marketable,
                "first_seen_at": item.first_seen_at.isoformat() if item.first_seen_at else None,
                "last_seen_at": item.last_seen_at.isoformat() if item.last_seen_at else None,
                "removed_at": item.removed_at.isoformat() if item.removed_at else None,
                "prices": {},
            }
        if price is not None:
            entry["prices"][price.currency] = price.price
    return list(result.values())
