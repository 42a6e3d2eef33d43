"""
item_def backfill

Creates one item_def per distinct inventory_item.market_hash_name and links
inventory_item.item_def_id to it. Run after an inventory sync so the price
refresh has definitions to join against; neither pipeline calls it itself.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cs2sync.core.database import dialect_insert
from cs2sync.models.db_models import InventoryItem, ItemDef

logger = logging.getLogger(__name__)


async def backfill_item_defs(db: AsyncSession) -> dict:
    names = list((await db.execute(
        select(InventoryItem.market_hash_name).distinct()
    )).scalars().all())

    created = 0
    linked = 0
    try:
        if names:
            known = set((await db.execute(select(ItemDef.market_hash_name))).scalars().all())
            missing = [n for n in names if n not in known]
            for i in range(0, len(missing), 500):
                chunk = missing[i : i + 500]
                stmt = dialect_insert(db)(ItemDef).values([{"market_hash_name": n} for n in chunk])
                stmt = stmt.on_conflict_do_nothing(index_elements=["market_hash_name"])
                await db.execute(stmt)
                created += len(chunk)

            def_id = (
                select(ItemDef.id)
                .where(ItemDef.market_hash_name == InventoryItem.market_hash_name)
                .scalar_subquery()
            )
            result = await db.execute(
                update(InventoryItem)
                .where(
                    (InventoryItem.item_def_id.is_(None))
                    | (InventoryItem.item_def_id != def_id)
                )
                .values(item_def_id=def_id)
                .execution_options(synchronize_session=False)
            )
            linked = result.rowcount or 0
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("backfill_item_defs: created=%d linked=%d", created, linked)
    return {"created": created, "linked": linked}
