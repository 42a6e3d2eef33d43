"""
Inventory endpoints

POST /api/inventory/sync         expand the live GC inventory and persist it
POST /api/inventory/import       same pipeline over an exported snapshot body
POST /api/inventory/backfill-defs  create item_def rows + link items
GET  /api/inventory              persisted items with current prices
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cs2sync.core.database import get_db
from cs2sync.schemas.inventory import SnapshotImport, SyncResult
from cs2sync.services import inventory as inventory_svc
from cs2sync.services.casket import SnapshotSession
from cs2sync.services.item_defs import backfill_item_defs

logger = logging.getLogger(__name__)
router = APIRouter()


async def _run_sync(db: AsyncSession, session, **expand_opts) -> dict:
    try:
        return await inventory_svc.sync_inventory(db, session, **expand_opts)
    except TimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))


# ── Sync / import ───────────────────────────────────────────────────────────

@router.post("/sync", response_model=SyncResult)
async def sync_inventory(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Expand + persist using the GC session the hosting process attached to
    app.state.game_session. This service never logs in itself.
    """
    session = getattr(request.app.state, "game_session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="No Game Coordinator session attached")
    return await _run_sync(db, session)


@router.post("/import", response_model=SyncResult)
async def import_snapshot(body: SnapshotImport, db: AsyncSession = Depends(get_db)):
    """Persist an exported snapshot; caskets missing from the body are skipped."""
    session = SnapshotSession(body.items, body.caskets)
    # local data: no GC wait, no retries, no throttling
    return await _run_sync(
        db, session, inventory_timeout=0, casket_retries=0, casket_throttle=0,
    )


@router.post("/backfill-defs")
async def backfill_defs(db: AsyncSession = Depends(get_db)):
    return await backfill_item_defs(db)


# ── Read ────────────────────────────────────────────────────────────────────

@router.get("/")
async def list_inventory(
    include_removed: bool = Query(False, description="Include items no longer in the inventory"),
    db: AsyncSession = Depends(get_db),
):
    items = await inventory_svc.list_inventory(db, include_removed=include_removed)
    return {"total": len(items), "data": items}
