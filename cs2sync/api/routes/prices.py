"""
Price endpoints

POST /api/prices/refresh?currency=EUR&tradable=true   Skinport → history + current
GET  /api/prices/current?market_hash_name=...          read current prices (no API call)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cs2sync.core.database import get_db
from cs2sync.services import prices as svc

router = APIRouter()


@router.post("/refresh")
async def refresh_prices(
    currency: Optional[str] = Query(None, description="Defaults to SKINPORT_CURRENCY"),
    tradable: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await svc.update_prices_from_skinport(db, currency, tradable)
    except TimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/current")
async def current_prices(
    market_hash_name: Optional[str] = Query(None, description="e.g. 'AK-47 | Redline (Field-Tested)'"),
    db: AsyncSession = Depends(get_db),
):
    rows = await svc.get_current_prices(db, market_hash_name)
    return {"total": len(rows), "data": rows}
