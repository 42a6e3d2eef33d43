"""
Skinport public price API

Endpoint: GET https://api.skinport.com/v1/items
          ?app_id=730&currency={EUR|USD|...}&tradable={0|1}

Returns the whole CS2 catalogue in one JSON array (no auth, rate limited to a
few calls per minute). A non-2xx status or a body that is not an array makes
the whole call fail; nothing from such a response is used.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import httpx
from pydantic import ValidationError

from cs2sync.core.coerce import first_of, to_text
from cs2sync.core.config import settings
from cs2sync.schemas.skinport import PriceRecord

logger = logging.getLogger(__name__)

APP_ID_CS2 = 730

_HEADERS = {"Accept": "application/json"}


async def fetch_skinport_prices(
    currency: Optional[str] = None,
    tradable: Optional[bool] = None,
    *,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[List[PriceRecord], datetime, int]:
    """Return (price records, fetched_at, dropped). Entries without a name are dropped."""
    currency = currency or settings.skinport_currency
    tradable = settings.skinport_tradable if tradable is None else tradable
    timeout = settings.skinport_timeout if timeout is None else timeout

    params = {
        "app_id": APP_ID_CS2,
        "currency": currency,
        "tradable": 1 if tradable else 0,
    }
    url = f"{settings.skinport_base_url}/items"
    logger.info("fetching skinport prices currency=%s tradable=%s", currency, tradable)

    try:
        async with httpx.AsyncClient(timeout=timeout, headers=_HEADERS, transport=transport) as client:
            r = await client.get(url, params=params)
    except httpx.TimeoutException as e:
        raise TimeoutError(f"Skinport did not respond within {timeout}s") from e

    if not r.is_success:
        raise RuntimeError(f"Skinport responded with {r.status_code} {r.reason_phrase}")

    try:
        data = r.json()
    except ValueError as e:
        raise RuntimeError("Skinport response was not valid JSON") from e
    if not isinstance(data, list):
        raise RuntimeError("Skinport response was not an array")

    fetched_at = datetime.now(timezone.utc).replace(tzinfo=None)

    records: List[PriceRecord] = []
    dropped = 0
    for entry in data:
        if not isinstance(entry, dict) or not to_text(first_of(entry, "market_hash_name", "marketHashName")):
            dropped += 1
            continue
        try:
            record = PriceRecord.model_validate(entry)
        except ValidationError as e:
            logger.debug("skinport entry rejected: %s", e)
            dropped += 1
            continue
        if record.currency is None:
            record.currency = currency
        records.append(record)

    logger.info("skinport: received %d items (%d dropped)", len(records), dropped)
    return records, fetched_at, dropped
