"""
Full CS2 inventory via the Game Coordinator session

The GC only reports top-level items in session.inventory. Items stored in a
storage unit (casket) have to be loaded one casket at a time:

  1. wait until session.inventory is populated (bounded by a timeout)
  2. caskets = items whose casket_contained_item_count > 0
  3. for each casket, sequentially: get_casket_contents() with fixed-delay
     retries, then throttle before the next one
  4. merge everything into one dict keyed by asset id (last write wins);
     items without an id are counted in dropped_without_id

Caskets are never loaded concurrently: the GC session is one rate-limited
connection and parallel requests get it throttled or dropped. A casket that
keeps failing is skipped; only the initial wait is fatal.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from cs2sync.core.coerce import first_of, to_int
from cs2sync.core.config import settings
from cs2sync.services.normalize import item_id

logger = logging.getLogger(__name__)


class GameSession(Protocol):
    """What the pipeline needs from a logged-in GC session (login is external)."""

    inventory: Optional[List[dict]]

    async def get_casket_contents(self, casket_id: str) -> List[dict]: ...


class SnapshotSession:
    """
    GameSession over an exported snapshot:

      {"items": [...top-level items...], "caskets": {"<casket id>": [...]}}

    A casket missing from "caskets" fails like an unreachable GC casket.
    """

    def __init__(self, items: List[dict], caskets: Optional[Mapping[str, List[dict]]] = None) -> None:
        self.inventory = list(items)
        self._caskets = {str(k): list(v) for k, v in (caskets or {}).items()}

    @classmethod
    def from_payload(cls, payload: Any) -> "SnapshotSession":
        if isinstance(payload, list):
            return cls(payload)
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise ValueError("snapshot must be a list of items or {'items': [...], 'caskets': {...}}")
        return cls(payload["items"], payload.get("caskets") or {})

    async def get_casket_contents(self, casket_id: str) -> List[dict]:
        try:
            return self._caskets[str(casket_id)]
        except KeyError:
            raise LookupError(f"casket {casket_id} not in snapshot") from None


def is_casket(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    count = to_int(item.get("casket_contained_item_count"))
    return count is not None and count > 0


def summarize(items: List[dict]) -> dict:
    return {
        "total_items": len(items),
        "casket_count": sum(1 for it in items if is_casket(it)),
        "items_in_caskets": sum(1 for it in items if first_of(it, "casket_id", "casketId") is not None),
    }


async def wait_for_inventory(
    session: GameSession,
    timeout: float,
    poll_interval: float,
) -> List[dict]:
    """
    Poll session.inventory until it is a non-empty list.
    After `timeout` an empty list is accepted; anything else is a TimeoutError.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while loop.time() < deadline:
        inv = getattr(session, "inventory", None)
        if isinstance(inv, list) and inv:
            return inv
        await asyncio.sleep(poll_interval)

    inv = getattr(session, "inventory", None)
    if isinstance(inv, list):
        return inv
    raise TimeoutError(f"Timed out after {timeout}s waiting for GC inventory to populate")


def _merge(by_id: Dict[str, dict], items: List[Any]) -> int:
    """Merge into by_id (last write wins); returns how many had no id."""
    missing = 0
    for it in items:
        key = item_id(it)
        if key:
            by_id[key] = it
        else:
            missing += 1
    return missing


async def _load_casket(
    session: GameSession,
    casket_id: str,
    retries: int,
    retry_delay: float,
) -> Optional[List[dict]]:
    for attempt in range(retries + 1):
        try:
            items = await session.get_casket_contents(casket_id)
            return items if isinstance(items, list) else []
        except Exception as e:
            logger.warning("casket id=%s attempt %d failed: %s", casket_id, attempt + 1, e)
            if attempt < retries:
                await asyncio.sleep(retry_delay)
    return None


async def fetch_full_inventory(
    session: GameSession,
    *,
    inventory_timeout: Optional[float] = None,
    poll_interval: Optional[float] = None,
    casket_throttle: Optional[float] = None,
    casket_retries: Optional[int] = None,
    casket_retry_delay: Optional[float] = None,
    casket_limit: Optional[int] = None,
) -> Tuple[List[dict], dict]:
    """Return (deduplicated items, summary) for the whole inventory."""
    if session is None:
        raise ValueError("GC session missing")

    timeout = settings.gc_inventory_timeout if inventory_timeout is None else inventory_timeout
    poll = settings.gc_poll_interval if poll_interval is None else poll_interval
    throttle = settings.casket_throttle if casket_throttle is None else casket_throttle
    retries = settings.casket_retries if casket_retries is None else casket_retries
    retry_delay = settings.casket_retry_delay if casket_retry_delay is None else casket_retry_delay
    limit = settings.casket_limit if casket_limit is None else casket_limit

    base_inv = await wait_for_inventory(session, timeout, poll)

    by_id: Dict[str, dict] = {}
    dropped = _merge(by_id, base_inv)

    casket_ids = [cid for cid in (item_id(it) for it in base_inv if is_casket(it)) if cid]
    logger.info("base inventory: %d items, caskets detected: %d", len(base_inv), len(casket_ids))

    if limit is not None:
        casket_ids = casket_ids[:limit]

    skipped: List[str] = []
    for i, casket_id in enumerate(casket_ids, start=1):
        logger.info("loading casket %d/%d id=%s", i, len(casket_ids), casket_id)
        loaded = await _load_casket(session, casket_id, retries, retry_delay)

        if loaded is None:
            skipped.append(casket_id)
            logger.warning("casket id=%s failed permanently (skipped)", casket_id)
        else:
            dropped += _merge(by_id, loaded)
            logger.info("casket id=%s returned %d items", casket_id, len(loaded))

        await asyncio.sleep(throttle)

    items = list(by_id.values())
    summary = summarize(items)
    summary["caskets_skipped"] = len(skipped)
    summary["dropped_without_id"] = dropped

    logger.info(
        "total deduped items: %d (caskets=%d, items_in_caskets=%d, skipped caskets=%d, without id=%d)",
        summary["total_items"], summary["casket_count"], summary["items_in_caskets"], len(skipped), dropped,
    )
    return items, summary
