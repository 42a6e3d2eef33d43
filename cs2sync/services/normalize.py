"""
Raw GC item → inventory_item row

normalize_item() never raises: it returns (row, None) for a usable item and
(None, reason) for one that has to be dropped. An item is unusable when it has
no asset id, no numeric def_index that fits the INTEGER column (NOT NULL
downstream), or a raw payload that cannot be stored as JSON.
"""

from __future__ import annotations

import json
from collections import Counter
from typing import Any, Iterable, List, Optional, Tuple

from cs2sync.core.coerce import first_of, to_bool, to_float, to_int, to_text
from cs2sync.services.market_hash_name import derive_market_hash_name

ID_KEYS = ("id", "assetid", "asset_id")

# INTEGER columns are 32-bit on PostgreSQL
INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1


def item_id(item: Any) -> Optional[str]:
    if not isinstance(item, dict):
        return None
    return to_text(first_of(item, *ID_KEYS))


def _column_int(value: Any) -> Optional[int]:
    """to_int(), but None when the value would overflow an INTEGER column."""
    n = to_int(value)
    if n is None or not INT_MIN <= n <= INT_MAX:
        return None
    return n


def _json_safe(value: Any) -> Any:
    return json.loads(json.dumps(value, default=str))


def normalize_item(item: Any) -> Tuple[Optional[dict], Optional[str]]:
    if not isinstance(item, dict):
        return None, "not a mapping"

    asset_id = item_id(item)
    if not asset_id:
        return None, "missing id"

    def_index = _column_int(first_of(item, "def_index", "defIndex", "defindex"))
    if def_index is None:
        return None, "missing def_index"

    try:
        raw = _json_safe(item)
    except (TypeError, ValueError):
        return None, "unserializable raw payload"

    market_hash_name = to_text(derive_market_hash_name(item))
    if not market_hash_name:
        return None, "missing market_hash_name"

    quantity = _column_int(item.get("quantity"))
    if quantity is None or quantity < 1:
        quantity = 1

    return {
        "id": asset_id,
        "def_index": def_index,
        "paint_index": _column_int(first_of(item, "paint_index", "paintIndex", "paintindex")),
        "market_hash_name": market_hash_name,
        "paint_wear": to_float(first_of(item, "paint_wear", "paintWear", "float", "wear")),
        "prefab": to_text(item.get("prefab")),
        "image_path": to_text(first_of(item, "image_path", "imagePath")),
        "sys_item_name": to_text(first_of(item, "sys_item_name", "sysItemName")),
        "sys_skin_name": to_text(first_of(item, "sys_skin_name", "sysSkinName")),
        "englishtoken": to_text(first_of(item, "englishtoken", "englishToken")),
        "sticker_id": _column_int(first_of(item, "sticker_id", "stickerId")),
        "casket_id": to_text(first_of(item, "casket_id", "casketId")),
        "custom_name": to_text(first_of(item, "custom_name", "customName")),
        "category": to_text(item.get("category")),
        "skin_rarity": to_text(first_of(item, "skin_rarity", "skinRarity")),
        "collection": to_text(item.get("collection")),
        "currency": to_text(item.get("currency")),
        "quantity": quantity,
        "tradable": to_bool(item.get("tradable")),
        "marketable": to_bool(item.get("marketable")),
        "raw": raw,
    }, None


def normalize_items(items: Iterable[Any]) -> Tuple[List[dict], int, Counter]:
    """Normalize a batch; returns (rows, skipped, reject reasons)."""
    rows: List[dict] = []
    reasons: Counter = Counter()
    for item in items or ():
        row, reason = normalize_item(item)
        if row is None:
            reasons[reason] += 1
        else:
            rows.append(row)
    return rows, sum(reasons.values()), reasons
