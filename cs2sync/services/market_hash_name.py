"""
market_hash_name derivation for Game Coordinator items

GC inventory items usually carry no market_hash_name. It is rebuilt from the
structured fields the GC does send:

  "<Weapon> | <Skin> (<Wear>)"   e.g. "AK-47 | Redline (Minimal Wear)"

  Weapon ← sys_item_name ("weapon_ak47") via WEAPON_DISPLAY, else title-cased
  Skin   ← sys_skin_name, else the key inside englishtoken "#PaintKit_<key>_Tag"
  Wear   ← paint_wear float (CS2 wear tier thresholds), omitted when unknown

Everything here is pure: the same item always yields the same name.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from cs2sync.core.coerce import first_of, to_float, to_int, to_text

MARKET_HASH_NAME_KEYS = ("market_hash_name", "marketHashName", "market_name")

_PAINTKIT_RE = re.compile(r"#?PaintKit_([^_]+(?:_[^_]+)*)_Tag", re.IGNORECASE)

# (upper bound, tier); the last tier catches everything above 0.45
_WEAR_TIERS = (
    (0.07, "Factory New"),
    (0.15, "Minimal Wear"),
    (0.38, "Field-Tested"),
    (0.45, "Well-Worn"),
)

WEAPON_DISPLAY = {
    "weapon_m4a1_silencer": "M4A1-S",
    "weapon_ak47": "AK-47",
    "weapon_awp": "AWP",
    "weapon_deagle": "Desert Eagle",
    "weapon_glock": "Glock-18",
    "weapon_usp_silencer": "USP-S",
    "weapon_hkp2000": "P2000",
    "weapon_elite": "Dual Berettas",
    "weapon_fiveseven": "Five-SeveN",
    "weapon_p250": "P250",
    "weapon_tec9": "Tec-9",
    "weapon_cz75a": "CZ75-Auto",
    "weapon_revolver": "R8 Revolver",
    "weapon_mac10": "MAC-10",
    "weapon_mp9": "MP9",
    "weapon_mp7": "MP7",
    "weapon_mp5sd": "MP5-SD",
    "weapon_ump45": "UMP-45",
    "weapon_p90": "P90",
    "weapon_bizon": "PP-Bizon",
    "weapon_famas": "FAMAS",
    "weapon_galilar": "Galil AR",
    "weapon_m4a1": "M4A4",
    "weapon_ssg08": "SSG 08",
    "weapon_aug": "AUG",
    "weapon_sg556": "SG 553",
    "weapon_scar20": "SCAR-20",
    "weapon_g3sg1": "G3SG1",
    "weapon_nova": "Nova",
    "weapon_xm1014": "XM1014",
    "weapon_mag7": "MAG-7",
    "weapon_sawedoff": "Sawed-Off",
    "weapon_m249": "M249",
    "weapon_negev": "Negev",
    "weapon_knife": "Knife",
}


def wear_tier(paint_wear: Optional[float]) -> Optional[str]:
    if paint_wear is None:
        return None
    for upper, tier in _WEAR_TIERS:
        if paint_wear < upper:
            return tier
    return "Battle-Scarred"


def title_case_token(token: str) -> str:
    """so_orange_accents -> So Orange Accents (only first letters change)."""
    parts = [p for p in str(token).split("_") if p]
    return " ".join(p[:1].upper() + p[1:] for p in parts)


def weapon_display(sys_item_name: Any) -> Optional[str]:
    raw = to_text(sys_item_name)
    if not raw:
        return None
    if raw in WEAPON_DISPLAY:
        return WEAPON_DISPLAY[raw]
    return title_case_token(re.sub(r"^weapon_", "", raw)) or None


def paintkit_key(englishtoken: Any) -> Optional[str]:
    tok = to_text(englishtoken)
    if not tok:
        return None
    m = _PAINTKIT_RE.search(tok)
    return m.group(1) if m else None


def skin_display(item: Mapping[str, Any]) -> Optional[str]:
    sys_skin = to_text(first_of(item, "sys_skin_name", "sysSkinName"))
    if sys_skin:
        return title_case_token(sys_skin) or None

    key = paintkit_key(first_of(item, "englishtoken", "englishToken"))
    if key:
        return title_case_token(key) or None
    return None


def upstream_market_hash_name(item: Mapping[str, Any]) -> Optional[str]:
    name = to_text(first_of(item, *MARKET_HASH_NAME_KEYS))
    if name:
        return name
    raw = item.get("raw")
    if isinstance(raw, Mapping):
        return to_text(first_of(raw, *MARKET_HASH_NAME_KEYS))
    return None


def build_market_hash_name(item: Mapping[str, Any]) -> Optional[str]:
    """
    Best display name the item's own fields support, or None.

    Priority: upstream name → "<Weapon> | <Skin>[ (<Wear>)]" → custom_name →
    weapon display alone.
    """
    upstream = upstream_market_hash_name(item)
    if upstream:
        return upstream

    sys_item = first_of(item, "sys_item_name", "sysItemName")
    weapon = weapon_display(sys_item)
    skin = skin_display(item)
    if weapon and skin:
        wear = wear_tier(to_float(first_of(item, "paint_wear", "paintWear", "float", "wear")))
        return f"{weapon} | {skin} ({wear})" if wear else f"{weapon} | {skin}"

    custom = to_text(first_of(item, "custom_name", "customName"))
    if custom:
        return custom

    if weapon:
        return weapon
    return None


def derive_market_hash_name(item: Mapping[str, Any]) -> str:
    """Like build_market_hash_name but never empty: falls back to stable ids."""
    built = build_market_hash_name(item)
    if built:
        return built

    def_index = to_int(first_of(item, "def_index", "defIndex", "defindex"))
    paint_index = to_int(first_of(item, "paint_index", "paintIndex", "paintindex"))
    if def_index is not None and paint_index is not None:
        return f"def={def_index} paint={paint_index}"
    if def_index is not None:
        return f"def={def_index}"

    item_id = to_text(first_of(item, "id", "assetid", "asset_id"))
    return f"item={item_id}" if item_id else "unknown-item"
