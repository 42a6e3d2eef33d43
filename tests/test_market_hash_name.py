"""Unit tests for market_hash_name derivation."""

import pytest

from cs2sync.services.market_hash_name import (
    build_market_hash_name,
    derive_market_hash_name,
    paintkit_key,
    title_case_token,
    wear_tier,
    weapon_display,
)


@pytest.mark.parametrize(
    "wear, tier",
    [
        (0.0, "Factory New"),
        (0.069, "Factory New"),
        (0.07, "Minimal Wear"),
        (0.149, "Minimal Wear"),
        (0.15, "Field-Tested"),
        (0.379, "Field-Tested"),
        (0.38, "Well-Worn"),
        (0.449, "Well-Worn"),
        (0.45, "Battle-Scarred"),
        (0.99, "Battle-Scarred"),
    ],
)
def test_wear_tier_boundaries(wear, tier):
    assert wear_tier(wear) == tier


def test_wear_tier_unknown():
    assert wear_tier(None) is None


def test_builds_weapon_skin_wear_from_englishtoken():
    item = {"sys_item_name": "weapon_ak47", "englishtoken": "#PaintKit_redline_Tag", "paint_wear": 0.10}
    assert build_market_hash_name(item) == "AK-47 | Redline (Minimal Wear)"


def test_derivation_is_deterministic():
    item = {"sys_item_name": "weapon_ak47", "sys_skin_name": "redline", "paint_wear": "0.10"}
    first = derive_market_hash_name(item)
    assert all(derive_market_hash_name(dict(item)) == first for _ in range(5))
    assert first == "AK-47 | Redline (Minimal Wear)"


def test_upstream_name_wins():
    item = {
        "market_hash_name": "AWP | Asiimov (Field-Tested)",
        "sys_item_name": "weapon_ak47",
        "sys_skin_name": "redline",
    }
    assert build_market_hash_name(item) == "AWP | Asiimov (Field-Tested)"


def test_upstream_name_inside_raw_payload():
    item = {"raw": {"market_hash_name": "Glock-18 | Fade (Factory New)"}, "sys_item_name": "weapon_ak47"}
    assert build_market_hash_name(item) == "Glock-18 | Fade (Factory New)"


def test_blank_upstream_name_is_ignored():
    item = {"market_hash_name": "   ", "sys_item_name": "weapon_awp", "sys_skin_name": "dragon_lore"}
    assert build_market_hash_name(item) == "AWP | Dragon Lore"


def test_unknown_weapon_is_title_cased():
    assert weapon_display("weapon_knife_butterfly") == "Knife Butterfly"
    assert weapon_display("weapon_m4a1_silencer") == "M4A1-S"
    assert weapon_display(None) is None


def test_title_case_keeps_inner_letters():
    assert title_case_token("so_orange_accents") == "So Orange Accents"
    assert title_case_token("cu_AK47__neon") == "Cu AK47 Neon"


def test_paintkit_key_is_case_insensitive():
    assert paintkit_key("#paintkit_cu_ak47_asiimov_tag") == "cu_ak47_asiimov"
    assert paintkit_key("PaintKit_hy_ddpat_Tag") == "hy_ddpat"
    assert paintkit_key("#SFUI_WPNHUD_AK47") is None


def test_custom_name_used_without_skin():
    item = {"sys_item_name": "weapon_ak47", "custom_name": "my rifle"}
    assert build_market_hash_name(item) == "my rifle"


def test_weapon_display_alone():
    assert build_market_hash_name({"sys_item_name": "weapon_deagle"}) == "Desert Eagle"


def test_build_gives_up_without_fields():
    assert build_market_hash_name({"def_index": 1209, "id": "5"}) is None


@pytest.mark.parametrize(
    "item, expected",
    [
        ({"def_index": 1209, "paint_index": 3}, "def=1209 paint=3"),
        ({"def_index": "1209"}, "def=1209"),
        ({"id": "4242"}, "item=4242"),
        ({}, "unknown-item"),
    ],
)
def test_derive_falls_back_to_stable_ids(item, expected):
    assert derive_market_hash_name(item) == expected
