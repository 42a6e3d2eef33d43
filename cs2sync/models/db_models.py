"""
Database ORM models

Tables:
  inventory_item  — every owned CS2 item, including items inside storage units
                    (caskets). Rows are never deleted; an item missing from the
                    latest snapshot gets removed_at set instead.
  item_def        — distinct item "kinds" keyed by market_hash_name; price
                    history is tracked per definition, not per owned item.
  price_snapshot  — append-only price history per (definition, source, currency).
  price_current   — latest price per (definition, source, currency), overwritten
                    on every price refresh.

Timeline of an inventory_item row:
  first_seen_at  → set on insert, never changed
  last_seen_at   → bumped to the snapshot time on every sync that contains it
  removed_at     → set when a sync no longer contains it, cleared on reappearance
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from cs2sync.core.database import Base


class ItemDef(Base):
    """Item definition (one row per market_hash_name)"""

    __tablename__ = "item_def"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    market_hash_name: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class InventoryItem(Base):
    """
    One owned CS2 item as reported by the Game Coordinator.

    id is the GC asset id (stable across syncs). casket_id is a plain relation
    to the storage unit holding the item; the storage unit is itself a row of
    this table, but nothing is cascaded through it.
    """

    __tablename__ = "inventory_item"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    def_index: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    paint_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    market_hash_name: Mapped[str] = mapped_column(String, index=True, nullable=False)

    paint_wear: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    prefab: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    image_path: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    sys_item_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    sys_skin_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    englishtoken: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    sticker_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    casket_id: Mapped[Optional[str]] = mapped_column(String, index=True, nullable=True)
    custom_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    category: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    skin_rarity: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    collection: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # NULL = unknown (upstream did not say), not False
    tradable: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    marketable: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    raw: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Filled by the definition backfill, not by the inventory sync
    item_def_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("item_def.id"), index=True, nullable=True
    )

    first_seen_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    removed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())


class PriceSnapshot(Base):
    """Append-only price history (one row per definition per refresh)"""

    __tablename__ = "price_snapshot"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_def_id: Mapped[int] = mapped_column(Integer, ForeignKey("item_def.id"), index=True, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    captured_at: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    extra: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)


class CurrentPrice(Base):
    """Latest price per (definition, source, currency)"""

    __tablename__ = "price_current"
    __table_args__ = (
        UniqueConstraint("item_def_id", "source", "currency", name="uq_price_current"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_def_id: Mapped[int] = mapped_column(Integer, ForeignKey("item_def.id"), index=True, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    captured_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    extra: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
