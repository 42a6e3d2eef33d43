"""Inventory API request / response models"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SnapshotImport(BaseModel):
    """Exported GC inventory: top-level items plus the contents of each casket"""
    items: List[Dict[str, Any]]
    caskets: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)


class ExpandSummary(BaseModel):
    total_items: int
    casket_count: int
    items_in_caskets: int
    caskets_skipped: int = 0
    dropped_without_id: int = 0


class SyncResult(BaseModel):
    fetched: ExpandSummary
    total: int
    upserted: int
    skipped: int
    retired: int
    seen_at: Optional[str] = None
