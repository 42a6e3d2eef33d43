"""Skinport /v1/items response models"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from cs2sync.core.coerce import to_float


class PriceRecord(BaseModel):
    """One entry of the bulk listing, normalised (non-numeric prices → None)."""

    market_hash_name: str = Field(validation_alias=AliasChoices("market_hash_name", "marketHashName"))
    currency: Optional[str] = None
    suggested_price: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("suggested_price", "suggestedPrice")
    )
    min_price: Optional[float] = Field(default=None, validation_alias=AliasChoices("min_price", "minPrice"))
    max_price: Optional[float] = Field(default=None, validation_alias=AliasChoices("max_price", "maxPrice"))
    mean_price: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("mean_price", "meanPrice", "average_price")
    )
    median_price: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("median_price", "medianPrice")
    )
    quantity: Optional[float] = None
    volume: Optional[float] = Field(default=None, validation_alias=AliasChoices("volume", "sold_last_24h"))

    model_config = {"populate_by_name": True}

    @field_validator(
        "suggested_price", "min_price", "max_price", "mean_price", "median_price", "quantity", "volume",
        mode="before",
    )
    @classmethod
    def _lenient_number(cls, v: Any) -> Optional[float]:
        return to_float(v)

    @field_validator("currency", mode="before")
    @classmethod
    def _blank_currency(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    def extra(self) -> dict:
        """Non-null price fields, stored alongside the selected price."""
        fields = {
            "suggested": self.suggested_price,
            "min": self.min_price,
            "max": self.max_price,
            "mean": self.mean_price,
            "median": self.median_price,
            "quantity": self.quantity,
            "volume": self.volume,
        }
        return {k: v for k, v in fields.items() if v is not None}
