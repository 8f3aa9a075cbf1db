from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parcel_engine.services.units import to_decimal


class TripPriceParameters(BaseModel):
    """Price parameters published with a trip; range checks happen at pricing time."""

    model_config = ConfigDict(frozen=True)

    base_price: Decimal
    price_per_kg: Decimal
    minimum_price: Decimal
    currency: str = Field(default="EUR", min_length=3, max_length=3)

    @field_validator("base_price", "price_per_kg", "minimum_price", mode="before")
    @classmethod
    def coerce_money(cls, value: Any):
        return to_decimal(value) if isinstance(value, (int, float, str)) and not isinstance(value, bool) else value

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, value: str):
        return value.upper() if isinstance(value, str) else value


class TripAggregate(BaseModel):
    model_config = ConfigDict(frozen=True)

    trip_id: str | None = None
    price: TripPriceParameters
    remaining_capacity_kg: Decimal
    total_capacity_kg: Decimal | None = None

    @field_validator("remaining_capacity_kg", "total_capacity_kg", mode="before")
    @classmethod
    def coerce_capacity(cls, value: Any):
        return to_decimal(value) if isinstance(value, (int, float, str)) and not isinstance(value, bool) else value
