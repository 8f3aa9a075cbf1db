from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

FALLBACK_CATEGORY = "other"


@dataclass(frozen=True)
class DutyCategory:
    key: str
    name: str
    duty_rate: Decimal
    vat_rate: Decimal = Decimal("0.20")
    example: str = ""

    def __post_init__(self) -> None:
        for label, rate in (("duty_rate", self.duty_rate), ("vat_rate", self.vat_rate)):
            if not Decimal("0") <= rate <= Decimal("1"):
                raise ValueError(f"{label} for {self.key} must be within [0, 1], got {rate}")


@dataclass(frozen=True)
class DutyRateTable:
    """Category table shared with the backend that re-validates duty.

    Bump ``version`` whenever a rate or the de minimis threshold changes so
    client estimates and server assessments can be compared.
    """

    version: str
    categories: Mapping[str, DutyCategory] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", MappingProxyType(dict(self.categories)))

    def keys(self) -> list[str]:
        return list(self.categories.keys())


def _table(version: str, *categories: DutyCategory) -> DutyRateTable:
    return DutyRateTable(version=version, categories={c.key: c for c in categories})


MOROCCO_DUTY_RATES = _table(
    "MA-2024.1",
    DutyCategory("electronics", "Electronics", Decimal("0.025"), example="Phones, laptops, tablets"),
    DutyCategory("clothing", "Clothing", Decimal("0.08"), example="Shirts, pants, jackets"),
    DutyCategory("cosmetics", "Cosmetics", Decimal("0.05"), example="Perfume, skincare, makeup"),
    DutyCategory("books", "Books", Decimal("0"), example="Educational materials"),
    DutyCategory("food", "Food Items", Decimal("0.175"), example="Packaged foods, snacks"),
    DutyCategory("toys", "Toys & Games", Decimal("0.10"), example="Children's toys, board games"),
    DutyCategory("jewelry", "Jewelry", Decimal("0.25"), example="Watches, accessories"),
    DutyCategory("sports", "Sports Equipment", Decimal("0.025"), example="Gear, apparel"),
    DutyCategory(FALLBACK_CATEGORY, "Other Goods", Decimal("0.10"), example="General merchandise"),
)
