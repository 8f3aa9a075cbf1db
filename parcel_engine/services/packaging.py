from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from parcel_engine.core.errors import InvalidWeight, WeightExceedsTiers
from parcel_engine.models.enums import CapacityLevel, PackagingSize
from parcel_engine.models.packaging_tiers import DEFAULT_PACKAGING_TIERS, PackagingTier, PackagingTierTable
from parcel_engine.services.units import to_decimal

ELEVATED_THRESHOLD = Decimal("60")
HIGH_THRESHOLD = Decimal("80")


@dataclass(frozen=True)
class CapacityStatus:
    weight_kg: Decimal
    remaining_kg: Decimal
    percentage: Decimal
    over_capacity: bool
    level: CapacityLevel

    @property
    def available_percentage(self) -> Decimal:
        return max(Decimal("0"), Decimal("100") - self.percentage)


@dataclass(frozen=True)
class PackagingCheck:
    tier: PackagingTier
    weight_kg: Decimal
    fits: bool
    recommended: PackagingTier | None


def _weight(value: Any, allow_zero: bool = False) -> Decimal:
    try:
        weight = to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise InvalidWeight(value) from exc
    if not weight.is_finite() or weight < 0 or (weight == 0 and not allow_zero):
        raise InvalidWeight(value)
    return weight


class PackagingAdvisor:
    def __init__(self, table: PackagingTierTable = DEFAULT_PACKAGING_TIERS) -> None:
        self.table = table

    def recommend(self, weight_kg) -> PackagingTier:
        weight = _weight(weight_kg)
        for tier in self.table.tiers:
            if weight <= tier.max_kg:
                return tier
        raise WeightExceedsTiers(weight_kg, self.table.max_kg)

    def fits(self, tier: PackagingTier | PackagingSize | str, weight_kg) -> bool:
        # Ranges are half-open (previous.max, max] so a boundary weight has one owner.
        tier = self._resolve(tier)
        weight = _weight(weight_kg, allow_zero=True)
        index = self.table.index_of(tier)
        lower = self.table.tiers[index - 1].max_kg if index > 0 else None
        if lower is not None and weight <= lower:
            return False
        return weight <= tier.max_kg

    def check_selection(self, tier: PackagingTier | PackagingSize | str, weight_kg) -> PackagingCheck:
        tier = self._resolve(tier)
        weight = _weight(weight_kg)
        try:
            recommended = self.recommend(weight)
        except WeightExceedsTiers:
            recommended = None
        return PackagingCheck(tier=tier, weight_kg=weight, fits=self.fits(tier, weight), recommended=recommended)

    def tier_index(self, tier: PackagingTier | PackagingSize | str) -> int:
        return self.table.index_of(self._resolve(tier))

    def _resolve(self, tier: PackagingTier | PackagingSize | str) -> PackagingTier:
        # Tiers resolve by size so one from another table uses this table's range.
        if isinstance(tier, PackagingTier):
            return self.table.get(tier.size)
        return self.table.get(tier)


def capacity_status(weight_kg, remaining_capacity_kg) -> CapacityStatus:
    weight = _weight(weight_kg)
    remaining = to_decimal(remaining_capacity_kg)
    percentage = (weight / remaining * Decimal("100")) if remaining > 0 else Decimal("0")
    over_capacity = weight > remaining

    if over_capacity:
        level = CapacityLevel.OVER
    elif percentage > HIGH_THRESHOLD:
        level = CapacityLevel.HIGH
    elif percentage > ELEVATED_THRESHOLD:
        level = CapacityLevel.ELEVATED
    else:
        level = CapacityLevel.NORMAL

    return CapacityStatus(
        weight_kg=weight,
        remaining_kg=remaining,
        percentage=percentage,
        over_capacity=over_capacity,
        level=level,
    )


_default_advisor = PackagingAdvisor()


def recommend(weight_kg) -> PackagingTier:
    return _default_advisor.recommend(weight_kg)


def fits(tier: PackagingTier | PackagingSize | str, weight_kg) -> bool:
    return _default_advisor.fits(tier, weight_kg)
