from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from parcel_engine.models.enums import PackagingSize


@dataclass(frozen=True)
class PackagingTier:
    size: PackagingSize
    min_kg: Decimal
    max_kg: Decimal
    popular: bool = False

    def __post_init__(self) -> None:
        if self.min_kg < 0 or self.max_kg <= self.min_kg:
            raise ValueError(f"Invalid weight range for {self.size.value}: [{self.min_kg}, {self.max_kg}]")


@dataclass(frozen=True)
class PackagingTierTable:
    tiers: tuple[PackagingTier, ...]

    def __post_init__(self) -> None:
        if not self.tiers:
            raise ValueError("Packaging tier table is empty")
        for lower, upper in zip(self.tiers, self.tiers[1:]):
            if lower.max_kg != upper.min_kg:
                raise ValueError(
                    f"Packaging tiers {lower.size.value} and {upper.size.value} are not contiguous "
                    f"({lower.max_kg} != {upper.min_kg})"
                )

    @property
    def max_kg(self) -> Decimal:
        return self.tiers[-1].max_kg

    def index_of(self, tier: PackagingTier) -> int:
        return self.tiers.index(tier)

    def get(self, size: PackagingSize | str) -> PackagingTier:
        size = PackagingSize(size)
        for tier in self.tiers:
            if tier.size == size:
                return tier
        raise KeyError(size.value)


DEFAULT_PACKAGING_TIERS = PackagingTierTable(
    tiers=(
        PackagingTier(PackagingSize.SMALL, Decimal("0.1"), Decimal("5"), popular=True),
        PackagingTier(PackagingSize.MEDIUM, Decimal("5"), Decimal("20"), popular=True),
        PackagingTier(PackagingSize.LARGE, Decimal("20"), Decimal("100"), popular=False),
    )
)
