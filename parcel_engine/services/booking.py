from __future__ import annotations

from dataclasses import dataclass, field as dc_field

from parcel_engine.core.config import EngineConfig, get_engine_config
from parcel_engine.core.errors import InvalidPriceParameters, InvalidWeight
from parcel_engine.core.logging import get_logger
from parcel_engine.models.enums import PackagingSize, QuoteStatus
from parcel_engine.models.packaging_tiers import PackagingTier
from parcel_engine.schemas.trip import TripAggregate
from parcel_engine.services.packaging import CapacityStatus, PackagingAdvisor, capacity_status
from parcel_engine.services.pricing import ParcelChargeBreakdown, compute_charge

logger = get_logger("booking")


@dataclass
class QuoteResult:
    status: QuoteStatus
    message: str | None = None
    field: str | None = None
    breakdown: ParcelChargeBreakdown | None = None
    packaging: PackagingTier | None = None
    recommended_packaging: PackagingTier | None = None
    capacity: CapacityStatus | None = None
    warnings: list[str] = dc_field(default_factory=list)

    @property
    def bookable(self) -> bool:
        return self.status == QuoteStatus.OK


class BookingAdvisor:
    """Runs capacity, packaging and pricing checks for the booking form.

    Failures come back as ``QuoteResult`` statuses with a field name so the form
    can show them inline.
    """

    def __init__(self, config: EngineConfig | None = None, advisor: PackagingAdvisor | None = None) -> None:
        self.config = config or get_engine_config()
        self.advisor = advisor or PackagingAdvisor()

    def quote(
        self,
        weight_kg,
        trip: TripAggregate,
        packaging: PackagingTier | PackagingSize | str | None = None,
    ) -> QuoteResult:
        try:
            capacity = capacity_status(weight_kg, trip.remaining_capacity_kg)
        except InvalidWeight as exc:
            return QuoteResult(status=QuoteStatus.INVALID_WEIGHT, message=exc.message, field=exc.field)

        # Capacity blocks the booking before packaging fit is considered.
        if capacity.over_capacity:
            return QuoteResult(
                status=QuoteStatus.OVER_CAPACITY,
                message=f"Weight exceeds the remaining trip capacity of {trip.remaining_capacity_kg} kg",
                field="weight_kg",
                capacity=capacity,
            )

        try:
            recommended = self.advisor.recommend(weight_kg)
        except InvalidWeight as exc:
            return QuoteResult(
                status=QuoteStatus.INVALID_WEIGHT,
                message=exc.message,
                field=exc.field,
                capacity=capacity,
            )

        selected = recommended
        if packaging is not None:
            try:
                check = self.advisor.check_selection(packaging, weight_kg)
            except (KeyError, ValueError):
                return QuoteResult(
                    status=QuoteStatus.PACKAGING_MISMATCH,
                    message=f"Unknown packaging option {packaging!r}",
                    field="packaging",
                    recommended_packaging=recommended,
                    capacity=capacity,
                )
            selected = check.tier
            if not check.fits:
                return QuoteResult(
                    status=QuoteStatus.PACKAGING_MISMATCH,
                    message=f"{check.tier.size.value} packaging does not fit {weight_kg} kg; use {recommended.size.value}",
                    field="packaging",
                    packaging=check.tier,
                    recommended_packaging=recommended,
                    capacity=capacity,
                )

        try:
            breakdown = compute_charge(weight_kg, trip.price, self.config)
        except InvalidPriceParameters as exc:
            logger.error("pricing.unavailable", trip_id=trip.trip_id, problems=exc.problems)
            return QuoteResult(
                status=QuoteStatus.PRICING_UNAVAILABLE,
                message="Pricing unavailable",
                field=exc.field,
                packaging=selected,
                recommended_packaging=recommended,
                capacity=capacity,
                warnings=list(exc.problems),
            )

        return QuoteResult(
            status=QuoteStatus.OK,
            breakdown=breakdown,
            packaging=selected,
            recommended_packaging=recommended,
            capacity=capacity,
        )
