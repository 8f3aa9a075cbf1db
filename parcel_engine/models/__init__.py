from parcel_engine.models.enums import (  # noqa: F401
    CapacityLevel,
    CustomsStage,
    DocumentStatus,
    PackagingSize,
    ParcelStatus,
    PaymentStatus,
    QuoteStatus,
    RequiredAction,
    StatusTone,
)
from parcel_engine.models.packaging_tiers import DEFAULT_PACKAGING_TIERS, PackagingTier, PackagingTierTable  # noqa: F401
from parcel_engine.models.duty_rates import MOROCCO_DUTY_RATES, DutyCategory, DutyRateTable  # noqa: F401
