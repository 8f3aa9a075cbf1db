from __future__ import annotations

from enum import Enum


class ParcelStatus(str, Enum):
    CREATED = "CREATED"
    CONFIRMED = "CONFIRMED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT_BUS = "IN_TRANSIT_BUS"

    CUSTOMS_SUBMITTED_EU = "CUSTOMS_SUBMITTED_EU"
    CUSTOMS_INSPECTION_EU = "CUSTOMS_INSPECTION_EU"
    CUSTOMS_HELD_EU = "CUSTOMS_HELD_EU"
    CUSTOMS_CLEARED_EU = "CUSTOMS_CLEARED_EU"

    CUSTOMS_SUBMITTED_MA = "CUSTOMS_SUBMITTED_MA"
    CUSTOMS_INSPECTION_MA = "CUSTOMS_INSPECTION_MA"
    CUSTOMS_HELD_MA = "CUSTOMS_HELD_MA"
    DUTY_PAYMENT_PENDING = "DUTY_PAYMENT_PENDING"
    CUSTOMS_CLEARED_MA = "CUSTOMS_CLEARED_MA"

    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERY_ATTEMPTED = "DELIVERY_ATTEMPTED"
    DELIVERED = "DELIVERED"

    CANCELLED = "CANCELLED"
    LOST = "LOST"
    DAMAGED = "DAMAGED"


class CustomsStage(str, Enum):
    EU_EXIT = "EU_EXIT"
    MA_ENTRY = "MA_ENTRY"


class RequiredAction(str, Enum):
    NONE = "NONE"
    AWAITING_DOCUMENTS = "AWAITING_DOCUMENTS"
    AWAITING_DUTY_PAYMENT = "AWAITING_DUTY_PAYMENT"


class StatusTone(str, Enum):
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    DANGER = "DANGER"
    INFO = "INFO"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    NOT_REQUIRED = "NOT_REQUIRED"


class DocumentStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PackagingSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class CapacityLevel(str, Enum):
    NORMAL = "NORMAL"
    ELEVATED = "ELEVATED"
    HIGH = "HIGH"
    OVER = "OVER"


class QuoteStatus(str, Enum):
    OK = "ok"
    OVER_CAPACITY = "over_capacity"
    INVALID_WEIGHT = "invalid_weight"
    PACKAGING_MISMATCH = "packaging_mismatch"
    PRICING_UNAVAILABLE = "pricing_unavailable"


RECOGNIZED_CURRENCIES = frozenset({"EUR", "MAD", "USD", "GBP", "CHF"})
