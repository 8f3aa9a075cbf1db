from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from parcel_engine.models.enums import CustomsStage, DocumentStatus, PaymentStatus


class TrackingEvent(BaseModel):
    """One timeline entry as written by the tracking backend.

    ``status`` stays a raw string so unknown values survive parsing and can be
    reported instead of rejected.
    """

    model_config = ConfigDict(frozen=True)

    status: str
    location: str = ""
    timestamp: datetime | None = None
    completed: bool = False
    active: bool = False
    title: str | None = None
    details: str | None = None


class CustomsDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    status: DocumentStatus = DocumentStatus.PENDING


class DutyInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_due: Decimal
    currency: str = "MAD"
    duty_amount: Decimal | None = None
    vat_amount: Decimal | None = None
    processing_fee: Decimal | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING


class CustomsInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: CustomsStage
    status: str
    submitted_at: datetime | None = None
    estimated_clearance_time: str | None = None
    duty_info: DutyInfo | None = None
    documents: list[CustomsDocument] = Field(default_factory=list)
    delay_reason: str | None = None


class TrackingSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    tracking_id: str | None = None
    current_status: str
    timeline: list[TrackingEvent] = Field(default_factory=list)
    estimated_delivery: datetime | None = None
    customs_info: CustomsInfo | None = None
    declared_value_eur: Decimal | None = None
    category: str | None = None
    bus_number: str | None = None
