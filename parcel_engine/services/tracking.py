from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from parcel_engine.core.config import EngineConfig, get_engine_config
from parcel_engine.core.errors import EngineError, IllegalTransition, UnrecognizedStatus
from parcel_engine.core.logging import get_logger
from parcel_engine.models.enums import CustomsStage, DocumentStatus, ParcelStatus, PaymentStatus, RequiredAction
from parcel_engine.schemas.tracking import CustomsInfo, TrackingEvent, TrackingSnapshot
from parcel_engine.services.duty import DutyAssessment, estimate_duty
from parcel_engine.services.status_machine import (
    STATUS_TABLE,
    ParcelStateMachine,
    StatusView,
    is_delayed,
    next_checkpoint,
    parse_status,
)

logger = get_logger("tracking")

STAGE_DISPLAY = {
    CustomsStage.EU_EXIT: ("EU Export Customs", "France/Spain Border"),
    CustomsStage.MA_ENTRY: ("Morocco Import Customs", "Tangier/Casablanca Port"),
}


@dataclass(frozen=True)
class CustomsView:
    stage: CustomsStage
    title: str
    location: str
    status: ParcelStatus | None
    state_text: str
    clearance_progress: int
    required_action: RequiredAction
    pending_documents: list[str]
    duty: DutyAssessment | None
    payment_status: PaymentStatus | None
    delay_reason: str | None
    time_in_customs: str | None
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TrackingView:
    status: StatusView
    progress: int
    contact_enabled: bool
    delayed: bool
    next_checkpoint: str | None
    delivery_attempts: int
    customs: CustomsView | None
    current_event: TrackingEvent | None
    warnings: list[str] = field(default_factory=list)


def current_event(timeline: Sequence[TrackingEvent]) -> TrackingEvent | None:
    for event in timeline:
        if event.active:
            return event
    return timeline[-1] if timeline else None


def delivery_attempts(timeline: Sequence[TrackingEvent]) -> int:
    return sum(1 for event in timeline if event.status.strip().upper() == ParcelStatus.DELIVERY_ATTEMPTED.value)


def replay_progress(
    timeline: Sequence[TrackingEvent],
    machine: ParcelStateMachine | None = None,
) -> tuple[int, list[str]]:
    """Walk the timeline in order and return the last reported progress.

    Progress never goes backwards. Unknown statuses and illegal steps are
    reported as warnings; the backend owns the timeline, so nothing is rejected.
    """
    machine = machine or ParcelStateMachine()
    progress = 0
    warnings: list[str] = []
    previous: ParcelStatus | None = None
    attempts = 0

    for event in timeline:
        try:
            status = parse_status(event.status)
        except UnrecognizedStatus as exc:
            logger.warning("parcel_status.unrecognized", status=event.status, source="timeline")
            warnings.append(exc.message)
            continue

        # Repeated attempts are re-validated so the retry bound applies.
        if previous is not None and (previous != status or status == ParcelStatus.DELIVERY_ATTEMPTED):
            try:
                machine.validate_transition(previous, status, attempts)
            except IllegalTransition as exc:
                logger.warning("tracking.illegal_transition", current=previous.value, target=status.value)
                warnings.append(exc.message)
        if status == ParcelStatus.DELIVERY_ATTEMPTED:
            attempts += 1

        progress = machine.progress_percentage(status, progress)
        previous = status

    return progress, warnings


def clearance_progress(status: ParcelStatus | None) -> tuple[int, str]:
    if status in (ParcelStatus.CUSTOMS_CLEARED_EU, ParcelStatus.CUSTOMS_CLEARED_MA):
        return 100, "Cleared"
    if status == ParcelStatus.DUTY_PAYMENT_PENDING:
        return 50, "Payment Required"
    if status in (ParcelStatus.CUSTOMS_HELD_EU, ParcelStatus.CUSTOMS_HELD_MA):
        return 50, "Action Needed"
    if status in (ParcelStatus.CUSTOMS_INSPECTION_EU, ParcelStatus.CUSTOMS_INSPECTION_MA):
        return 60, "Under Inspection"
    return 30, "Processing"


def format_time_in_customs(submitted_at: datetime | None, now: datetime | None = None) -> str | None:
    if submitted_at is None:
        return None
    hours = int(_elapsed_seconds(submitted_at, now) // 3600)
    if hours < 1:
        return "Less than 1 hour"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    days = hours // 24
    return f"{days} day{'s' if days > 1 else ''} {hours % 24} hours"


def format_time_since(timestamp: datetime, now: datetime | None = None) -> str:
    minutes = int(_elapsed_seconds(timestamp, now) // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 1440:
        return f"{minutes // 60}h ago"
    return f"{minutes // 1440}d ago"


def _elapsed_seconds(start: datetime, now: datetime | None) -> float:
    now = now or datetime.now(timezone.utc)
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max(0.0, (now - start).total_seconds())


def build_customs_view(
    customs_info: CustomsInfo,
    declared_value_eur: Decimal | None = None,
    category: str | None = None,
    config: EngineConfig | None = None,
    now: datetime | None = None,
) -> CustomsView:
    warnings: list[str] = []
    try:
        status = parse_status(customs_info.status)
    except UnrecognizedStatus as exc:
        logger.warning("parcel_status.unrecognized", status=customs_info.status, source="customs_info")
        warnings.append(exc.message)
        status = None

    progress, state_text = clearance_progress(status)
    action = STATUS_TABLE[status].required_action if status else RequiredAction.NONE
    title, location = STAGE_DISPLAY[customs_info.stage]

    duty = None
    if status == ParcelStatus.DUTY_PAYMENT_PENDING:
        if declared_value_eur is None:
            warnings.append("Declared value unknown; duty estimate unavailable.")
        else:
            try:
                duty = estimate_duty(declared_value_eur, category, config=config)
            except EngineError as exc:
                warnings.append(exc.message)
            else:
                warnings.extend(duty.warnings)

    pending = [
        doc.name
        for doc in customs_info.documents
        if doc.status in (DocumentStatus.PENDING, DocumentStatus.REJECTED)
    ]

    return CustomsView(
        stage=customs_info.stage,
        title=title,
        location=location,
        status=status,
        state_text=state_text,
        clearance_progress=progress,
        required_action=action,
        pending_documents=pending,
        duty=duty,
        payment_status=customs_info.duty_info.payment_status if customs_info.duty_info else None,
        delay_reason=customs_info.delay_reason,
        time_in_customs=format_time_in_customs(customs_info.submitted_at, now),
        warnings=warnings,
    )


class TrackingInterpreter:
    """Turns a tracking feed snapshot into the facts the tracking page shows."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or get_engine_config()
        self.machine = ParcelStateMachine(self.config)

    def interpret(self, snapshot: TrackingSnapshot, now: datetime | None = None) -> TrackingView:
        timeline_progress, warnings = replay_progress(snapshot.timeline, self.machine)
        attempts = delivery_attempts(snapshot.timeline)

        try:
            status = parse_status(snapshot.current_status)
        except UnrecognizedStatus:
            status = None
        delayed = is_delayed(status, snapshot.estimated_delivery, now) if status else False

        view = self.machine.derive_view(snapshot.current_status, timeline_progress, delayed)
        warnings = warnings + [w for w in view.warnings if w not in warnings]

        customs = None
        if snapshot.customs_info is not None and view.customs_stage is not None:
            customs = build_customs_view(
                snapshot.customs_info,
                declared_value_eur=snapshot.declared_value_eur,
                category=snapshot.category,
                config=self.config,
                now=now,
            )
            warnings.extend(customs.warnings)

        return TrackingView(
            status=view,
            progress=view.progress,
            contact_enabled=view.contact_enabled,
            delayed=delayed,
            next_checkpoint=next_checkpoint(status, snapshot.bus_number) if status else "Processing at facility",
            delivery_attempts=attempts,
            customs=customs,
            current_event=current_event(snapshot.timeline),
            warnings=warnings,
        )
