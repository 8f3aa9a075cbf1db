"""
Parcel status state machine.

Everything the UI derives from a status (stage, progress, contact rules,
required action, tone) lives in ``STATUS_TABLE``; transitions live in
``FORWARD_TRANSITIONS``. Adding a status means adding a row to each.

Stage progression:
    CREATED -> CONFIRMED -> PICKED_UP -> IN_TRANSIT_BUS
    -> EU customs (submitted / inspection / held) -> CUSTOMS_CLEARED_EU
    -> MA customs (submitted / inspection / held / duty pending) -> CUSTOMS_CLEARED_MA
    -> OUT_FOR_DELIVERY <-> DELIVERY_ATTEMPTED -> DELIVERED
    Any non-terminal status may branch to CANCELLED, LOST or DAMAGED.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from parcel_engine.core.config import EngineConfig, get_engine_config
from parcel_engine.core.errors import DeliveryAttemptsExceeded, IllegalTransition, UnrecognizedStatus
from parcel_engine.core.logging import get_logger
from parcel_engine.models.enums import CustomsStage, ParcelStatus, RequiredAction, StatusTone

logger = get_logger("status_machine")

PROCESSING_LABEL = "Processing"


@dataclass(frozen=True)
class StatusFacts:
    label: str
    stage_index: int | None
    progress: int | None
    customs_stage: CustomsStage | None = None
    is_hold: bool = False
    is_terminal: bool = False
    contact_enabled: bool = False
    required_action: RequiredAction = RequiredAction.NONE
    tone: StatusTone = StatusTone.INFO


@dataclass(frozen=True)
class StatusView:
    status: ParcelStatus | None
    raw_status: str
    recognized: bool
    label: str
    progress: int
    contact_enabled: bool
    required_action: RequiredAction
    tone: StatusTone
    customs_stage: CustomsStage | None
    is_terminal: bool
    warnings: list[str] = field(default_factory=list)


S = ParcelStatus
EU = CustomsStage.EU_EXIT
MA = CustomsStage.MA_ENTRY
DOCS = RequiredAction.AWAITING_DOCUMENTS
PAYMENT = RequiredAction.AWAITING_DUTY_PAYMENT

STATUS_TABLE: dict[ParcelStatus, StatusFacts] = {
    S.CREATED: StatusFacts("Booking created", 0, 5),
    S.CONFIRMED: StatusFacts("Booking confirmed", 1, 10),
    S.PICKED_UP: StatusFacts("Picked up", 2, 25),
    S.IN_TRANSIT_BUS: StatusFacts("In transit by bus", 3, 40),
    S.CUSTOMS_SUBMITTED_EU: StatusFacts("Submitted to EU customs", 4, 50, EU),
    S.CUSTOMS_INSPECTION_EU: StatusFacts("Under EU customs inspection", 4, 50, EU),
    S.CUSTOMS_HELD_EU: StatusFacts(
        "Held at EU customs", 4, 50, EU, is_hold=True, required_action=DOCS, tone=StatusTone.WARNING
    ),
    S.CUSTOMS_CLEARED_EU: StatusFacts("Cleared EU customs", 5, 60, EU),
    S.CUSTOMS_SUBMITTED_MA: StatusFacts("Submitted to Morocco customs", 6, 70, MA),
    S.CUSTOMS_INSPECTION_MA: StatusFacts("Under Morocco customs inspection", 6, 70, MA),
    S.CUSTOMS_HELD_MA: StatusFacts(
        "Held at Morocco customs", 6, 70, MA, is_hold=True, required_action=DOCS, tone=StatusTone.WARNING
    ),
    S.DUTY_PAYMENT_PENDING: StatusFacts(
        "Duty payment pending", 6, 70, MA, is_hold=True, required_action=PAYMENT, tone=StatusTone.WARNING
    ),
    S.CUSTOMS_CLEARED_MA: StatusFacts("Cleared Morocco customs", 7, 80, MA),
    S.OUT_FOR_DELIVERY: StatusFacts("Out for delivery", 8, 90, contact_enabled=True),
    S.DELIVERY_ATTEMPTED: StatusFacts("Delivery attempted", 8, 90, contact_enabled=True, tone=StatusTone.WARNING),
    S.DELIVERED: StatusFacts("Delivered", 9, 100, is_terminal=True, tone=StatusTone.SUCCESS),
    S.CANCELLED: StatusFacts("Cancelled", None, None, is_terminal=True, tone=StatusTone.DANGER),
    S.LOST: StatusFacts("Lost", None, None, is_terminal=True, tone=StatusTone.DANGER),
    S.DAMAGED: StatusFacts("Damaged", None, None, is_terminal=True, tone=StatusTone.DANGER),
}

EXCEPTION_BRANCHES = frozenset({S.CANCELLED, S.LOST, S.DAMAGED})

FORWARD_TRANSITIONS: dict[ParcelStatus, frozenset[ParcelStatus]] = {
    S.CREATED: frozenset({S.CONFIRMED}),
    S.CONFIRMED: frozenset({S.PICKED_UP}),
    S.PICKED_UP: frozenset({S.IN_TRANSIT_BUS}),
    S.IN_TRANSIT_BUS: frozenset({S.CUSTOMS_SUBMITTED_EU}),
    S.CUSTOMS_SUBMITTED_EU: frozenset({S.CUSTOMS_INSPECTION_EU, S.CUSTOMS_HELD_EU, S.CUSTOMS_CLEARED_EU}),
    S.CUSTOMS_INSPECTION_EU: frozenset({S.CUSTOMS_HELD_EU, S.CUSTOMS_CLEARED_EU}),
    S.CUSTOMS_HELD_EU: frozenset({S.CUSTOMS_INSPECTION_EU, S.CUSTOMS_CLEARED_EU}),
    S.CUSTOMS_CLEARED_EU: frozenset({S.CUSTOMS_SUBMITTED_MA}),
    S.CUSTOMS_SUBMITTED_MA: frozenset(
        {S.CUSTOMS_INSPECTION_MA, S.CUSTOMS_HELD_MA, S.DUTY_PAYMENT_PENDING, S.CUSTOMS_CLEARED_MA}
    ),
    S.CUSTOMS_INSPECTION_MA: frozenset({S.CUSTOMS_HELD_MA, S.DUTY_PAYMENT_PENDING, S.CUSTOMS_CLEARED_MA}),
    S.CUSTOMS_HELD_MA: frozenset({S.CUSTOMS_INSPECTION_MA, S.DUTY_PAYMENT_PENDING, S.CUSTOMS_CLEARED_MA}),
    S.DUTY_PAYMENT_PENDING: frozenset({S.CUSTOMS_INSPECTION_MA, S.CUSTOMS_CLEARED_MA}),
    S.CUSTOMS_CLEARED_MA: frozenset({S.OUT_FOR_DELIVERY}),
    S.OUT_FOR_DELIVERY: frozenset({S.DELIVERY_ATTEMPTED, S.DELIVERED}),
    S.DELIVERY_ATTEMPTED: frozenset({S.OUT_FOR_DELIVERY, S.DELIVERY_ATTEMPTED}),
    S.DELIVERED: frozenset(),
    S.CANCELLED: frozenset(),
    S.LOST: frozenset(),
    S.DAMAGED: frozenset(),
}


def parse_status(value: Any) -> ParcelStatus:
    if isinstance(value, ParcelStatus):
        return value
    if isinstance(value, str):
        try:
            return ParcelStatus(value.strip().upper())
        except ValueError:
            pass
    raise UnrecognizedStatus(value)


def facts_for(status: ParcelStatus | str) -> StatusFacts:
    return STATUS_TABLE[parse_status(status)]


class ParcelStateMachine:
    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or get_engine_config()

    @property
    def max_delivery_attempts(self) -> int:
        return self.config.max_delivery_attempts

    def allowed_transitions(self, status: ParcelStatus | str, attempts: int = 0) -> frozenset[ParcelStatus]:
        status = parse_status(status)
        facts = STATUS_TABLE[status]
        if facts.is_terminal:
            return frozenset()
        allowed = FORWARD_TRANSITIONS[status] | EXCEPTION_BRANCHES
        if attempts >= self.max_delivery_attempts:
            allowed = allowed - {S.DELIVERY_ATTEMPTED}
        return allowed

    def can_transition(self, current: ParcelStatus | str, target: ParcelStatus | str, attempts: int = 0) -> bool:
        try:
            self.validate_transition(current, target, attempts)
        except IllegalTransition:
            return False
        return True

    def validate_transition(self, current: ParcelStatus | str, target: ParcelStatus | str, attempts: int = 0) -> None:
        """Raise unless ``current -> target`` is legal.

        ``attempts`` is the number of DELIVERY_ATTEMPTED events already recorded.
        """
        current = parse_status(current)
        target = parse_status(target)
        if target not in FORWARD_TRANSITIONS[current] and not (
            target in EXCEPTION_BRANCHES and not STATUS_TABLE[current].is_terminal
        ):
            raise IllegalTransition(current, target)
        if target == S.DELIVERY_ATTEMPTED and attempts >= self.max_delivery_attempts:
            raise DeliveryAttemptsExceeded(attempts, self.max_delivery_attempts)

    def progress_percentage(self, status: ParcelStatus | str, previous: int = 0) -> int:
        facts = facts_for(status)
        if facts.progress is None:
            return previous
        return max(facts.progress, previous)

    def derive_view(self, raw_status: Any, previous_progress: int = 0, delayed: bool = False) -> StatusView:
        try:
            status = parse_status(raw_status)
        except UnrecognizedStatus as exc:
            logger.warning("parcel_status.unrecognized", status=str(raw_status), previous_progress=previous_progress)
            return StatusView(
                status=None,
                raw_status=str(raw_status),
                recognized=False,
                label=PROCESSING_LABEL,
                progress=previous_progress,
                contact_enabled=False,
                required_action=RequiredAction.NONE,
                tone=StatusTone.INFO,
                customs_stage=None,
                is_terminal=False,
                warnings=[exc.message],
            )

        facts = STATUS_TABLE[status]
        return StatusView(
            status=status,
            raw_status=status.value,
            recognized=True,
            label=facts.label,
            progress=self.progress_percentage(status, previous_progress),
            contact_enabled=is_contact_enabled(status, delayed),
            required_action=facts.required_action,
            tone=facts.tone,
            customs_stage=facts.customs_stage,
            is_terminal=facts.is_terminal,
        )


def is_contact_enabled(status: ParcelStatus | str, delayed: bool = False) -> bool:
    facts = facts_for(status)
    if facts.contact_enabled:
        return True
    return delayed and not facts.is_terminal


def is_delayed(status: ParcelStatus | str, estimated_delivery: datetime | None, now: datetime | None = None) -> bool:
    if estimated_delivery is None or facts_for(status).is_terminal:
        return False
    now = now or datetime.now(timezone.utc)
    if estimated_delivery.tzinfo is None:
        estimated_delivery = estimated_delivery.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now > estimated_delivery


def required_action(status: ParcelStatus | str) -> RequiredAction:
    return facts_for(status).required_action


def next_checkpoint(status: ParcelStatus | str, bus_number: str | None = None) -> str | None:
    status = parse_status(status)
    if STATUS_TABLE[status].is_terminal:
        return None
    if status == S.OUT_FOR_DELIVERY:
        return "Delivering to your address"
    if status == S.DUTY_PAYMENT_PENDING:
        return "Awaiting duty payment"
    if status in (S.CUSTOMS_SUBMITTED_MA, S.CUSTOMS_INSPECTION_MA):
        return "Clearing Morocco customs"
    if status == S.IN_TRANSIT_BUS:
        return f"On Bus #{bus_number}" if bus_number else "En route to destination"
    return "Processing at facility"


def progress_percentage(status: ParcelStatus | str, previous: int = 0) -> int:
    return ParcelStateMachine().progress_percentage(status, previous)


def derive_status_view(raw_status: Any, previous_progress: int = 0, delayed: bool = False) -> StatusView:
    return ParcelStateMachine().derive_view(raw_status, previous_progress, delayed)
