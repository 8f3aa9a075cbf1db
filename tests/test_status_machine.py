from datetime import datetime, timedelta, timezone

import pytest
from structlog.testing import capture_logs

from parcel_engine.core.config import EngineConfig
from parcel_engine.core.errors import DeliveryAttemptsExceeded, IllegalTransition, UnrecognizedStatus
from parcel_engine.models.enums import CustomsStage, ParcelStatus, RequiredAction, StatusTone
from parcel_engine.services.status_machine import (
    FORWARD_TRANSITIONS,
    STATUS_TABLE,
    ParcelStateMachine,
    derive_status_view,
    is_contact_enabled,
    is_delayed,
    next_checkpoint,
    parse_status,
    progress_percentage,
    required_action,
)

S = ParcelStatus
TERMINAL = {S.DELIVERED, S.CANCELLED, S.LOST, S.DAMAGED}
HOLDS = {S.CUSTOMS_HELD_EU, S.CUSTOMS_HELD_MA, S.DUTY_PAYMENT_PENDING}


def test_every_status_has_facts_and_transitions():
    assert set(STATUS_TABLE) == set(ParcelStatus)
    assert set(FORWARD_TRANSITIONS) == set(ParcelStatus)


def test_non_terminal_statuses_can_move_forward():
    machine = ParcelStateMachine()
    for status in ParcelStatus:
        allowed = machine.allowed_transitions(status)
        if status in TERMINAL:
            assert allowed == frozenset(), status
        else:
            assert allowed - {S.CANCELLED, S.LOST, S.DAMAGED}, status


def test_terminal_set_matches_table():
    assert {status for status, facts in STATUS_TABLE.items() if facts.is_terminal} == TERMINAL


def test_happy_path_is_legal():
    path = [
        S.CREATED,
        S.CONFIRMED,
        S.PICKED_UP,
        S.IN_TRANSIT_BUS,
        S.CUSTOMS_SUBMITTED_EU,
        S.CUSTOMS_CLEARED_EU,
        S.CUSTOMS_SUBMITTED_MA,
        S.CUSTOMS_CLEARED_MA,
        S.OUT_FOR_DELIVERY,
        S.DELIVERED,
    ]
    machine = ParcelStateMachine()
    for current, target in zip(path, path[1:]):
        machine.validate_transition(current, target)


def test_progress_is_monotonic_along_the_path():
    path = [
        S.CREATED,
        S.CONFIRMED,
        S.PICKED_UP,
        S.IN_TRANSIT_BUS,
        S.CUSTOMS_SUBMITTED_EU,
        S.CUSTOMS_INSPECTION_EU,
        S.CUSTOMS_CLEARED_EU,
        S.CUSTOMS_SUBMITTED_MA,
        S.CUSTOMS_CLEARED_MA,
        S.OUT_FOR_DELIVERY,
        S.DELIVERED,
    ]
    values = [progress_percentage(status) for status in path]
    assert values == sorted(values)
    assert values[-1] == 100


def test_skipping_stages_is_illegal():
    machine = ParcelStateMachine()
    with pytest.raises(IllegalTransition):
        machine.validate_transition(S.PICKED_UP, S.CUSTOMS_SUBMITTED_MA)
    assert machine.can_transition(S.CREATED, S.DELIVERED) is False


def test_terminal_statuses_cannot_branch():
    machine = ParcelStateMachine()
    assert machine.can_transition(S.DELIVERED, S.LOST) is False
    assert machine.can_transition(S.CANCELLED, S.CONFIRMED) is False


def test_exception_branches_from_any_non_terminal_status():
    machine = ParcelStateMachine()
    for status in ParcelStatus:
        if status in TERMINAL:
            continue
        for branch in (S.CANCELLED, S.LOST, S.DAMAGED):
            assert machine.can_transition(status, branch), (status, branch)


@pytest.mark.parametrize("hold", sorted(HOLDS, key=lambda s: s.value))
def test_hold_reports_parent_stage_progress(hold):
    facts = STATUS_TABLE[hold]
    parent = S.CUSTOMS_SUBMITTED_EU if facts.customs_stage == CustomsStage.EU_EXIT else S.CUSTOMS_SUBMITTED_MA
    assert facts.is_hold is True
    assert facts.stage_index == STATUS_TABLE[parent].stage_index
    assert progress_percentage(hold) == progress_percentage(parent)


def test_entering_hold_never_lowers_progress():
    machine = ParcelStateMachine()
    for current, targets in FORWARD_TRANSITIONS.items():
        for target in targets & HOLDS:
            before = machine.progress_percentage(current)
            assert machine.progress_percentage(target, previous=before) >= before


def test_exception_status_keeps_previous_progress():
    assert progress_percentage(S.LOST, previous=70) == 70
    assert progress_percentage(S.CANCELLED) == 0


def test_delivery_attempt_is_reenterable_and_retries_out_for_delivery():
    machine = ParcelStateMachine()
    machine.validate_transition(S.OUT_FOR_DELIVERY, S.DELIVERY_ATTEMPTED)
    machine.validate_transition(S.DELIVERY_ATTEMPTED, S.DELIVERY_ATTEMPTED, attempts=1)
    machine.validate_transition(S.DELIVERY_ATTEMPTED, S.OUT_FOR_DELIVERY, attempts=2)
    assert machine.can_transition(S.DELIVERY_ATTEMPTED, S.DELIVERED) is False


def test_delivery_attempts_are_bounded():
    machine = ParcelStateMachine(EngineConfig(max_delivery_attempts=2))
    with pytest.raises(DeliveryAttemptsExceeded):
        machine.validate_transition(S.OUT_FOR_DELIVERY, S.DELIVERY_ATTEMPTED, attempts=2)
    allowed = machine.allowed_transitions(S.DELIVERY_ATTEMPTED, attempts=2)
    assert S.DELIVERY_ATTEMPTED not in allowed
    assert S.OUT_FOR_DELIVERY in allowed


def test_contact_enablement():
    assert is_contact_enabled(S.OUT_FOR_DELIVERY) is True
    assert is_contact_enabled(S.DELIVERY_ATTEMPTED) is True
    assert is_contact_enabled(S.IN_TRANSIT_BUS) is False
    assert is_contact_enabled(S.CUSTOMS_HELD_MA) is False
    assert is_contact_enabled(S.IN_TRANSIT_BUS, delayed=True) is True
    assert is_contact_enabled(S.DELIVERED, delayed=True) is False


def test_delay_detection():
    eta = datetime(2025, 3, 1, 12, tzinfo=timezone.utc)
    assert is_delayed(S.IN_TRANSIT_BUS, eta, now=eta + timedelta(hours=1)) is True
    assert is_delayed(S.IN_TRANSIT_BUS, eta, now=eta - timedelta(hours=1)) is False
    assert is_delayed(S.DELIVERED, eta, now=eta + timedelta(days=3)) is False
    assert is_delayed(S.IN_TRANSIT_BUS, None) is False


def test_required_actions():
    assert required_action(S.CUSTOMS_HELD_EU) == RequiredAction.AWAITING_DOCUMENTS
    assert required_action(S.CUSTOMS_HELD_MA) == RequiredAction.AWAITING_DOCUMENTS
    assert required_action(S.DUTY_PAYMENT_PENDING) == RequiredAction.AWAITING_DUTY_PAYMENT
    others = set(ParcelStatus) - HOLDS
    assert all(required_action(status) == RequiredAction.NONE for status in others)


def test_parse_status_accepts_raw_strings():
    assert parse_status("out_for_delivery") == S.OUT_FOR_DELIVERY
    with pytest.raises(UnrecognizedStatus):
        parse_status("RETURNED_TO_SENDER")
    with pytest.raises(UnrecognizedStatus):
        parse_status(None)


def test_unrecognized_status_degrades_to_processing():
    with capture_logs() as logs:
        view = derive_status_view("TELEPORTED", previous_progress=40)
    assert view.recognized is False
    assert view.status is None
    assert view.label == "Processing"
    assert view.progress == 40
    assert view.contact_enabled is False
    assert view.warnings
    assert any(entry["event"] == "parcel_status.unrecognized" for entry in logs)


def test_status_view_for_duty_pending():
    view = derive_status_view("DUTY_PAYMENT_PENDING", previous_progress=70)
    assert view.recognized is True
    assert view.required_action == RequiredAction.AWAITING_DUTY_PAYMENT
    assert view.customs_stage == CustomsStage.MA_ENTRY
    assert view.tone == StatusTone.WARNING
    assert view.progress == 70


def test_derivation_is_idempotent():
    assert derive_status_view("CUSTOMS_HELD_EU", 50) == derive_status_view("CUSTOMS_HELD_EU", 50)


def test_next_checkpoint_hints():
    assert next_checkpoint(S.DELIVERED) is None
    assert next_checkpoint(S.OUT_FOR_DELIVERY) == "Delivering to your address"
    assert next_checkpoint(S.DUTY_PAYMENT_PENDING) == "Awaiting duty payment"
    assert next_checkpoint(S.CUSTOMS_INSPECTION_MA) == "Clearing Morocco customs"
    assert next_checkpoint(S.IN_TRANSIT_BUS, bus_number="42") == "On Bus #42"
    assert next_checkpoint(S.IN_TRANSIT_BUS) == "En route to destination"
    assert next_checkpoint(S.PICKED_UP) == "Processing at facility"
