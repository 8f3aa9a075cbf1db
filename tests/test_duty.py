from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from parcel_engine.core.errors import DutyCategoryNotFound, InvalidDeclaredValue
from parcel_engine.models.duty_rates import MOROCCO_DUTY_RATES, DutyCategory, DutyRateTable
from parcel_engine.services.duty import ESTIMATE_DISCLAIMER, assess_duty, estimate_duty, get_duty_category


def test_electronics_example(eur_duty_config):
    electronics = get_duty_category("electronics")
    result = assess_duty(250, electronics, config=eur_duty_config)
    assert result.duty_free is False
    assert result.dutiable_value == Decimal("100")
    assert result.duty_amount == Decimal("2.5")
    assert result.vat_amount == Decimal("20")
    assert result.total_due == Decimal("22.5") + eur_duty_config.processing_fee


def test_default_config_converts_to_mad(config):
    result = assess_duty(250, get_duty_category("electronics"), config=config)
    assert result.currency == "MAD"
    assert result.dutiable_value_local == Decimal("1080")
    assert result.duty_amount == Decimal("27")
    assert result.vat_amount == Decimal("216")
    assert result.processing_fee == Decimal("50")
    assert result.total_due == Decimal("293")
    assert result.rounded()["total_due_eur"] == Decimal("27.13")


def test_threshold_value_is_duty_free(config):
    result = assess_duty(150, get_duty_category("jewelry"), config=config)
    assert result.duty_free is True
    assert result.total_due == 0
    assert result.processing_fee == 0
    assert result.dutiable_value == 0


def test_just_above_threshold_uses_excess_only(config):
    result = assess_duty(150.01, get_duty_category("jewelry"), config=config)
    assert result.duty_free is False
    assert result.dutiable_value == Decimal("0.01")


def test_zero_value_is_duty_free(config):
    assert assess_duty(0, get_duty_category("books"), config=config).duty_free is True


@pytest.mark.parametrize("value", [-1, float("nan"), "lots"])
def test_invalid_declared_value(value, config):
    with pytest.raises(InvalidDeclaredValue):
        assess_duty(value, get_duty_category("books"), config=config)


def test_assessment_declares_table_version_and_disclaimer(config):
    result = assess_duty(400, get_duty_category("clothing"), config=config)
    assert result.table_version == MOROCCO_DUTY_RATES.version
    assert result.disclaimer == ESTIMATE_DISCLAIMER


def test_unknown_category_raises():
    with pytest.raises(DutyCategoryNotFound) as exc_info:
        get_duty_category("spaceships")
    assert exc_info.value.details["table_version"] == MOROCCO_DUTY_RATES.version


def test_category_lookup_is_case_insensitive():
    assert get_duty_category(" Toys ").key == "toys"


def test_unknown_category_falls_back_to_other(config):
    with capture_logs() as logs:
        result = estimate_duty(300, "spaceships", config=config)
    expected = assess_duty(300, get_duty_category("other"), config=config)
    assert result.category_fallback is True
    assert result.category == "other"
    assert result.total_due == expected.total_due
    assert result.warnings
    assert any(entry["event"] == "duty.category_fallback" for entry in logs)


def test_known_category_has_no_fallback_flag(config):
    result = estimate_duty(300, "food", config=config)
    assert result.category_fallback is False
    assert result.warnings == []


def test_all_rates_within_bounds():
    for category in MOROCCO_DUTY_RATES.categories.values():
        assert 0 <= category.duty_rate <= 1
        assert category.vat_rate == Decimal("0.20")


def test_rate_outside_bounds_rejected():
    with pytest.raises(ValueError):
        DutyCategory("bad", "Bad", Decimal("1.5"))


def test_custom_table_version_is_reported(config):
    table = DutyRateTable(
        version="MA-test",
        categories={"other": DutyCategory("other", "Other", Decimal("0.5"))},
    )
    result = estimate_duty(200, "unknown", config=config, table=table)
    assert result.table_version == "MA-test"
    assert result.category_fallback is True
