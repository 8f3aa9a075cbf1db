from decimal import Decimal

import pytest

from parcel_engine.core.config import EngineConfig
from parcel_engine.core.errors import InvalidPriceParameters, InvalidWeight
from parcel_engine.schemas.trip import TripPriceParameters
from parcel_engine.services.pricing import compute_charge, estimate_range
from parcel_engine.services.units import format_dual_currency


def test_charge_breakdown_example(price_params, config):
    charge = compute_charge(10, price_params, config)
    assert charge.base_component == Decimal("15")
    assert charge.weight_component == Decimal("25")
    assert charge.insurance_fee == Decimal("3.5")
    assert charge.subtotal == Decimal("43.5")
    assert charge.tax == Decimal("8.265")
    assert charge.total == Decimal("51.765")
    assert charge.currency == "EUR"


def test_totals_are_not_rounded_until_display(price_params, config):
    charge = compute_charge(10, price_params, config)
    assert charge.rounded()["tax"] == Decimal("8.27")
    assert charge.rounded()["total"] == Decimal("51.77")
    assert charge.total == Decimal("51.765")


def test_base_price_used_when_above_minimum(config):
    params = TripPriceParameters(base_price=20, price_per_kg=1, minimum_price=15, currency="EUR")
    assert compute_charge(1, params, config).base_component == Decimal("20")


def test_repeated_calls_are_identical(price_params, config):
    assert compute_charge(7.3, price_params, config) == compute_charge(7.3, price_params, config)


def test_total_never_decreases_with_weight(price_params, config):
    weights = [Decimal("0.1") * i for i in range(1, 1001)]
    totals = [compute_charge(w, price_params, config).total for w in weights]
    assert totals == sorted(totals)


@pytest.mark.parametrize("weight", [0, -1, float("nan"), float("inf"), "abc"])
def test_invalid_weight_rejected(weight, price_params, config):
    with pytest.raises(InvalidWeight) as exc_info:
        compute_charge(weight, price_params, config)
    assert exc_info.value.field == "weight_kg"


def test_negative_price_field_rejected(config):
    params = TripPriceParameters(base_price=-1, price_per_kg=2, minimum_price=0, currency="EUR")
    with pytest.raises(InvalidPriceParameters) as exc_info:
        compute_charge(5, params, config)
    assert any("base_price" in problem for problem in exc_info.value.problems)


def test_unknown_currency_rejected(config):
    params = TripPriceParameters(base_price=1, price_per_kg=2, minimum_price=0, currency="xyz")
    with pytest.raises(InvalidPriceParameters):
        compute_charge(5, params, config)


def test_currency_passes_through_without_conversion(config):
    params = TripPriceParameters(base_price=100, price_per_kg=10, minimum_price=0, currency="MAD")
    charge = compute_charge(2, params, config)
    assert charge.currency == "MAD"
    assert charge.subtotal == Decimal("123.5")


def test_injected_fees_and_tax(price_params):
    config = EngineConfig(insurance_fee=Decimal("0"), tax_rate=Decimal("0"))
    charge = compute_charge(10, price_params, config)
    assert charge.total == Decimal("40")


def test_dual_currency_is_display_only(price_params, config):
    charge = compute_charge(10, price_params, config)
    display = charge.as_display(fx_rate=config.fx_rate)
    assert display["dual_currency"] == "(≈ 543.53 MAD)"
    assert display["formatted_total"] == "€51.77"
    assert charge.total == Decimal("51.765")
    assert format_dual_currency(Decimal("10"), Decimal("10.5")) == "(≈ 105.00 MAD)"


def test_estimate_range_defaults(price_params, config):
    price_range = estimate_range(price_params, config=config)
    assert [e.weight_kg for e in price_range.estimates] == [2, 5, 10, 20]
    assert price_range.default_estimate.weight_kg == Decimal("5")
    assert price_range.minimum == price_range.estimates[0].total
    assert price_range.maximum == price_range.estimates[-1].total
    assert " - " in price_range.display_text


def test_estimate_range_single_weight(price_params, config):
    price_range = estimate_range(price_params, weights=[3], config=config)
    assert price_range.default_estimate.weight_kg == Decimal("3")
    assert price_range.display_text.startswith("€")
    assert " - " not in price_range.display_text
