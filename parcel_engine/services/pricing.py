from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from parcel_engine.core.config import EngineConfig, get_engine_config
from parcel_engine.core.errors import InvalidPriceParameters, InvalidWeight
from parcel_engine.models.enums import RECOGNIZED_CURRENCIES
from parcel_engine.schemas.trip import TripPriceParameters
from parcel_engine.services.units import format_dual_currency, format_money, round_money, to_decimal

DEFAULT_ESTIMATE_WEIGHTS = (2, 5, 10, 20)
DEFAULT_ESTIMATE_WEIGHT = Decimal("5")


@dataclass(frozen=True)
class ParcelChargeBreakdown:
    weight_kg: Decimal
    base_component: Decimal
    weight_component: Decimal
    insurance_fee: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str

    def rounded(self) -> dict[str, Decimal]:
        return {
            "base_component": round_money(self.base_component),
            "weight_component": round_money(self.weight_component),
            "insurance_fee": round_money(self.insurance_fee),
            "subtotal": round_money(self.subtotal),
            "tax": round_money(self.tax),
            "total": round_money(self.total),
        }

    def as_display(self, fx_rate: Decimal | None = None) -> dict[str, str]:
        display = {key: str(value) for key, value in self.rounded().items()}
        display["currency"] = self.currency
        display["formatted_total"] = format_money(self.total, self.currency)
        if fx_rate is not None and self.currency == "EUR":
            display["dual_currency"] = format_dual_currency(self.total, fx_rate)
        return display


@dataclass(frozen=True)
class PriceRange:
    estimates: list[ParcelChargeBreakdown]
    minimum: Decimal
    maximum: Decimal
    default_estimate: ParcelChargeBreakdown
    display_text: str


def validate_price_parameters(params: TripPriceParameters) -> None:
    problems = []
    for name in ("base_price", "price_per_kg", "minimum_price"):
        value = getattr(params, name)
        if not value.is_finite():
            problems.append(f"{name} is not a finite number")
        elif value < 0:
            problems.append(f"{name} must be >= 0 (got {value})")
    if params.currency not in RECOGNIZED_CURRENCIES:
        problems.append(f"currency {params.currency!r} is not recognized")
    if problems:
        raise InvalidPriceParameters(problems)


def compute_charge(weight_kg, params: TripPriceParameters, config: EngineConfig | None = None) -> ParcelChargeBreakdown:
    config = config or get_engine_config()
    try:
        weight = to_decimal(weight_kg)
    except (TypeError, ValueError) as exc:
        raise InvalidWeight(weight_kg) from exc
    if not weight.is_finite() or weight <= 0:
        raise InvalidWeight(weight_kg)
    validate_price_parameters(params)

    base_component = max(params.base_price, params.minimum_price)
    weight_component = weight * params.price_per_kg
    insurance_fee = config.insurance_fee
    subtotal = base_component + weight_component + insurance_fee
    tax = subtotal * config.tax_rate
    total = subtotal + tax

    return ParcelChargeBreakdown(
        weight_kg=weight,
        base_component=base_component,
        weight_component=weight_component,
        insurance_fee=insurance_fee,
        subtotal=subtotal,
        tax=tax,
        total=total,
        currency=params.currency,
    )


def estimate_range(
    params: TripPriceParameters,
    weights: Iterable = DEFAULT_ESTIMATE_WEIGHTS,
    config: EngineConfig | None = None,
) -> PriceRange:
    estimates = [compute_charge(weight, params, config) for weight in weights]
    if not estimates:
        raise InvalidWeight(None, message="At least one weight is required for a price range")

    totals = [estimate.total for estimate in estimates]
    minimum, maximum = min(totals), max(totals)
    default = next((e for e in estimates if e.weight_kg == DEFAULT_ESTIMATE_WEIGHT), estimates[0])

    if len(estimates) == 1:
        display_text = format_money(minimum, params.currency)
    else:
        display_text = f"{format_money(minimum, params.currency)} - {format_money(maximum, params.currency)}"

    return PriceRange(
        estimates=estimates,
        minimum=minimum,
        maximum=maximum,
        default_estimate=default,
        display_text=display_text,
    )
