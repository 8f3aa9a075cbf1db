from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal

from parcel_engine.core.config import EngineConfig, get_engine_config
from parcel_engine.core.errors import DutyCategoryNotFound, InvalidDeclaredValue
from parcel_engine.core.logging import get_logger
from parcel_engine.models.duty_rates import FALLBACK_CATEGORY, MOROCCO_DUTY_RATES, DutyCategory, DutyRateTable
from parcel_engine.services.units import round_money, to_decimal

logger = get_logger("duty")

ESTIMATE_DISCLAIMER = (
    "This is an estimate only. The final duty is assessed by Morocco customs and may differ."
)
ZERO = Decimal("0")


@dataclass(frozen=True)
class DutyAssessment:
    declared_value: Decimal
    dutiable_value: Decimal
    dutiable_value_local: Decimal
    duty_amount: Decimal
    vat_amount: Decimal
    processing_fee: Decimal
    total_due: Decimal
    total_due_eur: Decimal
    currency: str
    duty_free: bool
    category: str
    table_version: str
    category_fallback: bool = False
    disclaimer: str = ESTIMATE_DISCLAIMER
    warnings: list[str] = field(default_factory=list)

    def rounded(self) -> dict[str, Decimal]:
        return {
            "dutiable_value": round_money(self.dutiable_value),
            "duty_amount": round_money(self.duty_amount),
            "vat_amount": round_money(self.vat_amount),
            "processing_fee": round_money(self.processing_fee),
            "total_due": round_money(self.total_due),
            "total_due_eur": round_money(self.total_due_eur),
        }


def get_duty_category(key: str | None, table: DutyRateTable = MOROCCO_DUTY_RATES) -> DutyCategory:
    normalized = key.strip().lower() if isinstance(key, str) else key
    category = table.categories.get(normalized)
    if category is None:
        raise DutyCategoryNotFound(key, table.version)
    return category


def assess_duty(
    declared_value_eur,
    category: DutyCategory,
    config: EngineConfig | None = None,
    table_version: str = MOROCCO_DUTY_RATES.version,
) -> DutyAssessment:
    """Advisory duty estimate; must never be used to release a payment."""
    config = config or get_engine_config()
    try:
        declared = to_decimal(declared_value_eur)
    except (TypeError, ValueError) as exc:
        raise InvalidDeclaredValue(declared_value_eur) from exc
    if not declared.is_finite() or declared < 0:
        raise InvalidDeclaredValue(declared_value_eur)

    # Threshold applies to the whole declared value; only the excess is dutiable.
    if declared <= config.de_minimis_eur:
        return DutyAssessment(
            declared_value=declared,
            dutiable_value=ZERO,
            dutiable_value_local=ZERO,
            duty_amount=ZERO,
            vat_amount=ZERO,
            processing_fee=ZERO,
            total_due=ZERO,
            total_due_eur=ZERO,
            currency=config.duty_currency,
            duty_free=True,
            category=category.key,
            table_version=table_version,
        )

    dutiable = declared - config.de_minimis_eur
    dutiable_local = dutiable * config.duty_fx_rate
    duty_amount = dutiable_local * category.duty_rate
    vat_amount = dutiable_local * category.vat_rate
    processing_fee = config.processing_fee
    total_due = duty_amount + vat_amount + processing_fee

    return DutyAssessment(
        declared_value=declared,
        dutiable_value=dutiable,
        dutiable_value_local=dutiable_local,
        duty_amount=duty_amount,
        vat_amount=vat_amount,
        processing_fee=processing_fee,
        total_due=total_due,
        total_due_eur=total_due / config.duty_fx_rate,
        currency=config.duty_currency,
        duty_free=False,
        category=category.key,
        table_version=table_version,
    )


def estimate_duty(
    declared_value_eur,
    category_key: str | None,
    config: EngineConfig | None = None,
    table: DutyRateTable = MOROCCO_DUTY_RATES,
) -> DutyAssessment:
    """Resolve ``category_key`` and assess, falling back to the ``other`` rate.

    A missing key takes the same flagged fallback as an unknown one.
    """
    warnings: list[str] = []
    fallback = False
    try:
        category = get_duty_category(category_key, table)
    except DutyCategoryNotFound as exc:
        logger.warning(
            "duty.category_fallback",
            category=str(category_key),
            fallback=FALLBACK_CATEGORY,
            table_version=table.version,
        )
        warnings.append(f"{exc.message}; estimated with the '{FALLBACK_CATEGORY}' rate.")
        category = table.categories[FALLBACK_CATEGORY]
        fallback = True

    assessment = assess_duty(declared_value_eur, category, config=config, table_version=table.version)
    if not fallback:
        return assessment
    return replace(assessment, category_fallback=True, warnings=warnings)
