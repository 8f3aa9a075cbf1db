"""
Error taxonomy for the lifecycle and cost engine.

Calculators raise these; the booking and tracking facades catch them and
turn them into explicit results with field-scoped messages.
"""

from __future__ import annotations

from typing import Any


def _label(value: Any) -> str:
    return str(getattr(value, "value", value))


class EngineError(Exception):
    """Base engine error."""

    def __init__(
        self,
        message: str,
        error_code: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.field = field
        self.details = details or {}
        super().__init__(message)


class InvalidWeight(EngineError, ValueError):
    """Weight is zero, negative or not a finite number."""

    def __init__(self, weight: Any, message: str | None = None) -> None:
        super().__init__(
            message=message or "Weight must be a finite number greater than 0 kg",
            error_code="ERR_INVALID_WEIGHT",
            field="weight_kg",
            details={"weight_kg": str(weight)},
        )


class WeightExceedsTiers(InvalidWeight):
    def __init__(self, weight: Any, max_weight: Any) -> None:
        super().__init__(weight, message=f"Weight exceeds the largest packaging tier ({max_weight} kg)")
        self.error_code = "ERR_WEIGHT_EXCEEDS_TIERS"
        self.details["max_weight_kg"] = str(max_weight)


class InvalidPriceParameters(EngineError, ValueError):
    """Trip price parameters failed integrity checks."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__(
            message="Pricing unavailable: " + "; ".join(problems),
            error_code="ERR_INVALID_PRICE_PARAMETERS",
            field="price",
            details={"problems": problems},
        )
        self.problems = problems


class InvalidDeclaredValue(EngineError, ValueError):
    def __init__(self, value: Any) -> None:
        super().__init__(
            message="Declared value must be a finite number of at least 0 EUR",
            error_code="ERR_INVALID_DECLARED_VALUE",
            field="declared_value",
            details={"declared_value": str(value)},
        )


class UnrecognizedStatus(EngineError, ValueError):
    def __init__(self, value: Any) -> None:
        super().__init__(
            message=f"Unrecognized parcel status: {value!r}",
            error_code="ERR_UNRECOGNIZED_STATUS",
            field="status",
            details={"status": _label(value)},
        )
        self.value = value


class DutyCategoryNotFound(EngineError, KeyError):
    def __init__(self, key: Any, table_version: str) -> None:
        super().__init__(
            message=f"Unknown duty category {key!r} in rate table {table_version}",
            error_code="ERR_DUTY_CATEGORY_NOT_FOUND",
            field="category",
            details={"category": str(key), "table_version": table_version},
        )
        self.key = key

    def __str__(self) -> str:
        return self.message


class IllegalTransition(EngineError):
    def __init__(self, current: Any, target: Any, message: str | None = None) -> None:
        super().__init__(
            message=message or f"Transition {_label(current)} -> {_label(target)} is not allowed",
            error_code="ERR_ILLEGAL_TRANSITION",
            field="status",
            details={"current": _label(current), "target": _label(target)},
        )


class DeliveryAttemptsExceeded(IllegalTransition):
    def __init__(self, attempts: int, max_attempts: int) -> None:
        super().__init__(
            "DELIVERY_ATTEMPTED",
            "DELIVERY_ATTEMPTED",
            message=f"Delivery already attempted {attempts} times (maximum {max_attempts})",
        )
        self.error_code = "ERR_DELIVERY_ATTEMPTS_EXCEEDED"
        self.details.update({"attempts": attempts, "max_attempts": max_attempts})
