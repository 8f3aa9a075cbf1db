from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Parcel Lifecycle Engine"
    environment: str = "local"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    insurance_fee: Decimal = Field(default=Decimal("3.50"), alias="INSURANCE_FEE")
    tax_rate: Decimal = Field(default=Decimal("0.19"), alias="TAX_RATE")
    display_fx_rate: Decimal = Field(default=Decimal("10.5"), alias="DISPLAY_FX_RATE")

    duty_fx_rate: Decimal = Field(default=Decimal("10.8"), alias="DUTY_FX_RATE")
    duty_currency: str = Field(default="MAD", alias="DUTY_CURRENCY")
    processing_fee: Decimal = Field(default=Decimal("50"), alias="PROCESSING_FEE")
    de_minimis_eur: Decimal = Field(default=Decimal("150"), alias="DE_MINIMIS_EUR")

    max_delivery_attempts: int = Field(default=3, alias="MAX_DELIVERY_ATTEMPTS")


class EngineConfig(BaseModel):
    """Parameters injected into the calculators.

    ``fx_rate`` is the display-only EUR -> MAD hint rate. ``duty_fx_rate`` is the
    fixed rate used to express the dutiable value in the destination currency.
    """

    model_config = ConfigDict(frozen=True)

    insurance_fee: Decimal = Field(default=Decimal("3.50"), ge=0)
    tax_rate: Decimal = Field(default=Decimal("0.19"), ge=0)
    fx_rate: Decimal = Field(default=Decimal("10.5"), gt=0)
    processing_fee: Decimal = Field(default=Decimal("50"), ge=0)
    duty_fx_rate: Decimal = Field(default=Decimal("10.8"), gt=0)
    duty_currency: str = "MAD"
    de_minimis_eur: Decimal = Field(default=Decimal("150"), ge=0)
    max_delivery_attempts: int = Field(default=3, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        return cls(
            insurance_fee=settings.insurance_fee,
            tax_rate=settings.tax_rate,
            fx_rate=settings.display_fx_rate,
            processing_fee=settings.processing_fee,
            duty_fx_rate=settings.duty_fx_rate,
            duty_currency=settings.duty_currency.upper(),
            de_minimis_eur=settings.de_minimis_eur,
            max_delivery_attempts=settings.max_delivery_attempts,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


@lru_cache(maxsize=1)
def get_engine_config() -> EngineConfig:
    return EngineConfig.from_settings(get_settings())
