from decimal import Decimal

import pytest

from parcel_engine.core.config import EngineConfig
from parcel_engine.core.logging import configure_logging
from parcel_engine.schemas.trip import TripAggregate, TripPriceParameters

configure_logging("DEBUG")


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def eur_duty_config():
    # Duty expressed in EUR so amounts can be checked without the MAD conversion.
    return EngineConfig(duty_fx_rate=Decimal("1"), duty_currency="EUR", processing_fee=Decimal("5"))


@pytest.fixture
def price_params():
    return TripPriceParameters(base_price=10, price_per_kg=2.5, minimum_price=15, currency="EUR")


@pytest.fixture
def trip(price_params):
    return TripAggregate(trip_id="t1", price=price_params, remaining_capacity_kg=50, total_capacity_kg=200)
