"""
Pytest configuration and fixtures for the quote and rebate engine tests.
"""

import pytest
from unittest.mock import Mock, AsyncMock
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.database import Base
from app.models.quote_setting import QuoteSetting, DEFAULT_QUOTE_SETTINGS
from app.models.rebate import CalculationInputs
from app.services.cache_service import CacheService
from app.services.circuit_breaker import CircuitBreaker
from app.services.quote_settings_service import (
    QuoteServiceSettings,
    QuoteSettingsService,
)
from app.services.rebate_calculator import RebateCalculator

# Load environment variables
load_dotenv()


@pytest.fixture
def calculator():
    return RebateCalculator()


@pytest.fixture
def make_inputs():
    """Build CalculationInputs with sensible defaults for a Sydney home."""
    def _make(**overrides):
        fields = {
            "postcode": "2000",
            "installation_year": 2025,
        }
        fields.update(overrides)
        return CalculationInputs(**fields)
    return _make


@pytest.fixture
def session_factory():
    """In-memory SQLite database shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def seeded_session_factory(session_factory):
    rows = {
        "base_price_per_kw": "1200",
        "federal_rebate_per_kw": "450",
        "battery_cost": "5000",
        "rebates_enabled": "true",
        "qld_rebate_enabled": "true",
        "qld_state_rebate": "1500",
        "default_price_per_kwh": "0.30",
    }
    with session_factory() as db:
        db.add_all([QuoteSetting(key=k, value=v) for k, v in rows.items()])
        db.commit()
    return session_factory


@pytest.fixture
def service_config():
    return QuoteServiceSettings(
        quote_settings_ttl_seconds=60,
        quote_settings_timeout_seconds=0.5,
        quote_settings_failure_threshold=2,
        quote_settings_breaker_timeout_seconds=60
    )


@pytest.fixture
def make_settings_service(service_config):
    """Settings service with its own cache and breaker so tests stay isolated."""
    def _make(store):
        return QuoteSettingsService(
            store,
            cache=CacheService(service_config.get_ttl()),
            breaker=CircuitBreaker(
                "quote_settings_test",
                failure_threshold=service_config.quote_settings_failure_threshold,
                timeout_seconds=service_config.quote_settings_breaker_timeout_seconds,
                success_threshold=1
            ),
            config=service_config
        )
    return _make


@pytest.fixture
def mock_settings_service():
    """Settings service that always answers with the default record."""
    mock_service = Mock()
    mock_service.get_quote_settings = AsyncMock(return_value=DEFAULT_QUOTE_SETTINGS)
    return mock_service
