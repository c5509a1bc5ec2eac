"""
Tests for live quote settings: parsing, the SQL store and fetch-with-fallback.
"""

import pytest
import time
from datetime import date
from unittest.mock import Mock
from sqlalchemy.exc import OperationalError
from app.models.quote_setting import QuoteSettings, DEFAULT_QUOTE_SETTINGS
from app.services.circuit_breaker import CircuitState
from app.services.quote_service import calculate_solar_quote
from app.services.quote_settings_service import QuoteSettingsStore


def failing_store(error=None):
    store = Mock(spec=QuoteSettingsStore)
    store.fetch_all.side_effect = error or OperationalError("SELECT", {}, Exception("connection refused"))
    return store


class TestSettingsParsing:
    """Test conversion of raw key/value rows."""

    def test_defaults(self):
        settings = QuoteSettings()
        assert settings.base_price_per_kw == 1100
        assert settings.federal_rebate_per_kw == 500
        assert settings.battery_cost == 4500
        assert settings.rebates_enabled is True
        assert settings.qld_rebate_enabled is True
        assert settings.qld_state_rebate == 1000
        assert settings.default_price_per_kwh == 0.28

    def test_numbers_and_booleans_parsed(self):
        settings = QuoteSettings.from_key_values({
            "base_price_per_kw": "1250.5",
            "rebates_enabled": "TRUE",
            "qld_rebate_enabled": "false",
        })
        assert settings.base_price_per_kw == 1250.5
        assert settings.rebates_enabled is True
        assert settings.qld_rebate_enabled is False

    @pytest.mark.parametrize("raw", ["yes", "1", "", "on"])
    def test_only_literal_true_enables(self, raw):
        settings = QuoteSettings.from_key_values({"rebates_enabled": raw})
        assert settings.rebates_enabled is False

    @pytest.mark.parametrize("raw", ["abc", "", "nan", "inf"])
    def test_bad_numbers_keep_defaults(self, raw):
        settings = QuoteSettings.from_key_values({"battery_cost": raw})
        assert settings.battery_cost == 4500

    def test_unknown_keys_ignored(self):
        settings = QuoteSettings.from_key_values([("retired_key", "1"), ("battery_cost", "5200")])
        assert settings.battery_cost == 5200
        assert not hasattr(settings, "retired_key")

    def test_qld_override_only_for_qld(self):
        settings = QuoteSettings(qld_state_rebate=1500, qld_rebate_enabled=False)
        assert settings.state_rebate_override("QLD") == 1500
        assert settings.state_rebate_override("SA") is None
        assert settings.state_rebates_enabled("QLD") is False
        assert settings.state_rebates_enabled("VIC") is True


class TestSettingsStore:
    """Test the SQL-backed store against SQLite."""

    def test_fetch_all(self, seeded_session_factory):
        raw = QuoteSettingsStore(seeded_session_factory).fetch_all()
        assert raw["base_price_per_kw"] == "1200"
        assert len(raw) == 7

    def test_update_existing_key(self, seeded_session_factory):
        store = QuoteSettingsStore(seeded_session_factory)
        assert store.update_setting("battery_cost", "6100") is True
        assert store.fetch_all()["battery_cost"] == "6100"

    def test_update_unknown_key(self, seeded_session_factory):
        store = QuoteSettingsStore(seeded_session_factory)
        assert store.update_setting("no_such_key", "1") is False
        assert "no_such_key" not in store.fetch_all()


class TestSettingsService:
    """Test caching, timeout and breaker fallback behaviour."""

    @pytest.mark.asyncio
    async def test_reads_live_values(self, seeded_session_factory, make_settings_service):
        service = make_settings_service(QuoteSettingsStore(seeded_session_factory))
        settings = await service.get_quote_settings()

        assert settings.base_price_per_kw == 1200
        assert settings.qld_state_rebate == 1500
        assert settings.default_price_per_kwh == 0.30

    @pytest.mark.asyncio
    async def test_empty_table_gives_defaults(self, session_factory, make_settings_service):
        service = make_settings_service(QuoteSettingsStore(session_factory))
        assert await service.get_quote_settings() == DEFAULT_QUOTE_SETTINGS
        assert service.cache.get_stats()["total_entries"] == 0

    @pytest.mark.asyncio
    async def test_store_error_falls_back_to_defaults(self, make_settings_service):
        service = make_settings_service(failing_store())
        assert await service.get_quote_settings() == DEFAULT_QUOTE_SETTINGS

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_defaults(self, make_settings_service):
        store = Mock(spec=QuoteSettingsStore)
        store.fetch_all.side_effect = lambda: time.sleep(1.0) or {"battery_cost": "1"}
        service = make_settings_service(store)

        settings = await service.get_quote_settings()

        assert settings == DEFAULT_QUOTE_SETTINGS
        assert service.breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_breaker_opens_after_repeated_failures(self, make_settings_service):
        store = failing_store()
        service = make_settings_service(store)

        for _ in range(3):
            assert await service.get_quote_settings() == DEFAULT_QUOTE_SETTINGS

        assert service.breaker.state == CircuitState.OPEN
        # Third call is refused by the breaker without touching the store
        assert store.fetch_all.call_count == 2

    @pytest.mark.asyncio
    async def test_second_read_served_from_cache(self, make_settings_service):
        store = Mock(spec=QuoteSettingsStore)
        store.fetch_all.return_value = {"battery_cost": "5000"}
        service = make_settings_service(store)

        first = await service.get_quote_settings()
        second = await service.get_quote_settings()

        assert first == second
        assert first.battery_cost == 5000
        assert store.fetch_all.call_count == 1

    @pytest.mark.asyncio
    async def test_update_clears_cache(self, seeded_session_factory, make_settings_service):
        service = make_settings_service(QuoteSettingsStore(seeded_session_factory))
        assert (await service.get_quote_settings()).battery_cost == 5000

        assert await service.update_setting("battery_cost", "5600") is True
        assert (await service.get_quote_settings()).battery_cost == 5600

    @pytest.mark.asyncio
    async def test_failed_update_keeps_cache(self, seeded_session_factory, make_settings_service):
        service = make_settings_service(QuoteSettingsStore(seeded_session_factory))
        await service.get_quote_settings()

        assert await service.update_setting("unknown", "1") is False
        assert service.cache.get_stats()["total_entries"] == 1


class TestCalculateSolarQuote:
    """Test the async entry point used by the web layer."""

    @pytest.mark.asyncio
    async def test_fetches_settings_once(self, mock_settings_service, make_inputs):
        quote = await calculate_solar_quote(
            make_inputs(), settings_service=mock_settings_service, today=date(2025, 3, 1)
        )

        mock_settings_service.get_quote_settings.assert_awaited_once()
        assert quote.system_size_kw == 6.6
        assert quote.final_price == pytest.approx(4464)

    @pytest.mark.asyncio
    async def test_live_settings_flow_into_quote(
        self, seeded_session_factory, make_settings_service, make_inputs
    ):
        service = make_settings_service(QuoteSettingsStore(seeded_session_factory))
        inputs = make_inputs(postcode="4000", battery_included=True, system_size_kw=10)

        quote = await calculate_solar_quote(inputs, settings_service=service, today=date(2025, 3, 1))

        assert quote.total_cost == pytest.approx(10 * 1200 + 5000)
        assert quote.rebates.breakdown.state == {"QLD": 1500}

    @pytest.mark.asyncio
    async def test_store_outage_still_quotes(self, make_settings_service, make_inputs):
        service = make_settings_service(failing_store())
        quote = await calculate_solar_quote(
            make_inputs(), settings_service=service, today=date(2025, 3, 1)
        )
        assert quote.total_cost == pytest.approx(6.6 * 1100)
