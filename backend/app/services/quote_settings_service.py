"""
Live quote settings: store access plus fetch-with-fallback.

The calculator itself takes an explicit QuoteSettings object. This module is
the thin adapter that reads the key/value `quote_settings` table, protects the
read with a timeout, a circuit breaker and a short TTL cache, and falls back
to DEFAULT_QUOTE_SETTINGS whenever the store cannot answer.
"""

import asyncio
import time
from datetime import timedelta
from typing import Callable, Dict, Optional
from pydantic_settings import BaseSettings
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.database import get_session_factory
from app.models.quote_setting import QuoteSetting, QuoteSettings, DEFAULT_QUOTE_SETTINGS
from app.services.cache_service import CacheService, get_cache_service
from app.services.circuit_breaker import CircuitBreaker, get_breaker_manager
from app.services.logger_service import get_logger

logger = get_logger("quote_settings_service")

CACHE_PREFIX = "quote_settings"


class QuoteServiceSettings(BaseSettings):
    """Tuning for the settings fetch; read from the environment or .env."""

    quote_settings_ttl_seconds: int = 60
    quote_settings_timeout_seconds: float = 5.0
    quote_settings_failure_threshold: int = 5
    quote_settings_breaker_timeout_seconds: int = 60

    class Config:
        env_file = ".env"
        extra = "ignore"

    def get_ttl(self) -> timedelta:
        return timedelta(seconds=self.quote_settings_ttl_seconds)


class QuoteSettingsStore:
    """Blocking access to the `quote_settings` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def fetch_all(self) -> Dict[str, str]:
        with self.session_factory() as db:
            rows = db.scalars(select(QuoteSetting)).all()
            return {row.key: row.value for row in rows}

    def update_setting(self, key: str, value: str) -> bool:
        """
        Update one existing setting.

        Returns False for an unknown key or a database error (rolled back
        and logged).
        """
        with self.session_factory() as db:
            try:
                setting = db.get(QuoteSetting, key)
                if setting is None:
                    logger.log_warning(
                        "settings_update",
                        f"Quote setting '{key}' does not exist",
                        context={"key": key}
                    )
                    return False
                setting.value = value
                db.commit()
                return True
            except SQLAlchemyError as e:
                db.rollback()
                logger.log_error(
                    type(e).__name__,
                    f"Failed to update quote setting '{key}': {str(e)}",
                    context={"key": key}
                )
                return False


class QuoteSettingsService:
    """
    Fetches live pricing settings, never raising to the caller.

    Store errors, timeouts, an open circuit breaker and an empty table all
    resolve to DEFAULT_QUOTE_SETTINGS.
    """

    def __init__(
        self,
        store: QuoteSettingsStore,
        cache: Optional[CacheService] = None,
        breaker: Optional[CircuitBreaker] = None,
        config: Optional[QuoteServiceSettings] = None
    ):
        self.store = store
        self.config = config or QuoteServiceSettings()
        self.cache = cache or get_cache_service(self.config.get_ttl())
        self.breaker = breaker or get_breaker_manager().get_breaker(
            "quote_settings",
            failure_threshold=self.config.quote_settings_failure_threshold,
            timeout_seconds=self.config.quote_settings_breaker_timeout_seconds,
            success_threshold=1
        )
        self.cache_key = CACHE_PREFIX

    async def _fetch_from_store(self) -> QuoteSettings:
        start = time.perf_counter()
        raw = await asyncio.wait_for(
            asyncio.to_thread(self.store.fetch_all),
            timeout=self.config.quote_settings_timeout_seconds
        )
        elapsed_ms = (time.perf_counter() - start) * 1000

        if not raw:
            # Not cached, so a freshly seeded table is picked up immediately
            logger.log_settings_fetch(
                source="defaults",
                success=True,
                response_time_ms=elapsed_ms,
                keys_loaded=0,
                error="No quote settings found"
            )
            return DEFAULT_QUOTE_SETTINGS

        logger.log_settings_fetch(
            source="store",
            success=True,
            response_time_ms=elapsed_ms,
            keys_loaded=len(raw)
        )
        settings = QuoteSettings.from_key_values(raw)
        await self.cache.set(self.cache_key, settings)
        return settings

    async def get_quote_settings(self) -> QuoteSettings:
        cached = await self.cache.get(self.cache_key)
        if cached is not None:
            return cached

        try:
            return await self.breaker.call(self._fetch_from_store)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.log_error(
                type(e).__name__,
                f"Falling back to default quote settings: {error}",
                context={"breaker": self.breaker.get_state()}
            )
            logger.log_settings_fetch(source="defaults", success=False, error=error)
            return DEFAULT_QUOTE_SETTINGS

    async def update_setting(self, key: str, value: str) -> bool:
        """Admin update; clears the cached record on success."""
        updated = await asyncio.to_thread(self.store.update_setting, key, value)
        if updated:
            await self.cache.invalidate(CACHE_PREFIX)
        return updated


_settings_service: Optional[QuoteSettingsService] = None


def get_quote_settings_service() -> QuoteSettingsService:
    """Get global settings service bound to the application database."""
    global _settings_service
    if _settings_service is None:
        # Resolved per call so a missing database URL surfaces as a fetch failure
        store = QuoteSettingsStore(lambda: get_session_factory()())
        _settings_service = QuoteSettingsService(store)
    return _settings_service
