"""
Structured logging service for the quote and rebate engine.

Provides structured JSON logging for better observability and debugging.
"""

import logging
import json
from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum


class LogLevel(Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StructuredLogger:
    """
    Structured logger that outputs JSON-formatted logs.

    Makes it easier to parse logs and extract metrics.
    """

    def __init__(self, name: str, log_level: str = "INFO"):
        """
        Initialize structured logger.

        Args:
            name: Logger name (usually module/service name)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, log_level.upper()))

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(getattr(logging, log_level.upper()))
            self.logger.addHandler(handler)

    def _log(self, level: LogLevel, event: str, data: Dict[str, Any]):
        """
        Log structured data.

        Args:
            level: Log level
            event: Event name (e.g., "quote_calculation", "settings_fetch")
            data: Structured data dictionary
        """
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level.value,
            "event": event,
            **data
        }

        log_message = json.dumps(log_entry, default=str)

        if level == LogLevel.DEBUG:
            self.logger.debug(log_message)
        elif level == LogLevel.INFO:
            self.logger.info(log_message)
        elif level == LogLevel.WARNING:
            self.logger.warning(log_message)
        elif level == LogLevel.ERROR:
            self.logger.error(log_message)
        elif level == LogLevel.CRITICAL:
            self.logger.critical(log_message)

    def log_quote_calculation(
        self,
        postcode: str,
        state: str,
        system_size_kw: float,
        total_rebate: float,
        final_price: Optional[float] = None,
        battery_included: bool = False,
        used_default_usage: bool = False
    ):
        """
        Log a completed quote calculation.

        Args:
            postcode: Postcode the quote was computed for
            state: Resolved state code
            system_size_kw: System size used for the quote
            total_rebate: Sum of all rebate amounts
            final_price: Price after rebates (optional)
            battery_included: Whether a battery was requested
            used_default_usage: Whether the 800 kWh fallback was applied
        """
        data = {
            "postcode": postcode,
            "state": state,
            "system_size_kw": system_size_kw,
            "total_rebate": total_rebate,
            "battery_included": battery_included
        }

        if final_price is not None:
            data["final_price"] = final_price
        if used_default_usage:
            data["used_default_usage"] = True

        self._log(LogLevel.INFO, "quote_calculation", data)

    def log_settings_fetch(
        self,
        source: str,
        success: bool = True,
        response_time_ms: Optional[float] = None,
        keys_loaded: Optional[int] = None,
        error: Optional[str] = None,
        cache_hit: Optional[bool] = None
    ):
        """
        Log a fetch of live quote settings.

        Args:
            source: Where the settings came from ("store", "cache", "defaults")
            success: Whether the store answered
            response_time_ms: Response time in milliseconds (optional)
            keys_loaded: Number of key/value rows read (optional)
            error: Error message if failed (optional)
            cache_hit: Whether cache was hit (optional)
        """
        data = {
            "source": source,
            "success": success
        }

        if response_time_ms is not None:
            data["response_time_ms"] = response_time_ms
        if keys_loaded is not None:
            data["keys_loaded"] = keys_loaded
        if error:
            data["error"] = error
        if cache_hit is not None:
            data["cache_hit"] = cache_hit

        level = LogLevel.WARNING if source == "defaults" else LogLevel.INFO
        self._log(level, "settings_fetch", data)

    def log_circuit_breaker(
        self,
        breaker_name: str,
        state: str,
        failure_count: int,
        action: str
    ):
        """
        Log circuit breaker state change.

        Args:
            breaker_name: Circuit breaker name
            state: New state (closed, open, half_open)
            failure_count: Current failure count
            action: Action taken (opened, closed, half_opened)
        """
        data = {
            "breaker_name": breaker_name,
            "state": state,
            "failure_count": failure_count,
            "action": action
        }

        level = LogLevel.WARNING if state == "open" else LogLevel.INFO
        self._log(level, "circuit_breaker", data)

    def log_cache(
        self,
        operation: str,
        key: str,
        cache_hit: bool,
        ttl_seconds: Optional[int] = None
    ):
        """
        Log cache operation.

        Args:
            operation: Operation type (get, set, invalidate)
            key: Cache key
            cache_hit: Whether cache hit occurred
            ttl_seconds: TTL in seconds (optional)
        """
        data = {
            "operation": operation,
            "key": key[:100],
            "cache_hit": cache_hit
        }

        if ttl_seconds:
            data["ttl_seconds"] = ttl_seconds

        self._log(LogLevel.DEBUG, "cache", data)

    def log_warning(self, event: str, message: str, context: Optional[Dict[str, Any]] = None):
        """Log a recoverable condition (fallback values, ignored settings)."""
        data = {"message": message}
        if context:
            data.update(context)
        self._log(LogLevel.WARNING, event, data)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Log an error.

        Args:
            error_type: Type of error (e.g., "ValidationError", "OperationalError")
            error_message: Error message
            context: Additional context (optional)
        """
        data = {
            "error_type": error_type,
            "error_message": error_message
        }

        if context:
            data.update(context)

        self._log(LogLevel.ERROR, "error", data)


# Global logger instances
_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str, log_level: str = "INFO") -> StructuredLogger:
    """
    Get or create a structured logger instance.

    Args:
        name: Logger name
        log_level: Logging level

    Returns:
        StructuredLogger instance
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, log_level)
    return _loggers[name]
