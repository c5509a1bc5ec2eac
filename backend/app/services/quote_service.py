"""
Entry point used by the web layer: fetch live settings once, then run the
pure calculator.
"""

from datetime import date
from typing import Optional
from app.models.rebate import CalculationInputs, QuoteCalculationResult
from app.services.logger_service import get_logger
from app.services.quote_settings_service import QuoteSettingsService, get_quote_settings_service
from app.services.rebate_calculator import RebateCalculator

logger = get_logger("quote_service")


async def calculate_solar_quote(
    inputs: CalculationInputs,
    settings_service: Optional[QuoteSettingsService] = None,
    today: Optional[date] = None,
    calculator: Optional[RebateCalculator] = None
) -> QuoteCalculationResult:
    """
    Compute a quote for a homeowner request.

    Args:
        inputs: Validated request fields
        settings_service: Source of live pricing (global service if None)
        today: Evaluation date for program validity (system date if None)
        calculator: Calculator over a specific catalog (default catalog if None)

    Returns:
        QuoteCalculationResult; computed with default settings when the
        settings store is unavailable
    """
    settings_service = settings_service or get_quote_settings_service()
    calculator = calculator or RebateCalculator()

    settings = await settings_service.get_quote_settings()
    result = calculator.calculate_quote(inputs, settings, today)

    logger.log_quote_calculation(
        postcode=inputs.postcode,
        state=result.state,
        system_size_kw=result.system_size_kw,
        total_rebate=result.rebates.total_rebate,
        final_price=result.final_price,
        battery_included=result.battery_included,
        used_default_usage=not (inputs.system_size_kw or inputs.monthly_kwh or inputs.bill_amount)
    )
    return result
