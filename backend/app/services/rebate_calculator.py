"""
Rebate & quote calculation engine.

Turns a homeowner's location, usage and preferences into a system size, an
installed cost and a federal/state rebate breakdown. Every method here is a
pure function of (inputs, catalog, settings, today): nothing is fetched,
cached or mutated, so results are reproducible and safe to compute in
parallel. Live settings are fetched by the caller (see quote_service).
"""

import math
from datetime import date
from typing import Dict, List, Optional, Tuple
from app.models.quote_setting import QuoteSettings, DEFAULT_QUOTE_SETTINGS
from app.models.rebate import (
    CalculationInputs,
    QuoteCalculationResult,
    RebateCalculationResult,
    STATE_CODES,
    RebateProgram,
)
from app.services.program_gates import (
    CERTIFICATE_GATES,
    FEDERAL_BATTERY_GATES,
    STATE_PROGRAM_GATES,
    EvaluationContext,
    passes_all,
)
from app.services.rebate_catalog import RebateCatalog, STC_SCHEME_END_YEAR, get_catalog

DEFAULT_MONTHLY_USAGE_KWH = 800.0
ANNUAL_GENERATION_PER_KW = 1200.0  # kWh produced per installed kW per year
COMMON_SYSTEM_SIZES_KW: Tuple[float, ...] = (3, 5, 6.6, 10, 13, 15, 20)
DEFAULT_STC_PRICE = 35.0
MONTHS_PER_BILLING_PERIOD = {"monthly": 1, "quarterly": 3}

CERTIFICATE_PROGRAM_ID = "sres_stc"
FEDERAL_BATTERY_PROGRAM_ID = "federal_battery_rebate"

STANDARD_DISCLAIMERS: Tuple[str, ...] = (
    "STC value fluctuates based on market conditions; final quote may vary.",
    "All rebates require CEC-approved installers and compliant equipment.",
    "State rebates are subject to funding availability and may close without notice.",
    "Eligibility criteria must be met at time of installation.",
    "This is an estimate only - consult with your installer for accurate rebate calculations.",
)
FEDERAL_BATTERY_DISCLAIMER = "Federal battery rebate valid only for installations after July 1, 2025."

REGION_NOTES: Dict[str, str] = {
    "ACT": "Interest-free loans available via Sustainable Household Scheme instead of rebates.",
    "WA": "Battery rebate programs expected to launch in 2025; check for updates.",
    "NT": "Limited rebate programs available; focus on federal incentives.",
    "TAS": "Additional rebates may be available through local councils.",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def snap_to_common_size(raw_size_kw: float, sizes: Tuple[float, ...] = COMMON_SYSTEM_SIZES_KW) -> float:
    """
    Closest commercially common size by absolute difference.

    On an exact tie the candidate listed first wins, i.e. the smaller size
    for an ascending candidate list.
    """
    best = sizes[0]
    for candidate in sizes[1:]:
        if abs(candidate - raw_size_kw) < abs(best - raw_size_kw):
            best = candidate
    return float(best)


class RebateCalculator:
    """Pure quote and rebate calculator over a program catalog."""

    def __init__(self, catalog: Optional[RebateCatalog] = None):
        self.catalog = catalog or get_catalog()

    # -- sizing ---------------------------------------------------------------

    @staticmethod
    def derive_monthly_usage(inputs: CalculationInputs, settings: QuoteSettings) -> float:
        """
        Monthly kWh from the request.

        Explicit kWh wins; otherwise a bill is converted with the configured
        price per kWh (quarterly bills are spread over three months);
        otherwise the documented 800 kWh default applies.
        """
        if inputs.monthly_kwh:
            return float(inputs.monthly_kwh)
        if inputs.bill_amount and settings.default_price_per_kwh > 0:
            months = MONTHS_PER_BILLING_PERIOD[inputs.billing_period]
            return inputs.bill_amount / months / settings.default_price_per_kwh
        return DEFAULT_MONTHLY_USAGE_KWH

    @staticmethod
    def estimate_system_size(monthly_usage_kwh: float) -> float:
        annual_usage = monthly_usage_kwh * 12
        return snap_to_common_size(annual_usage / ANNUAL_GENERATION_PER_KW)

    def resolve_system_size(self, inputs: CalculationInputs, settings: QuoteSettings) -> float:
        if inputs.system_size_kw:
            return float(inputs.system_size_kw)
        return self.estimate_system_size(self.derive_monthly_usage(inputs, settings))

    def resolve_state(self, inputs: CalculationInputs) -> str:
        """Declared state when it is a known code, else the postcode's state."""
        declared = (inputs.state or "").strip().upper()
        if declared in STATE_CODES:
            return declared
        return self.catalog.infer_state_from_postcode(inputs.postcode)

    # -- rebates --------------------------------------------------------------

    def _certificate_amount(self, program: RebateProgram, context: EvaluationContext) -> int:
        installation_year = context.inputs.installation_year or context.today.year
        deeming_period = max(0, STC_SCHEME_END_YEAR - installation_year)
        zone_rating = self.catalog.lookup_zone_rating(context.inputs.postcode)
        stc_price = DEFAULT_STC_PRICE
        if program.calculation and program.calculation.variables.stc_price is not None:
            stc_price = program.calculation.variables.stc_price
        return round_half_up(context.system_size_kw * deeming_period * zone_rating * stc_price)

    def _state_amount(self, program: RebateProgram, context: EvaluationContext) -> float:
        override = context.settings.state_rebate_override(program.state)
        if override is not None:
            return override
        return program.amount or 0

    def calculate_rebates(
        self,
        inputs: CalculationInputs,
        system_size_kw: float,
        settings: QuoteSettings = DEFAULT_QUOTE_SETTINGS,
        today: Optional[date] = None
    ) -> RebateCalculationResult:
        """
        Federal and state rebate breakdown for a sized system.

        Validity windows are checked against `today` on every call.
        """
        today = today or date.today()
        state = self.resolve_state(inputs)
        context = EvaluationContext(
            inputs=inputs,
            state=state,
            system_size_kw=system_size_kw,
            today=today,
            settings=settings,
        )
        result = RebateCalculationResult()

        if settings.rebates_enabled:
            certificate = self.catalog.get_program(CERTIFICATE_PROGRAM_ID)
            if certificate and passes_all(certificate, context, CERTIFICATE_GATES):
                result.breakdown.federal.stc_amount = self._certificate_amount(certificate, context)

            battery = self.catalog.get_program(FEDERAL_BATTERY_PROGRAM_ID)
            if battery and passes_all(battery, context, FEDERAL_BATTERY_GATES):
                result.breakdown.federal.battery_rebate = battery.amount or 0

            for program in self.catalog.list_programs(jurisdiction="state"):
                if passes_all(program, context, STATE_PROGRAM_GATES):
                    result.breakdown.state[state] = (
                        result.breakdown.state.get(state, 0) + self._state_amount(program, context)
                    )

        result.total_rebate = result.federal_total + result.state_total
        result.disclaimers = self._disclaimers(result)
        result.region_notes = dict(REGION_NOTES)
        return result

    @staticmethod
    def _disclaimers(result: RebateCalculationResult) -> List[str]:
        disclaimers = list(STANDARD_DISCLAIMERS)
        if result.breakdown.federal.battery_rebate:
            disclaimers.append(FEDERAL_BATTERY_DISCLAIMER)
        return disclaimers

    # -- quote ----------------------------------------------------------------

    def calculate_quote(
        self,
        inputs: CalculationInputs,
        settings: QuoteSettings = DEFAULT_QUOTE_SETTINGS,
        today: Optional[date] = None
    ) -> QuoteCalculationResult:
        """Size, price and rebate a system; final price never drops below zero."""
        today = today or date.today()
        monthly_usage = self.derive_monthly_usage(inputs, settings)
        system_size = self.resolve_system_size(inputs, settings)

        total_cost = system_size * settings.base_price_per_kw
        if inputs.battery_included:
            total_cost += settings.battery_cost

        rebates = self.calculate_rebates(inputs, system_size, settings, today)

        return QuoteCalculationResult(
            system_size_kw=system_size,
            monthly_usage_kwh=monthly_usage,
            state=self.resolve_state(inputs),
            zone_rating=self.catalog.lookup_zone_rating(inputs.postcode),
            total_cost=total_cost,
            federal_rebate=rebates.federal_total,
            state_rebate=rebates.state_total,
            final_price=max(0.0, total_cost - rebates.total_rebate),
            battery_included=inputs.battery_included,
            budget_range=inputs.budget_range,
            roof_type=inputs.roof_type,
            rebates=rebates,
        )
