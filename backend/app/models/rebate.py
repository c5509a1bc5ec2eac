"""
Rebate program, calculation input and result models.

Program definitions are immutable reference data; inputs are built per request
and results are snapshot estimates that are never stored as authoritative.
"""

from datetime import date
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

STATE_CODES = ("NSW", "VIC", "QLD", "SA", "WA", "TAS", "NT", "ACT")

Jurisdiction = Literal["federal", "state"]
BillingPeriod = Literal["monthly", "quarterly"]


class ProgramValidity(BaseModel):
    """Calendar window in which a program accepts installations (both ends inclusive)."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self):
        if self.end < self.start:
            raise ValueError(f"validity end {self.end} is before start {self.start}")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class ProgramVariables(BaseModel):
    model_config = ConfigDict(frozen=True)

    deeming_period: Optional[str] = None
    zone_rating: Optional[str] = None
    stc_price: Optional[float] = None


class ProgramCalculation(BaseModel):
    """Named formula for programs whose amount depends on the system."""

    model_config = ConfigDict(frozen=True)

    formula: str
    variables: ProgramVariables = Field(default_factory=ProgramVariables)


class ProgramEligibility(BaseModel):
    """
    Independent eligibility constraints; every constraint present must hold.

    `installer` names an accreditation the installer must carry. It cannot be
    checked against homeowner input and is surfaced as a disclaimer instead.
    """

    model_config = ConfigDict(frozen=True)

    installer: Optional[str] = None
    system_size_max_kw: Optional[float] = None
    owner_occupier: Optional[bool] = None
    income_max: Optional[float] = None
    property_value_max: Optional[float] = None


class RebateProgram(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    jurisdiction: Jurisdiction
    state: Optional[str] = None
    type: str
    validity: ProgramValidity
    calculation: Optional[ProgramCalculation] = None
    amount: Optional[float] = None
    eligibility: ProgramEligibility = Field(default_factory=ProgramEligibility)

    @model_validator(mode="after")
    def check_shape(self):
        if self.jurisdiction == "state" and not self.state:
            raise ValueError(f"state program '{self.id}' must name its state")
        if self.jurisdiction == "federal" and self.state:
            raise ValueError(f"federal program '{self.id}' cannot be tied to a state")
        if (self.amount is None) == (self.calculation is None):
            raise ValueError(
                f"program '{self.id}' needs exactly one of 'amount' or 'calculation'"
            )
        return self

    def is_active(self, day: date) -> bool:
        return self.validity.contains(day)


class CalculationInputs(BaseModel):
    """
    Homeowner request for a quote.

    Either `system_size_kw` is given or it is derived from usage: monthly kWh,
    else a bill amount converted with the configured price per kWh, else the
    800 kWh default. `state` is inferred from the postcode when omitted.
    Undeclared income or property value never fails an eligibility ceiling.
    """

    postcode: str
    state: Optional[str] = None
    location: Optional[str] = None
    system_size_kw: Optional[float] = None
    monthly_kwh: Optional[float] = None
    bill_amount: Optional[float] = None
    billing_period: BillingPeriod = "monthly"
    installation_year: Optional[int] = None
    owner_occupier: bool = True
    household_income: Optional[float] = None
    property_value: Optional[float] = None
    battery_included: bool = False
    budget_range: Optional[str] = None
    roof_type: Optional[str] = None


class FederalBreakdown(BaseModel):
    stc_amount: Optional[int] = None
    battery_rebate: Optional[float] = None


class RebateBreakdown(BaseModel):
    federal: FederalBreakdown = Field(default_factory=FederalBreakdown)
    state: Dict[str, float] = Field(default_factory=dict)


class RebateCalculationResult(BaseModel):
    breakdown: RebateBreakdown = Field(default_factory=RebateBreakdown)
    total_rebate: float = 0
    disclaimers: List[str] = Field(default_factory=list)
    region_notes: Dict[str, str] = Field(default_factory=dict)

    @property
    def federal_total(self) -> float:
        federal = self.breakdown.federal
        return (federal.stc_amount or 0) + (federal.battery_rebate or 0)

    @property
    def state_total(self) -> float:
        return sum(self.breakdown.state.values())


class QuoteCalculationResult(BaseModel):
    system_size_kw: float
    monthly_usage_kwh: float
    state: str
    zone_rating: float
    total_cost: float
    federal_rebate: float
    state_rebate: float
    final_price: float
    battery_included: bool
    budget_range: Optional[str] = None
    roof_type: Optional[str] = None
    rebates: RebateCalculationResult
