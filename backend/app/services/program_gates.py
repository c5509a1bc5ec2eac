"""
Composable gates deciding whether a rebate program applies to a request.

Each gate is a pure predicate over (program, context). Pipelines are ordered
tuples of gates evaluated with AND semantics, so adding a rule means adding a
gate, not touching the aggregation code.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Tuple
from app.models.quote_setting import QuoteSettings
from app.models.rebate import CalculationInputs, RebateProgram


@dataclass(frozen=True)
class EvaluationContext:
    """Everything a gate may look at besides the program itself."""
    inputs: CalculationInputs
    state: str
    system_size_kw: float
    today: date
    settings: QuoteSettings


Gate = Callable[[RebateProgram, EvaluationContext], bool]


def is_active(program: RebateProgram, context: EvaluationContext) -> bool:
    return program.is_active(context.today)


def matches_state(program: RebateProgram, context: EvaluationContext) -> bool:
    if program.jurisdiction == "federal":
        return True
    return program.state == context.state


def matches_request_shape(program: RebateProgram, context: EvaluationContext) -> bool:
    """Solar programs apply only without a battery, battery programs only with one."""
    if program.type == "solar":
        return not context.inputs.battery_included
    if program.type == "battery":
        return context.inputs.battery_included
    return True


def is_eligible(program: RebateProgram, context: EvaluationContext) -> bool:
    rules = program.eligibility
    inputs = context.inputs

    if rules.owner_occupier and not inputs.owner_occupier:
        return False
    if (
        rules.income_max is not None
        and inputs.household_income is not None
        and inputs.household_income > rules.income_max
    ):
        return False
    if (
        rules.property_value_max is not None
        and inputs.property_value is not None
        and inputs.property_value > rules.property_value_max
    ):
        return False
    if rules.system_size_max_kw is not None and context.system_size_kw > rules.system_size_max_kw:
        return False
    return True


def state_toggle_enabled(program: RebateProgram, context: EvaluationContext) -> bool:
    if program.jurisdiction != "state":
        return True
    return context.settings.state_rebates_enabled(program.state)


def requests_battery(program: RebateProgram, context: EvaluationContext) -> bool:
    return context.inputs.battery_included


STATE_PROGRAM_GATES: Tuple[Gate, ...] = (
    is_active,
    matches_state,
    state_toggle_enabled,
    matches_request_shape,
    is_eligible,
)

CERTIFICATE_GATES: Tuple[Gate, ...] = (is_active, is_eligible)

FEDERAL_BATTERY_GATES: Tuple[Gate, ...] = (requests_battery, is_active)


def passes_all(program: RebateProgram, context: EvaluationContext, gates: Iterable[Gate]) -> bool:
    return all(gate(program, context) for gate in gates)
