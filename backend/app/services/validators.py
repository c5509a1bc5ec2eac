"""
Input validation utilities for quote requests.

Validates homeowner form fields before the calculator runs; the calculator
itself assumes well-typed input.
"""

import re
from typing import Optional, Tuple
from app.models.rebate import STATE_CODES

BUDGET_RANGES = ("5000-10000", "10000-20000", "20000-30000", "30000+")
ROOF_TYPES = ("tile", "tin", "flat", "other")
MAX_SYSTEM_SIZE_KW = 100.0


class ValidationError(Exception):
    """Raised when validation fails."""
    pass


class InputValidator:
    """Validates inputs for the quote calculator."""

    @staticmethod
    def validate_postcode(postcode: str) -> Tuple[bool, Optional[str]]:
        """
        Validate Australian postcode format.

        Args:
            postcode: Postcode to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not postcode:
            return False, "Postcode cannot be empty"

        if not isinstance(postcode, str):
            return False, "Postcode must be a string"

        if not re.match(r'^\d{4}$', postcode):
            return False, f"Invalid postcode format: '{postcode}'. Must be 4 digits."

        return True, None

    @staticmethod
    def validate_state_code(state: str) -> Tuple[bool, Optional[str]]:
        """
        Validate Australian state or territory code.

        Args:
            state: State code such as "NSW" or "ACT"

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not state:
            return False, "State code cannot be empty"

        if not isinstance(state, str):
            return False, "State code must be a string"

        state = state.strip().upper()

        if state not in STATE_CODES:
            return False, (
                f"Invalid state code: '{state}'. "
                f"Must be one of: {', '.join(STATE_CODES)}"
            )

        return True, None

    @staticmethod
    def validate_budget_range(budget_range: str) -> Tuple[bool, Optional[str]]:
        if budget_range not in BUDGET_RANGES:
            return False, (
                f"Invalid budget range: '{budget_range}'. "
                f"Must be one of: {', '.join(BUDGET_RANGES)}"
            )
        return True, None

    @staticmethod
    def validate_roof_type(roof_type: str) -> Tuple[bool, Optional[str]]:
        if not isinstance(roof_type, str) or roof_type.lower() not in ROOF_TYPES:
            return False, (
                f"Invalid roof type: '{roof_type}'. "
                f"Must be one of: {', '.join(ROOF_TYPES)}"
            )
        return True, None

    @staticmethod
    def validate_positive_amount(value: float, label: str) -> Tuple[bool, Optional[str]]:
        """
        Validate a usage or bill figure.

        Args:
            value: Number entered by the homeowner
            label: Field name used in the error message

        Returns:
            Tuple of (is_valid, error_message)
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False, f"{label} must be a number"

        if value <= 0:
            return False, f"{label} must be positive, got {value}"

        return True, None

    @staticmethod
    def validate_system_size(capacity: float) -> Tuple[bool, Optional[str]]:
        """
        Validate requested solar system size.

        Args:
            capacity: System size in kW

        Returns:
            Tuple of (is_valid, error_message)
        """
        if isinstance(capacity, bool) or not isinstance(capacity, (int, float)):
            return False, "System size must be a number"

        if capacity <= 0:
            return False, f"System size must be positive, got {capacity}"

        if capacity > MAX_SYSTEM_SIZE_KW:
            return False, (
                f"System size too large: {capacity} kW. "
                f"Maximum is {MAX_SYSTEM_SIZE_KW:g} kW."
            )

        return True, None

    @staticmethod
    def validate_installation_year(year: int) -> Tuple[bool, Optional[str]]:
        if isinstance(year, bool) or not isinstance(year, int):
            return False, "Installation year must be an integer"

        if not 2000 <= year <= 2100:
            return False, f"Installation year out of range: {year}"

        return True, None


def validate_quote_inputs(
    postcode: str,
    state: Optional[str] = None,
    budget_range: Optional[str] = None,
    roof_type: Optional[str] = None,
    monthly_kwh: Optional[float] = None,
    bill_amount: Optional[float] = None,
    system_size_kw: Optional[float] = None,
    installation_year: Optional[int] = None
) -> Tuple[bool, Optional[str]]:
    """
    Validate all quote inputs.

    Optional fields are only checked when provided.

    Returns:
        Tuple of (is_valid, error_message)
    """
    validator = InputValidator()

    checks = [validator.validate_postcode(postcode)]
    if state is not None:
        checks.append(validator.validate_state_code(state))
    if budget_range is not None:
        checks.append(validator.validate_budget_range(budget_range))
    if roof_type is not None:
        checks.append(validator.validate_roof_type(roof_type))
    if monthly_kwh is not None:
        checks.append(validator.validate_positive_amount(monthly_kwh, "Monthly usage"))
    if bill_amount is not None:
        checks.append(validator.validate_positive_amount(bill_amount, "Bill amount"))
    if system_size_kw is not None:
        checks.append(validator.validate_system_size(system_size_kw))
    if installation_year is not None:
        checks.append(validator.validate_installation_year(installation_year))

    for is_valid, error in checks:
        if not is_valid:
            return False, error

    return True, None


def ensure_valid_quote_inputs(**fields) -> None:
    """Raise ValidationError with the first failing check."""
    is_valid, error = validate_quote_inputs(**fields)
    if not is_valid:
        raise ValidationError(error)
