"""
Tests for quote input validation.
"""

import pytest
from app.services.validators import (
    InputValidator,
    ValidationError,
    ensure_valid_quote_inputs,
    validate_quote_inputs,
)


class TestInputValidator:

    @pytest.mark.parametrize("postcode", ["2000", "0800", "9999"])
    def test_valid_postcodes(self, postcode):
        assert InputValidator.validate_postcode(postcode) == (True, None)

    @pytest.mark.parametrize("postcode", ["", "200", "20000", "abcd", "20 0"])
    def test_invalid_postcodes(self, postcode):
        is_valid, error = InputValidator.validate_postcode(postcode)
        assert not is_valid
        assert error

    def test_state_codes(self):
        assert InputValidator.validate_state_code("act")[0]
        assert InputValidator.validate_state_code(" NSW ")[0]
        is_valid, error = InputValidator.validate_state_code("CA")
        assert not is_valid
        assert "CA" in error

    def test_budget_and_roof(self):
        assert InputValidator.validate_budget_range("30000+")[0]
        assert not InputValidator.validate_budget_range("cheap")[0]
        assert InputValidator.validate_roof_type("Tile")[0]
        assert not InputValidator.validate_roof_type("thatch")[0]

    @pytest.mark.parametrize("value, expected", [
        (800, True),
        (0.5, True),
        (0, False),
        (-10, False),
        (True, False),
        ("800", False),
    ])
    def test_positive_amount(self, value, expected):
        assert InputValidator.validate_positive_amount(value, "Monthly usage")[0] is expected

    def test_system_size_limits(self):
        assert InputValidator.validate_system_size(6.6)[0]
        assert InputValidator.validate_system_size(100)[0]
        is_valid, error = InputValidator.validate_system_size(150)
        assert not is_valid
        assert "100 kW" in error

    def test_installation_year(self):
        assert InputValidator.validate_installation_year(2025)[0]
        assert not InputValidator.validate_installation_year(1999)[0]
        assert not InputValidator.validate_installation_year(2025.5)[0]


class TestQuoteInputs:

    def test_minimal_request_is_valid(self):
        assert validate_quote_inputs(postcode="2000") == (True, None)

    def test_first_failure_is_reported(self):
        is_valid, error = validate_quote_inputs(postcode="2000", state="XX", monthly_kwh=-1)
        assert not is_valid
        assert "state" in error.lower()

    def test_ensure_raises(self):
        with pytest.raises(ValidationError, match="Bill amount"):
            ensure_valid_quote_inputs(postcode="2000", bill_amount=0)

    def test_ensure_passes(self):
        ensure_valid_quote_inputs(postcode="3000", roof_type="tin", installation_year=2026)
