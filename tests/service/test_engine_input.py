"""
Tests for boundary validation of raw engine input.
"""

import copy
import math

import pytest

from franchise_service.errors import InputError
from franchise_service.services.engine_input import engine_input_from_dict, validate_engine_input


def test_reference_payload_is_valid(postnet_payload):
    engine_input = engine_input_from_dict(postnet_payload)
    validate_engine_input(engine_input)

    assert engine_input.financial_inputs.revenue.annual_gross_sales == 32240100
    assert len(engine_input.startup_costs) == len(postnet_payload["startup_costs"])


def test_missing_section_raises_input_error(postnet_payload):
    del postnet_payload["financial_inputs"]["financing"]
    with pytest.raises(InputError, match="Malformed engine input"):
        engine_input_from_dict(postnet_payload)


def test_input_error_is_a_value_error(postnet_payload):
    del postnet_payload["financial_inputs"]["revenue"]
    with pytest.raises(ValueError):
        engine_input_from_dict(postnet_payload)


@pytest.mark.parametrize(
    "section,field,value,message",
    [
        ("revenue", "growth_rates", [0.1, 0.1, 0.1, 0.1], "growth_rates must have exactly 5 values"),
        ("operating_costs", "cogs_pct", [0.3] * 12, "cogs_pct must have 5 per-year or 60 per-month values"),
        ("operating_costs", "facilities_annual", [1000000] * 60, "facilities_annual must have exactly 5 values"),
        ("operating_costs", "labor_pct", [0.17, 0.17, math.nan, 0.17, 0.17], "labor_pct must be finite"),
        ("financing", "term_months", -12, "term_months must be >= 0"),
        ("startup", "depreciation_rate", -0.25, "depreciation_rate must be >= 0"),
    ],
)
def test_rejected_inputs(postnet_payload, section, field, value, message):
    payload = copy.deepcopy(postnet_payload)
    payload["financial_inputs"][section][field] = value

    with pytest.raises(InputError, match=message):
        validate_engine_input(engine_input_from_dict(payload))


def test_per_month_rate_array_accepted(postnet_payload):
    postnet_payload["financial_inputs"]["operating_costs"]["marketing_pct"] = [0.02] * 60
    validate_engine_input(engine_input_from_dict(postnet_payload))


def test_infinite_tax_rate_rejected(postnet_payload):
    postnet_payload["financial_inputs"]["tax_rate"] = math.inf
    with pytest.raises(InputError, match="tax_rate must be finite"):
        validate_engine_input(engine_input_from_dict(postnet_payload))


def test_optional_arrays_checked_when_present(postnet_payload):
    postnet_payload["financial_inputs"]["shareholder_salary_adj"] = [0, 0]
    with pytest.raises(InputError, match="shareholder_salary_adj"):
        validate_engine_input(engine_input_from_dict(postnet_payload))


def test_unknown_classification_rejected(postnet_payload):
    postnet_payload["startup_costs"][0]["capex_classification"] = "goodwill"
    with pytest.raises(InputError, match="unknown classification 'goodwill'"):
        validate_engine_input(engine_input_from_dict(postnet_payload))


def test_non_numeric_value_rejected(postnet_payload):
    postnet_payload["financial_inputs"]["working_capital"]["ar_days"] = None
    with pytest.raises(InputError, match="working_capital must be numeric"):
        validate_engine_input(engine_input_from_dict(postnet_payload))
