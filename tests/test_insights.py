"""
Tests for business insights and sensitivity sweeps.
"""

import pytest

from dealmodel.calculations.assumptions import Assumptions
from dealmodel.calculations.classifier import classify
from dealmodel.calculations.debt_service import build_debt_service_model
from dealmodel.calculations.insights import (
    calculate_variability,
    generate_business_insights,
)
from dealmodel.calculations.returns import IRR_SENTINEL
from dealmodel.calculations.sensitivity import linear_grid, sweep
from dealmodel.calculations.statements import FinancialStatement


def _revenue_statement(older, latest):
    return FinancialStatement.from_dict(
        {
            "periods": ["2023", "TTM"],
            "lineItems": {"revenue": {"2023": older, "TTM": latest}},
        }
    )


class TestVariability:
    def test_constant_series(self):
        assert calculate_variability([100, 100, 100]) == 0.0

    def test_coefficient_of_variation(self):
        assert calculate_variability([100, 200]) == pytest.approx(1 / 3)

    def test_ignores_missing_and_zero(self):
        assert calculate_variability([None, 0, 100]) == 0.0


class TestBusinessInsights:
    """Test plain-language observations."""

    def test_established_business(self, owner_run_statement):
        profile = classify("", "", owner_run_statement)
        result = generate_business_insights(owner_run_statement, profile)

        assert any(i.startswith("Stable revenue growth") for i in result.insights)
        assert any("Healthy EBITDA margin of 20.0%" in i for i in result.insights)
        assert any(i.startswith("Predictable cash flows") for i in result.insights)
        assert result.insights[-1] == f"Business profile suggests {profile.description}"
        assert result.opportunities[-1] == profile.valuation_model.opportunity

    def test_strong_growth(self):
        statement = _revenue_statement(1_000_000, 1_500_000)
        result = generate_business_insights(statement, classify("", "", statement))
        assert "Strong revenue momentum with 50.0% recent growth" in result.insights

    def test_revenue_decline(self):
        statement = _revenue_statement(2_000_000, 1_500_000)
        result = generate_business_insights(statement, classify("", "", statement))
        assert "Revenue declined 25.0% in most recent period" in result.risks

    def test_small_business_risk(self):
        statement = _revenue_statement(400_000, 450_000)
        result = generate_business_insights(statement, classify("", "", statement))
        assert any(r.startswith("Limited scale") for r in result.risks)

    def test_empty_statement(self, empty_statement):
        profile = classify("", "")
        result = generate_business_insights(empty_statement, profile)
        assert result.risks == []
        assert result.insights == [f"Business profile suggests {profile.description}"]
        assert result.opportunities == [profile.valuation_model.opportunity]

    def test_periods_without_values(self):
        statement = FinancialStatement.from_dict(
            {"periods": ["2023", "TTM"], "lineItems": {"revenue": {"2023": None}}}
        )
        profile = classify("", "")
        result = generate_business_insights(statement, profile)
        assert result.risks == []
        assert len(result.insights) == 1


class TestSensitivity:
    """Test single-assumption sweeps."""

    def test_linear_grid(self):
        assert linear_grid(0.08, 0.12, 3) == pytest.approx([0.08, 0.10, 0.12])
        assert linear_grid(1.0, 2.0, 1) == [1.0]

    def test_interest_rate_sweep(self, owner_run_statement):
        deal = Assumptions(purchase_price=1_200_000)
        debt_model = build_debt_service_model(owner_run_statement, deal)

        rows = sweep(owner_run_statement, debt_model, deal, "interest_rate", [0.08, 0.14])

        assert [row.value for row in rows] == [0.08, 0.14]
        assert rows[0].min_dscr > rows[1].min_dscr
        assert deal.interest_rate == 0.11

    def test_price_sweep_uses_swept_price(self, owner_run_statement):
        deal = Assumptions(purchase_price=1_200_000)
        debt_model = build_debt_service_model(owner_run_statement, deal)

        rows = sweep(
            owner_run_statement, debt_model, deal, "purchase_price", [0.0, 600_000.0]
        )
        base = sweep(owner_run_statement, debt_model, deal, "purchase_price", [1_200_000.0])

        assert rows[0].irr == IRR_SENTINEL
        assert rows[0].moic == 0.0
        assert rows[0].min_dscr is None
        assert rows[1].moic != pytest.approx(base[0].moic)
        assert rows[1].min_dscr > base[0].min_dscr

    def test_integer_fields_accept_floats(self, owner_run_statement):
        deal = Assumptions(purchase_price=1_200_000)
        rows = sweep(owner_run_statement, None, deal, "loan_term_years", [5.0, 10.0])
        assert rows[0].min_dscr < rows[1].min_dscr

    def test_unknown_field_rejected(self, owner_run_statement):
        deal = Assumptions(purchase_price=1_200_000)
        with pytest.raises(ValueError):
            sweep(owner_run_statement, None, deal, "business_type", [1.0])

    def test_invalid_value_rejected(self, owner_run_statement):
        deal = Assumptions(purchase_price=1_200_000)
        with pytest.raises(ValueError):
            sweep(owner_run_statement, None, deal, "tax_rate", [1.5])
