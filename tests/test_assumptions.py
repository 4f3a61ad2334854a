"""
Tests for assumption generation and validation.
"""

import pytest

from dealmodel.calculations.assumptions import (
    EXTRACTED_METHOD,
    MANUAL_INPUT_METHOD,
    Assumptions,
    ExtractedPurchasePrice,
    PriceSource,
    estimate_purchase_price,
    generate_assumptions,
    price_rule_order,
)
from dealmodel.calculations.classifier import classify
from dealmodel.calculations.industries import IndustryType
from dealmodel.calculations.statements import FinancialStatement


class TestPurchasePrice:
    """Test the purchase price fallback chain."""

    def test_ebitda_multiple(self, general_statement):
        profile = classify("", "", general_statement)
        assumptions = generate_assumptions(general_statement, profile)

        assert assumptions.purchase_price == 1_200_000
        assert assumptions.price_source == PriceSource.estimated
        assert assumptions.price_estimation_method == "3.0x EBITDA (general_business)"

    def test_sde_preferred_over_ebitda(self):
        statement = FinancialStatement.from_dict(
            {
                "periods": ["TTM"],
                "lineItems": {"sde": {"TTM": 500_000}, "ebitda": {"TTM": 400_000}},
            }
        )
        estimate = estimate_purchase_price(statement, "ebitda", 3.0, "general_business")
        assert estimate.value == 1_500_000
        assert estimate.method_label == "3.0x SDE (general_business)"

    def test_commission_income_for_insurance(self, insurance_statement):
        profile = classify("insurance agency", "", insurance_statement)
        assumptions = generate_assumptions(insurance_statement, profile)

        assert assumptions.business_type == IndustryType.insurance_agency
        assert assumptions.purchase_price == 2_400_000
        assert (
            assumptions.price_estimation_method
            == "2.0x Commission Income (insurance_agency)"
        )

    def test_arr_priced_off_revenue(self):
        statement = FinancialStatement.from_dict(
            {"periods": ["TTM"], "lineItems": {"revenue": {"TTM": 1_000_000}}}
        )
        estimate = estimate_purchase_price(statement, "arr", 5.0, "saas")
        assert estimate.value == 5_000_000
        assert estimate.method_label == "5.0x ARR (saas)"

    def test_revenue_fallback_when_no_earnings(self):
        statement = FinancialStatement.from_dict(
            {"periods": ["TTM"], "lineItems": {"revenue": {"TTM": 800_000}}}
        )
        estimate = estimate_purchase_price(statement, "ebitda", 3.0, "general_business")
        assert estimate.value == 2_400_000
        assert estimate.method_label == "3.0x Revenue (general_business)"

    def test_primary_rules_first(self):
        order = [rule.label for rule in price_rule_order("revenue")]
        assert order[0] == "Revenue"
        assert order[1] == "SDE"

    def test_manual_input_when_no_data(self, empty_statement):
        profile = classify("", "", empty_statement)
        assumptions = generate_assumptions(empty_statement, profile)

        assert assumptions.purchase_price == 0
        assert assumptions.price_estimation_method == MANUAL_INPUT_METHOD


class TestExtractedPrice:
    """Test document-sourced purchase prices."""

    def test_extracted_price_used(self, general_statement):
        profile = classify("", "", general_statement)
        assumptions = generate_assumptions(
            general_statement, profile, ExtractedPurchasePrice(1_500_000, 0.9)
        )
        assert assumptions.purchase_price == 1_500_000
        assert assumptions.price_source == PriceSource.extracted
        assert assumptions.price_estimation_method == EXTRACTED_METHOD

    def test_price_not_from_document_is_ignored(self, general_statement):
        profile = classify("", "", general_statement)
        assumptions = generate_assumptions(
            general_statement,
            profile,
            ExtractedPurchasePrice(1_500_000, document_sourced=False),
        )
        assert assumptions.purchase_price == 1_200_000
        assert assumptions.price_source == PriceSource.estimated

    def test_zero_extracted_price_is_ignored(self, general_statement):
        profile = classify("", "", general_statement)
        assumptions = generate_assumptions(
            general_statement, profile, ExtractedPurchasePrice(0)
        )
        assert assumptions.purchase_price == 1_200_000


class TestGeneratedDefaults:
    def test_financing_from_profile(self, general_statement):
        profile = classify("", "", general_statement)
        assumptions = generate_assumptions(general_statement, profile)

        assert assumptions.down_payment_pct == 0.10
        assert assumptions.seller_financing_pct == 0.15
        assert assumptions.interest_rate == 0.11
        assert assumptions.loan_term_years == 10
        assert assumptions.revenue_growth_rate == 0.10
        assert assumptions.margin_rate == 0.15

    def test_loan_principal(self):
        assumptions = Assumptions(
            purchase_price=1_000_000, down_payment_pct=0.10, seller_financing_pct=0.15
        )
        assert assumptions.down_payment == pytest.approx(100_000)
        assert assumptions.seller_financing == pytest.approx(150_000)
        assert assumptions.loan_principal == pytest.approx(750_000)


class TestAssumptionValidation:
    """Test validation at construction and on edit."""

    @pytest.mark.parametrize(
        "changes",
        [
            {"purchase_price": -1},
            {"down_payment_pct": 1.5},
            {"interest_rate": -0.01},
            {"down_payment_pct": 0.9, "seller_financing_pct": 0.2},
            {"loan_term_years": 0},
            {"exit_year": 2},
            {"exit_year": 8},
            {"capex_pct": 1.2},
            {"exit_multiple": -3.0},
            {"tax_rate": float("nan")},
            {"revenue_growth_rate": 1e80},
            {"revenue_growth_rate": 10.5},
            {"revenue_growth_rate": -1.0},
            {"exit_multiple": 1e6},
        ],
    )
    def test_invalid_values_rejected(self, changes):
        with pytest.raises(ValueError):
            Assumptions(**{"purchase_price": 1_000_000, **changes})

    def test_bounds_inclusive(self):
        assumptions = Assumptions(
            purchase_price=1_000_000, revenue_growth_rate=10.0, exit_multiple=100.0
        )
        assert assumptions.revenue_growth_rate == 10.0
        assert assumptions.exit_multiple == 100.0

    def test_string_enums_coerced(self):
        assumptions = Assumptions(
            purchase_price=1, business_type="saas", price_source="extracted"
        )
        assert assumptions.business_type == IndustryType.saas
        assert assumptions.price_source == PriceSource.extracted

    def test_unknown_industry_rejected(self):
        with pytest.raises(ValueError):
            Assumptions(purchase_price=1, business_type="crypto")


class TestAssumptionUpdates:
    """Test editing an assumption set."""

    def test_update_returns_new_record(self):
        original = Assumptions(purchase_price=1_000_000)
        edited = original.update(interest_rate=0.09)

        assert edited.interest_rate == 0.09
        assert original.interest_rate == 0.11

    def test_price_edit_marks_user_edited(self):
        edited = Assumptions(purchase_price=1_000_000).update(purchase_price=900_000)
        assert edited.price_source == PriceSource.user_edited

    def test_other_edits_keep_price_source(self):
        edited = Assumptions(purchase_price=1_000_000).update(tax_rate=0.21)
        assert edited.price_source == PriceSource.estimated

    def test_invalid_edit_rejected(self):
        with pytest.raises(ValueError):
            Assumptions(purchase_price=1_000_000).update(down_payment_pct=2.0)

    def test_records_are_immutable(self):
        assumptions = Assumptions(purchase_price=1_000_000)
        with pytest.raises(AttributeError):
            assumptions.purchase_price = 5
