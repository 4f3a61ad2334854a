"""
Tests for return, amortization and statement calculations.
"""

import pytest
from datetime import date

from dealmodel.calculations.amortization import (
    amortize_year,
    annual_amortization_summary,
    calculate_annual_debt_service,
    calculate_dscr,
    calculate_payment,
    calculate_total_interest,
    generate_amortization_schedule,
)
from dealmodel.calculations.returns import (
    IRR_SENTINEL,
    calculate_npv,
    compute_irr,
    compute_moic,
    compute_payback,
)
from dealmodel.calculations.statements import (
    FinancialStatement,
    LineItemKind,
    base_amount,
)


class TestIRRCalculations:
    """Test IRR calculation functions."""

    def test_single_period_round_trip(self):
        """Investment of 1000 returning 1200 after one year is 20%."""
        irr = compute_irr([1200], 1000)
        assert abs(irr - 0.20) < 0.001

    def test_multi_period(self):
        """Annual returns of 20 with the stake returned at the end."""
        irr = compute_irr([20, 20, 20, 20, 120], 100)
        assert abs(irr - 0.20) < 0.001

    def test_npv_is_zero_at_irr(self):
        flows = [300, 400, 500]
        irr = compute_irr(flows, 1000)
        assert abs(calculate_npv([-1000, *flows], irr)) < 0.1

    def test_negative_irr_is_not_sentinel(self):
        """Series that returns less than invested but still positive in total."""
        irr = compute_irr([400, 400, 100], 1000)
        assert -1 < irr < 0

    def test_sentinel_when_total_return_not_positive(self):
        assert compute_irr([-100, 50, 40], 1000) == IRR_SENTINEL
        assert compute_irr([0, 0, 0], 1000) == IRR_SENTINEL

    def test_sentinel_when_nothing_invested(self):
        assert compute_irr([100, 200], 0) == IRR_SENTINEL
        assert compute_irr([100, 200], -50) == IRR_SENTINEL

    def test_result_stays_in_bounds(self):
        """A huge return is clamped rather than diverging."""
        irr = compute_irr([1_000_000_000], 1)
        assert irr == IRR_SENTINEL or -0.99 <= irr <= 10.0

    def test_calculate_npv(self):
        cash_flows = [-100, 50, 50, 50]
        assert calculate_npv(cash_flows, 0.10) > 0


class TestMOICAndPayback:
    """Test multiple and payback calculations."""

    def test_moic(self):
        assert compute_moic(2500, 1000) == 2.5

    def test_moic_without_investment(self):
        assert compute_moic(2500, 0) == 0.0

    def test_negative_moic_is_returned(self):
        assert compute_moic(-500, 1000) == -0.5

    def test_fractional_payback(self):
        payback = compute_payback([300, 300, 300, 300], 1000, 4)
        assert payback == pytest.approx(3 + 1 / 3)

    def test_payback_in_first_year(self):
        assert compute_payback([2000], 1000, 5) == pytest.approx(0.5)

    def test_payback_never_reached_returns_horizon(self):
        assert compute_payback([100, 100], 1000, 5) == 5.0

    def test_payback_without_investment(self):
        assert compute_payback([100, 100], 0, 5) == 0.0


class TestAmortization:
    """Test loan amortization calculations."""

    def test_calculate_payment(self):
        """$1M loan at 5% for 30 years is about $5,368/month."""
        payment = calculate_payment(1_000_000, 0.05, 360)
        assert 5300 < payment < 5500

    def test_zero_rate_payment(self):
        assert calculate_payment(120_000, 0.0, 120) == pytest.approx(1000)

    def test_no_principal_no_payment(self):
        assert calculate_payment(0, 0.11, 120) == 0.0
        assert calculate_annual_debt_service(0, 0.11, 10) == 0.0

    def test_annual_debt_service_on_acquisition_loan(self):
        """Standard annuity on $1.08M at 11% over 10 years."""
        annual = calculate_annual_debt_service(1_080_000, 0.11, 10)
        assert 178_000 < annual < 179_100

    def test_amortize_year_splits_interest_and_principal(self):
        step = amortize_year(1_000_000, 0.10, 150_000)
        assert step.interest == pytest.approx(100_000)
        assert step.principal == pytest.approx(50_000)
        assert step.closing_balance == pytest.approx(950_000)

    def test_final_payment_capped_at_amount_owed(self):
        step = amortize_year(100, 0.10, 1000)
        assert step.payment == pytest.approx(110)
        assert step.closing_balance == 0.0

    def test_balance_never_goes_negative(self):
        balance = 500_000
        debt_service = calculate_annual_debt_service(balance, 0.11, 5)
        for _ in range(12):
            step = amortize_year(balance, 0.11, debt_service)
            assert step.closing_balance >= 0
            balance = step.closing_balance
        assert balance == 0.0
        assert amortize_year(balance, 0.11, debt_service).payment == 0.0

    @pytest.mark.parametrize(
        "principal,rate,term",
        [
            (50_000, 0.05, 1),
            (250_000, 0.015, 5),
            (1_080_000, 0.11, 10),
            (10_000, 0.07, 15),
            (3_000_000, 0.19, 30),
            (400_000, 0.0, 7),
        ],
    )
    def test_annual_summary_retires_principal(self, principal, rate, term):
        summary = annual_amortization_summary(principal, rate, term)
        assert len(summary) == term
        assert sum(row["principal"] for row in summary) == pytest.approx(principal, abs=0.01)
        assert sum(row["payment"] for row in summary) == pytest.approx(
            sum(row["principal"] + row["interest"] for row in summary), abs=0.01
        )
        assert summary[-1]["ending_balance"] == pytest.approx(0, abs=0.01)

    def test_annual_summary_matches_debt_service(self):
        summary = annual_amortization_summary(1_080_000, 0.11, 10)
        annual = calculate_annual_debt_service(1_080_000, 0.11, 10)
        assert summary[0]["payment"] == pytest.approx(annual, abs=0.01)

    def test_amortization_schedule_length(self):
        schedule = generate_amortization_schedule(
            principal=100_000,
            annual_rate=0.06,
            amortization_months=60,
            io_months=0,
            total_months=60,
        )
        assert len(schedule) == 60

    def test_amortization_io_periods(self):
        schedule = generate_amortization_schedule(
            principal=100_000,
            annual_rate=0.06,
            amortization_months=60,
            io_months=12,
        )
        for row in schedule[:12]:
            assert row["principal"] == 0
            assert row["payment"] == pytest.approx(500, abs=0.01)
        assert schedule[12]["principal"] > 0

    def test_schedule_dates_follow_month_ends(self):
        schedule = generate_amortization_schedule(
            principal=10_000,
            annual_rate=0.06,
            amortization_months=12,
            start_date=date(2025, 1, 31),
        )
        assert schedule[0]["date"] == "2025-01-31"
        assert schedule[1]["date"] == "2025-02-28"

    def test_total_interest(self):
        schedule = generate_amortization_schedule(
            principal=100_000, annual_rate=0.06, amortization_months=60
        )
        payments = sum(row["payment"] for row in schedule)
        assert calculate_total_interest(schedule) == pytest.approx(
            payments - 100_000, abs=1.0
        )

    def test_dscr(self):
        assert calculate_dscr(150_000, 100_000) == 1.5

    def test_dscr_without_debt_service(self):
        assert calculate_dscr(150_000, 0) is None


class TestFinancialStatement:
    """Test statement lookups."""

    def test_base_value_prefers_ttm(self, general_statement):
        assert general_statement.base_value(LineItemKind.revenue) == 2_000_000

    def test_base_value_falls_back_to_latest(self):
        statement = FinancialStatement.from_dict(
            {
                "periods": ["2022", "2023"],
                "lineItems": {"revenue": {"2022": 900_000, "2023": None}},
            }
        )
        assert statement.base_value(LineItemKind.revenue) == 900_000

    def test_missing_amount_is_unknown_not_zero(self, general_statement):
        assert general_statement.base_value(LineItemKind.sde) is None
        assert base_amount(general_statement, LineItemKind.sde) == 0.0

    def test_best_ebitda_priority(self):
        statement = FinancialStatement.from_dict(
            {
                "periods": ["TTM"],
                "lineItems": {
                    "ebitda": {"TTM": 300_000},
                    "adjustedEbitda": {"TTM": 350_000},
                    "sde": {"TTM": 420_000},
                },
            }
        )
        assert statement.best_ebitda("TTM") == 420_000

    def test_snake_case_keys_accepted(self):
        statement = FinancialStatement.from_dict(
            {"periods": ["TTM"], "line_items": {"commission_income": {"TTM": 10.0}}}
        )
        assert statement.base_value(LineItemKind.commission_income) == 10.0

    def test_unknown_line_items_ignored(self):
        statement = FinancialStatement.from_dict(
            {"periods": ["TTM"], "lineItems": {"mysteryLine": {"TTM": 5.0}}}
        )
        assert statement.is_empty

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            FinancialStatement.from_dict(
                {"periods": ["TTM"], "lineItems": {"revenue": {"TTM": -1.0}}}
            )

    def test_empty_periods_default_to_ttm(self, empty_statement):
        assert empty_statement.periods == ("TTM",)
        assert empty_statement.is_empty

    def test_statement_is_read_only(self, general_statement):
        with pytest.raises(TypeError):
            general_statement.line_items[LineItemKind.revenue]["TTM"] = 0
