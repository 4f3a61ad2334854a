"""
Five-Year Pro Forma Projection

Projects revenue through free cash flow, debt service and DSCR for five
years, then values the exit and computes investor returns. The projection
is recomputed in full whenever an assumption changes.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from dealmodel.calculations.amortization import (
    amortize_year,
    calculate_annual_debt_service,
    calculate_dscr,
)
from dealmodel.calculations.assumptions import Assumptions
from dealmodel.calculations.debt_service import DebtServiceModel
from dealmodel.calculations.dscr import (
    MINIMUM_DSCR,
    STRONG_DSCR,
    DSCRAssessment,
    analyze_dscr,
)
from dealmodel.calculations.industries import DEFAULT_TABLES, ExitModel, IndustryTables
from dealmodel.calculations.returns import compute_irr, compute_moic, compute_payback
from dealmodel.calculations.statements import (
    FinancialStatement,
    LineItemKind,
    base_amount,
)

logger = logging.getLogger(__name__)

PROJECTION_YEARS = 5

# Market owner salary: 15% of revenue, capped
MARKET_OWNER_COMP_PCT = 0.15
MARKET_OWNER_COMP_CAP = 300_000

# Revenue multiple haircut when EBITDA cannot support an exit value
CONSERVATIVE_REVENUE_FACTOR = 0.3

CFADS_TOLERANCE = 1.0

REVENUE_BASED_EXIT_METRICS = ("commission_income", "arr", "revenue")
EXIT_METRIC_LABELS = {
    "commission_income": "Commission Income",
    "arr": "ARR",
    "ebitda": "EBITDA",
    "revenue": "Revenue",
}
CUSTOM_EXIT_LABEL = "Custom Value"
NO_EXIT_LABEL = "No exit value - insufficient data"


@dataclass(frozen=True)
class ProjectionDrivers:
    """Per-run constants feeding every projection year."""

    base_revenue: float
    revenue_growth_rate: float
    gross_margin_pct: float
    opex_pct: float
    owner_comp_adjustment: float
    interest_rate: float
    annual_debt_service: float
    depreciation_pct: float
    tax_rate: float
    working_capital_pct: float
    capex_pct: float


@dataclass(frozen=True)
class ProjectionState:
    """Balances carried from one projection year to the next."""

    debt_balance: float
    working_capital: float


@dataclass(frozen=True)
class YearProjection:
    year: int
    revenue: float
    gross_profit: float
    opex: float
    ebitda: float
    depreciation: float
    interest_expense: float
    principal_payment: float
    tax: float
    net_income: float
    working_capital_change: float
    capex: float
    free_cash_flow: float
    debt_service: float
    cash_after_debt: float
    cfads: float
    dscr: Optional[float]
    debt_balance: float


@dataclass(frozen=True)
class ExitValuation:
    value: float
    multiple: Optional[float]
    method_label: str


@dataclass(frozen=True)
class ProjectionResult:
    years: List[int]
    revenue: List[float]
    gross_profit: List[float]
    opex: List[float]
    ebitda: List[float]
    depreciation: List[float]
    interest_expense: List[float]
    tax: List[float]
    net_income: List[float]
    working_capital_change: List[float]
    capex: List[float]
    free_cash_flow: List[float]
    debt_service: List[float]
    cash_after_debt: List[float]
    cfads: List[float]
    dscr: List[Optional[float]]
    debt_balance: List[float]
    irr: float
    moic: float
    payback_years: float
    exit_value: float
    exit_multiple: Optional[float]
    exit_method_label: str
    exit_year: int
    initial_investment: float
    dscr_analysis: DSCRAssessment


def owner_comp_adjustment(statement: FinancialStatement, base_revenue: float) -> float:
    """
    Normalize owner pay to a market salary.

    Positive when the current owner is paid above market (an addback that
    lowers opex), negative when a market salary must be added.
    """
    current = (
        statement.base_value(LineItemKind.owner_salary)
        or statement.base_value(LineItemKind.officer_comp)
        or 0.0
    )
    market = min(base_revenue * MARKET_OWNER_COMP_PCT, MARKET_OWNER_COMP_CAP)
    return current - market


def project_year(
    state: ProjectionState, year: int, drivers: ProjectionDrivers
) -> Tuple[YearProjection, ProjectionState]:
    """Project a single year and return it with the balances to carry forward."""
    revenue = drivers.base_revenue * (1 + drivers.revenue_growth_rate) ** year
    gross_profit = revenue * drivers.gross_margin_pct
    opex = revenue * drivers.opex_pct - drivers.owner_comp_adjustment
    ebitda = gross_profit - opex

    loan = amortize_year(
        state.debt_balance, drivers.interest_rate, drivers.annual_debt_service
    )

    depreciation = revenue * drivers.depreciation_pct
    ebit = ebitda - depreciation
    ebt = ebit - loan.interest
    tax = max(0.0, ebt * drivers.tax_rate)
    net_income = ebt - tax

    working_capital = revenue * drivers.working_capital_pct
    working_capital_change = working_capital - state.working_capital

    capex = revenue * drivers.capex_pct

    free_cash_flow = net_income + depreciation - working_capital_change - capex
    cash_after_debt = free_cash_flow - loan.payment

    # Cash available before any debt service
    cfads = ebitda - tax - working_capital_change - capex
    if abs(cfads - (free_cash_flow + loan.interest)) > CFADS_TOLERANCE:
        logger.warning(
            f"Year {year}: CFADS inconsistency. CFADS: {cfads:,.2f}, "
            f"FCF + interest: {free_cash_flow + loan.interest:,.2f}"
        )

    projection = YearProjection(
        year=year,
        revenue=revenue,
        gross_profit=gross_profit,
        opex=opex,
        ebitda=ebitda,
        depreciation=depreciation,
        interest_expense=loan.interest,
        principal_payment=loan.principal,
        tax=tax,
        net_income=net_income,
        working_capital_change=working_capital_change,
        capex=capex,
        free_cash_flow=free_cash_flow,
        debt_service=loan.payment,
        cash_after_debt=cash_after_debt,
        cfads=cfads,
        dscr=calculate_dscr(cfads, loan.payment),
        debt_balance=loan.closing_balance,
    )
    return projection, ProjectionState(
        debt_balance=loan.closing_balance, working_capital=working_capital
    )


def project_years(
    drivers: ProjectionDrivers, opening_debt: float, years: int = PROJECTION_YEARS
) -> List[YearProjection]:
    """Fold the year recurrence over the projection horizon, in order."""
    state = ProjectionState(
        debt_balance=max(0.0, opening_debt),
        working_capital=drivers.base_revenue * drivers.working_capital_pct,
    )
    projections = []
    for year in range(1, years + 1):
        projection, state = project_year(state, year, drivers)
        projections.append(projection)
    return projections


def select_exit_valuation(
    exit_model: ExitModel,
    exit_ebitda: float,
    exit_revenue: float,
    custom_exit_value: Optional[float] = None,
    multiple_override: Optional[float] = None,
) -> ExitValuation:
    """
    Value the business at exit.

    Rules are tried in order and the first applicable one wins: a custom
    value, the industry's own metric, EBITDA at the same multiple, then a
    discounted revenue multiple.
    """
    if custom_exit_value and custom_exit_value > 0:
        implied = custom_exit_value / exit_ebitda if exit_ebitda > 0 else None
        return ExitValuation(custom_exit_value, implied, CUSTOM_EXIT_LABEL)

    multiple = exit_model.multiple if multiple_override is None else multiple_override
    if multiple_override is None:
        label = exit_model.display
    else:
        label = f"{multiple:.1f}x {EXIT_METRIC_LABELS.get(exit_model.metric, 'EBITDA')}"
    conservative = multiple * CONSERVATIVE_REVENUE_FACTOR

    rules: Sequence[Tuple[Callable[[], bool], Callable[[], ExitValuation]]] = (
        (
            lambda: exit_model.metric in REVENUE_BASED_EXIT_METRICS and exit_revenue > 0,
            lambda: ExitValuation(exit_revenue * multiple, multiple, label),
        ),
        (
            lambda: exit_model.metric == "ebitda" and exit_ebitda > 0,
            lambda: ExitValuation(exit_ebitda * multiple, multiple, label),
        ),
        (
            lambda: exit_ebitda > 0,
            lambda: ExitValuation(exit_ebitda * multiple, multiple, f"{multiple:.1f}x EBITDA"),
        ),
        (
            lambda: exit_revenue > 0,
            lambda: ExitValuation(
                exit_revenue * conservative, conservative, f"{conservative:.1f}x Revenue"
            ),
        ),
    )
    for applies, compute in rules:
        if applies():
            return compute()

    return ExitValuation(0.0, 0.0, NO_EXIT_LABEL)


class FiveYearProjector:
    """Authoritative five-year projection engine."""

    def __init__(
        self,
        tables: IndustryTables = DEFAULT_TABLES,
        dscr_minimum: float = MINIMUM_DSCR,
        dscr_strong: float = STRONG_DSCR,
    ):
        self.tables = tables
        self.dscr_minimum = dscr_minimum
        self.dscr_strong = dscr_strong

    def drivers(
        self, statement: FinancialStatement, assumptions: Assumptions
    ) -> ProjectionDrivers:
        base_revenue = base_amount(statement, LineItemKind.revenue)
        if assumptions.capex_pct is None:
            capex_pct = self.tables.capex_pct(assumptions.business_type)
        else:
            capex_pct = assumptions.capex_pct

        return ProjectionDrivers(
            base_revenue=base_revenue,
            revenue_growth_rate=assumptions.revenue_growth_rate,
            gross_margin_pct=assumptions.gross_margin_pct,
            opex_pct=assumptions.opex_pct,
            owner_comp_adjustment=owner_comp_adjustment(statement, base_revenue),
            interest_rate=assumptions.interest_rate,
            annual_debt_service=calculate_annual_debt_service(
                assumptions.loan_principal,
                assumptions.interest_rate,
                assumptions.loan_term_years,
            ),
            depreciation_pct=assumptions.depreciation_pct,
            tax_rate=assumptions.tax_rate,
            working_capital_pct=assumptions.working_capital_pct,
            capex_pct=capex_pct,
        )

    def project(
        self,
        statement: FinancialStatement,
        debt_model: Optional[DebtServiceModel],
        assumptions: Assumptions,
        custom_exit_value: Optional[float] = None,
    ) -> ProjectionResult:
        """
        Run the full projection.

        Args:
            statement: Historical financials (unmodified between runs)
            debt_model: First-pass debt service model; its purchase price is
                used when the assumptions carry none
            assumptions: Current deal assumptions
            custom_exit_value: User override for the exit value

        Returns:
            ProjectionResult with yearly series, exit valuation and returns
        """
        if not assumptions.purchase_price and debt_model is not None:
            assumptions = replace(
                assumptions, purchase_price=debt_model.assumptions.purchase_price
            )

        drivers = self.drivers(statement, assumptions)
        years = project_years(drivers, assumptions.loan_principal)

        exit_index = min(assumptions.exit_year, PROJECTION_YEARS) - 1
        exit_year = years[exit_index]
        exit_valuation = select_exit_valuation(
            self.tables.exit_model(assumptions.business_type),
            exit_ebitda=exit_year.ebitda,
            exit_revenue=exit_year.revenue,
            custom_exit_value=custom_exit_value,
            multiple_override=assumptions.exit_multiple,
        )

        cash_after_debt = [y.cash_after_debt for y in years]
        total_cash_flows = cash_after_debt[: exit_index + 1]
        total_cash_flows[-1] += exit_valuation.value

        initial_investment = assumptions.down_payment
        irr = compute_irr(total_cash_flows, initial_investment)
        moic = compute_moic(sum(total_cash_flows), initial_investment)
        payback = compute_payback(
            cash_after_debt, initial_investment, assumptions.exit_year
        )

        dscr = [y.dscr for y in years]
        logger.debug(
            f"Projection complete: exit {exit_valuation.value:,.0f} "
            f"({exit_valuation.method_label}), IRR {irr:.4f}, MOIC {moic:.2f}"
        )

        return ProjectionResult(
            years=[y.year for y in years],
            revenue=[y.revenue for y in years],
            gross_profit=[y.gross_profit for y in years],
            opex=[y.opex for y in years],
            ebitda=[y.ebitda for y in years],
            depreciation=[y.depreciation for y in years],
            interest_expense=[y.interest_expense for y in years],
            tax=[y.tax for y in years],
            net_income=[y.net_income for y in years],
            working_capital_change=[y.working_capital_change for y in years],
            capex=[y.capex for y in years],
            free_cash_flow=[y.free_cash_flow for y in years],
            debt_service=[y.debt_service for y in years],
            cash_after_debt=cash_after_debt,
            cfads=[y.cfads for y in years],
            dscr=dscr,
            debt_balance=[y.debt_balance for y in years],
            irr=irr,
            moic=moic,
            payback_years=payback,
            exit_value=exit_valuation.value,
            exit_multiple=exit_valuation.multiple,
            exit_method_label=exit_valuation.method_label,
            exit_year=assumptions.exit_year,
            initial_investment=initial_investment,
            dscr_analysis=analyze_dscr(dscr, self.dscr_minimum, self.dscr_strong),
        )


def build_five_year_model(
    statement: FinancialStatement,
    debt_model: Optional[DebtServiceModel],
    assumptions: Assumptions,
    custom_exit_value: Optional[float] = None,
    tables: IndustryTables = DEFAULT_TABLES,
) -> ProjectionResult:
    """Project a deal using the given (default) industry tables."""
    return FiveYearProjector(tables).project(
        statement, debt_model, assumptions, custom_exit_value
    )
