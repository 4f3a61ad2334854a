"""
Debt Service Model

First-pass five-year CFADS/DSCR view built from a single flat margin, used
for the deal summary before the full projector is opened. Debt service comes
from the same amortization engine as the projector, so both views agree on
the annual payment.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from dealmodel.calculations.amortization import (
    calculate_annual_debt_service,
    calculate_dscr,
)
from dealmodel.calculations.assumptions import Assumptions
from dealmodel.calculations.industries import DEFAULT_TABLES, IndustryTables
from dealmodel.calculations.statements import (
    FinancialStatement,
    LineItemKind,
    base_amount,
)

PROJECTION_YEARS = 5
CAPEX_AND_WC_PCT = 0.02  # Flat reserve for capex and working capital
INDUSTRY_MULTIPLE = 3.5
FAIR_VALUE_MULTIPLES = (2.5, 4.0)


@dataclass(frozen=True)
class ValuationSnapshot:
    sde_multiple: Optional[float]
    industry_multiple: float
    fair_value_range: Optional[Tuple[float, float]]


@dataclass(frozen=True)
class DebtServiceProjections:
    annual_debt_service: float
    cfads: List[float]
    dscr: List[Optional[float]]
    valuation: ValuationSnapshot


@dataclass(frozen=True)
class RiskAnalysis:
    customer_concentration: str
    owner_dependency: str
    industry_risk: str
    recommendation: str


@dataclass(frozen=True)
class DebtServiceModel:
    assumptions: Assumptions
    projections: DebtServiceProjections
    risk_analysis: RiskAnalysis


def generate_risk_analysis(
    latest_revenue: float,
    latest_ebitda: float,
    description: str,
    sde_multiple: Optional[float],
) -> RiskAnalysis:
    """Qualitative risk read-out from scale, margin and industry."""
    ebitda_margin = (latest_ebitda / latest_revenue) * 100 if latest_revenue > 0 else 0

    if latest_revenue < 1_000_000:
        customer_concentration = "High - Small businesses typically have concentrated customer bases"
    elif "insurance" in description or "service" in description:
        customer_concentration = "Moderate - Service businesses often have diversified client relationships"
    elif latest_revenue > 10_000_000:
        customer_concentration = "Low - Large revenue base suggests diversified customer portfolio"
    else:
        customer_concentration = "Moderate"

    if latest_revenue < 2_000_000:
        owner_dependency = "High - Small businesses typically dependent on key personnel"
    elif ebitda_margin > 20:
        owner_dependency = "Low - Strong margins suggest established systems and processes"
    elif "software" in description:
        owner_dependency = "Moderate - Technology businesses often have scalable systems"
    else:
        owner_dependency = "Moderate"

    if "insurance" in description:
        industry_risk = "Low - Insurance brokerage is recession-resistant with recurring revenue"
    elif "software" in description:
        industry_risk = "Moderate - Technology sector has growth potential but competitive pressures"
    elif "manufacturing" in description:
        industry_risk = "Moderate to High - Manufacturing sensitive to economic cycles and supply chains"
    elif "service" in description:
        industry_risk = "Low to Moderate - Service businesses often have stable demand"
    else:
        industry_risk = "Moderate"

    multiple = sde_multiple or 0
    if multiple > 6:
        recommendation = "Overvalued - Negotiate price reduction of 15-25%"
    elif multiple > 4.5:
        recommendation = "Premium valuation - Ensure strong growth prospects justify price"
    elif multiple > 2.5:
        recommendation = "Fair valuation - Reasonable multiple for quality business"
    elif sde_multiple is None:
        recommendation = "Insufficient earnings data to assess valuation"
    else:
        recommendation = "Attractive valuation - Consider accelerated due diligence"

    return RiskAnalysis(
        customer_concentration=customer_concentration,
        owner_dependency=owner_dependency,
        industry_risk=industry_risk,
        recommendation=recommendation,
    )


def build_debt_service_model(
    statement: FinancialStatement,
    assumptions: Assumptions,
    tables: IndustryTables = DEFAULT_TABLES,
) -> DebtServiceModel:
    """
    Build the first-pass debt service model.

    Args:
        statement: Historical financials
        assumptions: Deal assumptions (price, financing, growth and margin)
        tables: Industry lookup tables

    Returns:
        DebtServiceModel with annual debt service, CFADS and DSCR by year
    """
    annual_debt_service = calculate_annual_debt_service(
        assumptions.loan_principal,
        assumptions.interest_rate,
        assumptions.loan_term_years,
    )

    base_revenue = base_amount(statement, LineItemKind.revenue)
    base_ebitda = statement.base_best_ebitda()

    cfads = []
    dscr = []
    for year in range(1, PROJECTION_YEARS + 1):
        year_revenue = base_revenue * (1 + assumptions.revenue_growth_rate) ** year
        year_ebitda = year_revenue * assumptions.margin_rate
        year_cfads = year_ebitda - year_revenue * CAPEX_AND_WC_PCT
        cfads.append(year_cfads)
        dscr.append(calculate_dscr(year_cfads, annual_debt_service))

    if base_ebitda:
        sde_multiple = assumptions.purchase_price / base_ebitda
        fair_value_range = (
            base_ebitda * FAIR_VALUE_MULTIPLES[0],
            base_ebitda * FAIR_VALUE_MULTIPLES[1],
        )
    else:
        sde_multiple = None
        fair_value_range = None

    description = tables.valuation_model(assumptions.business_type).description
    risk_analysis = generate_risk_analysis(
        latest_revenue=base_revenue,
        latest_ebitda=base_ebitda or 0.0,
        description=description,
        sde_multiple=sde_multiple,
    )

    return DebtServiceModel(
        assumptions=assumptions,
        projections=DebtServiceProjections(
            annual_debt_service=annual_debt_service,
            cfads=cfads,
            dscr=dscr,
            valuation=ValuationSnapshot(
                sde_multiple=sde_multiple,
                industry_multiple=INDUSTRY_MULTIPLE,
                fair_value_range=fair_value_range,
            ),
        ),
        risk_analysis=risk_analysis,
    )
