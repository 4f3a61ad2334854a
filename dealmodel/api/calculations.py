"""
Deal calculation API endpoints.

These endpoints accept extracted financials and assumptions and return
freshly calculated results. Nothing is stored between requests.
"""

from dataclasses import asdict, fields
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from dealmodel.calculations import (
    amortization,
    assumptions as deal_assumptions,
    classifier,
    debt_service,
    dscr,
    insights,
    projection,
    returns,
    sensitivity,
)
from dealmodel.calculations.statements import FinancialStatement
from dealmodel.config import get_settings

router = APIRouter()

ASSUMPTION_FIELDS = tuple(f.name for f in fields(deal_assumptions.Assumptions))


class StatementInput(BaseModel):
    """Extracted financial statement."""

    periods: List[str] = []
    line_items: Dict[str, Dict[str, Optional[float]]] = {}


class ExtractedPriceInput(BaseModel):
    """Purchase price found in the source document."""

    amount: float
    source_confidence: float = 0.0
    document_sourced: bool = True


class AssumptionsInput(BaseModel):
    """Deal assumptions as edited by the user."""

    purchase_price: float
    price_source: str = "user_edited"
    price_estimation_method: str = ""
    business_type: str = "general_business"

    # Financing
    down_payment_pct: float = 0.10
    seller_financing_pct: float = 0.0
    interest_rate: float = 0.11
    loan_term_years: int = 10

    # Operations
    revenue_growth_rate: float = 0.10
    margin_rate: float = 0.15
    gross_margin_pct: float = deal_assumptions.DEFAULT_GROSS_MARGIN_PCT
    opex_pct: float = deal_assumptions.DEFAULT_OPEX_PCT
    working_capital_pct: float = deal_assumptions.DEFAULT_WORKING_CAPITAL_PCT
    capex_pct: Optional[float] = None
    tax_rate: float = deal_assumptions.DEFAULT_TAX_RATE
    depreciation_pct: float = deal_assumptions.DEFAULT_DEPRECIATION_PCT

    # Exit
    exit_year: int = deal_assumptions.DEFAULT_EXIT_YEAR
    exit_multiple: Optional[float] = None

    confidence: int = 0


class ClassifyInput(BaseModel):
    document_text: str = ""
    file_name: str = ""
    statement: StatementInput = StatementInput()


class GenerateAssumptionsInput(ClassifyInput):
    extracted_purchase_price: Optional[ExtractedPriceInput] = None


class DealInput(BaseModel):
    statement: StatementInput
    assumptions: AssumptionsInput


class ProjectionInput(DealInput):
    custom_exit_value: Optional[float] = None


class FullDealInput(GenerateAssumptionsInput):
    custom_exit_value: Optional[float] = None


class DSCRInput(BaseModel):
    dscr: List[Optional[float]]


class IRRInput(BaseModel):
    """Input for return calculation."""

    cash_flows: List[float]
    initial_investment: float
    horizon_years: Optional[int] = None


class IRRResponse(BaseModel):
    """Response with return metrics."""

    irr: float
    irr_available: bool
    moic: float
    payback_years: float
    npv_at_10_percent: float


class AmortizationInput(BaseModel):
    """Input for amortization calculation."""

    principal: float
    annual_rate: float
    term_years: int
    io_months: int = 0
    start_date: Optional[date] = None


class SensitivityInput(DealInput):
    field: str
    values: Optional[List[float]] = None
    low: Optional[float] = None
    high: Optional[float] = None
    steps: int = 5


def _statement(inputs: StatementInput) -> FinancialStatement:
    try:
        return FinancialStatement.from_dict(
            {"periods": inputs.periods, "line_items": inputs.line_items}
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _assumptions(inputs: AssumptionsInput) -> deal_assumptions.Assumptions:
    try:
        return deal_assumptions.Assumptions(
            **{name: getattr(inputs, name) for name in ASSUMPTION_FIELDS}
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _extracted_price(
    inputs: Optional[ExtractedPriceInput],
) -> Optional[deal_assumptions.ExtractedPurchasePrice]:
    if inputs is None:
        return None
    return deal_assumptions.ExtractedPurchasePrice(
        amount=inputs.amount,
        source_confidence=inputs.source_confidence,
        document_sourced=inputs.document_sourced,
    )


def _projector() -> projection.FiveYearProjector:
    settings = get_settings()
    return projection.FiveYearProjector(
        dscr_minimum=settings.dscr_minimum, dscr_strong=settings.dscr_strong
    )


@router.post("/classify")
async def classify_business(inputs: ClassifyInput):
    """Classify a business into an industry profile."""
    statement = _statement(inputs.statement)
    profile = classifier.classify(inputs.document_text, inputs.file_name, statement)
    return asdict(profile)


@router.post("/assumptions")
async def generate_assumptions(inputs: GenerateAssumptionsInput):
    """Classify the business and derive its starting assumptions."""
    statement = _statement(inputs.statement)
    profile = classifier.classify(inputs.document_text, inputs.file_name, statement)
    generated = deal_assumptions.generate_assumptions(
        statement, profile, _extracted_price(inputs.extracted_purchase_price)
    )
    return {"profile": asdict(profile), "assumptions": asdict(generated)}


@router.post("/debt-service")
async def calculate_debt_service(inputs: DealInput):
    """Build the first-pass debt service model."""
    statement = _statement(inputs.statement)
    model = debt_service.build_debt_service_model(
        statement, _assumptions(inputs.assumptions)
    )
    return asdict(model)


@router.post("/projection")
async def calculate_projection(inputs: ProjectionInput):
    """Run the full five-year projection for the given assumptions."""
    statement = _statement(inputs.statement)
    deal = _assumptions(inputs.assumptions)
    model = debt_service.build_debt_service_model(statement, deal)
    result = _projector().project(statement, model, deal, inputs.custom_exit_value)
    return asdict(result)


@router.post("/deal")
async def analyze_deal(inputs: FullDealInput):
    """Classify, generate assumptions and project a deal in one call."""
    statement = _statement(inputs.statement)
    profile = classifier.classify(inputs.document_text, inputs.file_name, statement)
    generated = deal_assumptions.generate_assumptions(
        statement, profile, _extracted_price(inputs.extracted_purchase_price)
    )
    model = debt_service.build_debt_service_model(statement, generated)
    result = _projector().project(statement, model, generated, inputs.custom_exit_value)

    return {
        "profile": asdict(profile),
        "assumptions": asdict(generated),
        "debt_service": asdict(model.projections),
        "risk_analysis": asdict(model.risk_analysis),
        "insights": asdict(insights.generate_business_insights(statement, profile)),
        "projection": asdict(result),
    }


@router.post("/dscr")
async def assess_dscr(inputs: DSCRInput):
    """Classify a DSCR series against lender thresholds."""
    settings = get_settings()
    assessment = dscr.analyze_dscr(
        inputs.dscr, settings.dscr_minimum, settings.dscr_strong
    )
    return asdict(assessment)


@router.post("/irr", response_model=IRRResponse)
async def calculate_returns(inputs: IRRInput):
    """Calculate IRR, MOIC and payback for an equity cash flow series."""
    horizon = inputs.horizon_years or len(inputs.cash_flows)
    irr_val = returns.compute_irr(inputs.cash_flows, inputs.initial_investment)

    return IRRResponse(
        irr=irr_val,
        irr_available=irr_val != returns.IRR_SENTINEL,
        moic=returns.compute_moic(sum(inputs.cash_flows), inputs.initial_investment),
        payback_years=returns.compute_payback(
            inputs.cash_flows, inputs.initial_investment, horizon
        ),
        npv_at_10_percent=returns.calculate_npv(
            [-inputs.initial_investment, *inputs.cash_flows], 0.10
        ),
    )


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate the acquisition loan amortization schedule."""
    schedule = amortization.generate_amortization_schedule(
        principal=inputs.principal,
        annual_rate=inputs.annual_rate,
        amortization_months=inputs.term_years * 12,
        io_months=inputs.io_months,
        start_date=inputs.start_date,
    )

    return {
        "annual_debt_service": amortization.calculate_annual_debt_service(
            inputs.principal, inputs.annual_rate, inputs.term_years
        ),
        "annual_summary": amortization.annual_amortization_summary(
            inputs.principal, inputs.annual_rate, inputs.term_years
        ),
        "schedule": schedule,
        "total_interest": amortization.calculate_total_interest(schedule),
        "total_principal": sum(row["principal"] for row in schedule),
    }


@router.post("/sensitivity")
async def run_sensitivity(inputs: SensitivityInput):
    """Sweep one assumption and report returns and coverage for each value."""
    statement = _statement(inputs.statement)
    deal = _assumptions(inputs.assumptions)

    values = inputs.values
    if values is None:
        if inputs.low is None or inputs.high is None:
            raise HTTPException(
                status_code=400, detail="Provide either values or low and high"
            )
        values = sensitivity.linear_grid(inputs.low, inputs.high, inputs.steps)

    model = debt_service.build_debt_service_model(statement, deal)
    try:
        rows = sensitivity.sweep(
            statement, model, deal, inputs.field, values, projector=_projector()
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"field": inputs.field, "rows": [asdict(row) for row in rows]}
