"""
Loan Amortization Calculations

Implements acquisition loan payment and amortization calculations,
matching Excel's PMT function for the level monthly payment.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterator, List, Optional

from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class AmortizationStep:
    """One projection year of the annual loan recurrence."""

    opening_balance: float
    interest: float
    principal: float
    payment: float
    closing_balance: float


def calculate_payment(
    principal: float, annual_rate: float, amortization_months: int
) -> float:
    """
    Calculate monthly loan payment.

    Matches Excel's PMT() function.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate as decimal (e.g., 0.11 for 11%)
        amortization_months: Total amortization period in months

    Returns:
        Monthly payment amount (positive number)
    """
    if principal <= 0:
        return 0.0
    if amortization_months <= 0:
        return 0.0

    monthly_rate = annual_rate / 12

    if monthly_rate == 0:
        return principal / amortization_months

    payment = (
        principal
        * monthly_rate
        * ((1 + monthly_rate) ** amortization_months)
        / (((1 + monthly_rate) ** amortization_months) - 1)
    )

    return payment


def calculate_annual_debt_service(
    principal: float, annual_rate: float, term_years: int
) -> float:
    """Annual debt service (12 level monthly payments) for a term loan."""
    return calculate_payment(principal, annual_rate, term_years * 12) * 12


def amortize_year(
    opening_balance: float, annual_rate: float, annual_debt_service: float
) -> AmortizationStep:
    """
    Apply one year of the annual amortization recurrence.

    Interest accrues on the opening balance at the annual rate and the rest
    of the debt service retires principal. The final payment is capped at
    what is owed, so the balance never goes below zero.
    """
    if opening_balance <= 0:
        return AmortizationStep(0.0, 0.0, 0.0, 0.0, 0.0)

    interest = opening_balance * annual_rate
    if annual_debt_service >= opening_balance + interest:
        return AmortizationStep(
            opening_balance=opening_balance,
            interest=interest,
            principal=opening_balance,
            payment=opening_balance + interest,
            closing_balance=0.0,
        )

    payment = annual_debt_service
    principal = payment - interest
    closing_balance = max(0.0, opening_balance - principal)

    return AmortizationStep(
        opening_balance=opening_balance,
        interest=interest,
        principal=principal,
        payment=payment,
        closing_balance=closing_balance,
    )


def calculate_dscr(cfads: float, debt_service: float) -> Optional[float]:
    """
    Calculate Debt Service Coverage Ratio (DSCR).

    The projector passes CFADS measured before interest, so its DSCR is
    higher than a ratio that also deducts interest from cash flow, by
    interest / debt service.

    Args:
        cfads: Cash flow available for debt service for the period
        debt_service: Debt service for the period

    Returns:
        DSCR ratio, or None when there is no debt to service
    """
    if debt_service <= 0:
        return None
    return cfads / debt_service


def _iter_amortization(
    principal: float,
    annual_rate: float,
    amortization_months: int,
    io_months: int,
    total_months: int,
) -> Iterator[Dict]:
    """Yield unrounded monthly rows until the term ends or the loan is repaid."""
    balance = principal
    monthly_rate = annual_rate / 12

    for period in range(1, total_months + 1):
        interest = balance * monthly_rate

        if period <= io_months:
            principal_pmt = 0.0
            payment = interest
        else:
            remaining_amort_periods = amortization_months - (period - io_months - 1)
            if remaining_amort_periods > 0:
                payment = calculate_payment(balance, annual_rate, remaining_amort_periods)
                principal_pmt = min(payment - interest, balance)
                payment = principal_pmt + interest
            else:
                principal_pmt = balance
                payment = balance + interest

        ending_balance = max(0.0, balance - principal_pmt)

        yield {
            "period": period,
            "beginning_balance": balance,
            "payment": payment,
            "interest": interest,
            "principal": principal_pmt,
            "ending_balance": ending_balance,
        }

        balance = ending_balance
        if balance == 0:
            break


def generate_amortization_schedule(
    principal: float,
    annual_rate: float,
    amortization_months: int,
    io_months: int = 0,
    total_months: Optional[int] = None,
    start_date: Optional[date] = None,
) -> List[Dict]:
    """
    Generate a full monthly amortization schedule.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate as decimal
        amortization_months: Amortization period in months
        io_months: Interest-only period in months
        total_months: Total loan term in months (defaults to IO + amortization)
        start_date: Date of first payment

    Returns:
        List of amortization rows
    """
    if principal <= 0:
        return []
    if total_months is None:
        total_months = io_months + amortization_months
    if start_date is None:
        start_date = date.today()

    schedule = []
    for row in _iter_amortization(
        principal, annual_rate, amortization_months, io_months, total_months
    ):
        period_date = start_date + relativedelta(months=row["period"] - 1)
        schedule.append(
            {
                "period": row["period"],
                "date": period_date.isoformat(),
                "beginning_balance": round(row["beginning_balance"], 2),
                "payment": round(row["payment"], 2),
                "interest": round(row["interest"], 2),
                "principal": round(row["principal"], 2),
                "ending_balance": round(row["ending_balance"], 2),
            }
        )

    return schedule


def annual_amortization_summary(
    principal: float, annual_rate: float, term_years: int
) -> List[Dict]:
    """
    Roll the monthly schedule up into loan years.

    Returns:
        One row per year with total payment, interest, principal and the
        balance remaining at year end
    """
    years: List[Dict] = []
    if principal <= 0 or term_years <= 0:
        return years

    months = term_years * 12
    for row in _iter_amortization(principal, annual_rate, months, 0, months):
        year = (row["period"] - 1) // 12 + 1
        if not years or years[-1]["year"] != year:
            years.append(
                {
                    "year": year,
                    "payment": 0.0,
                    "interest": 0.0,
                    "principal": 0.0,
                    "ending_balance": row["beginning_balance"],
                }
            )
        totals = years[-1]
        totals["payment"] += row["payment"]
        totals["interest"] += row["interest"]
        totals["principal"] += row["principal"]
        totals["ending_balance"] = row["ending_balance"]

    return years


def calculate_total_interest(schedule: List[Dict]) -> float:
    """Calculate total interest paid over loan term."""
    return sum(row["interest"] for row in schedule)
