"""
Investor Return Calculations

Implements IRR using Newton-Raphson, plus MOIC and payback period.
Degenerate series return documented sentinels instead of raising.
"""

import logging
import math
from typing import List, Sequence

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 50
DEFAULT_GUESS = 0.1
NPV_TOLERANCE = 0.01
DERIVATIVE_FLOOR = 1e-4
MIN_RATE = -0.99
MAX_RATE = 10.0

# Returned when a series never produces a positive return ("N/A" in the UI)
IRR_SENTINEL = -1.0

MOIC_WARNING_CEILING = 20.0


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of cash flows.

    Args:
        cash_flows: Array of cash flows, period 0 first
        discount_rate: Annual discount rate (e.g., 0.10 for 10%)

    Returns:
        NPV value
    """
    npv = 0.0
    for period, cf in enumerate(cash_flows):
        npv += cf / ((1 + discount_rate) ** period)
    return npv


def _npv_derivative(cash_flows: Sequence[float], rate: float) -> float:
    """Calculate derivative of NPV with respect to rate (for Newton-Raphson)."""
    dnpv = 0.0
    for period, cf in enumerate(cash_flows):
        dnpv -= (period * cf) / ((1 + rate) ** (period + 1))
    return dnpv


def _clamp_rate(rate: float) -> float:
    return min(MAX_RATE, max(MIN_RATE, rate))


def compute_irr(cash_flows: Sequence[float], initial_investment: float) -> float:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    Args:
        cash_flows: Post-investment annual cash flows (year 1..N); the caller
            adds any exit value into the final element
        initial_investment: Absolute value of the year-0 outflow

    Returns:
        Annual IRR as decimal (e.g., 0.15 for 15%), or IRR_SENTINEL (-1.0)
        when the series never produces a positive return
    """
    if initial_investment <= 0 or sum(cash_flows) <= 0:
        return IRR_SENTINEL

    flows: List[float] = [-initial_investment, *cash_flows]
    rate = DEFAULT_GUESS

    try:
        for _ in range(MAX_ITERATIONS):
            npv = calculate_npv(flows, rate)
            dnpv = _npv_derivative(flows, rate)

            if abs(dnpv) < DERIVATIVE_FLOOR:
                break

            rate = _clamp_rate(rate - npv / dnpv)

            if abs(npv) < NPV_TOLERANCE:
                break
    except (OverflowError, ZeroDivisionError) as e:
        logger.warning(f"IRR iteration failed, returning sentinel: {e}")
        return IRR_SENTINEL

    if not math.isfinite(rate) or rate < MIN_RATE or rate > MAX_RATE:
        return IRR_SENTINEL

    return rate


def compute_moic(total_cash_returned: float, initial_investment: float) -> float:
    """
    Calculate multiple on invested capital.

    Negative or implausibly large multiples point at upstream assumption
    problems; they are logged, not raised.
    """
    if initial_investment <= 0:
        return 0.0

    moic = total_cash_returned / initial_investment

    if moic < 0:
        logger.warning("Negative MOIC detected - check cash flow projections")
    if moic > MOIC_WARNING_CEILING:
        logger.warning(
            f"Extremely high MOIC detected ({moic:.1f}x) - verify assumptions"
        )

    return moic


def compute_payback(
    cash_flows: Sequence[float], initial_investment: float, horizon_years: int
) -> float:
    """
    Calculate payback period in fractional years.

    Args:
        cash_flows: Annual cash flows (year 1..N)
        initial_investment: Equity invested at year 0
        horizon_years: Number of years to search

    Returns:
        First fractional year at which cumulative cash covers the investment,
        or the horizon when it never does
    """
    if initial_investment <= 0:
        return 0.0

    cumulative = 0.0
    for i, cf in enumerate(cash_flows[:horizon_years]):
        cumulative += cf
        if cumulative >= initial_investment:
            return i + 1 - (cumulative - initial_investment) / cf

    return float(horizon_years)
