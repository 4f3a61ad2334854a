"""
DSCR Analysis

Classifies a debt service coverage series against lender thresholds.
"""

import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence

MINIMUM_DSCR = 1.25  # Typical lender requirement
STRONG_DSCR = 1.5
BREAKEVEN_DSCR = 1.0


class DSCRStatus(str, enum.Enum):
    excellent = "excellent"
    acceptable = "acceptable"
    warning = "warning"
    critical = "critical"
    not_applicable = "not_applicable"


@dataclass(frozen=True)
class YearlyDSCR:
    year: int
    value: Optional[float]
    status: DSCRStatus
    threshold_breached: bool
    message: str


@dataclass(frozen=True)
class DSCRAssessment:
    overall_status: DSCRStatus
    message: str
    min_dscr: Optional[float]
    avg_dscr: Optional[float]
    year1_dscr: Optional[float]
    lender_requirement: float
    yearly_analysis: List[YearlyDSCR]


def classify_dscr(
    value: float, minimum: float = MINIMUM_DSCR, strong: float = STRONG_DSCR
) -> DSCRStatus:
    """Status for a single year's coverage."""
    if value >= strong:
        return DSCRStatus.excellent
    if value >= minimum:
        return DSCRStatus.acceptable
    if value >= BREAKEVEN_DSCR:
        return DSCRStatus.warning
    return DSCRStatus.critical


def _year_message(value: float, status: DSCRStatus, minimum: float) -> str:
    if status == DSCRStatus.excellent:
        return f"{value:.2f}x - Strong debt service coverage"
    if status == DSCRStatus.acceptable:
        return f"{value:.2f}x - Meets minimum requirements"
    if status == DSCRStatus.warning:
        return f"{value:.2f}x - Below lender minimum of {minimum}x"
    return f"{value:.2f}x - Cannot service debt"


def analyze_dscr(
    dscr_series: Sequence[Optional[float]],
    minimum: float = MINIMUM_DSCR,
    strong: float = STRONG_DSCR,
) -> DSCRAssessment:
    """
    Assess a DSCR series year by year and overall.

    Years with no debt service (None) are reported as not applicable and
    left out of the aggregate.

    Args:
        dscr_series: DSCR per projection year, year 1 first
        minimum: Lender minimum coverage
        strong: Coverage considered strong

    Returns:
        DSCRAssessment with per-year statuses and the overall verdict
    """
    yearly = []
    for index, value in enumerate(dscr_series):
        if value is None:
            yearly.append(
                YearlyDSCR(
                    year=index + 1,
                    value=None,
                    status=DSCRStatus.not_applicable,
                    threshold_breached=False,
                    message="N/A - No debt service",
                )
            )
            continue
        status = classify_dscr(value, minimum, strong)
        yearly.append(
            YearlyDSCR(
                year=index + 1,
                value=value,
                status=status,
                threshold_breached=value < minimum,
                message=_year_message(value, status, minimum),
            )
        )

    values = [v for v in dscr_series if v is not None]
    year1 = dscr_series[0] if dscr_series else None

    if not values:
        return DSCRAssessment(
            overall_status=DSCRStatus.not_applicable,
            message="No DSCR data available",
            min_dscr=None,
            avg_dscr=None,
            year1_dscr=year1,
            lender_requirement=minimum,
            yearly_analysis=yearly,
        )

    min_dscr = min(values)
    avg_dscr = sum(values) / len(values)

    if min_dscr < BREAKEVEN_DSCR:
        overall = DSCRStatus.critical
        message = "Critical: Cash flow insufficient to service debt in some years"
    elif min_dscr < minimum:
        overall = DSCRStatus.warning
        message = f"Warning: DSCR falls below {minimum}x minimum in some years"
    elif avg_dscr >= strong:
        overall = DSCRStatus.excellent
        message = "Excellent: Strong debt service coverage throughout projection"
    else:
        overall = DSCRStatus.acceptable
        message = "Acceptable: Meets lender requirements with adequate cushion"

    return DSCRAssessment(
        overall_status=overall,
        message=message,
        min_dscr=min_dscr,
        avg_dscr=avg_dscr,
        year1_dscr=year1,
        lender_requirement=minimum,
        yearly_analysis=yearly,
    )
