"""
Business Insights

Plain-language observations on growth, profitability, scale and earnings
stability drawn from the historical financials.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from dealmodel.calculations.classifier import BusinessProfile
from dealmodel.calculations.statements import FinancialStatement, LineItemKind

DEBT_CAPACITY_MULTIPLE = 3.5


@dataclass
class BusinessInsights:
    insights: List[str] = field(default_factory=list)
    risks: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)


def calculate_variability(values: Sequence[Optional[float]]) -> float:
    """Coefficient of variation of the positive values (0 if fewer than two)."""
    positive = np.array([v for v in values if v is not None and v > 0], dtype=float)
    if positive.size < 2:
        return 0.0
    mean = positive.mean()
    return float(positive.std() / mean) if mean > 0 else 0.0


def _format_currency(value: float) -> str:
    return f"${value:,.0f}"


def _format_percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def generate_business_insights(
    statement: FinancialStatement, profile: BusinessProfile
) -> BusinessInsights:
    result = BusinessInsights()
    if statement.is_empty:
        result.insights.append(f"Business profile suggests {profile.description}")
        result.opportunities.append(profile.valuation_model.opportunity)
        return result

    revenues = [v for v in statement.series(LineItemKind.revenue) if v]
    ebitdas = [statement.best_ebitda(p) for p in statement.periods]

    if len(revenues) >= 2:
        recent_growth = revenues[-1] / revenues[-2] - 1
        avg_growth = 0.0
        if len(revenues) > 2:
            avg_growth = (revenues[-1] / revenues[0]) ** (1 / (len(revenues) - 1)) - 1

        if recent_growth > 0.20:
            result.insights.append(
                f"Strong revenue momentum with {_format_percent(recent_growth)} recent growth"
            )
            result.opportunities.append(
                "High growth trajectory suggests market demand and scalability"
            )
        elif recent_growth < -0.10:
            result.risks.append(
                f"Revenue declined {_format_percent(abs(recent_growth))} in most recent period"
            )
        else:
            result.insights.append(
                f"Stable revenue growth averaging {_format_percent(avg_growth)} annually"
            )

    latest_revenue = statement.latest_value(LineItemKind.revenue) or 0.0
    latest_ebitda = statement.base_best_ebitda() or 0.0
    ebitda_margin = latest_ebitda / latest_revenue * 100 if latest_revenue > 0 else 0.0

    if latest_revenue > 0:
        if ebitda_margin > 15:
            result.insights.append(
                f"Healthy EBITDA margin of {ebitda_margin:.1f}% indicates strong operational efficiency"
            )
            result.opportunities.append(
                "Strong margins provide flexibility for investment and growth initiatives"
            )
        elif ebitda_margin < 5:
            result.risks.append(
                f"Low EBITDA margin of {ebitda_margin:.1f}% suggests operational challenges"
            )

        if latest_revenue > 10_000_000:
            result.insights.append(
                "Substantial revenue base provides platform for continued expansion"
            )
            result.opportunities.append(
                "Scale advantages in procurement, operations, and market presence"
            )
        elif latest_revenue < 1_000_000:
            result.insights.append("Early-stage company with significant growth potential")
            result.risks.append(
                "Limited scale may constrain operational efficiency and market power"
            )

    variability = calculate_variability(ebitdas)
    positive_ebitdas = [v for v in ebitdas if v]
    if len(positive_ebitdas) >= 2:
        if variability < 0.15:
            result.insights.append(
                "Predictable cash flows with low earnings volatility support stable debt service"
            )
            result.opportunities.append(
                "Consistent performance enables optimized capital structure and financing terms"
            )
        elif variability > 0.3:
            result.risks.append(
                "High earnings volatility may impact cash flow predictability and debt servicing ability"
            )

    if ebitda_margin > 20 and latest_revenue > 5_000_000:
        result.insights.append(
            "Strong market position evidenced by premium margins and scale"
        )
        result.opportunities.append(
            "Market leadership provides pricing power and competitive advantages"
        )
    elif ebitda_margin < 10 and latest_revenue > 2_000_000:
        result.risks.append(
            "Low margins despite scale suggest competitive pressures or operational inefficiencies"
        )
        result.opportunities.append(
            "Margin improvement initiatives could significantly enhance value"
        )

    if latest_ebitda > 500_000:
        capacity = latest_ebitda * DEBT_CAPACITY_MULTIPLE
        result.opportunities.append(
            f"Strong EBITDA of {_format_currency(latest_ebitda)} supports debt capacity "
            f"of ~{_format_currency(capacity)} for growth initiatives"
        )

    result.insights.append(f"Business profile suggests {profile.description}")
    result.opportunities.append(profile.valuation_model.opportunity)

    return result
