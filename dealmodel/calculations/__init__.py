"""
Deal Modeling Engine

Core calculation modules for small-business acquisition analysis.
All calculations are pure functions of their inputs.
"""

from dealmodel.calculations import (
    amortization,
    assumptions,
    classifier,
    debt_service,
    dscr,
    industries,
    insights,
    projection,
    returns,
    sensitivity,
    statements,
)

__all__ = [
    "amortization",
    "assumptions",
    "classifier",
    "debt_service",
    "dscr",
    "industries",
    "insights",
    "projection",
    "returns",
    "sensitivity",
    "statements",
]
