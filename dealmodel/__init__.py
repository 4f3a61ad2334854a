"""
SMB acquisition deal model.

Classifies a business from its extracted financials, derives financing and
valuation assumptions, and projects five-year returns and debt coverage.
"""

from dealmodel.calculations.assumptions import generate_assumptions
from dealmodel.calculations.classifier import classify
from dealmodel.calculations.debt_service import build_debt_service_model
from dealmodel.calculations.dscr import analyze_dscr
from dealmodel.calculations.projection import build_five_year_model

__all__ = [
    "analyze_dscr",
    "build_debt_service_model",
    "build_five_year_model",
    "classify",
    "generate_assumptions",
]
