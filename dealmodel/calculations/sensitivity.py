"""
Sensitivity Analysis

Re-runs the five-year projection across a range of values for one
assumption. Every run starts from the same unmodified inputs.
"""

from dataclasses import dataclass, fields
from typing import List, Optional, Sequence

import numpy as np

from dealmodel.calculations.assumptions import Assumptions
from dealmodel.calculations.debt_service import DebtServiceModel
from dealmodel.calculations.projection import FiveYearProjector
from dealmodel.calculations.statements import FinancialStatement

SWEEPABLE_FIELDS = tuple(
    f.name
    for f in fields(Assumptions)
    if f.name not in ("price_source", "price_estimation_method", "business_type", "confidence")
)


@dataclass(frozen=True)
class SensitivityRow:
    value: float
    irr: float
    moic: float
    min_dscr: Optional[float]
    exit_value: float


def linear_grid(low: float, high: float, steps: int) -> List[float]:
    """Evenly spaced values from low to high inclusive."""
    if steps < 2:
        return [float(low)]
    return [float(v) for v in np.linspace(low, high, steps)]


def sweep(
    statement: FinancialStatement,
    debt_model: Optional[DebtServiceModel],
    assumptions: Assumptions,
    field_name: str,
    values: Sequence[float],
    projector: Optional[FiveYearProjector] = None,
) -> List[SensitivityRow]:
    """
    Project the deal once per value of a single assumption.

    Raises:
        ValueError: If the field cannot be swept or a value is invalid for it
    """
    if field_name not in SWEEPABLE_FIELDS:
        raise ValueError(f"Cannot run sensitivity on '{field_name}'")

    projector = projector or FiveYearProjector()
    integer_field = field_name in ("loan_term_years", "exit_year")

    # A swept price must not fall back to the debt model's price
    base_model = None if field_name == "purchase_price" else debt_model

    rows = []
    for value in values:
        scenario = assumptions.update(
            **{field_name: int(round(value)) if integer_field else float(value)}
        )
        result = projector.project(statement, base_model, scenario)
        rows.append(
            SensitivityRow(
                value=float(value),
                irr=result.irr,
                moic=result.moic,
                min_dscr=result.dscr_analysis.min_dscr,
                exit_value=result.exit_value,
            )
        )
    return rows
