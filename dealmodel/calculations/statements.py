"""
Financial Statement Model

Normalized historical financials as produced by the document-extraction
collaborators. Amounts are USD; a missing amount is None, never zero.
"""

import enum
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

TTM = "TTM"
DEFAULT_PERIODS = (TTM,)


class LineItemKind(str, enum.Enum):
    """Income statement line items understood by the engine."""

    revenue = "revenue"
    cost_of_revenue = "costOfRevenue"
    gross_profit = "grossProfit"
    operating_expenses = "operatingExpenses"
    ebitda = "ebitda"
    adjusted_ebitda = "adjustedEbitda"
    recast_ebitda = "recastEbitda"
    sde = "sde"
    net_income = "netIncome"
    commission_income = "commissionIncome"
    cash_flow = "cashFlow"
    owner_salary = "ownerSalary"
    officer_comp = "officerComp"


# Priority order for "best available" earnings
EARNINGS_PRIORITY = (
    LineItemKind.sde,
    LineItemKind.recast_ebitda,
    LineItemKind.adjusted_ebitda,
    LineItemKind.ebitda,
)


def _lookup_kind(key: str) -> Optional[LineItemKind]:
    """Resolve a camelCase or snake_case key to a line item kind."""
    try:
        return LineItemKind(key)
    except ValueError:
        pass
    try:
        return LineItemKind[key]
    except KeyError:
        return None


@dataclass(frozen=True)
class FinancialStatement:
    """
    Historical financial statement.

    Attributes:
        periods: Ordered period labels, oldest first (e.g. "2022", "2023", "TTM")
        line_items: Mapping of line item kind to {period: amount or None}
    """

    periods: Tuple[str, ...] = DEFAULT_PERIODS
    line_items: Mapping[LineItemKind, Mapping[str, Optional[float]]] = field(
        default_factory=dict
    )

    def __post_init__(self):
        periods = tuple(self.periods) or DEFAULT_PERIODS
        items = {}
        for kind, values in self.line_items.items():
            kind = LineItemKind(kind)
            cleaned = {}
            for period, amount in (values or {}).items():
                if amount is not None:
                    amount = float(amount)
                    if amount < 0:
                        raise ValueError(
                            f"Negative amount for {kind.value} in {period}: {amount}"
                        )
                cleaned[str(period)] = amount
            items[kind] = MappingProxyType(cleaned)

        object.__setattr__(self, "periods", periods)
        object.__setattr__(self, "line_items", MappingProxyType(items))

    @classmethod
    def from_dict(cls, data: Dict) -> "FinancialStatement":
        """
        Build a statement from the extraction collaborators' JSON shape.

        Accepts either {"periods": [...], "lineItems": {...}} or the
        snake_case "line_items" key. Unknown line items are skipped.
        """
        raw_items = data.get("lineItems", data.get("line_items")) or {}
        items = {}
        for key, values in raw_items.items():
            kind = _lookup_kind(key)
            if kind is None:
                logger.debug(f"Ignoring unknown line item '{key}'")
                continue
            items[kind] = values or {}
        return cls(periods=tuple(data.get("periods") or ()), line_items=items)

    @property
    def is_empty(self) -> bool:
        return not any(
            amount is not None
            for values in self.line_items.values()
            for amount in values.values()
        )

    def value(self, kind: LineItemKind, period: str) -> Optional[float]:
        """Amount for a line item in one period, or None if unknown."""
        return self.line_items.get(kind, {}).get(period)

    def series(self, kind: LineItemKind) -> Tuple[Optional[float], ...]:
        """Amounts for a line item across all periods, in period order."""
        return tuple(self.value(kind, period) for period in self.periods)

    def latest_value(self, kind: LineItemKind) -> Optional[float]:
        """Most recent non-null amount for a line item."""
        for period in reversed(self.periods):
            amount = self.value(kind, period)
            if amount is not None:
                return amount
        return None

    def base_value(self, kind: LineItemKind) -> Optional[float]:
        """
        Base-period amount used to seed projections.

        Prefers the TTM figure, then the latest reported period.
        """
        ttm = self.value(kind, TTM)
        if ttm is not None:
            return ttm
        return self.latest_value(kind)

    def best_ebitda(self, period: str) -> Optional[float]:
        """Best earnings figure for a period (SDE > recast > adjusted > EBITDA)."""
        for kind in EARNINGS_PRIORITY:
            amount = self.value(kind, period)
            if amount:
                return amount
        return None

    def base_best_ebitda(self) -> Optional[float]:
        """Best earnings figure for the base period."""
        candidates = [TTM] if TTM in self.periods else []
        for period in candidates + list(reversed(self.periods)):
            amount = self.best_ebitda(period)
            if amount is not None:
                return amount
        return None

    def populated_kinds(self) -> Tuple[LineItemKind, ...]:
        """Line items with at least one reported amount."""
        return tuple(
            kind
            for kind, values in self.line_items.items()
            if any(amount is not None for amount in values.values())
        )


def base_amount(statement: FinancialStatement, kind: LineItemKind) -> float:
    """Base-period amount, with unknown treated as 0 for projection seeding only."""
    return statement.base_value(kind) or 0.0
