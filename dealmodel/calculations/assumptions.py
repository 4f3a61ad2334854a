"""
Deal Assumptions

The flat set of purchase, financing and operating inputs that drive every
projection, and the generator that derives sensible defaults from the
extracted financials and the business profile.
"""

import enum
import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Optional, Sequence, Tuple

from dealmodel.calculations.classifier import BusinessProfile
from dealmodel.calculations.industries import DEFAULT_TABLES, IndustryTables, IndustryType
from dealmodel.calculations.statements import FinancialStatement, LineItemKind

logger = logging.getLogger(__name__)

MANUAL_INPUT_METHOD = "Manual Input Required - No Financial Data"
EXTRACTED_METHOD = "Extracted from document"

# Projector defaults
DEFAULT_GROSS_MARGIN_PCT = 0.30
DEFAULT_OPEX_PCT = 0.20
DEFAULT_WORKING_CAPITAL_PCT = 0.02
DEFAULT_TAX_RATE = 0.25
DEFAULT_DEPRECIATION_PCT = 0.02
DEFAULT_EXIT_YEAR = 5
MIN_EXIT_YEAR = 3
MAX_EXIT_YEAR = 7
MAX_REVENUE_GROWTH_RATE = 10.0
MAX_EXIT_MULTIPLE = 100.0


class PriceSource(str, enum.Enum):
    extracted = "extracted"
    estimated = "estimated"
    user_edited = "user_edited"


@dataclass(frozen=True)
class ExtractedPurchasePrice:
    """Asking price found by the extraction collaborators."""

    amount: float
    source_confidence: float = 0.0
    document_sourced: bool = True


# Fields that must be a fraction between 0 and 1
_FRACTION_FIELDS = (
    "down_payment_pct",
    "seller_financing_pct",
    "interest_rate",
    "margin_rate",
    "gross_margin_pct",
    "opex_pct",
    "working_capital_pct",
    "tax_rate",
    "depreciation_pct",
)


@dataclass(frozen=True)
class Assumptions:
    """
    Projection inputs for one deal.

    Records are immutable; use update() to apply an edit, which validates
    the result and returns a new record for a full re-projection.
    """

    purchase_price: float
    price_source: PriceSource = PriceSource.estimated
    price_estimation_method: str = ""
    business_type: IndustryType = IndustryType.general_business

    # Financing
    down_payment_pct: float = 0.10
    seller_financing_pct: float = 0.0
    interest_rate: float = 0.11
    loan_term_years: int = 10

    # Operations
    revenue_growth_rate: float = 0.10
    margin_rate: float = 0.15
    gross_margin_pct: float = DEFAULT_GROSS_MARGIN_PCT
    opex_pct: float = DEFAULT_OPEX_PCT
    working_capital_pct: float = DEFAULT_WORKING_CAPITAL_PCT
    capex_pct: Optional[float] = None  # None uses the industry capex table
    tax_rate: float = DEFAULT_TAX_RATE
    depreciation_pct: float = DEFAULT_DEPRECIATION_PCT

    # Exit
    exit_year: int = DEFAULT_EXIT_YEAR
    exit_multiple: Optional[float] = None  # None uses the industry exit model

    confidence: int = 0

    def __post_init__(self):
        object.__setattr__(self, "price_source", PriceSource(self.price_source))
        object.__setattr__(self, "business_type", IndustryType(self.business_type))

        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"{f.name} must be a finite number")

        if self.purchase_price < 0:
            raise ValueError("purchase_price cannot be negative")

        for name in _FRACTION_FIELDS:
            value = getattr(self, name)
            if value < 0 or value > 1:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

        if self.capex_pct is not None and not 0 <= self.capex_pct <= 1:
            raise ValueError(f"capex_pct must be between 0 and 1, got {self.capex_pct}")
        if self.down_payment_pct + self.seller_financing_pct > 1:
            raise ValueError("Down payment and seller financing exceed the purchase price")
        if not -1 < self.revenue_growth_rate <= MAX_REVENUE_GROWTH_RATE:
            raise ValueError(
                "revenue_growth_rate must be greater than -100% and at most "
                f"{MAX_REVENUE_GROWTH_RATE:.0%}"
            )
        if self.loan_term_years < 1:
            raise ValueError("loan_term_years must be at least 1")
        if not MIN_EXIT_YEAR <= self.exit_year <= MAX_EXIT_YEAR:
            raise ValueError(
                f"exit_year must be between {MIN_EXIT_YEAR} and {MAX_EXIT_YEAR}"
            )
        if self.exit_multiple is not None and not 0 <= self.exit_multiple <= MAX_EXIT_MULTIPLE:
            raise ValueError(f"exit_multiple must be between 0 and {MAX_EXIT_MULTIPLE:.0f}")

    @property
    def down_payment(self) -> float:
        return self.purchase_price * self.down_payment_pct

    @property
    def seller_financing(self) -> float:
        return self.purchase_price * self.seller_financing_pct

    @property
    def loan_principal(self) -> float:
        """Bank debt: purchase price less equity and the seller note."""
        return self.purchase_price - self.down_payment - self.seller_financing

    def update(self, **changes) -> "Assumptions":
        """Return a validated copy with the given fields changed."""
        if "purchase_price" in changes and "price_source" not in changes:
            changes["price_source"] = PriceSource.user_edited
        return replace(self, **changes)


@dataclass(frozen=True)
class PriceRule:
    """One step in the purchase-price fallback chain."""

    label: str
    line_item: LineItemKind
    serves: Tuple[str, ...]


# Evaluated in this order; the first rule with a positive base value wins.
PRICE_RULES: Tuple[PriceRule, ...] = (
    PriceRule("SDE", LineItemKind.sde, ("ebitda",)),
    PriceRule("Recast EBITDA", LineItemKind.recast_ebitda, ("ebitda",)),
    PriceRule("Adjusted EBITDA", LineItemKind.adjusted_ebitda, ("ebitda",)),
    PriceRule("EBITDA", LineItemKind.ebitda, ("ebitda",)),
    PriceRule("Commission Income", LineItemKind.commission_income, ("commission_income",)),
    PriceRule("Commission Income", LineItemKind.revenue, ("commission_income",)),
    PriceRule("ARR", LineItemKind.revenue, ("arr",)),
    PriceRule("Revenue", LineItemKind.revenue, ("revenue",)),
)


@dataclass(frozen=True)
class PriceEstimate:
    value: float
    method_label: str


def price_rule_order(primary_metric: str) -> Tuple[PriceRule, ...]:
    """Rules serving the primary metric first, then earnings, then revenue."""
    primary = [rule for rule in PRICE_RULES if primary_metric in rule.serves]
    fallback = [rule for rule in PRICE_RULES if "ebitda" in rule.serves]
    fallback.append(PRICE_RULES[-1])
    ordered = primary + [rule for rule in fallback if rule not in primary]
    return tuple(ordered)


def estimate_purchase_price(
    statement: FinancialStatement,
    primary_metric: str,
    multiple: float,
    industry_label: str,
    rules: Optional[Sequence[PriceRule]] = None,
) -> PriceEstimate:
    """Price the business off the best available base-period metric."""
    for rule in rules or price_rule_order(primary_metric):
        value = statement.base_value(rule.line_item)
        if value and value > 0:
            return PriceEstimate(
                value=float(round(value * multiple)),
                method_label=f"{multiple:.1f}x {rule.label} ({industry_label})",
            )
    return PriceEstimate(value=0.0, method_label=MANUAL_INPUT_METHOD)


class AssumptionGenerator:
    """Builds the starting assumption set for a newly classified deal."""

    def __init__(self, tables: IndustryTables = DEFAULT_TABLES):
        self.tables = tables

    def generate(
        self,
        statement: FinancialStatement,
        profile: BusinessProfile,
        extracted_purchase_price: Optional[ExtractedPurchasePrice] = None,
    ) -> Assumptions:
        industry = profile.industry_type
        valuation_model = profile.valuation_model
        financing = profile.financing_profile

        if (
            extracted_purchase_price is not None
            and extracted_purchase_price.document_sourced
            and extracted_purchase_price.amount > 0
        ):
            purchase_price = float(extracted_purchase_price.amount)
            method = EXTRACTED_METHOD
            source = PriceSource.extracted
            logger.info(f"Using purchase price from document: {purchase_price:,.0f}")
        else:
            estimate = estimate_purchase_price(
                statement,
                valuation_model.primary_metric,
                valuation_model.multiple_range.default,
                industry.value,
            )
            purchase_price = estimate.value
            method = estimate.method_label
            source = PriceSource.estimated
            if purchase_price == 0:
                logger.warning("No financial data available to estimate purchase price")

        return Assumptions(
            purchase_price=purchase_price,
            price_source=source,
            price_estimation_method=method,
            business_type=industry,
            down_payment_pct=financing.down_payment_pct,
            seller_financing_pct=financing.seller_financing_pct,
            interest_rate=financing.interest_rate,
            loan_term_years=financing.loan_term_years,
            revenue_growth_rate=self.tables.growth_rate(industry),
            margin_rate=self.tables.margin_rate(industry),
            confidence=profile.confidence_score,
        )


def generate_assumptions(
    statement: FinancialStatement,
    profile: BusinessProfile,
    extracted_purchase_price: Optional[ExtractedPurchasePrice] = None,
    tables: IndustryTables = DEFAULT_TABLES,
) -> Assumptions:
    """Generate assumptions using the given (default) industry tables."""
    return AssumptionGenerator(tables).generate(
        statement, profile, extracted_purchase_price
    )
