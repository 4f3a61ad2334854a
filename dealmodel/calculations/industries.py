"""
Industry Reference Tables

Static lookup tables for business classification, valuation multiples,
financing terms and projection defaults. Tables are immutable and passed
into the classifier, generator and projectors, so alternative tables can be
swapped in without touching module state.
"""

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple


class IndustryType(str, enum.Enum):
    """Closed set of industry profiles."""

    insurance_agency = "insurance_agency"
    construction = "construction"
    saas = "saas"
    manufacturing = "manufacturing"
    retail = "retail"
    restaurant = "restaurant"
    professional_services = "professional_services"
    healthcare = "healthcare"
    distribution = "distribution"
    general_business = "general_business"

    @property
    def canonical_prefix(self) -> str:
        """Leading token of the industry key, matched against file names."""
        return self.value.split("_")[0]


@dataclass(frozen=True)
class IndustryDefinition:
    """Keyword and financial-pattern signals for one industry."""

    industry_type: IndustryType
    keywords: Tuple[str, ...]
    financial_patterns: Tuple[str, ...]


@dataclass(frozen=True)
class MultipleRange:
    min: float
    max: float
    default: float


@dataclass(frozen=True)
class ValuationModel:
    """How an industry is typically priced."""

    primary_metric: str  # ebitda, revenue, commission_income or arr
    multiple_range: MultipleRange
    financial_focus: str
    description: str = ""
    opportunity: str = ""
    key_metrics: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FinancingProfile:
    """Default acquisition financing structure."""

    down_payment_pct: float
    debt_pct: float
    interest_rate: float
    loan_term_years: int
    seller_financing_pct: float


@dataclass(frozen=True)
class ExitModel:
    """Exit valuation convention for an industry."""

    metric: str  # ebitda, revenue, commission_income or arr
    multiple: float
    display: str


def _freeze(mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


# Declaration order is the classifier tie-break order.
INDUSTRY_DEFINITIONS: Tuple[IndustryDefinition, ...] = (
    IndustryDefinition(
        IndustryType.insurance_agency,
        keywords=(
            "commission", "premium", "carrier", "retention rate", "book of business",
            "insurance", "broker", "agent", "policy", "underwriting",
        ),
        financial_patterns=("commission income", "renewal rates", "carrier relationships"),
    ),
    IndustryDefinition(
        IndustryType.construction,
        keywords=(
            "project", "construction", "installation", "equipment", "job site",
            "contractor", "building", "civil", "engineering", "subcontractor",
        ),
        financial_patterns=("backlog", "job costs", "equipment depreciation"),
    ),
    IndustryDefinition(
        IndustryType.saas,
        keywords=(
            "mrr", "arr", "churn", "subscription", "recurring revenue",
            "software", "platform", "cloud", "api", "saas",
        ),
        financial_patterns=(
            "monthly recurring revenue", "annual recurring revenue",
            "customer acquisition cost",
        ),
    ),
    IndustryDefinition(
        IndustryType.manufacturing,
        keywords=(
            "inventory", "cogs", "production", "raw materials", "factory",
            "manufacturing", "assembly", "warehouse", "supply chain",
        ),
        financial_patterns=("cost of goods sold", "inventory turnover", "gross margin"),
    ),
    IndustryDefinition(
        IndustryType.retail,
        keywords=(
            "inventory turnover", "same store sales", "foot traffic", "pos",
            "retail", "store", "merchandise", "customers",
        ),
        financial_patterns=("same store sales", "inventory turns", "gross margin"),
    ),
    IndustryDefinition(
        IndustryType.restaurant,
        keywords=(
            "food cost", "labor cost", "table turns", "average check",
            "restaurant", "dining", "kitchen", "menu",
        ),
        financial_patterns=(
            "food cost percentage", "labor cost percentage", "revenue per seat",
        ),
    ),
    IndustryDefinition(
        IndustryType.professional_services,
        keywords=(
            "billable hours", "utilization", "realization", "wip",
            "consulting", "advisory", "professional", "services",
        ),
        financial_patterns=("billable hours", "utilization rate", "realization rate"),
    ),
    IndustryDefinition(
        IndustryType.healthcare,
        keywords=(
            "patient", "medical", "healthcare", "clinic", "practice",
            "revenue cycle", "insurance reimbursement",
        ),
        financial_patterns=("patient volume", "reimbursement rates", "accounts receivable"),
    ),
    IndustryDefinition(
        IndustryType.distribution,
        keywords=(
            "wholesale", "distributor", "logistics", "supply chain",
            "inventory", "vendors", "suppliers",
        ),
        financial_patterns=("inventory turns", "gross margin", "working capital"),
    ),
)

VALUATION_MODELS = _freeze({
    IndustryType.insurance_agency: ValuationModel(
        primary_metric="commission_income",
        multiple_range=MultipleRange(1.5, 2.5, 2.0),
        financial_focus="recurring_revenue",
        description="insurance brokerage with commission-based recurring revenue",
        opportunity="Insurance brokerages benefit from sticky client relationships and industry consolidation",
        key_metrics=("retention_rate", "commission_income", "carrier_relationships"),
    ),
    IndustryType.construction: ValuationModel(
        primary_metric="ebitda",
        multiple_range=MultipleRange(3.0, 5.0, 4.0),
        financial_focus="project_based",
        description="construction business with project-based revenue",
        opportunity="Construction companies benefit from infrastructure spending and market specialization",
        key_metrics=("backlog", "gross_margin", "equipment_value"),
    ),
    IndustryType.saas: ValuationModel(
        primary_metric="arr",
        multiple_range=MultipleRange(3.0, 8.0, 5.0),
        financial_focus="recurring_revenue",
        description="software-as-a-service business with scalable recurring revenue",
        opportunity="SaaS businesses have high scalability and predictable recurring revenue streams",
        key_metrics=("growth_rate", "churn_rate", "ltv_cac_ratio"),
    ),
    IndustryType.manufacturing: ValuationModel(
        primary_metric="ebitda",
        multiple_range=MultipleRange(3.5, 6.0, 4.5),
        financial_focus="asset_heavy",
        description="manufacturing business with production-based operations",
        opportunity="Manufacturing businesses benefit from operational efficiency and market expansion",
        key_metrics=("gross_margin", "capacity_utilization", "inventory_turns"),
    ),
    IndustryType.retail: ValuationModel(
        primary_metric="revenue",
        multiple_range=MultipleRange(0.3, 0.8, 0.5),
        financial_focus="transactional",
        description="retail business with consumer-facing operations",
        opportunity="Retail businesses benefit from location optimization and customer experience improvements",
        key_metrics=("comp_store_sales", "inventory_turns", "gross_margin"),
    ),
    IndustryType.restaurant: ValuationModel(
        primary_metric="revenue",
        multiple_range=MultipleRange(0.3, 0.6, 0.4),
        financial_focus="transactional",
        description="restaurant business with food service operations",
        opportunity="Restaurant businesses benefit from operational efficiency and concept expansion",
        key_metrics=("food_cost_percent", "labor_cost_percent", "revenue_per_sqft"),
    ),
    IndustryType.professional_services: ValuationModel(
        primary_metric="revenue",
        multiple_range=MultipleRange(0.8, 1.5, 1.1),
        financial_focus="recurring_revenue",
        description="professional services firm with expertise-based revenue",
        opportunity="Professional services benefit from specialization and client relationship expansion",
        key_metrics=("billable_hours", "utilization_rate", "realization_rate"),
    ),
    IndustryType.healthcare: ValuationModel(
        primary_metric="ebitda",
        multiple_range=MultipleRange(4.0, 7.0, 5.5),
        financial_focus="recurring_revenue",
        description="healthcare practice with patient-care revenue",
        opportunity="Healthcare practices benefit from demographic trends and service line expansion",
        key_metrics=("patient_volume", "reimbursement_rates", "revenue_cycle"),
    ),
    IndustryType.distribution: ValuationModel(
        primary_metric="ebitda",
        multiple_range=MultipleRange(3.0, 5.0, 4.0),
        financial_focus="asset_heavy",
        description="distribution business with wholesale operations",
        opportunity="Distribution businesses benefit from supply chain optimization and market expansion",
        key_metrics=("inventory_turns", "gross_margin", "working_capital"),
    ),
    IndustryType.general_business: ValuationModel(
        primary_metric="ebitda",
        multiple_range=MultipleRange(2.5, 4.0, 3.0),
        financial_focus="mixed",
        description="diversified business with multiple revenue streams",
        opportunity="General businesses benefit from operational improvements and strategic focus",
        key_metrics=("revenue_growth", "gross_margin", "operating_margin"),
    ),
})

# Keyed by ValuationModel.financial_focus
FINANCING_PROFILES = _freeze({
    "recurring_revenue": FinancingProfile(0.10, 0.75, 0.11, 10, 0.15),
    "asset_heavy": FinancingProfile(0.15, 0.80, 0.10, 15, 0.05),
    "project_based": FinancingProfile(0.15, 0.70, 0.12, 7, 0.15),
    "transactional": FinancingProfile(0.20, 0.65, 0.12, 7, 0.15),
    "mixed": FinancingProfile(0.10, 0.75, 0.11, 10, 0.15),
})

GROWTH_RATES = _freeze({
    IndustryType.insurance_agency: 0.08,
    IndustryType.construction: 0.12,
    IndustryType.saas: 0.25,
    IndustryType.manufacturing: 0.08,
    IndustryType.retail: 0.06,
    IndustryType.restaurant: 0.10,
    IndustryType.professional_services: 0.12,
    IndustryType.healthcare: 0.10,
    IndustryType.distribution: 0.08,
    IndustryType.general_business: 0.10,
})

# EBITDA margin used by the first-pass debt service model
MARGIN_RATES = _freeze({
    IndustryType.insurance_agency: 0.35,
    IndustryType.construction: 0.12,
    IndustryType.saas: 0.25,
    IndustryType.manufacturing: 0.15,
    IndustryType.retail: 0.08,
    IndustryType.restaurant: 0.12,
    IndustryType.professional_services: 0.20,
    IndustryType.healthcare: 0.18,
    IndustryType.distribution: 0.10,
    IndustryType.general_business: 0.15,
})

# Capex as a share of revenue
CAPEX_PCTS = _freeze({
    IndustryType.insurance_agency: 0.005,
    IndustryType.professional_services: 0.005,
    IndustryType.retail: 0.03,
    IndustryType.restaurant: 0.03,
    IndustryType.manufacturing: 0.05,
    IndustryType.construction: 0.05,
    IndustryType.saas: 0.015,
    IndustryType.healthcare: 0.025,
    IndustryType.distribution: 0.02,
    IndustryType.general_business: 0.02,
})

EXIT_MODELS = _freeze({
    IndustryType.insurance_agency: ExitModel("commission_income", 2.0, "2.0x Commission Income"),
    IndustryType.saas: ExitModel("arr", 6.0, "6.0x ARR"),
    IndustryType.construction: ExitModel("ebitda", 3.5, "3.5x EBITDA"),
    IndustryType.manufacturing: ExitModel("ebitda", 4.5, "4.5x EBITDA"),
    IndustryType.healthcare: ExitModel("ebitda", 5.5, "5.5x EBITDA"),
    IndustryType.professional_services: ExitModel("revenue", 1.1, "1.1x Revenue"),
    IndustryType.retail: ExitModel("revenue", 0.5, "0.5x Revenue"),
    IndustryType.restaurant: ExitModel("revenue", 0.4, "0.4x Revenue"),
    IndustryType.distribution: ExitModel("ebitda", 4.0, "4.0x EBITDA"),
    IndustryType.general_business: ExitModel("ebitda", 3.0, "3.0x EBITDA"),
})


@dataclass(frozen=True)
class IndustryTables:
    """Bundle of every industry lookup the engine consults."""

    definitions: Tuple[IndustryDefinition, ...] = INDUSTRY_DEFINITIONS
    valuation_models: Mapping[IndustryType, ValuationModel] = field(
        default_factory=lambda: VALUATION_MODELS
    )
    financing_profiles: Mapping[str, FinancingProfile] = field(
        default_factory=lambda: FINANCING_PROFILES
    )
    growth_rates: Mapping[IndustryType, float] = field(default_factory=lambda: GROWTH_RATES)
    margin_rates: Mapping[IndustryType, float] = field(default_factory=lambda: MARGIN_RATES)
    capex_pcts: Mapping[IndustryType, float] = field(default_factory=lambda: CAPEX_PCTS)
    exit_models: Mapping[IndustryType, ExitModel] = field(default_factory=lambda: EXIT_MODELS)
    fallback_industry: IndustryType = IndustryType.general_business
    fallback_financial_focus: str = "mixed"

    def valuation_model(self, industry: IndustryType) -> ValuationModel:
        return self.valuation_models.get(
            industry, self.valuation_models[self.fallback_industry]
        )

    def financing_profile(self, financial_focus: str) -> FinancingProfile:
        return self.financing_profiles.get(
            financial_focus, self.financing_profiles[self.fallback_financial_focus]
        )

    def growth_rate(self, industry: IndustryType) -> float:
        return self.growth_rates.get(industry, self.growth_rates[self.fallback_industry])

    def margin_rate(self, industry: IndustryType) -> float:
        return self.margin_rates.get(industry, self.margin_rates[self.fallback_industry])

    def capex_pct(self, industry: IndustryType) -> float:
        return self.capex_pcts.get(industry, self.capex_pcts[self.fallback_industry])

    def exit_model(self, industry: IndustryType) -> ExitModel:
        return self.exit_models.get(industry, self.exit_models[self.fallback_industry])


DEFAULT_TABLES = IndustryTables()
