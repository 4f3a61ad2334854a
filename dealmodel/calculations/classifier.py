"""
Business Type Classification

Scores extracted document text against the industry keyword tables and
selects the valuation and financing profile for the best match.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from dealmodel.calculations.industries import (
    DEFAULT_TABLES,
    FinancingProfile,
    IndustryDefinition,
    IndustryTables,
    IndustryType,
    ValuationModel,
)
from dealmodel.calculations.statements import FinancialStatement, LineItemKind

logger = logging.getLogger(__name__)

KEYWORD_POINTS = 10
FILENAME_PREFIX_BONUS = 20

# Financial patterns implied by populated statement lines
STATEMENT_PATTERNS = {
    LineItemKind.commission_income: "commission income",
    LineItemKind.cost_of_revenue: "cost of goods sold",
    LineItemKind.gross_profit: "gross margin",
}


@dataclass(frozen=True)
class BusinessProfile:
    """Industry classification with its valuation and financing defaults."""

    industry_type: IndustryType
    confidence_score: int
    valuation_model: ValuationModel
    financing_profile: FinancingProfile
    matched_signals: Tuple[str, ...] = ()

    @property
    def description(self) -> str:
        return self.valuation_model.description


def _leading_token(file_name: str) -> str:
    tokens = [t for t in re.split(r"[^a-z0-9]+", (file_name or "").lower()) if t]
    return tokens[0] if tokens else ""


class BusinessClassifier:
    """
    Keyword-scoring industry classifier.

    Each keyword found in the document text or file name scores 10 points and
    a file name whose leading token is the industry prefix ("insurance",
    "saas", ...) adds 20. The highest score wins; ties go to whichever
    industry is declared first in the tables.
    """

    def __init__(self, tables: IndustryTables = DEFAULT_TABLES):
        self.tables = tables

    def score(self, document_text: str, file_name: str) -> Dict[IndustryType, int]:
        """Score every declared industry, preserving declaration order."""
        combined = f"{document_text or ''} {file_name or ''}".lower()
        leading = _leading_token(file_name)

        scores: Dict[IndustryType, int] = {}
        for definition in self.tables.definitions:
            points = sum(
                KEYWORD_POINTS
                for keyword in definition.keywords
                if keyword.lower() in combined
            )
            if leading and leading == definition.industry_type.canonical_prefix:
                points += FILENAME_PREFIX_BONUS
            scores[definition.industry_type] = points
        return scores

    def classify(
        self,
        document_text: str,
        file_name: str,
        statement: Optional[FinancialStatement] = None,
    ) -> BusinessProfile:
        scores = self.score(document_text, file_name)

        best_type = self.tables.fallback_industry
        best_score = 0
        for industry, points in scores.items():
            if points > best_score:
                best_type, best_score = industry, points

        valuation_model = self.tables.valuation_model(best_type)
        financing = self.tables.financing_profile(valuation_model.financial_focus)
        signals = self._matched_signals(best_type, document_text, file_name, statement)

        logger.info(
            f"Classified '{file_name}' as {best_type.value} (score {best_score})"
        )

        return BusinessProfile(
            industry_type=best_type,
            confidence_score=best_score,
            valuation_model=valuation_model,
            financing_profile=financing,
            matched_signals=signals,
        )

    def _definition(self, industry: IndustryType) -> Optional[IndustryDefinition]:
        for definition in self.tables.definitions:
            if definition.industry_type == industry:
                return definition
        return None

    def _matched_signals(
        self,
        industry: IndustryType,
        document_text: str,
        file_name: str,
        statement: Optional[FinancialStatement],
    ) -> Tuple[str, ...]:
        """Keywords and financial patterns supporting the chosen industry."""
        definition = self._definition(industry)
        if definition is None:
            return ()

        combined = f"{document_text or ''} {file_name or ''}".lower()
        implied = set()
        if statement is not None:
            implied = {
                STATEMENT_PATTERNS[kind]
                for kind in statement.populated_kinds()
                if kind in STATEMENT_PATTERNS
            }

        signals: List[str] = [k for k in definition.keywords if k.lower() in combined]
        signals.extend(
            pattern
            for pattern in definition.financial_patterns
            if pattern in combined or pattern in implied
        )
        return tuple(dict.fromkeys(signals))


def classify(
    document_text: str,
    file_name: str,
    statement: Optional[FinancialStatement] = None,
    tables: IndustryTables = DEFAULT_TABLES,
) -> BusinessProfile:
    """Classify a business using the given (default) industry tables."""
    return BusinessClassifier(tables).classify(document_text, file_name, statement)
