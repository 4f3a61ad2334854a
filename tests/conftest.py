"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dealmodel.calculations.statements import FinancialStatement


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def general_statement():
    """TTM revenue of $2M and EBITDA of $400k, no owner salary reported."""
    return FinancialStatement.from_dict(
        {
            "periods": ["2023", "TTM"],
            "lineItems": {
                "revenue": {"2023": 1_800_000, "TTM": 2_000_000},
                "ebitda": {"2023": 360_000, "TTM": 400_000},
            },
        }
    )


@pytest.fixture
def owner_run_statement():
    """Owner already paid a market salary, so no comp normalization applies."""
    return FinancialStatement.from_dict(
        {
            "periods": ["2022", "2023", "TTM"],
            "lineItems": {
                "revenue": {"2022": 1_500_000, "2023": 1_800_000, "TTM": 2_000_000},
                "ebitda": {"2022": 300_000, "2023": 360_000, "TTM": 400_000},
                "ownerSalary": {"2022": None, "2023": None, "TTM": 300_000},
            },
        }
    )


@pytest.fixture
def insurance_statement():
    return FinancialStatement.from_dict(
        {
            "periods": ["2023", "TTM"],
            "lineItems": {
                "revenue": {"2023": 1_400_000, "TTM": 1_500_000},
                "commissionIncome": {"2023": 1_100_000, "TTM": 1_200_000},
                "ebitda": {"2023": 400_000, "TTM": 450_000},
            },
        }
    )


@pytest.fixture
def empty_statement():
    return FinancialStatement()


@pytest.fixture
def statement_payload():
    """Request body shape for the statement endpoints."""
    return {
        "periods": ["2023", "TTM"],
        "line_items": {
            "revenue": {"2023": 1_800_000, "TTM": 2_000_000},
            "ebitda": {"2023": 360_000, "TTM": 400_000},
            "ownerSalary": {"TTM": 300_000},
        },
    }
