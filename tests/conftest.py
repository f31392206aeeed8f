"""
Pytest configuration and fixtures for conversion tests.
Provides shared row contexts and converter fixtures.
"""

from pathlib import Path

import pytest

from conversion.converters import RowContext, SetValue


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "property: mark test as property-based test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def customer_row() -> dict:
    """A dumped customer row, as strings like most drivers return them."""
    return {
        "id": "42",
        "email": "john.doe@company.com",
        "name": "John Doe",
        "status": "active",
        "is_admin": "0",
        "score": "7.5",
        "deleted_at": None,
    }


@pytest.fixture
def row_context(customer_row: dict) -> RowContext:
    """Row context for the customer row with a couple of session variables."""
    return RowContext.build(customer_row, {"env": "prod", "flag": "yes"})


@pytest.fixture
def if_true() -> SetValue:
    """Converter marking the true branch."""
    return SetValue({"value": "if_true"})


@pytest.fixture
def if_false() -> SetValue:
    """Converter marking the false branch."""
    return SetValue({"value": "if_false"})
