"""
Pytest configuration and shared fixtures.
"""
import pytest

from core.config import AIServiceConfig
from core.store import InventoryStore
from ingest.types import ProductCandidate
from ingest.validation import build_product


@pytest.fixture
def ai_config():
    """AI settings with a dummy key (client is always mocked)."""
    return AIServiceConfig(api_key="test-key", model="gpt-4o")


@pytest.fixture
def store():
    return InventoryStore(page_size=50)


@pytest.fixture
def make_product():
    """Factory for validated spreadsheet products."""
    def _make(code="A-001", description="Widget", quantity=1.0, unit_value=0.0,
              category="M", unit="UN", source="spreadsheet"):
        candidate = ProductCandidate(
            code=code,
            description=description,
            category=category,
            unit=unit,
            quantity=quantity,
            unit_value=unit_value,
        )
        return build_product(candidate, source)
    return _make


@pytest.fixture
def sample_csv_content():
    """CSV with a title line above the header row."""
    return (
        "Inventário 2024;;;\n"
        "Código;Descrição;Qtd;Preço Unit\n"
        "A-001;Parafuso M6;10;19,99\n"
        "A-002;Porca M6;5;10,50\n"
    ).encode("utf-8")


@pytest.fixture
def sample_grid():
    return [
        ["Stock report", "", "", ""],
        ["Código", "Descrição", "Qtd", "Preço Unit"],
        ["A-001", "Parafuso M6", "10", "19,99"],
        ["A-002", "Porca M6", "5", "10,50"],
    ]
