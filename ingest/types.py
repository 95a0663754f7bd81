from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional

Source = Literal["spreadsheet", "document"]

NO_CODE = "NO-CODE"
DESCRIPTION_MISSING = "DESCRIPTION MISSING"
DEFAULT_UNIT = "UN"


class ProductCategory(str, Enum):
    """Regulatory stock categories (tax-authority codes)."""

    MERCHANDISE = "M"
    RAW_MATERIAL = "P"
    FINISHED_GOOD = "A"
    BY_PRODUCT = "S"
    WORK_IN_PROGRESS = "T"

    @classmethod
    def codes(cls) -> List[str]:
        return [member.value for member in cls]


CATEGORY_LABELS = {
    ProductCategory.MERCHANDISE: "Merchandise",
    ProductCategory.RAW_MATERIAL: "Raw materials, consumables",
    ProductCategory.FINISHED_GOOD: "Finished and intermediate goods",
    ProductCategory.BY_PRODUCT: "By-products, waste and scrap",
    ProductCategory.WORK_IN_PROGRESS: "Work in progress",
}

DEFAULT_CATEGORY = ProductCategory.MERCHANDISE.value


def category_label(code: str) -> Optional[str]:
    try:
        return CATEGORY_LABELS[ProductCategory(code)]
    except ValueError:
        return None


@dataclass
class ColumnMapping:
    """Column index per semantic field, None when unmapped."""

    code: Optional[int] = None
    description: Optional[int] = None
    quantity: Optional[int] = None
    unit_value: Optional[int] = None

    FIELDS = ("code", "description", "quantity", "unit_value")

    def as_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.FIELDS}


@dataclass
class ProductCandidate:
    code: str
    description: str
    category: str = DEFAULT_CATEGORY
    unit: str = DEFAULT_UNIT
    quantity: float = 0.0
    unit_value: float = 0.0
    suggestion: Optional[str] = None


@dataclass
class Product:
    id: str
    code: str
    description: str
    category: str
    unit: str
    quantity: float
    unit_value: float
    source: Source = "spreadsheet"
    errors: List[str] = field(default_factory=list)
    suggestion: Optional[str] = None
    # Correction note from the document AI, shown when no rule suggests anything
    ai_note: Optional[str] = None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "category": self.category,
            "category_label": category_label(self.category),
            "unit": self.unit,
            "quantity": self.quantity,
            "unit_value": self.unit_value,
            "source": self.source,
            "errors": list(self.errors),
            "suggestion": self.suggestion,
        }
