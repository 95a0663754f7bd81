"""
Validation of product records against the stock-reporting rules.

Defines the rule set, the product factory and the pydantic model used to
coerce candidates returned by the document AI adapter.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.errors import DocumentExtractionError
from ingest.normalization import parse_number
from ingest.types import (
    DEFAULT_CATEGORY,
    DEFAULT_UNIT,
    DESCRIPTION_MISSING,
    NO_CODE,
    Product,
    ProductCandidate,
    ProductCategory,
    Source,
)

logger = logging.getLogger(__name__)

MAX_CODE_LENGTH = 60
MAX_DESCRIPTION_LENGTH = 200
MAX_UNIT_LENGTH = 20

VALID_CATEGORIES = frozenset(ProductCategory.codes())


def _is_missing(value: Optional[str], sentinel: str) -> bool:
    return value is None or str(value).strip() == "" or value == sentinel


def validate_product(candidate: Any, check_negative_quantity: bool = False) -> Tuple[List[str], Optional[str]]:
    """
    Run the regulatory rule set on a record.

    Every rule is evaluated; a triggered rule may overwrite the suggestion,
    so the last one wins.

    Args:
        candidate: ProductCandidate or Product (anything with the product fields)
        check_negative_quantity: Also flag quantity < 0

    Returns:
        Tuple (errors, suggestion)
    """
    errors: List[str] = []
    suggestion: Optional[str] = None

    code = candidate.code
    description = candidate.description
    unit = candidate.unit

    # 1-2. Presence
    if _is_missing(code, NO_CODE):
        errors.append("product code is required")
        suggestion = "missing item reference."
    if _is_missing(description, DESCRIPTION_MISSING):
        errors.append("product description is required")
        suggestion = "missing commercial designation."

    # 3-5. Maximum lengths
    if code and len(code) > MAX_CODE_LENGTH:
        errors.append(f"product code exceeds {MAX_CODE_LENGTH} characters (current: {len(code)})")
        suggestion = "abbreviate the item code."
    if description and len(description) > MAX_DESCRIPTION_LENGTH:
        errors.append(
            f"product description exceeds {MAX_DESCRIPTION_LENGTH} characters (current: {len(description)})"
        )
        suggestion = "shorten the designation text."
    if unit and len(unit) > MAX_UNIT_LENGTH:
        errors.append(f"unit of measure exceeds {MAX_UNIT_LENGTH} characters (current: {len(unit)})")
        suggestion = "use an abbreviation (e.g. UN, KG)."

    # 6. Category
    if candidate.category not in VALID_CATEGORIES:
        errors.append("invalid category; must be M, P, A, S, or T")

    # 7. Quantity sign (document path, or every path when unified)
    if check_negative_quantity and candidate.quantity < 0:
        errors.append("negative quantity")

    return errors, suggestion


def checks_negative_quantity(source: Source, unify_negative_check: bool = False) -> bool:
    return unify_negative_check or source == "document"


def revalidate(product: Product, unify_negative_check: bool = False) -> Product:
    """Recompute errors and suggestion of a product in place; the AI note is the fallback suggestion."""
    errors, suggestion = validate_product(
        product, checks_negative_quantity(product.source, unify_negative_check)
    )
    product.errors = errors
    product.suggestion = suggestion or product.ai_note
    return product


def build_product(
    candidate: ProductCandidate,
    source: Source = "spreadsheet",
    unify_negative_check: bool = False,
) -> Product:
    """
    Create a validated Product from a candidate.

    Args:
        candidate: Normalized fields
        source: Ingestion path ('spreadsheet' or 'document')
        unify_negative_check: Apply the negative quantity rule regardless of source

    Returns:
        Product with a fresh id, errors and suggestion
    """
    errors, suggestion = validate_product(
        candidate, checks_negative_quantity(source, unify_negative_check)
    )
    return Product(
        id=uuid.uuid4().hex,
        code=candidate.code,
        description=candidate.description,
        category=candidate.category,
        unit=candidate.unit,
        quantity=candidate.quantity,
        unit_value=candidate.unit_value,
        source=source,
        errors=errors,
        suggestion=suggestion or candidate.suggestion,
        ai_note=candidate.suggestion,
    )


class DocumentCandidate(BaseModel):
    """
    Pydantic v2 model for a product returned by the document AI.

    Numbers are coerced leniently, an absent or unknown category becomes M,
    an absent unit becomes UN.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: str = Field(default="", description="Item code (ProductCode)")
    description: str = Field(default="", description="Designation (ProductDescription)")
    category: str = Field(default=DEFAULT_CATEGORY, alias="type", description="Category M/P/A/S/T")
    unit: str = Field(default=DEFAULT_UNIT, description="Unit of measure")
    quantity: float = Field(default=0.0, description="Closing stock quantity")
    unit_value: float = Field(default=0.0, alias="unitValue", description="Unit value")
    suggestion: Optional[str] = Field(default=None, alias="suggestions", description="AI correction note")

    @field_validator('code', 'description', mode='before')
    @classmethod
    def validate_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator('category', mode='before')
    @classmethod
    def validate_category(cls, v: Any) -> str:
        value = str(v).strip().upper() if v is not None else ""
        if value not in VALID_CATEGORIES:
            return DEFAULT_CATEGORY
        return value

    @field_validator('unit', mode='before')
    @classmethod
    def validate_unit(cls, v: Any) -> str:
        value = str(v).strip() if v is not None else ""
        return value or DEFAULT_UNIT

    @field_validator('quantity', 'unit_value', mode='before')
    @classmethod
    def validate_number(cls, v: Any) -> float:
        return parse_number(v)

    @field_validator('suggestion', mode='before')
    @classmethod
    def validate_suggestion(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    def to_candidate(self) -> ProductCandidate:
        return ProductCandidate(
            code=self.code,
            description=self.description,
            category=self.category,
            unit=self.unit,
            quantity=self.quantity,
            unit_value=self.unit_value,
            suggestion=self.suggestion,
        )


def adapt_document_candidates(raw_items: Any, unify_negative_check: bool = False) -> List[Product]:
    """
    Turn the raw AI payload into validated products.

    Args:
        raw_items: List of dicts as decoded from the AI response

    Returns:
        List of Product with source='document'

    Raises:
        DocumentExtractionError: Payload is not a list of objects
    """
    if not isinstance(raw_items, list):
        raise DocumentExtractionError(
            f"Malformed AI response: expected a list of products, got {type(raw_items).__name__}"
        )

    products = []
    for idx, item in enumerate(raw_items):
        if not isinstance(item, dict):
            raise DocumentExtractionError(f"Malformed AI response: item {idx + 1} is not an object")
        try:
            candidate = DocumentCandidate.model_validate(item)
        except ValidationError as e:
            raise DocumentExtractionError(f"Malformed AI response: item {idx + 1}: {e}") from e
        products.append(build_product(candidate.to_candidate(), "document", unify_negative_check))

    with_errors = sum(1 for p in products if p.errors)
    logger.info(f"[VALIDATION] Document batch: {len(products)} products, {with_errors} with errors")
    return products


def validation_summary(products: List[Product]) -> Dict[str, Any]:
    """Count products with errors and how often each message occurs."""
    reasons: Dict[str, int] = {}
    for product in products:
        for error in product.errors:
            reasons[error] = reasons.get(error, 0) + 1
    return {
        'rows_total': len(products),
        'rows_with_errors': sum(1 for p in products if p.errors),
        'error_reasons': reasons,
    }
