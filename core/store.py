"""
In-memory inventory store for one session.

Keeps products in insertion order and recomputes every derived value
(errors, stats) synchronously after each mutation.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from core.errors import InvalidUpdateError, ProductNotFoundError
from ingest.normalization import parse_number
from ingest.types import Product
from ingest.validation import revalidate

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50

TEXT_FIELDS = ("code", "description", "category", "unit")
NUMERIC_FIELDS = ("quantity", "unit_value")
UPDATABLE_FIELDS = TEXT_FIELDS + NUMERIC_FIELDS


@dataclass
class InventoryStats:
    count: int = 0
    sum_quantity: float = 0.0
    sum_value: float = 0.0
    error_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "sum_quantity": self.sum_quantity,
            "sum_value": self.sum_value,
            "error_count": self.error_count,
        }


@dataclass
class MutationResult:
    """Records touched by a mutation and the stats recomputed right after it."""
    products: List[Product] = field(default_factory=list)
    stats: InventoryStats = field(default_factory=InventoryStats)

    @property
    def product(self) -> Optional[Product]:
        return self.products[0] if self.products else None


@dataclass
class ProductPage:
    items: List[Product]
    page: int
    page_size: int
    total_items: int
    total_pages: int


class InventoryStore:
    """Ordered product collection owned by a single session."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, unify_negative_check: bool = False):
        self.page_size = page_size
        self.unify_negative_check = unify_negative_check
        self._products: List[Product] = []

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(list(self._products))

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    @property
    def has_errors(self) -> bool:
        return any(p.errors for p in self._products)

    def _index_of(self, product_id: str) -> int:
        for idx, product in enumerate(self._products):
            if product.id == product_id:
                return idx
        raise ProductNotFoundError(product_id)

    def get(self, product_id: str) -> Product:
        return self._products[self._index_of(product_id)]

    def append(self, products: Iterable[Product]) -> MutationResult:
        """
        Append a batch of validated products.

        All-or-nothing: a duplicate id rejects the whole batch.

        Raises:
            InvalidUpdateError: Id already in the store or repeated in the batch
        """
        batch = list(products)
        seen = {p.id for p in self._products}
        for product in batch:
            if product.id in seen:
                raise InvalidUpdateError(f"Duplicate product id: {product.id}")
            seen.add(product.id)

        self._products.extend(batch)
        logger.info(f"[STORE] Appended {len(batch)} products (total {len(self._products)})")
        return MutationResult(products=batch, stats=self.stats())

    def update(self, product_id: str, fields: Mapping[str, Any]) -> MutationResult:
        """
        Merge fields into a product and re-validate it.

        Args:
            product_id: Product id
            fields: Subset of code, description, category, unit, quantity, unit_value

        Returns:
            MutationResult with the updated product

        Raises:
            ProductNotFoundError: Unknown id
            InvalidUpdateError: Field not writable
        """
        product = self.get(product_id)

        unknown = sorted(set(fields) - set(UPDATABLE_FIELDS))
        if unknown:
            raise InvalidUpdateError(f"Fields not updatable: {', '.join(unknown)}")

        for name, value in fields.items():
            if name in NUMERIC_FIELDS:
                setattr(product, name, parse_number(value))
            else:
                setattr(product, name, "" if value is None else str(value))

        revalidate(product, self.unify_negative_check)
        logger.debug(
            f"[STORE] Updated {product_id}: {sorted(fields)} → {len(product.errors)} errors"
        )
        return MutationResult(products=[product], stats=self.stats())

    def delete(self, product_id: str) -> MutationResult:
        removed = self._products.pop(self._index_of(product_id))
        logger.info(f"[STORE] Deleted {product_id} (total {len(self._products)})")
        return MutationResult(products=[removed], stats=self.stats())

    def clear(self) -> MutationResult:
        """Remove every product (session reset)."""
        removed = self._products
        self._products = []
        logger.info(f"[STORE] Cleared {len(removed)} products")
        return MutationResult(products=removed, stats=self.stats())

    def validate_all(self) -> MutationResult:
        """Re-run validation on the whole collection."""
        for product in self._products:
            revalidate(product, self.unify_negative_check)
        stats = self.stats()
        logger.info(f"[STORE] Validated {stats.count} products, {stats.error_count} with errors")
        return MutationResult(products=list(self._products), stats=stats)

    def list_filtered(self, search: Optional[str] = None, only_errors: bool = False) -> List[Product]:
        """
        Products in insertion order, optionally filtered.

        Args:
            search: Case-insensitive substring of code or description
            only_errors: Keep only products with validation errors
        """
        result = self._products
        if only_errors:
            result = [p for p in result if p.errors]
        if search:
            needle = search.lower()
            result = [
                p for p in result
                if needle in p.code.lower() or needle in p.description.lower()
            ]
        return list(result)

    def page(self, number: int = 1, search: Optional[str] = None, only_errors: bool = False) -> ProductPage:
        """One fixed-size page of the filtered view; page numbers are 1-based and clamped."""
        filtered = self.list_filtered(search, only_errors)
        total_pages = max(1, math.ceil(len(filtered) / self.page_size))
        number = min(max(1, number), total_pages)
        start = (number - 1) * self.page_size
        return ProductPage(
            items=filtered[start:start + self.page_size],
            page=number,
            page_size=self.page_size,
            total_items=len(filtered),
            total_pages=total_pages,
        )

    def stats(self) -> InventoryStats:
        stats = InventoryStats()
        for product in self._products:
            stats.count += 1
            stats.sum_quantity += product.quantity
            stats.sum_value += product.quantity * product.unit_value
            if product.errors:
                stats.error_count += 1
        return stats
