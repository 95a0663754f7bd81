"""
Exceptions for the stock processor.

Input-shape and adapter failures abort a single import attempt; per-field
validation problems are never raised, they live on ``Product.errors``.
"""


class InventoryError(Exception):
    """Base class for every error raised by the processor."""


class InputShapeError(InventoryError, ValueError):
    """Unsupported, empty or unreadable upload, or no header row found."""


class DocumentExtractionError(InventoryError):
    """The document AI adapter failed or returned an unusable payload."""


class ProductNotFoundError(InventoryError, KeyError):
    def __init__(self, product_id: str):
        super().__init__(product_id)
        self.product_id = product_id

    def __str__(self) -> str:
        return f"product not found: {self.product_id}"


class InvalidUpdateError(InventoryError, ValueError):
    """Update payload names a field that cannot be written."""


class ExportBlockedError(InventoryError):
    """Export refused: empty inventory or records with validation errors."""


class SessionNotFoundError(InventoryError, KeyError):
    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"session not found: {self.session_id}"
