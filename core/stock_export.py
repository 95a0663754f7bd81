"""
Stock export generator (CSV and XML for the tax-authority stock report).

Both serializers are pure functions over the full product list; the
``build_export`` gate decides whether an export may be produced at all.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Union
from xml.sax.saxutils import escape

from core.errors import ExportBlockedError
from core.store import InventoryStore
from ingest.types import Product

logger = logging.getLogger(__name__)

CSV_BOM = "\ufeff"
CSV_DELIMITER = ";"
CSV_HEADER = [
    "ProductCategory",
    "ProductCode",
    "ProductDescription",
    "ProductNumberCode",
    "ClosingStockQuantity",
    "UnitOfMeasure",
]

_CSV_BREAKS = re.compile(r'[\n\r\t]')
_XML_QUOTES = {'"': "&quot;", "'": "&apos;"}

MIME_TYPES = {
    "csv": "text/csv",
    "xml": "application/xml",
}


def sanitize_csv_field(value) -> str:
    """
    Make a text field safe for the unquoted ';' CSV.

    Line breaks, tabs, ';' and '"' become spaces, then the field is trimmed.
    The format has no quoting, so collisions are removed, never escaped.
    """
    if value is None:
        return ""
    text = _CSV_BREAKS.sub(" ", str(value))
    text = text.replace(CSV_DELIMITER, " ").replace('"', " ")
    return text.strip()


def format_csv_number(value: float) -> str:
    """Two decimals, comma as decimal separator."""
    return f"{value:.2f}".replace(".", ",")


def escape_xml(value) -> str:
    """Escape exactly < > & " '."""
    if value is None or value == "":
        return ""
    return escape(str(value), _XML_QUOTES)


def generate_inventory_csv(products: Sequence[Product], valued: bool) -> str:
    """
    Generate the stock CSV.

    Args:
        products: Full product list, in store order
        valued: Append the Value column

    Returns:
        CSV text starting with a UTF-8 BOM, rows joined by '\\n'
    """
    header = list(CSV_HEADER)
    if valued:
        header.append("Value")

    lines = [CSV_DELIMITER.join(header)]
    for p in products:
        row = [
            sanitize_csv_field(p.category),
            sanitize_csv_field(p.code),
            sanitize_csv_field(p.description),
            sanitize_csv_field(p.code),  # ProductNumberCode
            format_csv_number(p.quantity),
            sanitize_csv_field(p.unit),
        ]
        if valued:
            row.append(format_csv_number(p.unit_value))
        lines.append(CSV_DELIMITER.join(row))

    return CSV_BOM + "\n".join(lines)


def generate_inventory_xml(
    products: Sequence[Product],
    tax_id: str,
    fiscal_year: Union[int, str],
    valued: bool,
    created: Optional[date] = None,
) -> str:
    """
    Generate the StockFile XML document.

    Args:
        products: Full product list, in store order
        tax_id: Tax registration number (NIF)
        fiscal_year: Fiscal year
        valued: Write unit values; otherwise every Value is 0.00
        created: Creation date (defaults to today)

    Returns:
        XML text, lines joined by '\\n'
    """
    created = created or date.today()
    parts: List[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<StockFile xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">',
        '  <StockHeader>',
        f'    <TaxRegistrationNumber>{escape_xml(tax_id)}</TaxRegistrationNumber>',
        f'    <FiscalYear>{escape_xml(fiscal_year)}</FiscalYear>',
        f'    <DateCreated>{created.isoformat()}</DateCreated>',
        '    <ProductStockIndex>1</ProductStockIndex>',
        '  </StockHeader>',
    ]

    for p in products:
        value = f"{p.unit_value:.2f}" if valued else "0.00"
        parts.extend([
            '  <ProductStock>',
            f'    <ProductCategory>{escape_xml(p.category)}</ProductCategory>',
            f'    <ProductCode>{escape_xml(p.code)}</ProductCode>',
            f'    <ProductDescription>{escape_xml(p.description)}</ProductDescription>',
            f'    <ProductNumberCode>{escape_xml(p.code)}</ProductNumberCode>',
            f'    <ClosingStockQuantity>{p.quantity:.2f}</ClosingStockQuantity>',
            f'    <UnitOfMeasure>{escape_xml(p.unit)}</UnitOfMeasure>',
            f'    <Value>{value}</Value>',
            '  </ProductStock>',
        ])

    parts.append('</StockFile>')
    return "\n".join(parts)


@dataclass
class ExportFile:
    content: str
    filename: str
    mime_type: str

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")


def build_export(
    store: InventoryStore,
    fmt: str,
    valued: bool,
    tax_id: str,
    fiscal_year: Union[int, str],
    created: Optional[date] = None,
) -> ExportFile:
    """
    Produce an export file for the whole store.

    Args:
        store: Session inventory
        fmt: 'csv' or 'xml'
        valued: Valued or non-valued export
        tax_id: Tax registration number, used in the XML header and filename
        fiscal_year: Fiscal year, used in the XML header and filename
        created: XML creation date (defaults to today)

    Returns:
        ExportFile with content, filename and MIME type

    Raises:
        ValueError: Unknown format
        ExportBlockedError: Empty store, or XML with products carrying errors
    """
    fmt = fmt.lower().strip().lstrip('.')
    if fmt not in MIME_TYPES:
        raise ValueError(f"Unsupported export format: {fmt}. Supported: csv, xml")

    products = store.products
    if not products:
        raise ExportBlockedError("No products to export")

    if fmt == "xml":
        error_count = sum(1 for p in products if p.errors)
        if error_count:
            logger.warning(f"[EXPORT] XML blocked: {error_count} products with validation errors")
            raise ExportBlockedError(
                f"XML export blocked: {error_count} products have validation errors"
            )
        content = generate_inventory_xml(products, tax_id, fiscal_year, valued, created)
    else:
        content = generate_inventory_csv(products, valued)

    filename = f"Stock_{tax_id}_{fiscal_year}.{fmt}"
    logger.info(f"[EXPORT] {fmt.upper()} export {filename}: {len(products)} products, valued={valued}")
    return ExportFile(content=content, filename=filename, mime_type=MIME_TYPES[fmt])
