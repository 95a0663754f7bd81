"""
Normalization for the spreadsheet path.

Numeric coercion of locale-formatted cells and conversion of raw rows into
candidate product records.
"""
import math
import re
import logging
from typing import Any, List, Optional, Sequence

from ingest.types import (
    ColumnMapping,
    DEFAULT_CATEGORY,
    DEFAULT_UNIT,
    DESCRIPTION_MISSING,
    NO_CODE,
    ProductCandidate,
)

logger = logging.getLogger(__name__)

# Longest leading float literal, the same prefix a lenient parser accepts
_NUMBER_PREFIX = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_WHITESPACE = re.compile(r'\s+')


def is_na(value: Any) -> bool:
    """
    Check whether a cell is empty (None, NaN or blank string).

    Args:
        value: Cell value

    Returns:
        True when the cell carries no data
    """
    if value is None:
        return True
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, str):
        return value.strip() == ''
    return False


def clean_string(value: Any) -> str:
    """Cell to trimmed string, empty cells to ''."""
    if is_na(value):
        return ""
    return str(value).strip()


def parse_number(raw: Any) -> float:
    """
    Coerce a cell to a number.

    Rules:
    - int/float are returned as-is (NaN → 0)
    - strings: whitespace removed, the first comma becomes the decimal point,
      then the leading numeric part is parsed ("8,50" → 8.5, "12 un" → 12)
    - anything unparseable → 0, never raises

    Args:
        raw: Cell value (string, int, float, None)

    Returns:
        Parsed value
    """
    if isinstance(raw, bool):
        raw = str(raw)
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and (math.isnan(raw) or math.isinf(raw)):
            return 0.0
        return float(raw)

    text = '0' if raw is None or raw == '' else str(raw)
    text = _WHITESPACE.sub('', text).replace(',', '.', 1)

    match = _NUMBER_PREFIX.match(text)
    if not match:
        logger.debug(f"[NORMALIZATION] Unparseable number {raw!r} → 0")
        return 0.0
    try:
        value = float(match.group())
    except (ValueError, OverflowError):
        return 0.0
    if math.isinf(value):
        return 0.0
    return value


def _cell(row: Sequence[Any], index: Optional[int]) -> Any:
    if index is None or index < 0 or index >= len(row):
        return None
    return row[index]


def is_blank_row(row: Optional[Sequence[Any]]) -> bool:
    if not row:
        return True
    return all(is_na(cell) for cell in row)


def normalize_row(row: Optional[Sequence[Any]], mapping: ColumnMapping) -> Optional[ProductCandidate]:
    """
    Build a candidate product from a raw row and a column mapping.

    Unmapped or empty code/description fall back to the NO-CODE and
    DESCRIPTION MISSING sentinels; unmapped numbers are 0. Category and unit
    are the fixed defaults (M, UN).

    Args:
        row: Raw cells of one data row
        mapping: Confirmed column mapping

    Returns:
        ProductCandidate, or None for an absent or blank row
    """
    if is_blank_row(row):
        return None

    code = clean_string(_cell(row, mapping.code)) if mapping.code is not None else NO_CODE
    description = (
        clean_string(_cell(row, mapping.description))
        if mapping.description is not None
        else DESCRIPTION_MISSING
    )

    quantity = parse_number(_cell(row, mapping.quantity)) if mapping.quantity is not None else 0.0
    unit_value = parse_number(_cell(row, mapping.unit_value)) if mapping.unit_value is not None else 0.0

    return ProductCandidate(
        code=code or NO_CODE,
        description=description or DESCRIPTION_MISSING,
        category=DEFAULT_CATEGORY,
        unit=DEFAULT_UNIT,
        quantity=quantity,
        unit_value=unit_value,
    )


def normalize_rows(rows: Sequence[Optional[Sequence[Any]]], mapping: ColumnMapping) -> List[ProductCandidate]:
    """Normalize every data row, skipping blank ones."""
    candidates = []
    skipped = 0
    for row in rows:
        candidate = normalize_row(row, mapping)
        if candidate is None:
            skipped += 1
            continue
        candidates.append(candidate)

    logger.info(
        f"[NORMALIZATION] {len(candidates)} candidates from {len(rows)} rows "
        f"({skipped} blank rows skipped)"
    )
    return candidates
