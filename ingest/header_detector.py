"""
Header detection for spreadsheet grids.

Finds the header row among the first rows of a cell grid and proposes a
column mapping for the four semantic fields using keyword patterns.

Flow:
1. Scan the first rows, pick the one with the most non-empty cells
2. Name the header cells (blank cells become "Column N")
3. Match each semantic field to the first unclaimed header that fits
"""
import re
import logging
from dataclasses import dataclass
from typing import Any, List, Sequence

from core.errors import InputShapeError
from ingest.normalization import clean_string
from ingest.types import ColumnMapping

logger = logging.getLogger(__name__)

DEFAULT_SCAN_ROWS = 20

# Keyword patterns per semantic field, checked in this order
FIELD_PATTERNS = {
    'code': re.compile(r'c[óo]d|ref|artigo|sku|id|part', re.IGNORECASE),
    'description': re.compile(r'desc|designa|nome|produto|texto', re.IGNORECASE),
    'quantity': re.compile(r'qtd|quant|stock|saldo|exist|qty', re.IGNORECASE),
    'unit_value': re.compile(r'pre[çc]o|valor|unit|custo|p\.v\.p', re.IGNORECASE),
}


@dataclass
class HeaderDetection:
    header_index: int
    headers: List[str]
    rows: List[List[Any]]


def count_filled(row: Sequence[Any]) -> int:
    return sum(1 for cell in row if clean_string(cell) != "")


def detect_header_row(grid: Sequence[Sequence[Any]], scan_rows: int = DEFAULT_SCAN_ROWS) -> HeaderDetection:
    """
    Pick the header row of a grid.

    The row with the most non-empty cells among the first ``scan_rows`` wins;
    ties keep the earliest row. Rows after it are the data rows.

    Args:
        grid: Rows of cells as decoded from the spreadsheet
        scan_rows: Number of leading rows to consider

    Returns:
        HeaderDetection with the header index, header names and data rows

    Raises:
        InputShapeError: Empty grid or no non-empty cell in the scan window
    """
    if not grid:
        raise InputShapeError("Empty or unreadable file")

    header_index = 0
    max_filled = 0
    for idx, row in enumerate(grid[:scan_rows]):
        filled = count_filled(row or [])
        if filled > max_filled:
            max_filled = filled
            header_index = idx

    if max_filled == 0:
        raise InputShapeError(f"No header row found in the first {scan_rows} rows")

    headers = [
        clean_string(cell) or f"Column {i + 1}"
        for i, cell in enumerate(grid[header_index])
    ]
    rows = [list(row) if row else [] for row in grid[header_index + 1:]]

    logger.info(
        f"[HEADER] Header row {header_index} ({max_filled} filled cells), "
        f"{len(rows)} data rows: {headers}"
    )
    return HeaderDetection(header_index=header_index, headers=headers, rows=rows)


def match_columns(headers: Sequence[str]) -> ColumnMapping:
    """
    Map the semantic fields to header columns.

    For each field, the first header (column order) matching the field's
    pattern and not already claimed by an earlier field is taken. Fields
    without a match stay unmapped (None).

    Args:
        headers: Header texts in column order

    Returns:
        ColumnMapping with a column index or None per field
    """
    mapping = ColumnMapping()
    claimed = set()

    for field_name, pattern in FIELD_PATTERNS.items():
        for idx, header in enumerate(headers):
            if idx in claimed:
                continue
            if pattern.search(str(header or '').lower()):
                setattr(mapping, field_name, idx)
                claimed.add(idx)
                logger.debug(f"[HEADER] Column {idx} ('{header}') → '{field_name}'")
                break
        else:
            logger.debug(f"[HEADER] Field '{field_name}' unmapped")

    logger.info(f"[HEADER] Suggested mapping: {mapping.as_dict()}")
    return mapping
