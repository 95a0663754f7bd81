"""
Excel decoding into a cell grid.

Reads the first sheet that has rows, every cell as text, blank rows dropped.
"""
import io
import logging
from typing import Any, Dict, List, Tuple

import pandas as pd

from core.errors import InputShapeError

logger = logging.getLogger(__name__)


def _sheet_to_grid(df: pd.DataFrame) -> List[List[Any]]:
    df = df.fillna("")
    grid = [[str(cell) for cell in row] for row in df.itertuples(index=False, name=None)]
    return [row for row in grid if any(cell.strip() for cell in row)]


ENGINES = {
    'xlsx': 'openpyxl',
    'xls': 'xlrd',
}


def parse_excel(file_content: bytes, ext: str = 'xlsx') -> Tuple[List[List[Any]], Dict[str, Any]]:
    """
    Decode an Excel workbook into a grid of string cells.

    Args:
        file_content: File content (bytes)
        ext: 'xlsx' (openpyxl) or legacy 'xls' (xlrd)

    Returns:
        Tuple (grid, sheet_info) with sheet_name, sheet_index, total_sheets, rows

    Raises:
        InputShapeError: Unreadable workbook or no sheet with rows
    """
    try:
        excel_file = pd.ExcelFile(io.BytesIO(file_content), engine=ENGINES.get(ext, 'openpyxl'))
    except Exception as e:
        logger.error(f"[EXCEL_PARSER] Error opening workbook: {e}")
        raise InputShapeError(f"Empty or unreadable file: {e}") from e

    sheet_names = excel_file.sheet_names
    logger.info(f"[EXCEL_PARSER] Excel file has {len(sheet_names)} sheets: {sheet_names}")

    for sheet_idx, sheet_name in enumerate(sheet_names):
        df = pd.read_excel(excel_file, sheet_name=sheet_name, header=None, dtype=str)
        grid = _sheet_to_grid(df)
        if not grid:
            logger.debug(f"[EXCEL_PARSER] Sheet '{sheet_name}' is empty, skipping")
            continue

        logger.info(f"[EXCEL_PARSER] Excel parsed: sheet='{sheet_name}', {len(grid)} rows")
        sheet_info = {
            'sheet_name': sheet_name,
            'sheet_index': sheet_idx,
            'total_sheets': len(sheet_names),
            'rows': len(grid),
        }
        return grid, sheet_info

    raise InputShapeError("Empty or unreadable file")
