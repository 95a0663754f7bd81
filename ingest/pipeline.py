"""
Pipeline orchestrator for inventory imports.

Spreadsheet path: gate → decode grid → header row → suggested mapping
(preview) → user-confirmed mapping → normalize → validate → store.
Document path: gate → AI extraction → adapter → validate → store.

Every import builds its full product list before touching the store, so a
failed attempt leaves the store exactly as it was.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import openai

from core.config import AIServiceConfig
from core.errors import InputShapeError
from core.logger import log_json
from core.store import InventoryStore, MutationResult
from ingest.csv_parser import parse_csv
from ingest.excel_parser import parse_excel
from ingest.gate import route_file
from ingest.header_detector import DEFAULT_SCAN_ROWS, detect_header_row, match_columns
from ingest.llm_extract import extract_document_candidates
from ingest.normalization import normalize_rows
from ingest.types import ColumnMapping, Product
from ingest.validation import adapt_document_candidates, build_product, validation_summary

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 5


@dataclass
class SpreadsheetPreview:
    """Decoded spreadsheet awaiting mapping confirmation."""
    file_name: str
    headers: List[str]
    rows: List[List[Any]]
    suggested_mapping: ColumnMapping
    header_index: int = 0
    detection_info: Dict[str, Any] = field(default_factory=dict)

    def sample_rows(self, limit: int = PREVIEW_ROWS) -> List[List[Any]]:
        return [list(row) for row in self.rows[:limit]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "headers": self.headers,
            "header_index": self.header_index,
            "total_rows": len(self.rows),
            "sample_rows": self.sample_rows(),
            "suggested_mapping": self.suggested_mapping.as_dict(),
            "detection": dict(self.detection_info),
        }


def decode_spreadsheet(file_content: bytes, ext: str):
    if ext == 'csv':
        return parse_csv(file_content)
    return parse_excel(file_content, ext)


def prepare_spreadsheet(
    file_content: bytes,
    file_name: str,
    ext: Optional[str] = None,
    scan_rows: int = DEFAULT_SCAN_ROWS,
) -> SpreadsheetPreview:
    """
    Decode a spreadsheet and propose a column mapping.

    Nothing is committed: the caller must confirm (or adjust) the mapping
    through ``commit_spreadsheet``.

    Args:
        file_content: File bytes
        file_name: File name
        ext: Extension (from file_name when None)
        scan_rows: Rows scanned for the header row

    Returns:
        SpreadsheetPreview

    Raises:
        InputShapeError: Not a spreadsheet, unreadable, or no header row
    """
    route, ext = route_file(file_name, ext)
    if route != 'spreadsheet':
        raise InputShapeError(f"Not a spreadsheet: {file_name}")

    grid, detection_info = decode_spreadsheet(file_content, ext)
    detection = detect_header_row(grid, scan_rows)
    mapping = match_columns(detection.headers)

    logger.info(
        f"[PIPELINE] Spreadsheet {file_name} ready for mapping: "
        f"{len(detection.headers)} columns, {len(detection.rows)} rows"
    )
    return SpreadsheetPreview(
        file_name=file_name,
        headers=detection.headers,
        rows=detection.rows,
        suggested_mapping=mapping,
        header_index=detection.header_index,
        detection_info=detection_info,
    )


def check_mapping(mapping: ColumnMapping, headers: List[str]) -> None:
    """
    Raises:
        InputShapeError: A mapped index does not name a header column
    """
    for name, index in mapping.as_dict().items():
        if index is None:
            continue
        if not isinstance(index, int) or index < 0 or index >= len(headers):
            raise InputShapeError(f"Column index {index!r} for '{name}' is out of range")


def products_from_rows(
    rows: List[List[Any]],
    mapping: ColumnMapping,
    unify_negative_check: bool = False,
) -> List[Product]:
    """Normalize and validate spreadsheet rows into products."""
    return [
        build_product(candidate, "spreadsheet", unify_negative_check)
        for candidate in normalize_rows(rows, mapping)
    ]


def commit_spreadsheet(
    store: InventoryStore,
    preview: SpreadsheetPreview,
    mapping: ColumnMapping,
) -> MutationResult:
    """
    Import a previewed spreadsheet with a confirmed mapping.

    Args:
        store: Session inventory
        preview: Result of prepare_spreadsheet
        mapping: Mapping confirmed by the user

    Returns:
        MutationResult with the imported products and new stats
    """
    start_time = time.time()
    check_mapping(mapping, preview.headers)

    products = products_from_rows(preview.rows, mapping, store.unify_negative_check)
    result = store.append(products)
    summary = validation_summary(products)

    log_json(
        level='info',
        message=f"Spreadsheet imported: {preview.file_name}",
        stage='spreadsheet',
        file_name=preview.file_name,
        rows_total=len(preview.rows),
        rows_imported=len(products),
        rows_with_errors=summary["rows_with_errors"],
        error_reasons=summary["error_reasons"],
        elapsed_ms=round((time.time() - start_time) * 1000, 2),
        mapping=mapping.as_dict(),
    )
    return result


async def import_document(
    store: InventoryStore,
    file_content: bytes,
    file_name: str,
    ai_config: AIServiceConfig,
    ext: Optional[str] = None,
    client: Optional[openai.AsyncOpenAI] = None,
) -> MutationResult:
    """
    Import a PDF/image document through the AI adapter.

    Args:
        store: Session inventory
        file_content: Document bytes
        file_name: File name
        ai_config: AI settings for this call
        ext: Extension (from file_name when None)
        client: Pre-built OpenAI client (tests)

    Returns:
        MutationResult with the imported products and new stats

    Raises:
        InputShapeError: Not a supported document
        DocumentExtractionError: AI failure; the store is left unchanged
    """
    start_time = time.time()
    route, ext = route_file(file_name, ext)
    if route != 'document':
        raise InputShapeError(f"Not a document: {file_name}")

    raw_items = await extract_document_candidates(file_content, file_name, ext, ai_config, client)
    products = adapt_document_candidates(raw_items, store.unify_negative_check)
    result = store.append(products)
    summary = validation_summary(products)

    log_json(
        level='info',
        message=f"Document imported: {file_name}",
        stage='document',
        file_name=file_name,
        ext=ext,
        rows_total=len(raw_items),
        rows_imported=len(products),
        rows_with_errors=summary["rows_with_errors"],
        error_reasons=summary["error_reasons"],
        elapsed_ms=round((time.time() - start_time) * 1000, 2),
    )
    return result
