"""
Gate - route uploads by file type.

Spreadsheets go through header detection and mapping confirmation,
documents go to the AI extraction adapter.
"""
import logging
from typing import Optional, Tuple

from core.errors import InputShapeError

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = ('csv', 'xlsx', 'xls')
DOCUMENT_EXTENSIONS = ('pdf', 'jpg', 'jpeg', 'png')

DOCUMENT_MIME_TYPES = {
    'pdf': 'application/pdf',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
}


def route_file(file_name: str, ext: Optional[str] = None) -> Tuple[str, str]:
    """
    Route a file by extension.

    Args:
        file_name: Uploaded file name
        ext: Extension (extracted from file_name when None)

    Returns:
        Tuple (route, ext):
        - route: 'spreadsheet' for CSV/Excel, 'document' for PDF/images
        - ext: Normalized extension (lowercase, no dot)

    Raises:
        InputShapeError: Missing or unsupported extension
    """
    if ext is None:
        if '.' in file_name:
            ext = file_name.rsplit('.', 1)[-1]
        else:
            raise InputShapeError(f"Cannot determine file extension: {file_name}")

    ext = ext.lower().strip().lstrip('.')

    if ext in SPREADSHEET_EXTENSIONS:
        logger.info(f"[GATE] File {file_name} routed to spreadsheet import")
        return 'spreadsheet', ext

    if ext in DOCUMENT_EXTENSIONS:
        logger.info(f"[GATE] File {file_name} routed to document extraction")
        return 'document', ext

    error_msg = f"Unsupported file format: .{ext}. Supported: CSV, XLSX, XLS, PDF, JPG, JPEG, PNG"
    logger.error(f"[GATE] {error_msg}")
    raise InputShapeError(error_msg)
