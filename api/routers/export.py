"""
Router for stock exports.

Endpoints:
- GET /api/sessions/{session_id}/export.csv: Semicolon CSV (always allowed
  when the inventory is not empty)
- GET /api/sessions/{session_id}/export.xml: StockFile XML (refused while
  any product has validation errors)
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from core.config import get_config
from core.errors import ExportBlockedError
from core.logger import log_json
from core.stock_export import build_export
from api.routers.inventory import get_session_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["export"])

# Portuguese tax registration number (NIF)
TAX_ID_PATTERN = r"^\d{9}$"


def _export_response(
    session_id: str,
    fmt: str,
    valued: bool,
    tax_id: Optional[str],
    fiscal_year: Optional[int],
) -> Response:
    session = get_session_or_404(session_id)
    config = get_config()
    tax_id = tax_id or config.default_tax_id
    fiscal_year = fiscal_year or config.default_fiscal_year

    try:
        export = build_export(session.store, fmt, valued, tax_id, fiscal_year)
    except ExportBlockedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    log_json(
        level='info',
        message=f"Export generated: {export.filename}",
        stage='export',
        file_name=export.filename,
        rows_total=len(session.store),
        valued=valued,
    )
    return Response(
        content=export.to_bytes(),
        media_type=f"{export.mime_type}; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/{session_id}/export.csv")
async def export_csv_endpoint(
    session_id: str,
    valued: bool = Query(True),
    tax_id: Optional[str] = Query(None, pattern=TAX_ID_PATTERN),
    fiscal_year: Optional[int] = Query(None),
):
    return _export_response(session_id, "csv", valued, tax_id, fiscal_year)


@router.get("/{session_id}/export.xml")
async def export_xml_endpoint(
    session_id: str,
    valued: bool = Query(True),
    tax_id: Optional[str] = Query(None, pattern=TAX_ID_PATTERN),
    fiscal_year: Optional[int] = Query(None),
):
    return _export_response(session_id, "xml", valued, tax_id, fiscal_year)
