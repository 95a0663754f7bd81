"""
Router for inventory uploads.

Endpoints:
- POST /api/sessions/{session_id}/upload: Upload a spreadsheet (returns a
  mapping preview) or a PDF/image document (imported through the AI adapter)
- POST /api/sessions/{session_id}/mapping/confirm: Import the pending
  spreadsheet with the confirmed mapping
- DELETE /api/sessions/{session_id}/mapping: Discard the pending spreadsheet
"""
import logging
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from pydantic import BaseModel

from core.config import get_config
from core.errors import DocumentExtractionError, InputShapeError
from core.logger import log_with_context
from ingest.gate import route_file
from ingest.pipeline import commit_spreadsheet, import_document, prepare_spreadsheet
from ingest.types import ColumnMapping
from api.routers.inventory import get_session_or_404, mutation_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["ingest"])


class MappingRequest(BaseModel):
    code: Optional[int] = None
    description: Optional[int] = None
    quantity: Optional[int] = None
    unit_value: Optional[int] = None

    def to_mapping(self) -> ColumnMapping:
        return ColumnMapping(
            code=self.code,
            description=self.description,
            quantity=self.quantity,
            unit_value=self.unit_value,
        )


@router.post("/{session_id}/upload")
async def upload_inventory_endpoint(session_id: str, upload: UploadFile = File(...)):
    """
    Receive an inventory file.

    Spreadsheets are never imported directly: the response carries the
    detected headers, sample rows and a suggested mapping to confirm.
    """
    session = get_session_or_404(session_id)
    file_name = upload.filename or "upload"
    file_content = await upload.read()
    config = get_config()

    log_with_context("info", f"Upload received: {file_name} ({len(file_content)} bytes)")

    try:
        route, ext = route_file(file_name)
        if route == 'spreadsheet':
            preview = prepare_spreadsheet(file_content, file_name, ext, config.header_scan_rows)
            session.pending_import = preview
            return {"kind": "spreadsheet", "preview": preview.to_dict()}

        result = await import_document(
            session.store, file_content, file_name, config.ai_service_config(), ext
        )
    except InputShapeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DocumentExtractionError as e:
        logger.error(f"[INGEST] Document import failed for {file_name}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    response = mutation_response(result)
    response["kind"] = "document"
    return response


@router.post("/{session_id}/mapping/confirm")
async def confirm_mapping_endpoint(session_id: str, body: MappingRequest):
    session = get_session_or_404(session_id)
    preview = session.pending_import
    if preview is None:
        raise HTTPException(status_code=409, detail="No spreadsheet waiting for mapping confirmation")

    try:
        result = commit_spreadsheet(session.store, preview, body.to_mapping())
    except InputShapeError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session.pending_import = None
    return mutation_response(result)


@router.delete("/{session_id}/mapping")
async def cancel_mapping_endpoint(session_id: str):
    session = get_session_or_404(session_id)
    discarded = session.pending_import is not None
    session.pending_import = None
    return {"discarded": discarded}
