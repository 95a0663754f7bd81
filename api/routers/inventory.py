"""
Router for session inventories.

Endpoints:
- POST /api/sessions: Open a new inventory session
- DELETE /api/sessions/{session_id}: Close a session
- GET /api/sessions/{session_id}/products: Filtered, paginated product list
- PATCH /api/sessions/{session_id}/products/{product_id}: Update fields (re-validates)
- DELETE /api/sessions/{session_id}/products/{product_id}: Delete a product
- DELETE /api/sessions/{session_id}/products: Reset the inventory
- POST /api/sessions/{session_id}/validate: Re-validate every product
- GET /api/sessions/{session_id}/stats: Aggregate stats
"""
import logging
from typing import Optional, Union

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ConfigDict

from core.errors import InvalidUpdateError, ProductNotFoundError, SessionNotFoundError
from core.logger import set_request_context
from core.session_manager import InventorySession, get_session_manager
from core.store import MutationResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["inventory"])


class ProductUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[Union[float, str]] = None
    unit_value: Optional[Union[float, str]] = None


def get_session_or_404(session_id: str) -> InventorySession:
    try:
        session = get_session_manager().get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    set_request_context(session_id=session_id)
    return session


def mutation_response(result: MutationResult) -> dict:
    return {
        "products": [p.to_dict() for p in result.products],
        "stats": result.stats.to_dict(),
    }


@router.post("")
async def create_session_endpoint():
    session = get_session_manager().create_session()
    return {
        "session_id": session.session_id,
        "created_at": session.created_at.isoformat(),
    }


@router.delete("/{session_id}")
async def close_session_endpoint(session_id: str):
    try:
        get_session_manager().close_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "closed", "session_id": session_id}


@router.get("/{session_id}/products")
async def list_products_endpoint(
    session_id: str,
    search: Optional[str] = Query(None),
    only_errors: bool = Query(False),
    page: int = Query(1, ge=1),
):
    """Products in insertion order, filtered and paginated."""
    session = get_session_or_404(session_id)
    result = session.store.page(page, search=search, only_errors=only_errors)
    return {
        "items": [p.to_dict() for p in result.items],
        "page": result.page,
        "page_size": result.page_size,
        "total_items": result.total_items,
        "total_pages": result.total_pages,
        "total_products": len(session.store),
    }


@router.patch("/{session_id}/products/{product_id}")
async def update_product_endpoint(session_id: str, product_id: str, body: ProductUpdateRequest):
    session = get_session_or_404(session_id)
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        result = session.store.update(product_id, fields)
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    except InvalidUpdateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return mutation_response(result)


@router.delete("/{session_id}/products/{product_id}")
async def delete_product_endpoint(session_id: str, product_id: str):
    session = get_session_or_404(session_id)
    try:
        result = session.store.delete(product_id)
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    return mutation_response(result)


@router.delete("/{session_id}/products")
async def reset_inventory_endpoint(session_id: str):
    """Start a new batch: drop every product and any pending spreadsheet."""
    session = get_session_or_404(session_id)
    result = session.store.clear()
    session.pending_import = None
    return {"removed": len(result.products), "stats": result.stats.to_dict()}


@router.post("/{session_id}/validate")
async def validate_inventory_endpoint(session_id: str):
    session = get_session_or_404(session_id)
    if not len(session.store):
        raise HTTPException(status_code=400, detail="No products to validate")

    result = session.store.validate_all()
    return {
        "validated": result.stats.count,
        "with_errors": result.stats.error_count,
        "stats": result.stats.to_dict(),
    }


@router.get("/{session_id}/stats")
async def inventory_stats_endpoint(session_id: str):
    session = get_session_or_404(session_id)
    return session.store.stats().to_dict()
