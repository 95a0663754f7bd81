"""
Main FastAPI application for the stock processor.

Sessions hold an in-memory inventory; uploads, edits and exports all act on
the session's own store.
"""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_config
from core.logger import setup_colored_logging
from core.session_manager import get_session_manager
from api.routers import export, ingest, inventory

setup_colored_logging("processor")
logger = logging.getLogger(__name__)

app = FastAPI(title="Stock Processor", version="1.0.0")

# CORS for the browser front-end
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(inventory.router)
app.include_router(ingest.router)
app.include_router(export.router)


@app.on_event("startup")
async def startup_event():
    """Validate configuration at startup."""
    config = get_config()
    logger.info(f"{config.processor_name} {config.processor_version} started")


@app.get("/health")
async def health_check():
    """Service health check."""
    config = get_config()
    return {
        "status": "healthy",
        "service": "stock-processor",
        "version": config.processor_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "document_ai": "configured" if config.openai_api_key else "not_configured",
        "active_sessions": len(get_session_manager()),
        "endpoints": {
            "sessions": "/api/sessions",
            "upload": "/api/sessions/{session_id}/upload",
            "confirm_mapping": "/api/sessions/{session_id}/mapping/confirm",
            "products": "/api/sessions/{session_id}/products",
            "export_csv": "/api/sessions/{session_id}/export.csv",
            "export_xml": "/api/sessions/{session_id}/export.xml",
        }
    }
