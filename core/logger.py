"""
Structured logging for the stock processor.

Coloured console logging plus a JSON-line helper carrying the session context.
"""
import logging
import json
import uuid
import sys
import contextvars
from typing import Optional, Dict, Any
from datetime import datetime, timezone

import colorlog

# Context variables used to tag log lines with the active session
_request_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar('request_context', default={})


def setup_colored_logging(service_name: str = "processor"):
    """
    Configure coloured logging with colorlog.

    Args:
        service_name: Service name shown on every log line
    """
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = colorlog.ColoredFormatter(
        f'%(log_color)s[%(levelname)s]%(reset)s %(cyan)s{service_name}%(reset)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        reset=True,
        log_colors={
            'DEBUG': 'white',
            'INFO': 'blue',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        },
        secondary_log_colors={},
        style='%'
    )

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    # Replace existing handlers
    root_logger.handlers = []
    root_logger.addHandler(handler)

    # Quieter third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('openai').setLevel(logging.WARNING)

    return root_logger


def set_request_context(session_id: Optional[str] = None, correlation_id: Optional[str] = None):
    """
    Set the request context for structured logging.

    Args:
        session_id: Inventory session id
        correlation_id: Correlation id (generated when None)
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())

    context = {}
    if session_id is not None:
        context["session_id"] = session_id
    context["correlation_id"] = correlation_id

    _request_context.set(context)


def get_request_context() -> Dict[str, Any]:
    return _request_context.get({})


def get_correlation_id() -> Optional[str]:
    return get_request_context().get("correlation_id")


def log_with_context(
    level: str,
    message: str,
    session_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
):
    """
    Log a message prefixed with session and correlation id.

    Args:
        level: 'info', 'warning', 'error', 'debug'
        message: Message to log
        session_id: Session id (falls back to the context)
        correlation_id: Correlation id (falls back to the context)
    """
    ctx = get_request_context()
    if session_id is None:
        session_id = ctx.get("session_id")
    if correlation_id is None:
        correlation_id = ctx.get("correlation_id")

    log_message = message
    if session_id:
        log_message = f"[session_id={session_id}] {log_message}"
    if correlation_id:
        log_message = f"[correlation_id={correlation_id}] {log_message}"

    logger = logging.getLogger(__name__)
    log_func = getattr(logger, level.lower(), logger.info)
    log_func(log_message)


def log_json(
    level: str,
    message: str,
    session_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    stage: Optional[str] = None,
    file_name: Optional[str] = None,
    ext: Optional[str] = None,
    rows_total: Optional[int] = None,
    rows_imported: Optional[int] = None,
    rows_with_errors: Optional[int] = None,
    elapsed_ms: Optional[float] = None,
    **extra
):
    """
    Log a single JSON line (production format).

    Args:
        level: 'info', 'warning', 'error', 'debug'
        message: Message to log
        session_id: Inventory session id
        correlation_id: Correlation id
        stage: Pipeline stage (spreadsheet, document, export)
        file_name: Processed file name
        ext: File extension
        rows_total: Rows read from the source
        rows_imported: Products added to the store
        rows_with_errors: Imported products carrying validation errors
        elapsed_ms: Elapsed time in milliseconds
        **extra: Additional fields
    """
    ctx = get_request_context()
    if session_id is None:
        session_id = ctx.get("session_id")
    if correlation_id is None:
        correlation_id = ctx.get("correlation_id")

    log_data: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level.upper(),
        "message": message,
    }

    if correlation_id:
        log_data["correlation_id"] = correlation_id
    if session_id:
        log_data["session_id"] = session_id
    if file_name:
        log_data["file_name"] = file_name
    if ext:
        log_data["ext"] = ext
    if stage:
        log_data["stage"] = stage

    if rows_total is not None:
        log_data["rows_total"] = rows_total
    if rows_imported is not None:
        log_data["rows_imported"] = rows_imported
    if rows_with_errors is not None:
        log_data["rows_with_errors"] = rows_with_errors

    if elapsed_ms is not None:
        log_data["elapsed_ms"] = elapsed_ms

    log_data.update(extra)

    logger = logging.getLogger(__name__)
    log_func = getattr(logger, level.lower(), logger.info)
    log_func(json.dumps(log_data, ensure_ascii=False, default=str))
