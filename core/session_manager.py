"""
Session manager for the stock processor.

Each session owns one InventoryStore and at most one spreadsheet preview
waiting for mapping confirmation. Stores are never shared between sessions.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional

from core.config import get_config
from core.errors import SessionNotFoundError
from core.store import InventoryStore
from ingest.pipeline import SpreadsheetPreview

logger = logging.getLogger(__name__)


@dataclass
class InventorySession:
    session_id: str
    store: InventoryStore
    pending_import: Optional[SpreadsheetPreview] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionManager:
    """Registry of live sessions, keyed by session id."""

    def __init__(self, page_size: int = 50, unify_negative_check: bool = False):
        self.page_size = page_size
        self.unify_negative_check = unify_negative_check
        self._sessions: Dict[str, InventorySession] = {}
        self._lock = Lock()

    def create_session(self) -> InventorySession:
        session = InventorySession(
            session_id=uuid.uuid4().hex,
            store=InventoryStore(self.page_size, self.unify_negative_check),
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info(f"[SESSION] Created session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> InventorySession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def close_session(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        logger.info(f"[SESSION] Closed session {session_id} ({len(session.store)} products dropped)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# Global session registry
_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Return the process-wide session registry (singleton)."""
    global _manager
    if _manager is None:
        config = get_config()
        _manager = SessionManager(config.page_size, config.unify_negative_quantity_check)
    return _manager


def reset_session_manager() -> None:
    global _manager
    _manager = None
