# app/services/session_state.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from app.domain.models import ProductView, ScoreBreakdown
from app.infra.cache.memory_cache import DEFAULT_CAPACITY, BoundedCache

SESSION_CAPACITY = int(os.getenv("SESSION_CAPACITY", "512"))

log = logging.getLogger("cosmeticguard.session")


@dataclass
class SessionCaches:
    """Dua cache per sesi klien: produk terformat (per notif_no) & breakdown (per company)."""
    products: BoundedCache[str, ProductView] = field(default_factory=lambda: BoundedCache(DEFAULT_CAPACITY))
    breakdowns: BoundedCache[str, ScoreBreakdown] = field(default_factory=lambda: BoundedCache(DEFAULT_CAPACITY))


class SessionStateService:
    """
    Registry sesi (X-Session-Id -> SessionCaches). Registry sendiri dibatasi;
    sesi paling lama dibuang duluan. Tanpa session id → sesi sekali pakai.
    """

    def __init__(self, capacity: int = SESSION_CAPACITY):
        self._sessions: BoundedCache[str, SessionCaches] = BoundedCache(capacity)

    def get(self, session_id: Optional[str]) -> SessionCaches:
        if not session_id:
            return SessionCaches()
        return self._sessions.get_or_create(session_id, SessionCaches)

    def reset(self, session_id: str) -> None:
        self._sessions.discard(session_id)
        log.info("session %s caches cleared", session_id)

    def __len__(self) -> int:
        return len(self._sessions)
