# app/domain/errors.py
from __future__ import annotations

from typing import Any, Dict


class EngineError(Exception):
    """Base error engine; `kind` dipakai caller untuk membedakan jenis gagal."""
    kind: str = "internal"
    retryable: bool = False

    def __init__(self, message: str, *, detail: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "kind": self.kind,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.detail:
            out["detail"] = self.detail
        return out


class StoreUnavailableError(EngineError):
    """Koneksi / timeout / query gagal di backing store. Caller boleh retry."""
    kind = "transient"
    retryable = True
