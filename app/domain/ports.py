# app/domain/ports.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Collection, List, Optional

from app.domain.models import (
    CancelledProduct, Company, CompanyMatch, Product, SearchType, Substance,
)


class ProductRepoPort(ABC):
    """
    Kontrak read-only ke relational store.
    Semua method boleh raise StoreUnavailableError (retryable).
    """

    @abstractmethod
    async def ping(self) -> bool: ...

    @abstractmethod
    async def count_matches(self, terms: Collection[str], search_type: Optional[SearchType] = None) -> int: ...

    @abstractmethod
    async def search_matches(
        self,
        terms: Collection[str],
        *,
        limit: int,
        offset: int = 0,
        search_type: Optional[SearchType] = None,
        with_substances: bool = True,
    ) -> List[Product]:
        """Urut registration date desc, lalu notif_no (stabil antar halaman)."""

    @abstractmethod
    async def find_product(self, notif_no: str) -> Optional[Product]: ...

    @abstractmethod
    async def find_alternatives(self, category: str, exclude_notif_no: str, limit: int) -> List[Product]: ...

    @abstractmethod
    async def recent_approved(self, limit: int) -> List[Product]: ...

    @abstractmethod
    async def find_company(self, name: str, match: CompanyMatch) -> Optional[Company]: ...

    @abstractmethod
    async def list_companies(self) -> List[Company]: ...

    @abstractmethod
    async def list_substances(self) -> List[Substance]: ...

    @abstractmethod
    async def harmful_substances(self, notif_no: str) -> List[Substance]: ...

    @abstractmethod
    async def list_cancelled(self) -> List[CancelledProduct]: ...

    @abstractmethod
    async def find_cancelled(self, notif_no: str) -> Optional[CancelledProduct]: ...
