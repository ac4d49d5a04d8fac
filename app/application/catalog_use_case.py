# app/application/catalog_use_case.py
from __future__ import annotations

import logging
from typing import List, Optional

from app.domain.limits import DEFAULT_ALTERNATIVE_LIMIT, DEFAULT_RECENT_LIMIT, clamp_limit
from app.domain.models import CancelledProduct, Company, ProductView, Substance
from app.domain.ports import ProductRepoPort
from app.services.product_formatter import ProductFormatter

logger = logging.getLogger("cosmeticguard.catalog")


class CatalogUseCase:
    """Lookup langsung: produk per kode, alternatif, substansi, statistik brand."""

    def __init__(self, repo: ProductRepoPort):
        self.repo = repo

    async def product(self, notif_code: str, formatter: ProductFormatter) -> Optional[ProductView]:
        product = await self.repo.find_product(notif_code)
        if product is None:
            return None
        return formatter.view(product)

    async def alternatives(
        self, notif_code: str, formatter: ProductFormatter, limit: int = DEFAULT_ALTERNATIVE_LIMIT,
    ) -> Optional[List[ProductView]]:
        """None = produk asal tidak ada; [] = tidak ada alternatif."""
        original = await self.repo.find_product(notif_code)
        if original is None:
            return None
        if not original.category:
            return []
        limit = clamp_limit(limit, DEFAULT_ALTERNATIVE_LIMIT)
        alts = await self.repo.find_alternatives(original.category, original.notif_no, limit)
        logger.info("alternatives for %s (%s): %d", original.notif_no, original.category, len(alts))
        return formatter.views(alts)

    async def harmful_substances(self, notif_code: str) -> List[Substance]:
        return await self.repo.harmful_substances(notif_code)

    async def recent(self, formatter: ProductFormatter, limit: int = DEFAULT_RECENT_LIMIT) -> List[ProductView]:
        products = await self.repo.recent_approved(clamp_limit(limit, DEFAULT_RECENT_LIMIT))
        return formatter.views(products)

    async def ingredients(self) -> List[Substance]:
        return await self.repo.list_substances()

    async def brands(self) -> List[Company]:
        return await self.repo.list_companies()

    async def cancelled(self) -> List[CancelledProduct]:
        return await self.repo.list_cancelled()

    async def cancelled_product(self, notif_code: str) -> Optional[CancelledProduct]:
        return await self.repo.find_cancelled(notif_code)
