# app/application/search_use_case.py
from __future__ import annotations

import json
import logging
import math
import os
import time
from typing import FrozenSet, List, Optional

from app.domain.filters import apply_filters, sort_products
from app.domain.limits import (
    DEFAULT_SUGGESTION_LIMIT, MIN_QUERY_LENGTH, SIMPLE_SEARCH_CAP,
    clamp_limit, clamp_page, clamp_page_size,
)
from app.domain.models import PageResult, ProductFilters, ProductView, SearchType, Suggestion
from app.domain.ports import ProductRepoPort
from app.domain.similarity import rank_suggestions
from app.domain.synonyms import QueryExpander
from app.services.product_formatter import ProductFormatter

logger = logging.getLogger("cosmeticguard.search")

# SEARCH_LOG_FULL=1 → log seluruh term set, bukan hanya jumlahnya
_LOG_FULL = os.getenv("SEARCH_LOG_FULL") == "1"


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip()


def is_too_short(query: str) -> bool:
    return len(query) < MIN_QUERY_LENGTH


class SearchProductsUseCase:
    """
    Query → term set bilingual → retrieval dari store → (suggestion) ranking
    → filter atribut → sort / paginasi.
    Query < MIN_QUERY_LENGTH tidak pernah menyentuh store.
    """

    def __init__(self, repo: ProductRepoPort, expander: QueryExpander):
        self.repo = repo
        self.expander = expander

    def expand(self, query: str) -> FrozenSet[str]:
        return self.expander.expand(query)

    def _log(self, mode: str, query: str, terms: FrozenSet[str], t0: float, **extra) -> None:
        payload = {
            "event": f"search.{mode}",
            "query": query,
            "terms_count": len(terms),
            "latency_ms": int((time.monotonic() - t0) * 1000),
            **extra,
        }
        if _LOG_FULL:
            payload["terms"] = sorted(terms)
        logger.info(json.dumps(payload, ensure_ascii=False, default=str))

    # ── suggestion / autocomplete ─────────────────────────────────
    async def suggestions(self, query: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> List[Suggestion]:
        q = normalize_query(query)
        if is_too_short(q):
            return []
        limit = clamp_limit(limit, DEFAULT_SUGGESTION_LIMIT)
        t0 = time.monotonic()
        terms = self.expand(q)
        candidates = await self.repo.search_matches(terms, limit=limit, with_substances=False)
        ranked = rank_suggestions(q, candidates, limit=limit)
        self._log("suggestions", q, terms, t0, candidates=len(candidates), returned=len(ranked))
        return ranked

    # ── simple search (tanpa metadata paginasi) ───────────────────
    async def search(
        self,
        query: str,
        formatter: ProductFormatter,
        *,
        filters: Optional[ProductFilters] = None,
        search_type: Optional[SearchType] = None,
        sort_by: Optional[str] = None,
        sort_dir: str = "desc",
    ) -> List[ProductView]:
        q = normalize_query(query)
        if is_too_short(q):
            return []
        t0 = time.monotonic()
        terms = self.expand(q)
        products = await self.repo.search_matches(terms, limit=SIMPLE_SEARCH_CAP, search_type=search_type)
        views = apply_filters(formatter.views(products), filters)
        if sort_by:
            views = sort_products(views, sort_by, sort_dir)
        self._log("simple", q, terms, t0, fetched=len(products), returned=len(views),
                  search_type=search_type.value if search_type else None)
        return views

    # ── paginated search ──────────────────────────────────────────
    async def search_page(
        self,
        query: str,
        formatter: ProductFormatter,
        *,
        page: Optional[int] = 1,
        page_size: Optional[int] = None,
        search_type: Optional[SearchType] = None,
    ) -> PageResult:
        page = clamp_page(page)
        size = clamp_page_size(page_size)
        q = normalize_query(query)
        if is_too_short(q):
            return PageResult(page=1, page_size=size)

        t0 = time.monotonic()
        terms = self.expand(q)
        total = await self.repo.count_matches(terms, search_type)
        total_pages = math.ceil(total / size) if total else 0
        items: List[ProductView] = []
        if total and page <= total_pages:
            products = await self.repo.search_matches(
                terms, limit=size, offset=(page - 1) * size, search_type=search_type,
            )
            items = formatter.views(products)

        self._log("page", q, terms, t0, page=page, page_size=size, total=total, returned=len(items),
                  search_type=search_type.value if search_type else None)
        return PageResult(
            items=items,
            total_count=total,
            page=page,
            page_size=size,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )
