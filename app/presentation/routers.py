# app/presentation/routers.py
from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Header, Query, Response
from fastapi.responses import JSONResponse

from app.infra.api.security import require_api_key

from app.application.catalog_use_case import CatalogUseCase
from app.application.score_use_case import ScoreBreakdownUseCase
from app.application.search_use_case import SearchProductsUseCase
from app.container import get_catalog_uc, get_score_uc, get_search_uc, get_session_state
from app.domain.errors import EngineError
from app.domain.filters import SORT_KEYS
from app.domain.limits import (
    DEFAULT_ALTERNATIVE_LIMIT, DEFAULT_RECENT_LIMIT, DEFAULT_SUGGESTION_LIMIT,
)
from app.domain.models import ProductFilters, SearchType
from app.presentation.schemas import (
    BrandStatItem, CancelledProductItem, PageResponse, ProductItem,
    ScoreBreakdownResponse, SubstanceItem, SuggestionItem,
)
from app.services.product_formatter import ProductFormatter
from app.services.session_state import SessionCaches, SessionStateService


# ──────────────────────────────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────────────────────────────
logger = logging.getLogger(__name__)


def _session_caches(
    sess: SessionStateService = Depends(get_session_state),
    x_session_id: str | None = Header(None, alias="X-Session-Id"),
) -> SessionCaches:
    sid = (x_session_id or "").strip() or None
    if sid and len(sid) > 256:
        logger.warning("session_id looks too long; check client payload")
    return sess.get(sid)


def _formatter(caches: SessionCaches = Depends(_session_caches)) -> ProductFormatter:
    return ProductFormatter(caches.products)


def _engine_failure(e: EngineError) -> JSONResponse:
    status = 503 if e.retryable else 500
    logger.warning("engine failure kind=%s: %s", e.kind, e.message)
    return JSONResponse(status_code=status, content=e.to_dict())


def _not_found(what: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"kind": "not_found", "message": f"{what} not found"})


def _items(views) -> List[ProductItem]:
    return [ProductItem.model_validate(v.model_dump()) for v in views]


# Semua endpoint di bawah /v1 dan terlindungi API key
router = APIRouter(prefix="/v1", dependencies=[Depends(require_api_key)])


# ── SUGGESTIONS (autocomplete) ───────────────────────────────────
@router.get("/suggestions", response_model=List[SuggestionItem])
async def suggestions(
    query: str = Query(""),
    limit: int = Query(DEFAULT_SUGGESTION_LIMIT),
    uc: SearchProductsUseCase = Depends(get_search_uc),
):
    try:
        out = await uc.suggestions(query, limit=limit)
    except EngineError as e:
        return _engine_failure(e)
    return [SuggestionItem.model_validate(s.model_dump()) for s in out]


# ── SEARCH: simple (list) atau paginated (envelope) ──────────────
@router.get("/search", response_model=Union[PageResponse, List[ProductItem]])
async def search(
    query: str = Query(""),
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    status: str = Query("all"),
    risk_level: str = Query("all", alias="riskLevel"),
    category: str = Query("all"),
    harmful_ingredients: str = Query("all", alias="harmfulIngredients"),
    search_type: Optional[SearchType] = Query(None, alias="searchType"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_dir: str = Query("desc", alias="sortDir"),
    uc: SearchProductsUseCase = Depends(get_search_uc),
    formatter: ProductFormatter = Depends(_formatter),
):
    try:
        if page is not None or page_size is not None:
            res = await uc.search_page(query, formatter, page=page, page_size=page_size, search_type=search_type)
            return PageResponse.from_result(res)

        filters = ProductFilters(
            status=status, risk_level=risk_level, category=category,
            harmful_ingredients=harmful_ingredients,
        )
        if sort_by and sort_by not in SORT_KEYS:
            sort_by = None
        views = await uc.search(
            query, formatter, filters=filters, search_type=search_type,
            sort_by=sort_by, sort_dir=sort_dir,
        )
        return _items(views)
    except EngineError as e:
        return _engine_failure(e)


# ── SCORE BREAKDOWN ──────────────────────────────────────────────
@router.get("/company/{name}/score-breakdown", response_model=ScoreBreakdownResponse)
async def score_breakdown(
    name: str,
    notif_code: Optional[str] = Query(None, alias="notifCode"),
    uc: ScoreBreakdownUseCase = Depends(get_score_uc),
    caches: SessionCaches = Depends(_session_caches),
):
    try:
        bd = await uc.breakdown(
            name, caches.breakdowns,
            formatter=ProductFormatter(caches.products), notif_code=notif_code,
        )
    except EngineError as e:
        return _engine_failure(e)
    if bd is None:
        return _not_found("score breakdown")
    return ScoreBreakdownResponse.model_validate(bd.model_dump())


# ── PRODUCT ──────────────────────────────────────────────────────
@router.get("/product/{code}", response_model=ProductItem)
async def product_detail(
    code: str,
    uc: CatalogUseCase = Depends(get_catalog_uc),
    formatter: ProductFormatter = Depends(_formatter),
):
    try:
        view = await uc.product(code, formatter)
    except EngineError as e:
        return _engine_failure(e)
    if view is None:
        return _not_found("product")
    return ProductItem.model_validate(view.model_dump())


@router.get("/product/{code}/alternatives", response_model=List[ProductItem])
async def product_alternatives(
    code: str,
    limit: int = Query(DEFAULT_ALTERNATIVE_LIMIT),
    uc: CatalogUseCase = Depends(get_catalog_uc),
    formatter: ProductFormatter = Depends(_formatter),
):
    try:
        views = await uc.alternatives(code, formatter, limit=limit)
    except EngineError as e:
        return _engine_failure(e)
    if views is None:
        return _not_found("original product")
    return _items(views)


@router.get("/product/{code}/substances", response_model=List[SubstanceItem])
async def product_substances(code: str, uc: CatalogUseCase = Depends(get_catalog_uc)):
    try:
        subs = await uc.harmful_substances(code)
    except EngineError as e:
        return _engine_failure(e)
    return [SubstanceItem.model_validate(s.model_dump(mode="json")) for s in subs]


@router.get("/products/recent", response_model=List[ProductItem])
async def recent_products(
    limit: int = Query(DEFAULT_RECENT_LIMIT),
    uc: CatalogUseCase = Depends(get_catalog_uc),
    formatter: ProductFormatter = Depends(_formatter),
):
    try:
        return _items(await uc.recent(formatter, limit=limit))
    except EngineError as e:
        return _engine_failure(e)


# ── REFERENCE DATA ───────────────────────────────────────────────
@router.get("/ingredients", response_model=List[SubstanceItem])
async def ingredients(uc: CatalogUseCase = Depends(get_catalog_uc)):
    try:
        subs = await uc.ingredients()
    except EngineError as e:
        return _engine_failure(e)
    return [SubstanceItem.model_validate(s.model_dump(mode="json")) for s in subs]


@router.get("/brands", response_model=List[BrandStatItem])
async def brands(uc: CatalogUseCase = Depends(get_catalog_uc)):
    try:
        companies = await uc.brands()
    except EngineError as e:
        return _engine_failure(e)
    return [BrandStatItem.from_company(c) for c in companies]


@router.get("/cancelled", response_model=List[CancelledProductItem])
async def cancelled_products(uc: CatalogUseCase = Depends(get_catalog_uc)):
    try:
        rows = await uc.cancelled()
    except EngineError as e:
        return _engine_failure(e)
    return [CancelledProductItem.model_validate(r.model_dump()) for r in rows]


@router.get("/cancelled/{code}", response_model=CancelledProductItem)
async def cancelled_product(code: str, uc: CatalogUseCase = Depends(get_catalog_uc)):
    try:
        row = await uc.cancelled_product(code)
    except EngineError as e:
        return _engine_failure(e)
    if row is None:
        return _not_found("cancelled product")
    return CancelledProductItem.model_validate(row.model_dump())


# ── SESSION ──────────────────────────────────────────────────────
@router.delete("/session", status_code=204)
async def reset_session(
    sess: SessionStateService = Depends(get_session_state),
    x_session_id: str | None = Header(None, alias="X-Session-Id"),
):
    """Buang cache produk & breakdown milik sesi ini; lookup berikutnya dihitung ulang."""
    sid = (x_session_id or "").strip()
    if not sid:
        return JSONResponse(status_code=400, content={"kind": "validation", "message": "X-Session-Id header required"})
    sess.reset(sid)
    return Response(status_code=204)
