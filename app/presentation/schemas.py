# app/presentation/schemas.py
from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from app.domain.models import Company, PageResult
from app.domain.scoring import round1


class CamelModel(BaseModel):
    """Response JSON pakai camelCase; input boleh snake_case (dari model domain)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── ERROR ────────────────────────────────────────────────────────
class ErrorBody(BaseModel):
    kind: str
    message: str
    retryable: bool = False


# ── PRODUCT ──────────────────────────────────────────────────────
class ProductItem(CamelModel):
    id: str
    name: str
    brand: Optional[str] = None
    notification_number: str
    status: str
    approval_date: Optional[dt.date] = None
    harmful_ingredients: List[str] = []
    category: Optional[str] = None
    risk_score: float
    risk_level: str
    score_is_fallback: bool = False
    manufacturer: Optional[str] = None


# ── SUGGESTIONS ──────────────────────────────────────────────────
class SuggestionItem(CamelModel):
    name: str
    company: Optional[str] = None
    notif_code: str
    similarity: float
    match_type: str

    @field_serializer("similarity")
    def _round_similarity(self, v: float) -> float:
        return round1(v)


# ── PAGINATED SEARCH ─────────────────────────────────────────────
class PageResponse(CamelModel):
    items: List[ProductItem]
    total_count: int
    current_page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def from_result(cls, res: PageResult) -> "PageResponse":
        return cls(
            items=[ProductItem.model_validate(v.model_dump()) for v in res.items],
            total_count=res.total_count,
            current_page=res.page,
            page_size=res.page_size,
            total_pages=res.total_pages,
            has_next_page=res.has_next,
            has_prev_page=res.has_prev,
        )


# ── SCORE BREAKDOWN ──────────────────────────────────────────────
class ScoreComponentItem(CamelModel):
    name: str
    weight: int
    raw_score: float
    weighted_score: float
    description: str
    is_good: bool


class ScoreLineItemSchema(CamelModel):
    name: str
    points: float
    description: str


class ScoreBreakdownResponse(CamelModel):
    company: str
    final_score: float
    base_score: float
    components: List[ScoreComponentItem]
    bonuses: List[ScoreLineItemSchema] = []
    penalties: List[ScoreLineItemSchema] = []
    bonuses_and_penalties: float = 0.0
    brand_age_years: Optional[float] = None
    has_recent_products: bool = False
    reconciled: bool = True
    reconciliation_error: float = 0.0
    degraded: bool = False
    explanation: str = ""


# ── REFERENCE DATA ───────────────────────────────────────────────
class SubstanceItem(CamelModel):
    substance_id: Optional[int] = None
    name: str
    common_name: Optional[str] = None
    risk_level: Optional[str] = None
    health_effect: Optional[str] = None
    international_ban_status: Optional[str] = None
    short_risk: Optional[str] = None
    long_risk: Optional[str] = None
    banned_year: Optional[int] = None


class BrandStatItem(CamelModel):
    brand: str
    product_approved: int
    product_cancelled: int
    total_products: int
    cancellation_rate: float
    reliability_score: Optional[float] = None
    cancellation_score: Optional[float] = None
    category_score: Optional[float] = None
    stability_score: Optional[float] = None
    presence_score: Optional[float] = None
    bonuses_penalties: Optional[float] = None

    @classmethod
    def from_company(cls, c: Company) -> "BrandStatItem":
        def r(x: Optional[float]) -> Optional[float]:
            return None if x is None else round1(x)
        return cls(
            brand=c.name,
            product_approved=c.num_approved,
            product_cancelled=c.num_cancelled,
            total_products=c.total_products,
            cancellation_rate=c.cancellation_rate,
            reliability_score=r(c.reliability_score),
            cancellation_score=r(c.cancel_score),
            category_score=r(c.category_score),
            stability_score=r(c.stability_score),
            presence_score=r(c.presence_score),
            bonuses_penalties=r(c.bonus_penalty),
        )


class CancelledProductItem(CamelModel):
    notif_no: str
    manufacturer: Optional[str] = None
    substances: List[str] = []
