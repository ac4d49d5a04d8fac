# app/domain/models.py
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ProductStatus(str, Enum):
    APPROVED = "approved"
    CANCELLED = "cancelled"


class RiskTier(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Product(BaseModel):
    """Satu baris `categorized_products` + nama & skor company pemiliknya."""
    notif_no: str
    name: str
    category: str | None = None
    status: str | None = None
    date_notif: dt.date | None = None
    company: str | None = None
    reliability_score: float | None = None
    # hanya terisi untuk produk cancelled
    manufacturer: str | None = None
    harmful_ingredients: List[str] = Field(default_factory=list)

    @property
    def is_cancelled(self) -> bool:
        return (self.status or "").lower() == ProductStatus.CANCELLED.value


class Company(BaseModel):
    name: str
    num_approved: int = 0
    num_cancelled: int = 0
    reliability_score: float | None = None
    cancel_score: float | None = None
    category_score: float | None = None
    stability_score: float | None = None
    presence_score: float | None = None
    bonus_penalty: float | None = None
    first_notif: dt.date | None = None
    last_notif: dt.date | None = None

    @property
    def total_products(self) -> int:
        return self.num_approved + self.num_cancelled

    @property
    def cancellation_rate(self) -> float:
        if self.total_products <= 0:
            return 0.0
        return round(self.num_cancelled / self.total_products * 100, 2)

    @property
    def has_components(self) -> bool:
        scores = (self.cancel_score, self.category_score, self.stability_score, self.presence_score)
        return all(s is not None for s in scores)


class Substance(BaseModel):
    substance_id: int | None = None
    name: str
    common_name: str | None = None
    risk_level: RiskTier | None = None
    health_effect: str | None = None
    international_ban_status: str | None = None
    short_risk: str | None = None
    long_risk: str | None = None
    banned_year: int | None = None


class CancelledProduct(BaseModel):
    notif_no: str
    manufacturer: str | None = None
    substances: List[str] = Field(default_factory=list)


class ProductView(BaseModel):
    """
    Bentuk produk siap-tampil. Instance ini yang di-cache per sesi,
    jadi jangan dimutasi setelah dibuat.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    brand: str | None = None
    notification_number: str
    status: str
    approval_date: dt.date | None = None
    harmful_ingredients: tuple[str, ...] = ()
    category: str | None = None
    risk_score: float
    risk_level: str
    score_is_fallback: bool = False
    manufacturer: str | None = None


class Suggestion(BaseModel):
    name: str
    company: str | None = None
    notif_code: str
    similarity: float
    match_type: str


class PageResult(BaseModel):
    items: List[ProductView] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int
    total_pages: int = 0
    has_next: bool = False
    has_prev: bool = False


class ScoreComponent(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    weight: int  # persen
    raw_score: float
    weighted_score: float
    description: str
    is_good: bool


class ScoreLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    points: float
    description: str


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    company: str
    final_score: float
    base_score: float
    components: tuple[ScoreComponent, ...]
    bonuses: tuple[ScoreLineItem, ...] = ()
    penalties: tuple[ScoreLineItem, ...] = ()
    bonuses_and_penalties: float = 0.0
    brand_age_years: float | None = None
    has_recent_products: bool = False
    reconciled: bool = True
    reconciliation_error: float = 0.0
    degraded: bool = False
    explanation: str = ""


class ProductFilters(BaseModel):
    status: str = "all"             # all | approved | cancelled
    risk_level: str = "all"         # all | low | medium | high
    category: str = "all"
    harmful_ingredients: str = "all"  # all | exclude | only


class SearchType(str, Enum):
    PRODUCT = "product"
    COMPANY = "company"
    NOTIFICATION = "notification"


class CompanyMatch(str, Enum):
    EXACT = "exact"
    CASE_INSENSITIVE = "case_insensitive"
    SUBSTRING = "substring"


