# app/domain/filters.py
from __future__ import annotations

import datetime as dt
from typing import Callable, Dict, Iterable, List, Tuple

from app.domain.models import ProductFilters, ProductView


def risk_level(score: float) -> str:
    if score <= 40:
        return "high"
    if score <= 70:
        return "medium"
    return "low"


def matches_filters(view: ProductView, f: ProductFilters) -> bool:
    if f.status != "all" and view.status != f.status.lower():
        return False
    if f.risk_level != "all" and view.risk_level != f.risk_level.lower():
        return False
    if f.category != "all" and (not view.category or view.category != f.category):
        return False
    if f.harmful_ingredients != "all":
        has_harmful = len(view.harmful_ingredients) > 0
        if f.harmful_ingredients == "exclude" and has_harmful:
            return False
        if f.harmful_ingredients == "only" and not has_harmful:
            return False
    return True


def apply_filters(views: Iterable[ProductView], f: ProductFilters | None) -> List[ProductView]:
    if f is None:
        return list(views)
    return [v for v in views if matches_filters(v, f)]


_STATUS_ORDER = {"approved": 2, "cancelled": 1}

# key + arah "natural" (desc = terbaik/terbaru dulu, asc = alfabetis)
_SORTS: Dict[str, Tuple[Callable[[ProductView], object], bool]] = {
    "score": (lambda v: v.risk_score, True),
    "name": (lambda v: (v.name or "").lower(), False),
    "brand": (lambda v: (v.brand or "").lower(), False),
    "status": (lambda v: _STATUS_ORDER.get(v.status, 0), True),
    "date": (lambda v: v.approval_date or dt.date.min, True),
}

SORT_KEYS = tuple(_SORTS)


def sort_products(views: Iterable[ProductView], by: str = "score", direction: str = "desc") -> List[ProductView]:
    """
    `desc` = urutan natural field tsb (skor tertinggi, terbaru, A→Z),
    `asc` membalik urutan natural.
    """
    key, natural_reverse = _SORTS.get(by, _SORTS["score"])
    reverse = natural_reverse if direction != "asc" else not natural_reverse
    return sorted(views, key=key, reverse=reverse)
