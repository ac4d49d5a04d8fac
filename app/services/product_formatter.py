# app/services/product_formatter.py
from __future__ import annotations

from typing import Iterable, List

from app.domain.filters import risk_level
from app.domain.models import Product, ProductStatus, ProductView
from app.domain.scoring import round1
from app.infra.cache.memory_cache import BoundedCache

# dipakai hanya kalau store tidak punya reliability_score
FALLBACK_SCORES = {
    ProductStatus.APPROVED.value: 80.0,
    ProductStatus.CANCELLED.value: 30.0,
}
UNKNOWN_STATUS_SCORE = 50.0


def format_product(product: Product) -> ProductView:
    status = (product.status or "").lower() or "unknown"
    fallback = product.reliability_score is None
    score = (
        FALLBACK_SCORES.get(status, UNKNOWN_STATUS_SCORE)
        if fallback
        else round1(product.reliability_score)
    )
    harmful = tuple(product.harmful_ingredients) if product.is_cancelled else ()
    return ProductView(
        id=product.notif_no,
        name=product.name,
        brand=product.company,
        notification_number=product.notif_no,
        status=status,
        approval_date=product.date_notif,
        harmful_ingredients=harmful,
        category=product.category,
        risk_score=score,
        risk_level=risk_level(score),
        score_is_fallback=fallback,
        manufacturer=product.manufacturer or product.company,
    )


class ProductFormatter:
    """
    format_product + memo per sesi (kunci: notif_no). Begitu satu kode sudah
    diformat, tampilan yang sama dipakai ulang walau record di-fetch ulang.
    """

    def __init__(self, cache: BoundedCache[str, ProductView]):
        self.cache = cache

    def view(self, product: Product) -> ProductView:
        return self.cache.get_or_create(product.notif_no, lambda: format_product(product))

    def views(self, products: Iterable[Product]) -> List[ProductView]:
        return [self.view(p) for p in products]
