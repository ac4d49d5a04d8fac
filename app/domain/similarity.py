# app/domain/similarity.py
from __future__ import annotations

from typing import Iterable, List, Tuple

from app.domain.limits import SUGGESTION_NOISE_FLOOR
from app.domain.models import Product, Suggestion


def edit_distance(a: str, b: str) -> int:
    """Levenshtein klasik (insert/delete/substitute), dua baris DP."""
    if a == b:
        return 0
    # baris DP sepanjang string yang lebih pendek
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        cur = [i]
        for j, cb in enumerate(b, 1):
            if ca == cb:
                cur.append(prev[j - 1])
            else:
                cur.append(1 + min(prev[j - 1], cur[j - 1], prev[j]))
        prev = cur
    return prev[-1]


def similarity(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - edit_distance(a, b)) / longest


def record_score(query: str, product: Product) -> Tuple[float, str]:
    """Similarity maksimum query vs (nama, company, kode). Seri dimenangkan urutan field."""
    q = (query or "").lower()
    fields = (
        ("product", product.name),
        ("company", product.company),
        ("notification", product.notif_no),
    )
    best, kind = -1.0, "product"
    for name, value in fields:
        s = similarity(q, (value or "").lower())
        if s > best:
            best, kind = s, name
    return best, kind


def rank_suggestions(query: str, candidates: Iterable[Product], limit: int | None = None) -> List[Suggestion]:
    """
    Mode suggestion/fuzzy: buang skor <= noise floor lalu urutkan menurun.
    sorted() stabil, jadi skor seri mempertahankan urutan retrieval.
    """
    scored = []
    for p in candidates:
        score, kind = record_score(query, p)
        if score <= SUGGESTION_NOISE_FLOOR:
            continue
        scored.append(Suggestion(
            name=p.name,
            company=p.company,
            notif_code=p.notif_no,
            similarity=score,
            match_type=kind,
        ))
    ranked = sorted(scored, key=lambda s: s.similarity, reverse=True)
    return ranked[:limit] if limit else ranked
