# app/infra/repo/predicates.py
from __future__ import annotations

from typing import Collection, Dict, List, Optional, Tuple

from app.domain.models import SearchType

# kolom yang diperiksa per term (alias mengikuti query di postgres_repo)
SEARCH_COLUMNS: Tuple[str, ...] = ("p.product", "c.company_name", "p.notif_no")

_COLUMN_BY_TYPE: Dict[SearchType, str] = {
    SearchType.PRODUCT: "p.product",
    SearchType.COMPANY: "c.company_name",
    SearchType.NOTIFICATION: "p.notif_no",
}


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_match_predicate(
    terms: Collection[str],
    search_type: Optional[SearchType] = None,
    start: int = 1,
) -> Tuple[str, List[str]]:
    """
    Satu grup OR per term: (p.product ILIKE $k OR c.company_name ILIKE $k OR p.notif_no ILIKE $k),
    semua grup di-OR. Satu parameter per term (placeholder dipakai ulang).
    `search_type` mempersempit tiap grup ke satu kolom saja.
    """
    cols = (_COLUMN_BY_TYPE[search_type],) if search_type else SEARCH_COLUMNS
    groups: List[str] = []
    params: List[str] = []
    # urutkan supaya teks SQL deterministik untuk set yang sama
    for term in sorted({t for t in terms if t}):
        idx = start + len(params)
        params.append(f"%{escape_like(term)}%")
        ors = " OR ".join(f"{col} ILIKE ${idx}" for col in cols)
        groups.append(f"({ors})")
    if not groups:
        return "FALSE", []
    return " OR ".join(groups), params
