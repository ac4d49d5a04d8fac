# app/infra/repo/postgres_repo.py
from __future__ import annotations

import asyncio
import datetime as dt
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Collection, List, Optional

import asyncpg

from app.domain.errors import StoreUnavailableError
from app.domain.models import (
    CancelledProduct, Company, CompanyMatch, Product, RiskTier, SearchType, Substance,
)
from app.domain.ports import ProductRepoPort
from app.infra.repo.predicates import build_match_predicate, escape_like

DATABASE_URL       = os.getenv("DATABASE_URL", "postgresql://localhost:5432/cosmeticguard")
DB_POOL_MIN        = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX        = int(os.getenv("DB_POOL_MAX", "20"))
DB_ACQUIRE_TIMEOUT = float(os.getenv("DB_ACQUIRE_TIMEOUT", "2"))    # detik, tunggu koneksi dari pool
DB_QUERY_TIMEOUT   = float(os.getenv("DB_QUERY_TIMEOUT", "10"))     # detik, per statement
DB_SSL             = os.getenv("DB_SSL", "0") == "1"

log = logging.getLogger("cosmeticguard.repo")

_TRANSIENT = (
    asyncio.TimeoutError,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)

# basis SELECT produk; laterals mengisi data cancelled (kosong untuk approved)
_PRODUCT_FROM = """
    FROM categorized_products p
    JOIN companies c ON p.company_id = c.company_id
"""

_PRODUCT_COLUMNS = """
    p.notif_no, p.date_notif, p.status, p.product, p.category,
    c.company_name AS company, c.reliability_score
"""

_PRODUCT_ENRICHED = f"""
    SELECT {_PRODUCT_COLUMNS},
           cm.manufacturer,
           COALESCE(hs.names, '{{}}') AS harmful_ingredients
    {_PRODUCT_FROM}
    LEFT JOIN LATERAL (
        SELECT array_agg(DISTINCT s.substance ORDER BY s.substance) AS names
        FROM cancelled_product_substances cps
        JOIN substances s ON s.substance_id = cps.substance_id
        WHERE cps.notif_no = p.notif_no
    ) hs ON lower(p.status) = 'cancelled'
    LEFT JOIN LATERAL (
        SELECT cp.manufacturer
        FROM cancelled_products cp
        WHERE cp.notif_no = p.notif_no
        LIMIT 1
    ) cm ON lower(p.status) = 'cancelled'
"""

_PRODUCT_PLAIN = f"SELECT {_PRODUCT_COLUMNS} {_PRODUCT_FROM}"

_COMPANY_SELECT = """
    SELECT c.company_name, c.num_approved, c.num_cancelled, c.reliability_score,
           c.cancel_score, c.category_score,
           c.portfolio_score AS stability_score, c.market_score AS presence_score,
           (COALESCE(c.time_bonus, 0) + COALESCE(c.exp_penalty, 0)) AS bonus_penalty
"""

_COMPANY_MATCH_SQL = {
    CompanyMatch.EXACT: "c.company_name = $1",
    CompanyMatch.CASE_INSENSITIVE: "lower(c.company_name) = lower($1)",
    CompanyMatch.SUBSTRING: "c.company_name ILIKE $1",
}

_RISK_ORDER = """
    CASE upper(s.risk_level)
        WHEN 'HIGH' THEN 1
        WHEN 'MEDIUM' THEN 2
        WHEN 'LOW' THEN 3
        ELSE 4
    END
"""

_SUBSTANCE_COLUMNS = """
    s.substance_id, s.substance, s.common_name, s.health_effect,
    s.international_ban_status, s.risk_level, s.short_risk, s.long_risk, s.banned_year
"""

_CANCELLED_SELECT = """
    SELECT cp.notif_no, cp.manufacturer,
           COALESCE(array_agg(DISTINCT s.substance) FILTER (WHERE s.substance IS NOT NULL), '{}') AS substances
    FROM cancelled_products cp
    LEFT JOIN cancelled_product_substances cps ON cp.notif_no = cps.notif_no
    LEFT JOIN substances s ON cps.substance_id = s.substance_id
"""


def _as_date(v: Any) -> Optional[dt.date]:
    if v is None:
        return None
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, dt.date):
        return v
    try:
        return dt.date.fromisoformat(str(v)[:10])
    except ValueError:
        return None


def _as_int(v: Any) -> Optional[int]:
    try:
        return int(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def _as_float(v: Any) -> Optional[float]:
    # kolom NUMERIC datang sebagai Decimal
    return float(v) if v is not None else None


def _to_product(row: asyncpg.Record) -> Product:
    d = dict(row)
    return Product(
        notif_no=d["notif_no"],
        name=d.get("product") or "",
        category=d.get("category"),
        status=(d.get("status") or "").lower() or None,
        date_notif=_as_date(d.get("date_notif")),
        company=d.get("company"),
        reliability_score=_as_float(d.get("reliability_score")),
        manufacturer=d.get("manufacturer"),
        harmful_ingredients=list(d.get("harmful_ingredients") or []),
    )


def _to_company(row: asyncpg.Record) -> Company:
    d = dict(row)
    return Company(
        name=d["company_name"],
        num_approved=_as_int(d.get("num_approved")) or 0,
        num_cancelled=_as_int(d.get("num_cancelled")) or 0,
        reliability_score=_as_float(d.get("reliability_score")),
        cancel_score=_as_float(d.get("cancel_score")),
        category_score=_as_float(d.get("category_score")),
        stability_score=_as_float(d.get("stability_score")),
        presence_score=_as_float(d.get("presence_score")),
        bonus_penalty=_as_float(d.get("bonus_penalty")),
        first_notif=_as_date(d.get("first_notif")),
        last_notif=_as_date(d.get("last_notif")),
    )


def _to_substance(row: asyncpg.Record) -> Substance:
    d = dict(row)
    tier = (d.get("risk_level") or "").upper()
    return Substance(
        substance_id=_as_int(d.get("substance_id")),
        name=str(d.get("substance") or "").upper(),
        common_name=d.get("common_name"),
        risk_level=RiskTier(tier) if tier in RiskTier.__members__ else None,
        health_effect=d.get("health_effect"),
        international_ban_status=d.get("international_ban_status"),
        short_risk=d.get("short_risk"),
        long_risk=d.get("long_risk"),
        banned_year=_as_int(d.get("banned_year")),
    )


def _to_cancelled(row: asyncpg.Record) -> CancelledProduct:
    return CancelledProduct(
        notif_no=row["notif_no"],
        manufacturer=row["manufacturer"],
        substances=list(row["substances"] or []),
    )


class PostgresProductRepo(ProductRepoPort):
    """
    Repository async (asyncpg) untuk tabel categorized_products, companies,
    substances, cancelled_products, cancelled_product_substances.

    Pool dibuat lazy pada query pertama. Timeout akuisisi koneksi dan timeout
    per statement dibatasi; kegagalan driver/jaringan dibungkus jadi
    StoreUnavailableError supaya caller bisa membedakan "tidak ketemu" vs
    "tidak bisa mencari".
    """

    def __init__(self, dsn: str = DATABASE_URL, pool: Optional[asyncpg.Pool] = None) -> None:
        self.dsn = dsn
        self._pool = pool
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            async with self._pool_lock:
                if self._pool is None:
                    self._pool = await asyncpg.create_pool(
                        self.dsn,
                        min_size=DB_POOL_MIN,
                        max_size=DB_POOL_MAX,
                        timeout=DB_ACQUIRE_TIMEOUT,
                        command_timeout=DB_QUERY_TIMEOUT,
                        ssl="require" if DB_SSL else None,
                    )
                    log.info("postgres pool ready (min=%s max=%s)", DB_POOL_MIN, DB_POOL_MAX)
        return self._pool

    @asynccontextmanager
    async def _conn(self, op: str) -> AsyncIterator[asyncpg.Connection]:
        try:
            pool = await self._get_pool()
            async with pool.acquire(timeout=DB_ACQUIRE_TIMEOUT) as conn:
                yield conn
        except _TRANSIENT as e:
            log.warning("store op %s failed: %s: %s", op, type(e).__name__, e)
            raise StoreUnavailableError(
                f"backing store unavailable during {op}",
                detail={"op": op, "error": type(e).__name__},
            ) from e

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # ──────────────────────────────────────────────────────────────
    #  Health
    # ──────────────────────────────────────────────────────────────
    async def ping(self) -> bool:
        async with self._conn("ping") as conn:
            return (await conn.fetchval("SELECT 1")) == 1

    # ──────────────────────────────────────────────────────────────
    #  Search (count + page)
    # ──────────────────────────────────────────────────────────────
    async def count_matches(self, terms: Collection[str], search_type: Optional[SearchType] = None) -> int:
        pred, params = build_match_predicate(terms, search_type)
        sql = f"SELECT COUNT(DISTINCT p.notif_no) {_PRODUCT_FROM} WHERE {pred}"
        async with self._conn("count_matches") as conn:
            return int(await conn.fetchval(sql, *params) or 0)

    async def search_matches(
        self,
        terms: Collection[str],
        *,
        limit: int,
        offset: int = 0,
        search_type: Optional[SearchType] = None,
        with_substances: bool = True,
    ) -> List[Product]:
        pred, params = build_match_predicate(terms, search_type)
        base = _PRODUCT_ENRICHED if with_substances else _PRODUCT_PLAIN
        n = len(params)
        sql = (
            f"{base} WHERE {pred} "
            f"ORDER BY p.date_notif DESC NULLS LAST, p.notif_no "
            f"LIMIT ${n + 1} OFFSET ${n + 2}"
        )
        async with self._conn("search_matches") as conn:
            rows = await conn.fetch(sql, *params, limit, offset)
        return [_to_product(r) for r in rows]

    # ──────────────────────────────────────────────────────────────
    #  Product lookups
    # ──────────────────────────────────────────────────────────────
    async def find_product(self, notif_no: str) -> Optional[Product]:
        code = (notif_no or "").strip()
        if not code:
            return None
        async with self._conn("find_product") as conn:
            row = await conn.fetchrow(f"{_PRODUCT_ENRICHED} WHERE p.notif_no = $1", code)
        return _to_product(row) if row else None

    async def find_alternatives(self, category: str, exclude_notif_no: str, limit: int) -> List[Product]:
        sql = (
            f"{_PRODUCT_PLAIN} "
            "WHERE p.category = $1 AND lower(p.status) = 'approved' AND p.notif_no <> $2 "
            "ORDER BY c.reliability_score DESC NULLS LAST, p.notif_no "
            "LIMIT $3"
        )
        async with self._conn("find_alternatives") as conn:
            rows = await conn.fetch(sql, category, exclude_notif_no, limit)
        return [_to_product(r) for r in rows]

    async def recent_approved(self, limit: int) -> List[Product]:
        sql = (
            f"{_PRODUCT_PLAIN} "
            "WHERE lower(p.status) = 'approved' "
            "ORDER BY p.date_notif DESC NULLS LAST, p.notif_no "
            "LIMIT $1"
        )
        async with self._conn("recent_approved") as conn:
            rows = await conn.fetch(sql, limit)
        return [_to_product(r) for r in rows]

    # ──────────────────────────────────────────────────────────────
    #  Companies
    # ──────────────────────────────────────────────────────────────
    async def find_company(self, name: str, match: CompanyMatch) -> Optional[Company]:
        arg = f"%{escape_like(name)}%" if match is CompanyMatch.SUBSTRING else name
        sql = (
            f"{_COMPANY_SELECT}, d.first_notif, d.last_notif "
            "FROM companies c "
            "LEFT JOIN LATERAL ("
            "  SELECT MIN(p.date_notif) AS first_notif, MAX(p.date_notif) AS last_notif"
            "  FROM categorized_products p WHERE p.company_id = c.company_id"
            ") d ON TRUE "
            f"WHERE {_COMPANY_MATCH_SQL[match]} "
            "ORDER BY c.company_name LIMIT 1"
        )
        async with self._conn("find_company") as conn:
            row = await conn.fetchrow(sql, arg)
        return _to_company(row) if row else None

    async def list_companies(self) -> List[Company]:
        sql = f"{_COMPANY_SELECT} FROM companies c ORDER BY c.reliability_score DESC NULLS LAST, c.company_name"
        async with self._conn("list_companies") as conn:
            rows = await conn.fetch(sql)
        return [_to_company(r) for r in rows]

    # ──────────────────────────────────────────────────────────────
    #  Substances
    # ──────────────────────────────────────────────────────────────
    async def list_substances(self) -> List[Substance]:
        sql = f"SELECT {_SUBSTANCE_COLUMNS} FROM substances s ORDER BY {_RISK_ORDER}, s.substance"
        async with self._conn("list_substances") as conn:
            rows = await conn.fetch(sql)
        return [_to_substance(r) for r in rows]

    async def harmful_substances(self, notif_no: str) -> List[Substance]:
        sql = (
            f"SELECT {_SUBSTANCE_COLUMNS} "
            "FROM cancelled_product_substances cps "
            "JOIN substances s ON cps.substance_id = s.substance_id "
            "WHERE cps.notif_no = $1 "
            f"ORDER BY {_RISK_ORDER}, s.substance"
        )
        async with self._conn("harmful_substances") as conn:
            rows = await conn.fetch(sql, notif_no)
        return [_to_substance(r) for r in rows]

    async def list_cancelled(self) -> List[CancelledProduct]:
        sql = f"{_CANCELLED_SELECT} GROUP BY cp.notif_no, cp.manufacturer ORDER BY cp.notif_no"
        async with self._conn("list_cancelled") as conn:
            rows = await conn.fetch(sql)
        return [_to_cancelled(r) for r in rows]

    async def find_cancelled(self, notif_no: str) -> Optional[CancelledProduct]:
        code = (notif_no or "").strip()
        if not code:
            return None
        sql = f"{_CANCELLED_SELECT} WHERE cp.notif_no = $1 GROUP BY cp.notif_no, cp.manufacturer"
        async with self._conn("find_cancelled") as conn:
            row = await conn.fetchrow(sql, code)
        return _to_cancelled(row) if row else None
