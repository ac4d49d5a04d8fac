# app/application/score_use_case.py
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Tuple

from app.domain.models import Company, CompanyMatch, ScoreBreakdown
from app.domain.ports import ProductRepoPort
from app.domain.scoring import ScoreCompiler
from app.infra.cache.memory_cache import BoundedCache
from app.services.product_formatter import ProductFormatter

logger = logging.getLogger("cosmeticguard.score")

CompanyMatcher = Callable[[ProductRepoPort, str], Awaitable[Optional[Company]]]


async def match_exact(repo: ProductRepoPort, name: str) -> Optional[Company]:
    return await repo.find_company(name, CompanyMatch.EXACT)


async def match_case_insensitive(repo: ProductRepoPort, name: str) -> Optional[Company]:
    return await repo.find_company(name, CompanyMatch.CASE_INSENSITIVE)


async def match_substring(repo: ProductRepoPort, name: str) -> Optional[Company]:
    return await repo.find_company(name, CompanyMatch.SUBSTRING)


# urutan prioritas: hit pertama menang
COMPANY_MATCHERS: Tuple[CompanyMatcher, ...] = (match_exact, match_case_insensitive, match_substring)


class ScoreBreakdownUseCase:
    def __init__(self, repo: ProductRepoPort, compiler: ScoreCompiler,
                 matchers: Tuple[CompanyMatcher, ...] = COMPANY_MATCHERS):
        self.repo = repo
        self.compiler = compiler
        self.matchers = matchers

    async def resolve_company(self, name: str) -> Optional[Company]:
        for matcher in self.matchers:
            company = await matcher(self.repo, name)
            if company is not None:
                logger.debug("company %r resolved by %s -> %r", name, matcher.__name__, company.name)
                return company
        return None

    async def breakdown(
        self,
        company_name: str,
        cache: BoundedCache[str, ScoreBreakdown],
        formatter: Optional[ProductFormatter] = None,
        notif_code: Optional[str] = None,
    ) -> Optional[ScoreBreakdown]:
        """
        Breakdown untuk satu company; None = tidak ditemukan.
        Cache per sesi dikunci nama yang diminta dan nama kanonik, jadi
        entitas yang sama selalu menampilkan objek breakdown yang sama.
        """
        name = (company_name or "").strip()
        if not name:
            return None
        hit = cache.get(name)
        if hit is not None:
            return hit

        company = await self.resolve_company(name)
        if company is not None:
            canonical = cache.get(company.name)
            if canonical is not None:
                return cache.put_if_absent(name, canonical)
            if company.has_components:
                result = self.compiler.compile(company)
                result = cache.put_if_absent(company.name, result)
                return cache.put_if_absent(name, result)

        # degraded: tidak ada breakdown tersimpan
        fallback_score, label = await self._fallback_score(company, formatter, notif_code)
        if fallback_score is None:
            logger.info("no score breakdown for company %r", name)
            return None
        logger.info("degraded breakdown for company %r (source=%s)", name, label)
        result = self.compiler.fallback(company.name if company else name, fallback_score)
        if company is not None:
            result = cache.put_if_absent(company.name, result)
        return cache.put_if_absent(name, result)

    async def _fallback_score(
        self,
        company: Optional[Company],
        formatter: Optional[ProductFormatter],
        notif_code: Optional[str],
    ) -> Tuple[Optional[float], str]:
        if notif_code and formatter is not None:
            product = await self.repo.find_product(notif_code)
            if product is not None:
                # lewat formatter supaya skor sama dengan yang tampil di kartu produk
                return formatter.view(product).risk_score, "product"
        if company is not None and company.reliability_score is not None:
            return float(company.reliability_score), "company"
        return None, "none"
