# tests/conftest.py
import datetime as dt
from collections import Counter
from typing import List, Optional

import pytest

from app.domain.models import (
    CancelledProduct, Company, CompanyMatch, Product, SearchType, Substance, RiskTier,
)
from app.domain.ports import ProductRepoPort
from app.domain.synonyms import QueryExpander, SynonymTable
from app.infra.cache.memory_cache import BoundedCache
from app.services.product_formatter import ProductFormatter

_FIELD_BY_TYPE = {
    SearchType.PRODUCT: "name",
    SearchType.COMPANY: "company",
    SearchType.NOTIFICATION: "notif_no",
}


class FakeRepo(ProductRepoPort):
    """Store in-memory dengan semantik yang sama seperti PostgresProductRepo."""

    def __init__(self, products=(), companies=(), substances=(), harmful=None, fail_with=None):
        self.products: List[Product] = list(products)
        self.companies: List[Company] = list(companies)
        self.substances: List[Substance] = list(substances)
        self.harmful = dict(harmful or {})
        self.fail_with = fail_with
        self.calls = Counter()

    def _touch(self, op):
        self.calls[op] += 1
        if self.fail_with is not None:
            raise self.fail_with

    def _matching(self, terms, search_type):
        fields = (_FIELD_BY_TYPE[search_type],) if search_type else ("name", "company", "notif_no")
        terms = [t.lower() for t in terms if t]
        out = []
        for p in self.products:
            values = [(getattr(p, f) or "").lower() for f in fields]
            if any(t in v for t in terms for v in values):
                out.append(p)
        out.sort(key=lambda p: p.notif_no)
        out.sort(key=lambda p: p.date_notif or dt.date.min, reverse=True)
        return out

    async def ping(self):
        self._touch("ping")
        return True

    async def count_matches(self, terms, search_type=None):
        self._touch("count_matches")
        return len(self._matching(terms, search_type))

    async def search_matches(self, terms, *, limit, offset=0, search_type=None, with_substances=True):
        self._touch("search_matches")
        rows = self._matching(terms, search_type)[offset:offset + limit]
        if not with_substances:
            rows = [p.model_copy(update={"harmful_ingredients": []}) for p in rows]
        return rows

    async def find_product(self, notif_no):
        self._touch("find_product")
        for p in self.products:
            if p.notif_no == notif_no:
                # objek baru tiap fetch, seperti row mapper asli
                return p.model_copy()
        return None

    async def find_alternatives(self, category, exclude_notif_no, limit):
        self._touch("find_alternatives")
        rows = [p for p in self.products
                if p.category == category and p.notif_no != exclude_notif_no
                and (p.status or "").lower() == "approved"]
        rows.sort(key=lambda p: p.reliability_score or 0, reverse=True)
        return rows[:limit]

    async def recent_approved(self, limit):
        self._touch("recent_approved")
        rows = [p for p in self.products if (p.status or "").lower() == "approved"]
        rows.sort(key=lambda p: p.date_notif or dt.date.min, reverse=True)
        return rows[:limit]

    async def find_company(self, name, match):
        self._touch(f"find_company:{match.value}")
        for c in sorted(self.companies, key=lambda c: c.name):
            if match is CompanyMatch.EXACT and c.name == name:
                return c
            if match is CompanyMatch.CASE_INSENSITIVE and c.name.lower() == name.lower():
                return c
            if match is CompanyMatch.SUBSTRING and name.lower() in c.name.lower():
                return c
        return None

    async def list_companies(self):
        self._touch("list_companies")
        return sorted(self.companies, key=lambda c: c.reliability_score or 0, reverse=True)

    async def list_substances(self):
        self._touch("list_substances")
        return list(self.substances)

    async def harmful_substances(self, notif_no):
        self._touch("harmful_substances")
        return list(self.harmful.get(notif_no, []))

    async def list_cancelled(self):
        self._touch("list_cancelled")
        return [CancelledProduct(notif_no=p.notif_no, manufacturer=p.manufacturer,
                                 substances=list(p.harmful_ingredients))
                for p in self.products if p.is_cancelled]

    async def find_cancelled(self, notif_no):
        self._touch("find_cancelled")
        for c in await self.list_cancelled():
            if c.notif_no == notif_no:
                return c
        return None


def make_products(n, *, name="Glow Serum", company="Acme Beauty", start=dt.date(2024, 1, 1)):
    return [
        Product(
            notif_no=f"NOT{i:05d}",
            name=f"{name} {i}",
            category="Serum",
            status="approved",
            date_notif=start - dt.timedelta(days=i // 3),  # sengaja ada tanggal kembar
            company=company,
            reliability_score=60.0 + (i % 30),
        )
        for i in range(n)
    ]


@pytest.fixture
def sample_products():
    return [
        Product(notif_no="NOT210101", name="Hydra Moisturizer Cream", category="Cream",
                status="approved", date_notif=dt.date(2024, 5, 1), company="Acme Beauty",
                reliability_score=82.3),
        Product(notif_no="NOT210102", name="Pelembap Wajah Aloe", category="Cream",
                status="approved", date_notif=dt.date(2024, 3, 1), company="Sinar Kosmetik",
                reliability_score=64.0),
        Product(notif_no="NOT210103", name="Whitening Cream X", category="Cream",
                status="cancelled", date_notif=dt.date(2023, 1, 10), company="Shady Labs",
                reliability_score=25.0, manufacturer="Shady Labs Sdn Bhd",
                harmful_ingredients=["Mercury", "Hydroquinone"]),
        Product(notif_no="NOT210104", name="Daily Cleanser", category="Cleanser",
                status="approved", date_notif=dt.date(2022, 7, 7), company="Acme Beauty",
                reliability_score=None),
    ]


@pytest.fixture
def sample_companies():
    return [
        Company(name="Acme Beauty", num_approved=40, num_cancelled=2, reliability_score=82.3,
                cancel_score=85.0, category_score=65.0, stability_score=82.5, presence_score=68.0,
                bonus_penalty=5.3, first_notif=dt.date(2015, 1, 1), last_notif=dt.date(2024, 5, 1)),
        Company(name="Sinar Kosmetik", num_approved=5, num_cancelled=0, reliability_score=64.0),
        Company(name="Shady Labs", num_approved=1, num_cancelled=3, reliability_score=25.0,
                cancel_score=20.0, category_score=30.0, stability_score=40.0, presence_score=30.0,
                bonus_penalty=-4.0),
    ]


@pytest.fixture
def sample_substances():
    return [
        Substance(substance_id=1, name="Mercury", risk_level=RiskTier.HIGH, banned_year=2011),
        Substance(substance_id=2, name="Hydroquinone", risk_level=RiskTier.MEDIUM),
    ]


@pytest.fixture
def repo(sample_products, sample_companies, sample_substances):
    return FakeRepo(
        products=sample_products,
        companies=sample_companies,
        substances=sample_substances,
        harmful={"NOT210103": sample_substances},
    )


@pytest.fixture
def expander():
    return QueryExpander(SynonymTable.default())


@pytest.fixture
def formatter():
    return ProductFormatter(BoundedCache(100))


@pytest.fixture
def fake_repo_cls():
    return FakeRepo


@pytest.fixture
def product_factory():
    return make_products
