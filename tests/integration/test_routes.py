# tests/integration/test_routes.py
import datetime as dt

import pytest
from fastapi.testclient import TestClient

from main import app
from app.application.catalog_use_case import CatalogUseCase
from app.application.score_use_case import ScoreBreakdownUseCase
from app.application.search_use_case import SearchProductsUseCase
from app.container import get_catalog_uc, get_repo, get_score_uc, get_search_uc, get_session_state
from app.domain.errors import StoreUnavailableError
from app.domain.scoring import ScoreCompiler
from app.infra.api.security import require_api_key
from app.services.session_state import SessionStateService


@pytest.fixture
def client_for(expander):
    def _build(repo, *, auth=False):
        app.dependency_overrides[get_repo] = lambda: repo
        app.dependency_overrides[get_search_uc] = lambda: SearchProductsUseCase(repo, expander)
        app.dependency_overrides[get_score_uc] = lambda: ScoreBreakdownUseCase(
            repo, ScoreCompiler(today=dt.date(2024, 12, 1)))
        app.dependency_overrides[get_catalog_uc] = lambda: CatalogUseCase(repo)
        sessions = SessionStateService(capacity=8)
        app.dependency_overrides[get_session_state] = lambda: sessions
        if not auth:
            app.dependency_overrides[require_api_key] = lambda: None
        return TestClient(app)
    yield _build
    app.dependency_overrides.clear()


def test_health(client_for, repo):
    cli = client_for(repo)
    assert cli.get("/healthz").json() == {"ok": True}
    ready = cli.get("/readyz")
    assert ready.status_code == 200 and ready.json()["postgres"] is True

def test_readyz_reports_store_down(client_for, fake_repo_cls):
    cli = client_for(fake_repo_cls(fail_with=StoreUnavailableError("down")))
    res = cli.get("/readyz")
    assert res.status_code == 503 and res.json()["ok"] is False

def test_api_key_required(client_for, repo, monkeypatch):
    monkeypatch.setenv("REQUIRE_API_KEY", "1")
    monkeypatch.setenv("SERVICE_API_KEY", "secret")
    cli = client_for(repo, auth=True)
    assert cli.get("/v1/brands").status_code == 401
    assert cli.get("/v1/brands", headers={"X-Api-Key": "secret"}).status_code == 200

def test_suggestions_short_query_is_empty(client_for, repo):
    res = client_for(repo).get("/v1/suggestions", params={"query": "ab"})
    assert res.status_code == 200 and res.json() == []
    assert sum(repo.calls.values()) == 0

def test_suggestions_camel_case_and_rounded(client_for, repo):
    body = client_for(repo).get("/v1/suggestions", params={"query": "hydra"}).json()
    assert body[0]["notifCode"] == "NOT210101"
    assert body[0]["matchType"] == "product"
    assert body[0]["similarity"] == 0.2

def test_simple_search_with_filters(client_for, repo):
    res = client_for(repo).get("/v1/search", params={"query": "cream", "status": "cancelled"})
    items = res.json()
    assert res.status_code == 200 and len(items) == 1
    item = items[0]
    assert item["notificationNumber"] == "NOT210103"
    assert item["harmfulIngredients"] == ["Mercury", "Hydroquinone"]
    assert (item["riskScore"], item["riskLevel"]) == (25.0, "high")
    assert item["approvalDate"] == "2023-01-10"

def test_paginated_search_envelope(client_for, fake_repo_cls, product_factory):
    cli = client_for(fake_repo_cls(products=product_factory(123)))
    body = cli.get("/v1/search", params={"query": "glow", "page": 2, "pageSize": 50}).json()
    assert body["totalCount"] == 123
    assert (body["currentPage"], body["totalPages"]) == (2, 3)
    assert body["hasNextPage"] is True and body["hasPrevPage"] is True
    assert len(body["items"]) == 50

def test_invalid_search_type_is_rejected(client_for, repo):
    res = client_for(repo).get("/v1/search", params={"query": "acme", "searchType": "nope"})
    assert res.status_code == 422

def test_score_breakdown(client_for, repo):
    body = client_for(repo).get("/v1/company/Acme Beauty/score-breakdown").json()
    assert (body["finalScore"], body["baseScore"]) == (82.3, 77.0)
    assert [c["weight"] for c in body["components"]] == [40, 25, 20, 15]
    assert body["components"][1]["weightedScore"] == 16.3
    assert body["bonusesAndPenalties"] == 5.3

def test_score_breakdown_not_found(client_for, repo):
    res = client_for(repo).get("/v1/company/Nobody At All/score-breakdown")
    assert res.status_code == 404
    assert res.json()["kind"] == "not_found"

def test_store_outage_maps_to_503(client_for, fake_repo_cls):
    res = client_for(fake_repo_cls(fail_with=StoreUnavailableError("pool timeout"))).get(
        "/v1/search", params={"query": "glow", "page": 1})
    assert res.status_code == 503
    assert res.json() == {"kind": "transient", "message": "pool timeout", "retryable": True}

def test_product_routes(client_for, repo):
    cli = client_for(repo)
    assert cli.get("/v1/product/NOT210101").json()["brand"] == "Acme Beauty"
    assert cli.get("/v1/product/NOPE").status_code == 404
    assert cli.get("/v1/product/NOPE/alternatives").status_code == 404
    alts = cli.get("/v1/product/NOT210103/alternatives", params={"limit": 1}).json()
    assert [a["id"] for a in alts] == ["NOT210101"]
    subs = cli.get("/v1/product/NOT210103/substances").json()
    assert [(s["name"], s["riskLevel"]) for s in subs] == [("Mercury", "HIGH"), ("Hydroquinone", "MEDIUM")]

def test_reference_routes(client_for, repo):
    cli = client_for(repo)
    brands = cli.get("/v1/brands").json()
    assert brands[0]["brand"] == "Acme Beauty"
    assert brands[0]["cancellationRate"] == 4.76
    assert len(cli.get("/v1/ingredients").json()) == 2
    assert cli.get("/v1/cancelled").json() == [
        {"notifNo": "NOT210103", "manufacturer": "Shady Labs Sdn Bhd", "substances": ["Mercury", "Hydroquinone"]}
    ]
    recent = cli.get("/v1/products/recent", params={"limit": 1}).json()
    assert [r["id"] for r in recent] == ["NOT210101"]

def test_cancelled_lookup_by_code(client_for, repo):
    cli = client_for(repo)
    body = cli.get("/v1/cancelled/NOT210103").json()
    assert body == {"notifNo": "NOT210103", "manufacturer": "Shady Labs Sdn Bhd",
                    "substances": ["Mercury", "Hydroquinone"]}
    res = cli.get("/v1/cancelled/NOT210101")
    assert res.status_code == 404 and res.json()["kind"] == "not_found"

def test_session_reset_drops_cached_breakdown(client_for, repo):
    cli = client_for(repo)
    headers = {"X-Session-Id": "s-1"}
    cli.get("/v1/company/Acme Beauty/score-breakdown", headers=headers)
    cached = sum(repo.calls.values())
    cli.get("/v1/company/Acme Beauty/score-breakdown", headers=headers)
    assert sum(repo.calls.values()) == cached
    assert cli.delete("/v1/session", headers=headers).status_code == 204
    cli.get("/v1/company/Acme Beauty/score-breakdown", headers=headers)
    assert sum(repo.calls.values()) > cached

def test_session_reset_needs_session_id(client_for, repo):
    assert client_for(repo).delete("/v1/session").status_code == 400
