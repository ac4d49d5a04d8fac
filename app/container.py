# app/container.py
from functools import lru_cache

from app.infra.repo.postgres_repo import PostgresProductRepo
from app.domain.synonyms import QueryExpander, SynonymTable
from app.domain.scoring import ScoreCompiler

from app.services.session_state import SessionStateService

from app.application.search_use_case import SearchProductsUseCase
from app.application.score_use_case import ScoreBreakdownUseCase
from app.application.catalog_use_case import CatalogUseCase

@lru_cache
def _repo() -> PostgresProductRepo: return PostgresProductRepo()

@lru_cache
def _synonyms() -> SynonymTable: return SynonymTable.from_yaml()

@lru_cache
def _expander() -> QueryExpander: return QueryExpander(_synonyms())

@lru_cache
def _compiler() -> ScoreCompiler: return ScoreCompiler()

@lru_cache
def _session() -> SessionStateService: return SessionStateService()

def get_repo() -> PostgresProductRepo:
    return _repo()

def get_search_uc() -> SearchProductsUseCase:
    return SearchProductsUseCase(repo=_repo(), expander=_expander())

def get_score_uc() -> ScoreBreakdownUseCase:
    return ScoreBreakdownUseCase(repo=_repo(), compiler=_compiler())

def get_catalog_uc() -> CatalogUseCase:
    return CatalogUseCase(repo=_repo())

def get_session_state() -> SessionStateService: return _session()
