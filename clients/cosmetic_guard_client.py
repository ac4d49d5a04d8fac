import requests
from urllib.parse import quote
from typing import Optional, Dict, Any, List, Union

class CosmeticGuardClient:
    def __init__(self, base_url: str, api_key: str, session_id: Optional[str] = None, timeout: int = 30):
        self.base_url = base_url.rstrip("/")
        self.headers = {"X-Api-Key": api_key, "Accept": "application/json"}
        if session_id: self.headers["X-Session-Id"] = session_id
        self.timeout = timeout

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        r = requests.get(f"{self.base_url}{path}", params=params, headers=self.headers, timeout=self.timeout)
        r.raise_for_status(); return r.json()

    def suggestions(self, query: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._get("/v1/suggestions", {"query": query, "limit": limit})

    def search(self, query: str, *, status: Optional[str] = None, risk_level: Optional[str] = None,
               category: Optional[str] = None, harmful_ingredients: Optional[str] = None,
               search_type: Optional[str] = None, sort_by: Optional[str] = None,
               sort_dir: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._get("/v1/search", {
            "query": query, "status": status, "riskLevel": risk_level, "category": category,
            "harmfulIngredients": harmful_ingredients, "searchType": search_type,
            "sortBy": sort_by, "sortDir": sort_dir,
        })

    def search_page(self, query: str, page: int = 1, page_size: Optional[int] = None,
                    search_type: Optional[str] = None) -> Dict[str, Any]:
        return self._get("/v1/search", {"query": query, "page": page, "pageSize": page_size, "searchType": search_type})

    def score_breakdown(self, company: str, notif_code: Optional[str] = None) -> Dict[str, Any]:
        return self._get(f"/v1/company/{quote(company, safe='')}/score-breakdown", {"notifCode": notif_code})

    def product(self, code: str) -> Dict[str, Any]:
        return self._get(f"/v1/product/{quote(code, safe='')}")

    def alternatives(self, code: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._get(f"/v1/product/{quote(code, safe='')}/alternatives", {"limit": limit})

    def substances(self, code: str) -> List[Dict[str, Any]]:
        return self._get(f"/v1/product/{quote(code, safe='')}/substances")

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._get("/v1/products/recent", {"limit": limit})

    def ingredients(self) -> List[Dict[str, Any]]:
        return self._get("/v1/ingredients")

    def brands(self) -> List[Dict[str, Any]]:
        return self._get("/v1/brands")

    def cancelled(self) -> List[Dict[str, Any]]:
        return self._get("/v1/cancelled")

    def cancelled_product(self, code: str) -> Dict[str, Any]:
        return self._get(f"/v1/cancelled/{quote(code, safe='')}")

    def reset_session(self) -> None:
        r = requests.delete(f"{self.base_url}/v1/session", headers=self.headers, timeout=self.timeout)
        r.raise_for_status()

    def healthy(self) -> Union[bool, Dict[str, Any]]:
        r = requests.get(f"{self.base_url}/readyz", timeout=self.timeout)
        return r.json() if r.headers.get("content-type", "").startswith("application/json") else r.ok
