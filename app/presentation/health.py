# app/presentation/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import os
from app.container import get_repo
from app.domain.errors import EngineError

router = APIRouter()

@router.get("/healthz")
async def healthz():
    return {"ok": True}

@router.get("/readyz")
async def readyz(repo = Depends(get_repo)):
    checks = {}; ok = True
    # Postgres
    try:
        await repo.ping()
        checks["postgres"] = True
    except EngineError as e:
        checks["postgres"] = False; checks["postgres_error"] = e.message; ok = False
    # synonyms config (opsional, ada fallback default)
    checks["synonyms_cfg"] = os.path.exists(os.getenv("SYNONYMS_CFG", "config/synonyms.yaml"))
    return JSONResponse(status_code=200 if ok else 503, content={"ok": ok, **checks})
