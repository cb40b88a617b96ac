"""
Health endpoints.

Lightweight probes for operational monitoring without exposing secrets.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from subledger.core.database import check_connection, get_engine

logger = logging.getLogger("subledger")

router = APIRouter(tags=["health"])

REQUIRED_TABLES = ["accounts", "plans", "subscriptions"]


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz():
    """Readiness check: DB connectivity + ledger tables."""
    if not check_connection():
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})

    missing = [t for t in REQUIRED_TABLES if not inspect(get_engine()).has_table(t)]
    if missing:
        detail = f"missing tables: {', '.join(missing)}"
        logger.warning(f"[readyz] {detail}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": detail})

    return {"status": "ok"}
