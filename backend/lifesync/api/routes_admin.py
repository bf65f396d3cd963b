"""Operational endpoints: liveness, database readiness and metrics."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.db import get_session

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/health", summary="Liveness check")
async def admin_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready", summary="Readiness check including the database")
def admin_ready(session: Session = Depends(get_session)) -> JSONResponse:
    """Report whether the database answers a trivial query."""

    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Readiness check failed")
        return JSONResponse(
            {"status": "unavailable", "database": "error"},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return JSONResponse({"status": "ok", "database": "ok"})


@router.get("/metrics", summary="Prometheus metrics feed")
async def admin_metrics() -> Response:
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
