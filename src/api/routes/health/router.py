"""Endpoints de health check."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "flow_exchange"


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe: verifica se o serviço está rodando."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe: pronto só com chave privada carregada."""
    key_store = getattr(request.app.state, "key_store", None)
    flow_handler = getattr(request.app.state, "flow_handler", None)

    key_check: dict[str, Any]
    if key_store is None:
        key_check = {"status": "failed", "error": "not_loaded"}
    else:
        key_check = {"status": "ok", "key_generation": key_store.generation}

    ready = key_store is not None and flow_handler is not None
    if not ready:
        logger.warning("readiness_check_failed", extra={"component": "health"})

    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "private_key": key_check,
            "flow_handler": {"status": "ok" if flow_handler is not None else "failed"},
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200 if ready else 503)
