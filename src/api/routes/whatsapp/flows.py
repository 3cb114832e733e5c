"""Endpoint de data-exchange para WhatsApp Flows.

Adapter HTTP fino: valida o corpo, delega ao FlowExchangeHandler e
traduz o resultado tipado em status + corpo texto.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from app.coordinators.whatsapp.flows.models import (
    FAILURE_MESSAGES,
    FAILURE_STATUS_CODES,
    ExchangeErr,
    FlowFailureKind,
)
from app.infra.crypto.flow_encryption import EncryptedFlowRequest
from app.observability import bind_exchange_id, new_exchange_id, reset_exchange_id

logger = logging.getLogger(__name__)

router = APIRouter()

EXCHANGE_ID_HEADER = "x-correlation-id"


@router.post("/flow/endpoint")
async def handle_flow_endpoint(request: Request) -> PlainTextResponse:
    """Recebe payload criptografado da Meta e retorna o response cifrado em base64."""
    exchange_id = request.headers.get(EXCHANGE_ID_HEADER) or new_exchange_id()
    token = bind_exchange_id(exchange_id)
    try:
        flow_handler = getattr(request.app.state, "flow_handler", None)
        if flow_handler is None:
            logger.error(
                "flow_endpoint_misconfigured",
                extra={"component": "flow_endpoint", "missing": "flow_handler"},
            )
            kind = FlowFailureKind.CONFIGURATION
            return PlainTextResponse(FAILURE_MESSAGES[kind], status_code=FAILURE_STATUS_CODES[kind])

        encrypted_request = _parse_encrypted_body(await request.body())
        if encrypted_request is None:
            logger.warning(
                "flow_request_malformed",
                extra={"component": "flow_endpoint", "exchange_id": exchange_id},
            )
            kind = FlowFailureKind.MALFORMED_PAYLOAD
            return PlainTextResponse(FAILURE_MESSAGES[kind], status_code=FAILURE_STATUS_CODES[kind])

        result = await flow_handler.handle(encrypted_request, exchange_id=exchange_id)
        if isinstance(result, ExchangeErr):
            return PlainTextResponse(result.public_message, status_code=result.status_code)
        return PlainTextResponse(content=result.encrypted_response, status_code=200)
    finally:
        reset_exchange_id(token)


@router.post("/flow/refresh-key")
async def refresh_flow_key() -> PlainTextResponse:
    """Força a plataforma a buscar a chave pública de novo."""
    kind = FlowFailureKind.KEY_MISMATCH
    return PlainTextResponse(FAILURE_MESSAGES[kind], status_code=FAILURE_STATUS_CODES[kind])


def _parse_encrypted_body(raw_body: bytes) -> EncryptedFlowRequest | None:
    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None
    encrypted_flow_data = payload.get("encrypted_flow_data")
    encrypted_aes_key = payload.get("encrypted_aes_key")
    initial_vector = payload.get("initial_vector")
    if not all(
        isinstance(item, str) and item
        for item in (encrypted_flow_data, encrypted_aes_key, initial_vector)
    ):
        return None
    return EncryptedFlowRequest(
        encrypted_aes_key=encrypted_aes_key,
        encrypted_flow_data=encrypted_flow_data,
        initial_vector=initial_vector,
    )
