"""Coordinator do data exchange de WhatsApp Flows.

Sequência por request:
RECEIVED -> KEY_UNWRAPPED -> PAYLOAD_VERIFIED -> BUSINESS_PROCESSED
-> RESPONSE_ENCRYPTED -> SENT, com ERROR alcançável de qualquer etapa.

Toda falha vira ExchangeErr tipado; nenhuma exceção de crypto escapa
daqui. A chave ativa é lida uma única vez (no unwrap) e nenhum lock é
mantido durante a etapa de negócio.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from app.infra.crypto.errors import (
    FlowBusinessError,
    FlowCryptoError,
    KeyMismatchError,
    MalformedPayloadError,
    TagVerificationError,
)
from app.infra.crypto.flow_encryption import decrypt_flow_request, encrypt_flow_response
from app.observability import (
    get_exchange_id,
    new_exchange_id,
    record_exchange_outcome,
    record_latency,
)
from config.logging import log_crypto_failure

from .models import (
    DecryptedFlowData,
    ExchangeErr,
    ExchangeOk,
    ExchangeResult,
    ExchangeState,
    FlowFailureKind,
)

if TYPE_CHECKING:
    from app.infra.crypto.flow_encryption import EncryptedFlowRequest
    from app.protocols.crypto import FlowBusinessHandler, KeyStoreProtocol

logger = logging.getLogger(__name__)

DEFAULT_BUSINESS_TIMEOUT_SECONDS = 8.0

PING_RESPONSE: dict[str, Any] = {"data": {"status": "active"}}
ERROR_ACK_RESPONSE: dict[str, Any] = {"data": {"acknowledged": True}}


class _ExchangeTrace:
    """Estados percorridos por um exchange."""

    __slots__ = ("key_generation", "states")

    def __init__(self) -> None:
        self.states: list[ExchangeState] = [ExchangeState.RECEIVED]
        self.key_generation: int | None = None

    def advance(self, state: ExchangeState) -> None:
        self.states.append(state)

    def fail(self, kind: FlowFailureKind, reason: str) -> ExchangeErr:
        failed_at = self.states[-1]
        self.states.append(ExchangeState.ERROR)
        return ExchangeErr(
            kind=kind,
            reason=reason,
            failed_at=failed_at,
            key_generation=self.key_generation,
            states=tuple(self.states),
        )


class UnhandledFlowBusinessHandler:
    """Etapa de negócio padrão: nenhuma ação de tela registrada."""

    async def __call__(self, payload: dict[str, Any]) -> dict[str, Any]:
        flow = DecryptedFlowData.from_payload(payload)
        raise FlowBusinessError(
            f"Unhandled flow request: action={flow.action!r} screen={flow.screen!r}"
        )


class FlowExchangeHandler:
    """Orquestra decrypt -> negócio -> encrypt para um request de Flow.

    Args:
        key_store: Fonte da chave privada ativa
        business_handler: Colaborador externo que gera o próximo payload
        business_timeout_seconds: Limite da etapa de negócio
    """

    def __init__(
        self,
        *,
        key_store: KeyStoreProtocol,
        business_handler: FlowBusinessHandler,
        business_timeout_seconds: float = DEFAULT_BUSINESS_TIMEOUT_SECONDS,
    ) -> None:
        self._key_store = key_store
        self._business_handler = business_handler
        self._business_timeout_seconds = business_timeout_seconds

    @property
    def key_store(self) -> KeyStoreProtocol:
        return self._key_store

    async def handle(
        self,
        request: EncryptedFlowRequest,
        exchange_id: str | None = None,
    ) -> ExchangeResult:
        """Processa um exchange completo.

        Returns:
            ExchangeOk com o corpo base64, ou ExchangeErr tipado
        """
        exchange_id = exchange_id or get_exchange_id() or new_exchange_id()
        started_at = time.perf_counter()
        trace = _ExchangeTrace()

        result = await self._run(request, trace)

        latency_ms = (time.perf_counter() - started_at) * 1000
        record_latency("flow_exchange", "handle", latency_ms, exchange_id)
        if isinstance(result, ExchangeErr):
            log_crypto_failure(
                logger,
                str(result.kind),
                exchange_id=exchange_id,
                key_generation=result.key_generation,
                failed_at=str(result.failed_at),
                reason=result.reason,
            )
            record_exchange_outcome(str(result.kind), result.key_generation, exchange_id)
        else:
            logger.info(
                "flow_exchange_completed",
                extra={
                    "component": "flow_exchange",
                    "exchange_id": exchange_id,
                    "key_generation": result.key_generation,
                },
            )
            record_exchange_outcome("success", result.key_generation, exchange_id)
        return result

    async def _run(self, request: EncryptedFlowRequest, trace: _ExchangeTrace) -> ExchangeResult:
        try:
            decrypted = decrypt_flow_request(request, self._key_store)
        except KeyMismatchError as exc:
            trace.key_generation = exc.key_generation
            return trace.fail(FlowFailureKind.KEY_MISMATCH, str(exc))
        except (TagVerificationError, MalformedPayloadError) as exc:
            # key_generation só existe quando a falha ocorreu após o unwrap
            if exc.key_generation is not None:
                trace.key_generation = exc.key_generation
                trace.advance(ExchangeState.KEY_UNWRAPPED)
            kind = (
                FlowFailureKind.TAG_VERIFICATION
                if isinstance(exc, TagVerificationError)
                else FlowFailureKind.MALFORMED_PAYLOAD
            )
            return trace.fail(kind, str(exc))
        trace.key_generation = decrypted.key_generation
        trace.advance(ExchangeState.KEY_UNWRAPPED)
        trace.advance(ExchangeState.PAYLOAD_VERIFIED)

        try:
            response = await self._process(decrypted.payload)
        except TimeoutError:
            return trace.fail(FlowFailureKind.PROTOCOL_FAILURE, "business_timeout")
        except FlowBusinessError as exc:
            return trace.fail(FlowFailureKind.PROTOCOL_FAILURE, f"business_error: {exc}")
        except Exception as exc:
            # Falha de negócio nunca é classificada como problema de chave
            return trace.fail(
                FlowFailureKind.PROTOCOL_FAILURE,
                f"business_exception: {type(exc).__name__}",
            )
        trace.advance(ExchangeState.BUSINESS_PROCESSED)

        try:
            encrypted_response = encrypt_flow_response(
                response=response,
                aes_key=decrypted.aes_key,
                iv=decrypted.iv,
            )
        except FlowCryptoError as exc:
            return trace.fail(FlowFailureKind.PROTOCOL_FAILURE, f"response_encryption: {exc}")
        trace.advance(ExchangeState.RESPONSE_ENCRYPTED)
        trace.advance(ExchangeState.SENT)

        return ExchangeOk(
            encrypted_response=encrypted_response,
            key_generation=trace.key_generation,
            states=tuple(trace.states),
        )

    async def _process(self, payload: dict[str, Any]) -> dict[str, Any]:
        flow = DecryptedFlowData.from_payload(payload)
        if flow.is_ping:
            return dict(PING_RESPONSE)
        if flow.is_error_notification:
            logger.warning(
                "flow_error_notification",
                extra={"component": "flow_exchange", "screen": flow.screen},
            )
            return dict(ERROR_ACK_RESPONSE)

        response = await asyncio.wait_for(
            self._business_handler(payload),
            timeout=self._business_timeout_seconds,
        )
        if not isinstance(response, dict):
            raise FlowBusinessError("business handler must return a dict")
        return response
