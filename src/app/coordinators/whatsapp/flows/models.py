"""Modelos de coordenação do data exchange de WhatsApp Flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ExchangeState(StrEnum):
    """Etapas de um exchange (sequência por request, sem persistência)."""

    RECEIVED = "RECEIVED"
    KEY_UNWRAPPED = "KEY_UNWRAPPED"
    PAYLOAD_VERIFIED = "PAYLOAD_VERIFIED"
    BUSINESS_PROCESSED = "BUSINESS_PROCESSED"
    RESPONSE_ENCRYPTED = "RESPONSE_ENCRYPTED"
    SENT = "SENT"
    ERROR = "ERROR"

    def __str__(self) -> str:
        return self.value


class FlowFailureKind(StrEnum):
    """Tipos de falha visíveis para a plataforma."""

    KEY_MISMATCH = "key_mismatch"
    TAG_VERIFICATION = "tag_verification"
    MALFORMED_PAYLOAD = "malformed_payload"
    CONFIGURATION = "configuration"
    PROTOCOL_FAILURE = "protocol_failure"

    def __str__(self) -> str:
        return self.value


# 421 faz a plataforma buscar a chave pública de novo e reenviar
FAILURE_STATUS_CODES: dict[FlowFailureKind, int] = {
    FlowFailureKind.KEY_MISMATCH: 421,
    FlowFailureKind.TAG_VERIFICATION: 400,
    FlowFailureKind.MALFORMED_PAYLOAD: 400,
    FlowFailureKind.CONFIGURATION: 503,
    FlowFailureKind.PROTOCOL_FAILURE: 500,
}

FAILURE_MESSAGES: dict[FlowFailureKind, str] = {
    FlowFailureKind.KEY_MISMATCH: "Failed to decrypt. Please verify your private key",
    FlowFailureKind.TAG_VERIFICATION: "Decryption failed",
    FlowFailureKind.MALFORMED_PAYLOAD: "Malformed request",
    FlowFailureKind.CONFIGURATION: "Flow endpoint misconfigured",
    FlowFailureKind.PROTOCOL_FAILURE: "Flow processing failed",
}


@dataclass(frozen=True, slots=True)
class ExchangeOk:
    """Exchange concluído: corpo base64 pronto para envio."""

    encrypted_response: str
    key_generation: int | None = None
    states: tuple[ExchangeState, ...] = ()

    @property
    def status_code(self) -> int:
        return 200


@dataclass(frozen=True, slots=True)
class ExchangeErr:
    """Exchange interrompido por falha tipada.

    Attributes:
        kind: Tipo da falha (define o status HTTP)
        reason: Motivo curto para logs, nunca enviado à plataforma
        failed_at: Último estado atingido antes da falha
        key_generation: Geração da chave ativa, quando conhecida
        states: Estados percorridos, terminando em ERROR
    """

    kind: FlowFailureKind
    reason: str
    failed_at: ExchangeState
    key_generation: int | None = None
    states: tuple[ExchangeState, ...] = ()

    @property
    def status_code(self) -> int:
        return FAILURE_STATUS_CODES[self.kind]

    @property
    def public_message(self) -> str:
        return FAILURE_MESSAGES[self.kind]


ExchangeResult = ExchangeOk | ExchangeErr


@dataclass(slots=True, frozen=True)
class DecryptedFlowData:
    """Visão tipada dos campos convencionais de um payload de Flow."""

    flow_token: str
    action: str
    screen: str
    data: dict[str, Any] = field(default_factory=dict)
    version: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> DecryptedFlowData:
        data = payload.get("data")
        version = payload.get("version")
        return cls(
            flow_token=str(payload.get("flow_token") or ""),
            action=str(payload.get("action") or ""),
            screen=str(payload.get("screen") or ""),
            data=data if isinstance(data, dict) else {},
            version=str(version) if version is not None else None,
        )

    @property
    def is_ping(self) -> bool:
        """Health check da plataforma."""
        return self.action == "ping"

    @property
    def is_error_notification(self) -> bool:
        """Notificação de erro de um response anterior."""
        return "error" in self.data
