"""Testes do coordinator de data exchange de Flows."""

from __future__ import annotations

import asyncio
import base64
import logging
import os
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.coordinators.whatsapp.flows.handler import (
    ERROR_ACK_RESPONSE,
    PING_RESPONSE,
    FlowExchangeHandler,
    UnhandledFlowBusinessHandler,
)
from app.coordinators.whatsapp.flows.models import (
    ExchangeErr,
    ExchangeOk,
    ExchangeState,
    FlowFailureKind,
)
from app.infra.crypto.errors import FlowBusinessError
from app.infra.crypto.flow_encryption import (
    EncryptedFlowRequest,
    decrypt_flow_response,
    encrypt_flow_request,
)
from app.infra.crypto.key_store import KeyStore
from app.infra.crypto.keys import PrivateKeyMaterial, rsa_oaep_encrypt


class RecordingBusinessHandler:
    """Etapa de negócio fake que registra os payloads recebidos."""

    def __init__(self, response: dict[str, Any] | None = None) -> None:
        self.calls: list[dict[str, Any]] = []
        self._response = response or {"screen": "SUCCESS_SCREEN", "data": {"ok": True}}

    async def __call__(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(payload)
        return self._response


class FailingBusinessHandler:
    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    async def __call__(self, payload: dict[str, Any]) -> dict[str, Any]:
        raise self._exc


class SlowBusinessHandler:
    async def __call__(self, payload: dict[str, Any]) -> dict[str, Any]:
        await asyncio.sleep(1)
        return {}


@pytest.fixture
def key_store(key_material: PrivateKeyMaterial) -> KeyStore:
    return KeyStore.load(key_material)


def _request(
    public_key: rsa.RSAPublicKey,
    payload: dict[str, Any],
) -> tuple[EncryptedFlowRequest, bytes, bytes]:
    aes_key = os.urandom(16)
    iv = os.urandom(12)
    request = encrypt_flow_request(payload=payload, aes_key=aes_key, iv=iv, public_key=public_key)
    return request, aes_key, iv


@pytest.mark.asyncio
async def test_ping_returns_active_status_without_business_call(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
) -> None:
    business = RecordingBusinessHandler()
    handler = FlowExchangeHandler(key_store=key_store, business_handler=business)
    request, aes_key, iv = _request(rsa_private_key.public_key(), {"action": "ping", "version": "3.0"})

    result = await handler.handle(request, exchange_id="ex-1")

    assert isinstance(result, ExchangeOk)
    assert result.status_code == 200
    assert business.calls == []
    assert decrypt_flow_response(
        encrypted_response=result.encrypted_response,
        aes_key=aes_key,
        request_iv=iv,
    ) == PING_RESPONSE


@pytest.mark.asyncio
async def test_error_notification_is_acknowledged(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
) -> None:
    business = RecordingBusinessHandler()
    handler = FlowExchangeHandler(key_store=key_store, business_handler=business)
    payload = {
        "action": "data_exchange",
        "screen": "APPOINTMENT",
        "flow_token": "tok",
        "data": {"error": "invalid-screen", "error_message": "boom"},
    }
    request, aes_key, iv = _request(rsa_private_key.public_key(), payload)

    result = await handler.handle(request)

    assert isinstance(result, ExchangeOk)
    assert business.calls == []
    assert decrypt_flow_response(
        encrypted_response=result.encrypted_response,
        aes_key=aes_key,
        request_iv=iv,
    ) == ERROR_ACK_RESPONSE


@pytest.mark.asyncio
async def test_data_exchange_goes_through_every_state(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
) -> None:
    business_response = {"screen": "SUCCESS_SCREEN", "data": {"message": "Response from server"}}
    business = RecordingBusinessHandler(business_response)
    handler = FlowExchangeHandler(key_store=key_store, business_handler=business)
    payload = {
        "screen": "TEST_SCREEN",
        "data": {"message": "Hello from WhatsApp Flow!"},
        "version": "3.0",
        "action": "data_exchange",
        "flow_token": "test_flow_token_123",
    }
    request, aes_key, iv = _request(rsa_private_key.public_key(), payload)

    result = await handler.handle(request)

    assert isinstance(result, ExchangeOk)
    assert business.calls == [payload]
    assert result.key_generation == 1
    assert result.states == (
        ExchangeState.RECEIVED,
        ExchangeState.KEY_UNWRAPPED,
        ExchangeState.PAYLOAD_VERIFIED,
        ExchangeState.BUSINESS_PROCESSED,
        ExchangeState.RESPONSE_ENCRYPTED,
        ExchangeState.SENT,
    )
    assert decrypt_flow_response(
        encrypted_response=result.encrypted_response,
        aes_key=aes_key,
        request_iv=iv,
    ) == business_response


@pytest.mark.asyncio
async def test_key_mismatch_never_reaches_business_step(
    key_store: KeyStore,
    other_rsa_private_key: rsa.RSAPrivateKey,
    caplog: pytest.LogCaptureFixture,
) -> None:
    business = RecordingBusinessHandler()
    handler = FlowExchangeHandler(key_store=key_store, business_handler=business)
    request, _, _ = _request(other_rsa_private_key.public_key(), {"action": "INIT"})

    with caplog.at_level(logging.INFO):
        result = await handler.handle(request, exchange_id="ex-mismatch")

    assert isinstance(result, ExchangeErr)
    assert result.kind is FlowFailureKind.KEY_MISMATCH
    assert result.status_code == 421
    assert result.failed_at is ExchangeState.RECEIVED
    assert result.key_generation == 1
    assert result.states[-1] is ExchangeState.ERROR
    assert business.calls == []

    failures = [record for record in caplog.records if record.message == "flow_exchange_failed"]
    assert len(failures) == 1
    assert failures[0].levelno == logging.WARNING
    assert failures[0].failure_kind == "key_mismatch"
    assert failures[0].exchange_id == "ex-mismatch"


@pytest.mark.asyncio
async def test_tampered_payload_is_tag_verification_failure(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
) -> None:
    business = RecordingBusinessHandler()
    handler = FlowExchangeHandler(key_store=key_store, business_handler=business)
    request, _, _ = _request(rsa_private_key.public_key(), {"action": "INIT"})
    flow_data = request.encrypted_flow_data
    tampered_char = "A" if flow_data[0] != "A" else "B"
    tampered = EncryptedFlowRequest(
        encrypted_aes_key=request.encrypted_aes_key,
        encrypted_flow_data=tampered_char + flow_data[1:],
        initial_vector=request.initial_vector,
    )

    result = await handler.handle(tampered)

    assert isinstance(result, ExchangeErr)
    assert result.kind is FlowFailureKind.TAG_VERIFICATION
    assert result.status_code == 400
    assert result.failed_at is ExchangeState.KEY_UNWRAPPED
    assert business.calls == []


@pytest.mark.asyncio
async def test_malformed_request_is_400(key_store: KeyStore) -> None:
    handler = FlowExchangeHandler(key_store=key_store, business_handler=RecordingBusinessHandler())
    request = EncryptedFlowRequest(
        encrypted_aes_key="!!!",
        encrypted_flow_data="!!!",
        initial_vector="!!!",
    )

    result = await handler.handle(request)

    assert isinstance(result, ExchangeErr)
    assert result.kind is FlowFailureKind.MALFORMED_PAYLOAD
    assert result.status_code == 400
    assert result.key_generation is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [FlowBusinessError("screen not found"), RuntimeError("boom")],
    ids=["business_error", "unexpected_exception"],
)
async def test_business_failure_is_not_reported_as_key_mismatch(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
    exc: Exception,
) -> None:
    handler = FlowExchangeHandler(
        key_store=key_store,
        business_handler=FailingBusinessHandler(exc),
    )
    request, _, _ = _request(rsa_private_key.public_key(), {"action": "data_exchange"})

    result = await handler.handle(request)

    assert isinstance(result, ExchangeErr)
    assert result.kind is FlowFailureKind.PROTOCOL_FAILURE
    assert result.status_code == 500
    assert result.failed_at is ExchangeState.PAYLOAD_VERIFIED


@pytest.mark.asyncio
async def test_business_timeout_is_protocol_failure(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
) -> None:
    handler = FlowExchangeHandler(
        key_store=key_store,
        business_handler=SlowBusinessHandler(),
        business_timeout_seconds=0.01,
    )
    request, _, _ = _request(rsa_private_key.public_key(), {"action": "data_exchange"})

    result = await handler.handle(request)

    assert isinstance(result, ExchangeErr)
    assert result.kind is FlowFailureKind.PROTOCOL_FAILURE
    assert result.reason == "business_timeout"


@pytest.mark.asyncio
async def test_non_dict_business_response_is_protocol_failure(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
) -> None:
    handler = FlowExchangeHandler(
        key_store=key_store,
        business_handler=RecordingBusinessHandler(["not", "a", "dict"]),  # type: ignore[arg-type]
    )
    request, _, _ = _request(rsa_private_key.public_key(), {"action": "data_exchange"})

    result = await handler.handle(request)

    assert isinstance(result, ExchangeErr)
    assert result.kind is FlowFailureKind.PROTOCOL_FAILURE


@pytest.mark.asyncio
async def test_unhandled_business_handler_fails_unknown_actions(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
) -> None:
    handler = FlowExchangeHandler(
        key_store=key_store,
        business_handler=UnhandledFlowBusinessHandler(),
    )
    request, _, _ = _request(
        rsa_private_key.public_key(),
        {"action": "INIT", "screen": "WELCOME"},
    )

    result = await handler.handle(request)

    assert isinstance(result, ExchangeErr)
    assert result.kind is FlowFailureKind.PROTOCOL_FAILURE
    assert "INIT" in result.reason


@pytest.mark.asyncio
async def test_exchange_after_rotation_uses_new_key(
    key_store: KeyStore,
    other_key_material: PrivateKeyMaterial,
    rsa_private_key: rsa.RSAPrivateKey,
    other_rsa_private_key: rsa.RSAPrivateKey,
) -> None:
    handler = FlowExchangeHandler(key_store=key_store, business_handler=RecordingBusinessHandler())
    key_store.rotate(other_key_material)

    stale, _, _ = _request(rsa_private_key.public_key(), {"action": "ping"})
    fresh, _, _ = _request(other_rsa_private_key.public_key(), {"action": "ping"})

    stale_result = await handler.handle(stale)
    fresh_result = await handler.handle(fresh)

    assert isinstance(stale_result, ExchangeErr)
    assert stale_result.status_code == 421
    assert stale_result.key_generation == 2
    assert isinstance(fresh_result, ExchangeOk)
    assert fresh_result.key_generation == 2


@pytest.mark.asyncio
async def test_deeply_nested_plaintext_is_malformed_payload(
    key_store: KeyStore,
    rsa_private_key: rsa.RSAPrivateKey,
    caplog: pytest.LogCaptureFixture,
) -> None:
    business = RecordingBusinessHandler()
    handler = FlowExchangeHandler(key_store=key_store, business_handler=business)
    aes_key = os.urandom(16)
    iv = os.urandom(12)
    request = EncryptedFlowRequest(
        encrypted_aes_key=base64.b64encode(
            rsa_oaep_encrypt(rsa_private_key.public_key(), aes_key)
        ).decode("utf-8"),
        encrypted_flow_data=base64.b64encode(
            AESGCM(aes_key).encrypt(iv, b"[" * 100_000, None)
        ).decode("utf-8"),
        initial_vector=base64.b64encode(iv).decode("utf-8"),
    )

    with caplog.at_level(logging.INFO):
        result = await handler.handle(request, exchange_id="ex-nested")

    assert isinstance(result, ExchangeErr)
    assert result.kind is FlowFailureKind.MALFORMED_PAYLOAD
    assert result.status_code == 400
    assert result.failed_at is ExchangeState.KEY_UNWRAPPED
    assert result.key_generation == 1
    assert business.calls == []
    assert any(record.message == "flow_exchange_failed" for record in caplog.records)
