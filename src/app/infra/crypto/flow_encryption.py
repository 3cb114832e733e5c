"""Criptografia para endpoint de WhatsApp Flows (data exchange).

Request: chave AES embrulhada com RSA-OAEP + payload AES-GCM
(ciphertext || tag de 16 bytes) + IV de 12 bytes, tudo em base64.
Response: mesmo AES key, IV complementado bit a bit, base64(ciphertext || tag).
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .constants import AES_KEY_SIZE, IV_SIZE, TAG_SIZE
from .errors import FlowCryptoError, MalformedPayloadError, TagVerificationError
from .keys import rsa_oaep_encrypt

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric import rsa

    from app.protocols.crypto import KeyStoreProtocol

_URLSAFE_BASE64 = re.compile(r"[A-Za-z0-9_\-]+={0,2}")


@dataclass(frozen=True, slots=True)
class EncryptedFlowRequest:
    """Corpo do request como enviado pela plataforma (campos base64)."""

    encrypted_aes_key: str
    encrypted_flow_data: str
    initial_vector: str

    def to_body(self) -> dict[str, str]:
        return {
            "encrypted_aes_key": self.encrypted_aes_key,
            "encrypted_flow_data": self.encrypted_flow_data,
            "initial_vector": self.initial_vector,
        }


@dataclass(frozen=True, slots=True)
class DecodedFlowRequest:
    """Campos do request já decodificados de base64."""

    wrapped_key: bytes
    flow_data: bytes
    iv: bytes


@dataclass(frozen=True, slots=True)
class DecryptedFlowRequest:
    """Payload descriptografado + material para resposta criptografada."""

    payload: dict[str, Any]
    aes_key: bytes = field(repr=False)
    iv: bytes
    key_generation: int | None = None


def _decode_base64(raw_value: str, field_name: str) -> bytes:
    value = raw_value.strip()
    padded = value + ("=" * (-len(value) % 4))
    try:
        return base64.b64decode(padded, validate=True)
    except (ValueError, binascii.Error):
        # urlsafe só com alfabeto urlsafe; evita decodificação permissiva de lixo
        if not _URLSAFE_BASE64.fullmatch(value):
            raise MalformedPayloadError(
                f"Invalid base64 in {field_name}: invalid characters in input"
            ) from None
        try:
            return base64.urlsafe_b64decode(padded)
        except (ValueError, binascii.Error) as exc:
            raise MalformedPayloadError(f"Invalid base64 in {field_name}: {exc}") from exc


def decode_flow_request(request: EncryptedFlowRequest) -> DecodedFlowRequest:
    """Decodifica os três campos e valida tamanhos estruturais.

    Raises:
        MalformedPayloadError: base64 inválido, IV != 12 bytes ou
            flow data menor que a tag
    """
    wrapped_key = _decode_base64(request.encrypted_aes_key, "encrypted_aes_key")
    flow_data = _decode_base64(request.encrypted_flow_data, "encrypted_flow_data")
    iv = _decode_base64(request.initial_vector, "initial_vector")

    if len(iv) != IV_SIZE:
        raise MalformedPayloadError(f"Invalid initial vector size: {len(iv)}")
    if len(flow_data) < TAG_SIZE:
        raise MalformedPayloadError(f"Flow data shorter than auth tag: {len(flow_data)}")

    return DecodedFlowRequest(wrapped_key=wrapped_key, flow_data=flow_data, iv=iv)


def decrypt_flow_payload(
    aes_key: bytes,
    iv: bytes,
    flow_data: bytes,
    *,
    key_generation: int | None = None,
) -> dict[str, Any]:
    """Decifra e autentica o payload (últimos 16 bytes = tag GCM).

    Nenhum plaintext é devolvido se a tag não conferir. `key_generation`
    só identifica a chave nas exceções levantadas.

    Raises:
        TagVerificationError: Tag inválida (ciphertext, tag ou IV alterados)
        MalformedPayloadError: Plaintext não é objeto JSON UTF-8
    """
    # AESGCM espera ciphertext || tag, exatamente o layout de encrypted_flow_data
    try:
        plaintext = AESGCM(aes_key).decrypt(iv, flow_data, None)
    except InvalidTag as exc:
        raise TagVerificationError(
            "Flow payload authentication failed", key_generation=key_generation
        ) from exc

    try:
        payload = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise MalformedPayloadError(
            f"Flow payload is not valid JSON: {type(exc).__name__}",
            key_generation=key_generation,
        ) from exc

    if not isinstance(payload, dict):
        raise MalformedPayloadError(
            "Flow payload must be a JSON object", key_generation=key_generation
        )
    return payload


def decrypt_flow_request(
    request: EncryptedFlowRequest,
    key_store: KeyStoreProtocol,
) -> DecryptedFlowRequest:
    """Descriptografa request do endpoint de Flow.

    O KeyStore é consultado uma única vez (snapshot), de modo que uma
    rotação concorrente não mistura chaves dentro do mesmo exchange.

    Raises:
        MalformedPayloadError: Request ou plaintext mal formados (com
            key_generation apenas quando a falha ocorre após o unwrap)
        KeyMismatchError: Chave AES não desembrulha com a chave atual
        TagVerificationError: Payload adulterado
    """
    decoded = decode_flow_request(request)
    active = key_store.current()
    aes_key = active.unwrap(decoded.wrapped_key)
    payload = decrypt_flow_payload(
        aes_key,
        decoded.iv,
        decoded.flow_data,
        key_generation=active.generation,
    )
    return DecryptedFlowRequest(
        payload=payload,
        aes_key=aes_key,
        iv=decoded.iv,
        key_generation=active.generation,
    )


def complement_iv(iv: bytes) -> bytes:
    """Inverte todos os bits de cada byte do IV (IV da resposta)."""
    return bytes(byte ^ 0xFF for byte in iv)


def _serialize(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _validate_session_material(aes_key: bytes, iv: bytes) -> None:
    if len(aes_key) != AES_KEY_SIZE:
        raise FlowCryptoError(f"Invalid AES key size: {len(aes_key)}")
    if len(iv) != IV_SIZE:
        raise FlowCryptoError(f"Invalid initial vector size: {len(iv)}")


def encrypt_flow_response(
    *,
    response: dict[str, Any],
    aes_key: bytes,
    iv: bytes,
) -> str:
    """Criptografa resposta para Flow e retorna plaintext base64.

    A Meta espera a resposta criptografada com IV invertido (XOR 0xFF),
    retornada como texto simples contendo base64(ciphertext + tag).
    O IV da resposta não é transmitido.
    """
    if not isinstance(response, dict):
        raise FlowCryptoError("response must be a dict")
    _validate_session_material(aes_key, iv)

    try:
        plaintext = _serialize(response)
    except (TypeError, ValueError) as exc:
        raise FlowCryptoError(f"Flow response is not JSON serializable: {exc}") from exc

    encrypted = AESGCM(aes_key).encrypt(complement_iv(iv), plaintext, None)
    return base64.b64encode(encrypted).decode("utf-8")


def encrypt_flow_request(
    *,
    payload: dict[str, Any],
    aes_key: bytes,
    iv: bytes,
    public_key: rsa.RSAPublicKey,
) -> EncryptedFlowRequest:
    """Monta um request como a plataforma faria (testes e tooling)."""
    _validate_session_material(aes_key, iv)
    encrypted_flow_data = AESGCM(aes_key).encrypt(iv, _serialize(payload), None)
    wrapped_key = rsa_oaep_encrypt(public_key, aes_key)
    return EncryptedFlowRequest(
        encrypted_aes_key=base64.b64encode(wrapped_key).decode("utf-8"),
        encrypted_flow_data=base64.b64encode(encrypted_flow_data).decode("utf-8"),
        initial_vector=base64.b64encode(iv).decode("utf-8"),
    )


def decrypt_flow_response(
    *,
    encrypted_response: str,
    aes_key: bytes,
    request_iv: bytes,
) -> dict[str, Any]:
    """Lado da plataforma: decifra a resposta com o IV complementado."""
    data = _decode_base64(encrypted_response, "response")
    if len(data) < TAG_SIZE:
        raise MalformedPayloadError(f"Response shorter than auth tag: {len(data)}")
    return decrypt_flow_payload(aes_key, complement_iv(request_iv), data)
