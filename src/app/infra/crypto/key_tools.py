"""Ferramentas offline de ciclo de vida da chave de Flows.

- generate_key_pair: par RSA com privada PKCS1 cifrada por passphrase
- convert_private_key: privada cifrada -> PKCS8 sem cifra + pública recalculada
- self_test_key_pair: round-trip RSA-OAEP antes de publicar a chave

Usa os mesmos primitivos OAEP do caminho quente (keys.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .constants import RSA_KEY_SIZE, RSA_PUBLIC_EXPONENT, SELF_TEST_MESSAGE
from .errors import KeySelfTestError
from .keys import (
    KeyFormat,
    PrivateKeyMaterial,
    derive_public_key_pem,
    load_private_key,
    load_public_key,
    rsa_oaep_decrypt,
    rsa_oaep_encrypt,
)


@dataclass(frozen=True, slots=True)
class GeneratedKeyPair:
    """Par gerado: privada PKCS1 cifrada + pública SubjectPublicKeyInfo."""

    private_key_pem: str = field(repr=False)
    public_key_pem: str


@dataclass(frozen=True, slots=True)
class ConvertedKeyPair:
    """Privada PKCS8 sem cifra + pública recalculada a partir dela."""

    private_key_pem: str = field(repr=False)
    public_key_pem: str


def generate_key_pair(passphrase: str, key_size: int = RSA_KEY_SIZE) -> GeneratedKeyPair:
    """Gera par RSA para WhatsApp Flows.

    Args:
        passphrase: Senha que cifra a chave privada (obrigatória)
        key_size: Tamanho do módulo RSA em bits

    Raises:
        ValueError: Se passphrase vazia
    """
    if not passphrase or not passphrase.strip():
        raise ValueError("passphrase é obrigatória para gerar a chave")

    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=key_size,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.BestAvailableEncryption(passphrase.encode()),
    ).decode("utf-8")
    return GeneratedKeyPair(
        private_key_pem=private_pem,
        public_key_pem=derive_public_key_pem(private_key),
    )


def convert_private_key(encrypted_private_key_pem: str, passphrase: str) -> ConvertedKeyPair:
    """Remove a cifra da chave privada (deploys com passphrase vazia).

    A pública é sempre recalculada da privada, nunca recebida de fora.

    Raises:
        ConfigurationError: Chave ilegível ou passphrase errada
    """
    material = PrivateKeyMaterial.from_text(encrypted_private_key_pem, passphrase)
    private_key = load_private_key(material)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    return ConvertedKeyPair(
        private_key_pem=private_pem,
        public_key_pem=derive_public_key_pem(private_key),
    )


def self_test_key_pair(
    private_key_pem: str,
    public_key_pem: str,
    passphrase: str | None = None,
    *,
    key_format: KeyFormat | str | None = None,
    message: str = SELF_TEST_MESSAGE,
) -> None:
    """Cifra `message` com a pública e decifra com a privada.

    Raises:
        ConfigurationError: Alguma das chaves não carrega
        KeySelfTestError: Round-trip falhou ou divergiu do original
    """
    private_key = load_private_key(
        PrivateKeyMaterial.from_text(private_key_pem, passphrase, key_format)
    )
    public_key = load_public_key(public_key_pem)

    original = message.encode("utf-8")
    ciphertext = rsa_oaep_encrypt(public_key, original)
    try:
        decrypted = rsa_oaep_decrypt(private_key, ciphertext)
    except ValueError as exc:
        raise KeySelfTestError(f"Key pair round trip failed: {exc}") from exc

    if decrypted != original:
        raise KeySelfTestError("Key pair round trip returned a different message")
