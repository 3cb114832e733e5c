"""Testes de carga da chave privada e desembrulho da chave AES."""

from __future__ import annotations

import os

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from app.infra.crypto.errors import ConfigurationError, KeyMismatchError
from app.infra.crypto.keys import (
    KeyFormat,
    PrivateKeyMaterial,
    detect_key_format,
    load_private_key,
    load_public_key,
    parse_key_format,
    rsa_oaep_encrypt,
    unwrap_aes_key,
)

PASSPHRASE = "test123"


def _public_numbers(private_key: rsa.RSAPrivateKey) -> rsa.RSAPublicNumbers:
    return private_key.public_key().public_numbers()


class TestDetectKeyFormat:
    """Detecção do formato pelo cabeçalho PEM."""

    def test_pkcs1_header(self, encrypted_pkcs1_pem: str) -> None:
        assert detect_key_format(encrypted_pkcs1_pem.encode()) is KeyFormat.PKCS1

    def test_pkcs8_headers(self, pkcs8_pem: str, encrypted_pkcs8_pem: str) -> None:
        assert detect_key_format(pkcs8_pem.encode()) is KeyFormat.PKCS8
        assert detect_key_format(encrypted_pkcs8_pem.encode()) is KeyFormat.PKCS8

    def test_unknown_header_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="PEM header"):
            detect_key_format(b"-----BEGIN CERTIFICATE-----\nabc\n")


class TestParseKeyFormat:
    """Tag textual de formato vinda de configuração."""

    @pytest.mark.parametrize("value", [None, "", "auto", " AUTO "])
    def test_auto_means_detect(self, value: str | None) -> None:
        assert parse_key_format(value) is None

    def test_case_insensitive(self) -> None:
        assert parse_key_format("PKCS1") is KeyFormat.PKCS1
        assert parse_key_format("pkcs8") is KeyFormat.PKCS8

    def test_unknown_format_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown private key format"):
            parse_key_format("der")


class TestLoadPrivateKey:
    """Carga eager da chave privada."""

    def test_encrypted_pkcs1_with_passphrase(
        self,
        encrypted_pkcs1_pem: str,
        rsa_private_key: rsa.RSAPrivateKey,
    ) -> None:
        material = PrivateKeyMaterial.from_text(encrypted_pkcs1_pem, PASSPHRASE, "pkcs1")

        loaded = load_private_key(material)

        assert _public_numbers(loaded) == _public_numbers(rsa_private_key)

    def test_encrypted_pkcs8_with_passphrase(self, encrypted_pkcs8_pem: str) -> None:
        material = PrivateKeyMaterial.from_text(encrypted_pkcs8_pem, PASSPHRASE)

        assert isinstance(load_private_key(material), rsa.RSAPrivateKey)

    def test_escaped_newlines_are_normalized(self, pkcs8_pem: str) -> None:
        escaped = pkcs8_pem.strip().replace("\n", "\\n")

        material = PrivateKeyMaterial.from_text(escaped)

        assert isinstance(load_private_key(material), rsa.RSAPrivateKey)

    def test_declared_format_mismatch_raises(self, encrypted_pkcs1_pem: str) -> None:
        material = PrivateKeyMaterial.from_text(encrypted_pkcs1_pem, PASSPHRASE, "pkcs8")

        with pytest.raises(ConfigurationError, match="format mismatch"):
            load_private_key(material)

    def test_wrong_passphrase_raises(self, encrypted_pkcs1_pem: str) -> None:
        material = PrivateKeyMaterial.from_text(encrypted_pkcs1_pem, "wrong-passphrase")

        with pytest.raises(ConfigurationError, match="Invalid private key"):
            load_private_key(material)

    def test_missing_passphrase_for_encrypted_key_raises(self, encrypted_pkcs1_pem: str) -> None:
        material = PrivateKeyMaterial.from_text(encrypted_pkcs1_pem)

        with pytest.raises(ConfigurationError):
            load_private_key(material)

    @pytest.mark.parametrize("passphrase", ["leftover-passphrase", "   "])
    def test_passphrase_ignored_for_unencrypted_key(self, pkcs8_pem: str, passphrase: str) -> None:
        material = PrivateKeyMaterial.from_text(pkcs8_pem, passphrase)

        assert isinstance(load_private_key(material), rsa.RSAPrivateKey)

    def test_non_rsa_key_raises(self) -> None:
        ec_pem = ec.generate_private_key(ec.SECP256R1()).private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

        with pytest.raises(ConfigurationError, match="RSA key required"):
            load_private_key(PrivateKeyMaterial(pem=ec_pem))

    def test_material_repr_hides_secrets(self, encrypted_pkcs1_pem: str) -> None:
        material = PrivateKeyMaterial.from_text(encrypted_pkcs1_pem, PASSPHRASE)

        text = repr(material)

        assert PASSPHRASE not in text
        assert "PRIVATE KEY" not in text


class TestLoadPublicKey:
    def test_invalid_public_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid public key"):
            load_public_key("-----BEGIN PUBLIC KEY-----\ninvalid\n-----END PUBLIC KEY-----\n")


class TestUnwrapAesKey:
    """Desembrulho RSA-OAEP da chave AES de sessão."""

    def test_unwraps_sixteen_byte_key(self, rsa_private_key: rsa.RSAPrivateKey) -> None:
        aes_key = os.urandom(16)
        wrapped = rsa_oaep_encrypt(rsa_private_key.public_key(), aes_key)

        assert unwrap_aes_key(rsa_private_key, wrapped) == aes_key

    def test_wrong_key_size_is_key_mismatch(self, rsa_private_key: rsa.RSAPrivateKey) -> None:
        wrapped = rsa_oaep_encrypt(rsa_private_key.public_key(), os.urandom(32))

        with pytest.raises(KeyMismatchError, match="Invalid AES key size: 32"):
            unwrap_aes_key(rsa_private_key, wrapped, key_generation=4)

    def test_other_key_pair_is_key_mismatch(
        self,
        rsa_private_key: rsa.RSAPrivateKey,
        other_rsa_private_key: rsa.RSAPrivateKey,
    ) -> None:
        wrapped = rsa_oaep_encrypt(other_rsa_private_key.public_key(), os.urandom(16))

        with pytest.raises(KeyMismatchError) as exc_info:
            unwrap_aes_key(rsa_private_key, wrapped, key_generation=2)

        assert exc_info.value.key_generation == 2

    def test_garbage_ciphertext_is_key_mismatch(self, rsa_private_key: rsa.RSAPrivateKey) -> None:
        with pytest.raises(KeyMismatchError):
            unwrap_aes_key(rsa_private_key, b"\x00" * 10)
