"""Configuração do pytest para o endpoint de data exchange de Flows."""

import sys
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

# Adiciona src/ ao PYTHONPATH para permitir imports absolutos
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from app.bootstrap import initialize_test_app  # noqa: E402
from app.infra.crypto.keys import PrivateKeyMaterial  # noqa: E402

TEST_PASSPHRASE = "test123"


@pytest.fixture(scope="session", autouse=True)
def _test_logging() -> None:
    """Logging JSON em DEBUG, como no serviço."""
    initialize_test_app()


def _private_pem(
    private_key: rsa.RSAPrivateKey,
    private_format: serialization.PrivateFormat,
    passphrase: str | None = None,
) -> str:
    encryption: serialization.KeySerializationEncryption = (
        serialization.BestAvailableEncryption(passphrase.encode())
        if passphrase
        else serialization.NoEncryption()
    )
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=private_format,
        encryption_algorithm=encryption,
    ).decode("utf-8")


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """Chave RSA 2048 compartilhada (gerar chave é caro)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_private_key() -> rsa.RSAPrivateKey:
    """Segunda chave, para cenários de chave divergente."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def pkcs8_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return _private_pem(rsa_private_key, serialization.PrivateFormat.PKCS8)


@pytest.fixture(scope="session")
def other_pkcs8_pem(other_rsa_private_key: rsa.RSAPrivateKey) -> str:
    return _private_pem(other_rsa_private_key, serialization.PrivateFormat.PKCS8)


@pytest.fixture(scope="session")
def encrypted_pkcs1_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return _private_pem(
        rsa_private_key,
        serialization.PrivateFormat.TraditionalOpenSSL,
        TEST_PASSPHRASE,
    )


@pytest.fixture(scope="session")
def encrypted_pkcs8_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return _private_pem(rsa_private_key, serialization.PrivateFormat.PKCS8, TEST_PASSPHRASE)


@pytest.fixture(scope="session")
def key_material(pkcs8_pem: str) -> PrivateKeyMaterial:
    return PrivateKeyMaterial.from_text(pkcs8_pem)


@pytest.fixture(scope="session")
def other_key_material(other_pkcs8_pem: str) -> PrivateKeyMaterial:
    return PrivateKeyMaterial.from_text(other_pkcs8_pem)
