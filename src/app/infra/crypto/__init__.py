"""Módulo de criptografia para WhatsApp Flows.

Implementação RSA-OAEP/AES-GCM do data exchange (descriptografia de
requests, criptografia de responses), KeyStore com rotação atômica e
ferramentas offline de ciclo de vida da chave.
"""

from .constants import AES_KEY_SIZE, IV_SIZE, SELF_TEST_MESSAGE, TAG_SIZE
from .errors import (
    ConfigurationError,
    FlowBusinessError,
    FlowCryptoError,
    KeyMismatchError,
    KeySelfTestError,
    MalformedPayloadError,
    TagVerificationError,
)
from .flow_encryption import (
    DecryptedFlowRequest,
    EncryptedFlowRequest,
    complement_iv,
    decrypt_flow_request,
    decrypt_flow_response,
    encrypt_flow_request,
    encrypt_flow_response,
)
from .key_store import ActiveKey, KeyStore
from .key_tools import (
    ConvertedKeyPair,
    GeneratedKeyPair,
    convert_private_key,
    generate_key_pair,
    self_test_key_pair,
)
from .keys import KeyFormat, PrivateKeyMaterial, load_private_key, load_public_key

__all__ = [
    "AES_KEY_SIZE",
    "IV_SIZE",
    "SELF_TEST_MESSAGE",
    "TAG_SIZE",
    "ActiveKey",
    "ConfigurationError",
    "ConvertedKeyPair",
    "DecryptedFlowRequest",
    "EncryptedFlowRequest",
    "FlowBusinessError",
    "FlowCryptoError",
    "GeneratedKeyPair",
    "KeyFormat",
    "KeyMismatchError",
    "KeySelfTestError",
    "KeyStore",
    "MalformedPayloadError",
    "PrivateKeyMaterial",
    "TagVerificationError",
    "complement_iv",
    "convert_private_key",
    "decrypt_flow_request",
    "decrypt_flow_response",
    "encrypt_flow_request",
    "encrypt_flow_response",
    "generate_key_pair",
    "load_private_key",
    "load_public_key",
    "self_test_key_pair",
]
