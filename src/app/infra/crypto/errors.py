"""Erros de criptografia para WhatsApp Flows.

Cada subclasse corresponde a um tipo de falha com contrato próprio
perante a plataforma chamadora:

- ConfigurationError: chave privada inválida ou passphrase errada no load
- KeyMismatchError: chave pública desatualizada (plataforma deve refazer fetch)
- TagVerificationError: payload corrompido ou adulterado
- MalformedPayloadError: payload fora do formato esperado
"""

from __future__ import annotations


class FlowCryptoError(Exception):
    """Erro em operação criptográfica de Flow.

    Args:
        message: Descrição sem material sensível.
        key_generation: Geração da chave em uso quando a falha ocorreu
            (None se a falha aconteceu antes de ler a chave).
    """

    def __init__(self, message: str, *, key_generation: int | None = None) -> None:
        super().__init__(message)
        self.key_generation = key_generation


class ConfigurationError(FlowCryptoError):
    """Material de chave privada inutilizável (falha fatal no startup)."""


class KeyMismatchError(FlowCryptoError):
    """Chave AES não pôde ser desembrulhada com a chave privada atual."""


class TagVerificationError(FlowCryptoError):
    """Tag de autenticação AES-GCM não confere."""


class MalformedPayloadError(FlowCryptoError):
    """Request ou plaintext fora do formato (base64, tamanhos, JSON)."""


class KeySelfTestError(FlowCryptoError):
    """Round-trip RSA do par de chaves não reproduziu a mensagem original."""


class FlowBusinessError(Exception):
    """Falha na etapa de negócio de um Flow (colaborador externo)."""
