"""Protocolos consumidos pelo coordinator de data exchange de Flows.

O coordinator depende destas abstrações e não do KeyStore concreto nem
da implementação de negócio, que é um colaborador externo.
"""

from __future__ import annotations

from typing import Any, Protocol


class ActiveKeyProtocol(Protocol):
    """Snapshot de chave privada capaz de desembrulhar a chave AES."""

    @property
    def generation(self) -> int:
        ...

    def unwrap(self, wrapped_key: bytes) -> bytes:
        ...


class KeyStoreProtocol(Protocol):
    """Fonte da chave privada ativa (lida uma vez por exchange)."""

    @property
    def generation(self) -> int:
        ...

    def current(self) -> ActiveKeyProtocol:
        ...


class FlowBusinessHandler(Protocol):
    """Etapa de negócio: payload descriptografado -> próximo payload.

    Sinaliza falha levantando exceção (ex: FlowBusinessError).
    """

    async def __call__(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...
