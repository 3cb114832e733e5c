"""Identificador de exchange para rastrear um request de Flow nos logs.

Cada request/response de data exchange recebe um exchange_id, vindo do
header `x-correlation-id` quando presente. Usa ContextVar para ser
thread/async-safe.

Uso:
    from app.observability import bind_exchange_id, reset_exchange_id

    token = bind_exchange_id(request.headers.get("x-correlation-id"))
    try:
        ...
    finally:
        reset_exchange_id(token)
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

_exchange_id: ContextVar[str] = ContextVar("exchange_id", default="")


def get_exchange_id() -> str:
    """Retorna o exchange_id do contexto atual ("" se não definido)."""
    return _exchange_id.get()


def bind_exchange_id(exchange_id: str | None = None) -> Token[str]:
    """Define o exchange_id no contexto atual.

    Args:
        exchange_id: ID a definir. Se None ou vazio, gera um novo.

    Returns:
        Token para reset_exchange_id().
    """
    return _exchange_id.set(exchange_id or new_exchange_id())


def reset_exchange_id(token: Token[str]) -> None:
    """Restaura o exchange_id anterior."""
    _exchange_id.reset(token)


def new_exchange_id() -> str:
    """Gera um novo exchange_id (UUID v4)."""
    return str(uuid.uuid4())
