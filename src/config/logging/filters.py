"""Filters de logging para injeção de contexto.

Campos injetados em todo record:
- exchange_id: ID do exchange de Flow em andamento
- service: Nome do serviço

Nunca injetar material de chave, IV ou payload descriptografado.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class ExchangeIdFilter(logging.Filter):
    """Injeta exchange_id e service em cada record de log.

    Args:
        service_name: Nome do serviço para identificação nos logs.
        exchange_id_getter: Função que retorna o exchange_id atual.
            Se não fornecida, usa string vazia.
    """

    def __init__(
        self,
        service_name: str,
        exchange_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_exchange_id = exchange_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        """Enriquece o record; exchange_id explícito via `extra` é preservado."""
        existing = getattr(record, "exchange_id", None)
        record.exchange_id = existing if existing else self._get_exchange_id()
        record.service = self._service_name
        return True
