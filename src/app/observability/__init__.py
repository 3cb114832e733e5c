"""Observabilidade: exchange_id em contexto e métricas via logs estruturados.

Uso:
    from app.observability import bind_exchange_id, get_exchange_id
    from app.observability import record_latency, record_exchange_outcome
"""

from app.observability.exchange import (
    bind_exchange_id,
    get_exchange_id,
    new_exchange_id,
    reset_exchange_id,
)
from app.observability.metrics import record_exchange_outcome, record_latency

__all__ = [
    "bind_exchange_id",
    "get_exchange_id",
    "new_exchange_id",
    "record_exchange_outcome",
    "record_latency",
    "reset_exchange_id",
]
