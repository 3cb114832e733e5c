"""Registro de métricas via structured logging.

As métricas são logs estruturados (metric_type) agregados depois pelo
backend de logs.

Métricas suportadas:
- Latência: tempo de cada exchange de Flow
- Outcome: contagem de exchanges por resultado e geração da chave

Uso:
    start = time.perf_counter()
    ...
    record_latency("flow_exchange", "handle", (time.perf_counter() - start) * 1000)
    record_exchange_outcome("key_mismatch", key_generation=3)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    exchange_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "flow_exchange")
        operation: Nome da operação (ex: "handle", "business_step")
        latency_ms: Latência em milissegundos
        exchange_id: ID do exchange para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "exchange_id": exchange_id,
        },
    )


def record_exchange_outcome(
    outcome: str,
    key_generation: int | None = None,
    exchange_id: str | None = None,
) -> None:
    """Registra o resultado de um exchange.

    Args:
        outcome: "success" ou o FlowFailureKind da falha
        key_generation: Geração da chave ativa no exchange
        exchange_id: ID do exchange para rastreamento
    """
    logger.info(
        "metric_exchange_outcome",
        extra={
            "metric_type": "exchange_outcome",
            "component": "flow_exchange",
            "outcome": outcome,
            "key_generation": key_generation,
            "exchange_id": exchange_id,
        },
    )
