"""Configuração centralizada de logging.

Logging JSON estruturado com exchange_id e service em todo record.

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="flow_exchange")
    logger = get_logger(__name__)
    logger.info("flow_key_loaded", extra={"key_generation": 1})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import ExchangeIdFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_SERVICE_NAME = "flow_exchange"


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    exchange_id_getter: Callable[[], str] | None = None,
) -> None:
    """Configura logging JSON estruturado para o serviço.

    Deve ser chamada uma vez na inicialização (app/bootstrap/).

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço nos logs.
        exchange_id_getter: Função que retorna o exchange_id do contexto.

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(ExchangeIdFilter(service_name, exchange_id_getter))

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substituir handlers existentes para evitar duplicação
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger para o módulo (o filter injeta service e exchange_id)."""
    return logging.getLogger(name)


def log_crypto_failure(
    logger: logging.Logger,
    failure_kind: str,
    *,
    exchange_id: str | None = None,
    key_generation: int | None = None,
    failed_at: str | None = None,
    reason: str | None = None,
) -> None:
    """Log padrão de falha de exchange (sem material sensível).

    key_mismatch sai como WARNING repetível por geração de chave, para
    operadores diagnosticarem chave pública desatualizada na plataforma.

    Args:
        logger: Logger instance.
        failure_kind: Tipo da falha (ex: "key_mismatch").
        exchange_id: ID do exchange.
        key_generation: Geração da chave ativa.
        failed_at: Último estado atingido antes da falha.
        reason: Motivo curto, sem payload.
    """
    extra: dict[str, object] = {
        "component": "flow_exchange",
        "failure_kind": failure_kind,
    }
    if exchange_id:
        extra["exchange_id"] = exchange_id
    if key_generation is not None:
        extra["key_generation"] = key_generation
    if failed_at:
        extra["failed_at"] = failed_at
    if reason:
        extra["reason"] = reason

    level = logging.WARNING if failure_kind == "key_mismatch" else logging.ERROR
    logger.log(level, "flow_exchange_failed", extra=extra)
