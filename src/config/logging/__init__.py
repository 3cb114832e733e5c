"""Configuração de logging estruturado.

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="flow_exchange")
    logger = get_logger(__name__)

Campos em todo log: exchange_id, service, level, logger, message, asctime.
"""

from config.logging.config import configure_logging, get_logger, log_crypto_failure
from config.logging.filters import ExchangeIdFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "REQUIRED_LOG_FIELDS",
    "ExchangeIdFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
    "log_crypto_failure",
]
