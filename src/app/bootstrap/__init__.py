"""Bootstrap da aplicação: inicialização e wiring.

Composition root: configura logging, valida settings e monta o KeyStore
e o coordinator de data exchange.

Uso:
    from app.bootstrap import initialize_app, create_key_store

    initialize_app()
    key_store = create_key_store()
"""

from __future__ import annotations

import logging

from app.bootstrap.flows import (
    create_flow_exchange_handler,
    create_key_store,
    load_key_material,
    rotate_key_store,
)
from app.observability import get_exchange_id
from config.logging import configure_logging
from config.settings import get_base_settings, get_flow_settings

SERVICE_NAME = "flow_exchange"

logger = logging.getLogger(__name__)

__all__ = [
    "SERVICE_NAME",
    "create_flow_exchange_handler",
    "create_key_store",
    "initialize_app",
    "initialize_test_app",
    "load_key_material",
    "rotate_key_store",
    "validate_runtime_settings",
]


def initialize_app() -> None:
    """Configura logging estruturado JSON com exchange_id.

    Deve ser chamada uma vez no início do serviço.
    """
    settings = get_base_settings()
    configure_logging(
        level=settings.log_level,
        service_name=settings.service_name or SERVICE_NAME,
        exchange_id_getter=get_exchange_id,
    )


def initialize_test_app() -> None:
    """Inicializa logging em DEBUG para testes."""
    configure_logging(
        level="DEBUG",
        service_name=f"{SERVICE_NAME}_test",
        exchange_id_getter=get_exchange_id,
    )


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.

    Raises:
        RuntimeError: Configuração inválida em ambiente estrito
    """
    base_settings = get_base_settings()
    errors = [f"base: {error}" for error in base_settings.validate()]
    errors.extend(f"flows: {error}" for error in get_flow_settings().validate())

    if not errors:
        logger.info(
            "settings_validated",
            extra={
                "component": "bootstrap",
                "result": "ok",
                "environment": base_settings.environment,
            },
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": base_settings.environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if base_settings.requires_strict_validation:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {base_settings.environment}:\n{details}")
