"""Factories do data exchange de Flows.

Monta o KeyStore a partir das settings e injeta no coordinator. O
KeyStore é um valor explícito (guardado em app.state), não um singleton
de módulo.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from app.coordinators.whatsapp.flows.handler import (
    FlowExchangeHandler,
    UnhandledFlowBusinessHandler,
)
from app.infra.crypto.errors import ConfigurationError
from app.infra.crypto.key_store import KeyStore
from app.infra.crypto.keys import PrivateKeyMaterial
from config.settings import FlowSettings, get_flow_settings

if TYPE_CHECKING:
    from app.protocols.crypto import FlowBusinessHandler

logger = logging.getLogger(__name__)


def load_key_material(settings: FlowSettings | None = None) -> PrivateKeyMaterial:
    """Lê o material da chave (inline ou arquivo) das settings.

    Raises:
        ConfigurationError: Sem chave configurada ou arquivo ilegível
    """
    settings = settings or get_flow_settings()
    pem = settings.private_key
    if not pem.strip() and settings.private_key_path.strip():
        try:
            pem = Path(settings.private_key_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot read private key file: {settings.private_key_path}"
            ) from exc
    if not pem.strip():
        raise ConfigurationError("Flow private key is not configured")

    return PrivateKeyMaterial.from_text(
        pem,
        passphrase=settings.private_key_passphrase or None,
        key_format=settings.private_key_format,
    )


def create_key_store(settings: FlowSettings | None = None) -> KeyStore:
    """Carrega o KeyStore eagerly (falha rápido no startup).

    Raises:
        ConfigurationError: Chave inválida ou passphrase errada
    """
    return KeyStore.load(load_key_material(settings))


def rotate_key_store(key_store: KeyStore, settings: FlowSettings | None = None) -> int:
    """Recarrega a chave das settings e troca a chave ativa.

    Returns:
        Nova geração da chave

    Raises:
        ConfigurationError: Novo material inválido (chave anterior segue ativa)
    """
    return key_store.rotate(load_key_material(settings))


def create_flow_exchange_handler(
    key_store: KeyStore,
    business_handler: FlowBusinessHandler | None = None,
    settings: FlowSettings | None = None,
) -> FlowExchangeHandler:
    """Cria o coordinator com o KeyStore e a etapa de negócio injetados."""
    settings = settings or get_flow_settings()
    if business_handler is None:
        logger.warning(
            "flow_business_handler_missing",
            extra={"component": "bootstrap", "fallback": "unhandled"},
        )
        business_handler = UnhandledFlowBusinessHandler()
    return FlowExchangeHandler(
        key_store=key_store,
        business_handler=business_handler,
        business_timeout_seconds=settings.business_timeout_seconds,
    )
