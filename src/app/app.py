"""Entrypoint do endpoint de data exchange de WhatsApp Flows.

Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from app.bootstrap import (
    SERVICE_NAME,
    create_flow_exchange_handler,
    create_key_store,
    initialize_app,
    validate_runtime_settings,
)
from app.infra.crypto.errors import ConfigurationError
from config.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from contextlib import AbstractAsyncContextManager

    from app.protocols.crypto import FlowBusinessHandler

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)


def _build_lifespan(
    business_handler: FlowBusinessHandler | None,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Carrega a chave privada antes de aceitar tráfego.

        Chave inválida é fatal: o serviço não sobe servindo 421.
        """
        logger.info("app_starting", extra={"service": SERVICE_NAME})
        validate_runtime_settings()

        try:
            key_store = create_key_store()
        except ConfigurationError as exc:
            logger.critical(
                "flow_key_load_failed",
                extra={"component": "bootstrap", "error": str(exc)},
            )
            raise

        app.state.key_store = key_store
        app.state.flow_handler = create_flow_exchange_handler(key_store, business_handler)

        yield

        logger.info("app_shutting_down", extra={"service": SERVICE_NAME})

    return lifespan


def create_app(business_handler: FlowBusinessHandler | None = None) -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Args:
        business_handler: Etapa de negócio injetada no coordinator

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="WhatsApp Flow Exchange",
        description="Endpoint de data exchange criptografado de WhatsApp Flows",
        version="1.0.0",
        lifespan=_build_lifespan(business_handler),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": SERVICE_NAME})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting flow exchange in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
