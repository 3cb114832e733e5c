"""Settings do endpoint de WhatsApp Flows.

Material da chave privada usada no data exchange. A chave pode vir
inline (env com `\\n` escapado, como gerado por scripts/flow_keys.py)
ou de um arquivo PEM.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

VALID_KEY_FORMATS = ("auto", "pkcs1", "pkcs8")


@dataclass(frozen=True)
class FlowSettings:
    """Configurações do data exchange de Flows.

    Attributes:
        private_key: Chave privada PEM inline
        private_key_path: Caminho de arquivo PEM (usado se private_key vazio)
        private_key_passphrase: Passphrase da chave (vazio = não cifrada)
        private_key_format: auto|pkcs1|pkcs8
        business_timeout_seconds: Limite da etapa de negócio por exchange
    """

    private_key: str = field(default="", repr=False)
    private_key_path: str = ""
    private_key_passphrase: str = field(default="", repr=False)
    private_key_format: str = "auto"
    business_timeout_seconds: float = 8.0

    @property
    def has_private_key(self) -> bool:
        """True se alguma fonte de chave foi configurada."""
        return bool(self.private_key.strip() or self.private_key_path.strip())

    def validate(self) -> list[str]:
        """Valida configurações mínimas.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not self.has_private_key:
            errors.append(
                "WHATSAPP_FLOW_PRIVATE_KEY ou WHATSAPP_FLOW_PRIVATE_KEY_PATH não configurado"
            )

        if self.private_key_format.lower() not in VALID_KEY_FORMATS:
            errors.append(
                "WHATSAPP_FLOW_PRIVATE_KEY_FORMAT deve ser 'auto', 'pkcs1' ou 'pkcs8'"
            )

        if self.business_timeout_seconds <= 0:
            errors.append("WHATSAPP_FLOW_BUSINESS_TIMEOUT_SECONDS deve ser > 0")

        return errors


def _load_from_env() -> FlowSettings:
    """Carrega FlowSettings a partir de variáveis de ambiente."""
    return FlowSettings(
        private_key=os.getenv("WHATSAPP_FLOW_PRIVATE_KEY", ""),
        private_key_path=os.getenv("WHATSAPP_FLOW_PRIVATE_KEY_PATH", ""),
        private_key_passphrase=os.getenv("WHATSAPP_FLOW_PASSPHRASE", ""),
        private_key_format=os.getenv("WHATSAPP_FLOW_PRIVATE_KEY_FORMAT", "auto").lower(),
        business_timeout_seconds=float(
            os.getenv("WHATSAPP_FLOW_BUSINESS_TIMEOUT_SECONDS", "8")
        ),
    )


@lru_cache(maxsize=1)
def get_flow_settings() -> FlowSettings:
    """Retorna instância cacheada de FlowSettings."""
    return _load_from_env()
