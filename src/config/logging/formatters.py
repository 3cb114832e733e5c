"""Formatter JSON para logs estruturados do endpoint de Flows."""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Campos presentes em todo log estruturado
REQUIRED_LOG_FIELDS = frozenset(
    {
        "asctime",
        "levelname",
        "name",
        "message",
        "exchange_id",
        "service",
    }
)

FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Exemplo de output:
        {
            "asctime": "2026-10-17T10:30:00",
            "level": "ERROR",
            "logger": "app.coordinators.whatsapp.flows.handler",
            "message": "flow_exchange_failed",
            "exchange_id": "abc-123",
            "service": "flow_exchange",
            "failure_kind": "key_mismatch",
            "key_generation": 2
        }
    """
    format_string = " ".join(f"%({field})s" for field in sorted(REQUIRED_LOG_FIELDS))
    return JsonFormatter(format_string, rename_fields=FIELD_RENAME_MAP)
