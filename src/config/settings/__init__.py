"""Agregador de settings do serviço de Flow exchange.

Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

from config.settings.base import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.flows import FlowSettings, get_flow_settings

__all__ = [
    "BaseSettings",
    "Environment",
    "FlowSettings",
    "get_base_settings",
    "get_flow_settings",
]
