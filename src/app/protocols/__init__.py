"""Protocolos e contratos do core da aplicação."""

from .crypto import ActiveKeyProtocol, FlowBusinessHandler, KeyStoreProtocol

__all__ = [
    "ActiveKeyProtocol",
    "FlowBusinessHandler",
    "KeyStoreProtocol",
]
