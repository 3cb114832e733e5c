"""KeyStore da chave privada de Flows com rotação atômica.

A chave ativa fica em um snapshot imutável (ActiveKey). Leitores pegam a
referência uma vez e usam o snapshot inteiro; rotate() constrói o novo
snapshot fora da seção crítica e apenas troca a referência.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric import rsa

from .keys import PrivateKeyMaterial, detect_key_format, load_private_key, unwrap_aes_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActiveKey:
    """Snapshot imutável da chave em uso."""

    private_key: rsa.RSAPrivateKey = field(repr=False)
    material: PrivateKeyMaterial
    generation: int

    def unwrap(self, wrapped_key: bytes) -> bytes:
        """Desembrulha a chave AES de sessão com esta geração de chave."""
        return unwrap_aes_key(
            self.private_key,
            wrapped_key,
            key_generation=self.generation,
        )


def _activate(material: PrivateKeyMaterial, generation: int) -> ActiveKey:
    return ActiveKey(
        private_key=load_private_key(material),
        material=material,
        generation=generation,
    )


class KeyStore:
    """Dono da chave privada do servidor.

    Não é singleton: cada instância isola sua própria chave (ex.: por
    tenant). Use KeyStore.load() para construir.
    """

    __slots__ = ("_active", "_rotation_lock")

    def __init__(self, active: ActiveKey) -> None:
        self._active = active
        self._rotation_lock = threading.Lock()

    @classmethod
    def load(cls, material: PrivateKeyMaterial) -> KeyStore:
        """Carrega a chave eagerly (geração 1).

        Raises:
            ConfigurationError: Se a chave não puder ser usada
        """
        active = _activate(material, generation=1)
        logger.info(
            "flow_key_loaded",
            extra={
                "component": "key_store",
                "key_generation": active.generation,
                "key_format": str(detect_key_format(material.pem)),
            },
        )
        return cls(active)

    @property
    def generation(self) -> int:
        """Geração da chave ativa (apenas diagnóstico)."""
        return self._active.generation

    def current(self) -> ActiveKey:
        """Retorna o snapshot ativo. Ler uma vez por exchange."""
        return self._active

    def unwrap(self, wrapped_key: bytes) -> bytes:
        """Desembrulha a chave AES com a chave ativa.

        Raises:
            KeyMismatchError: Se a chave não corresponder
        """
        return self.current().unwrap(wrapped_key)

    def rotate(self, material: PrivateKeyMaterial) -> int:
        """Substitui a chave ativa de forma atômica.

        O novo material é validado antes da troca; em caso de falha a
        chave anterior continua ativa.

        Returns:
            Nova geração da chave

        Raises:
            ConfigurationError: Se o novo material for inválido
        """
        with self._rotation_lock:
            previous = self._active
            active = _activate(material, generation=previous.generation + 1)
            self._active = active

        logger.info(
            "flow_key_rotated",
            extra={
                "component": "key_store",
                "previous_generation": previous.generation,
                "key_generation": active.generation,
            },
        )
        return active.generation
