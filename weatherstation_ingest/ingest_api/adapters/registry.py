"""Registro de adapters por station type.

Ciclo de vida en dos fases:
1. Arranque (un solo thread): llamadas a `register`.
2. `freeze()`: el mapa pasa a ser de sólo lectura y `lookup`/`list_all`
   pueden llamarse concurrentemente sin sincronización.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from ..errors import RegistryFrozenError, UnknownStationType
from .base import ProtocolAdapter
from .ecowitt import EcowittAdapter
from .wunderground import WundergroundAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Mapa station_type -> adapter."""

    def __init__(self) -> None:
        self._adapters: Mapping[str, ProtocolAdapter] = {}
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, adapter: ProtocolAdapter) -> None:
        """Asocia el station type del adapter; el último registro gana.

        Raises:
            RegistryFrozenError: si el registro ya fue congelado
        """
        station_type = adapter.station_type()
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"Cannot register adapter '{station_type}': registry is frozen"
                )
            adapters: Dict[str, ProtocolAdapter] = dict(self._adapters)
            if station_type in adapters:
                logger.warning(
                    "[Registry] Replacing adapter station_type=%s old=%r new=%r",
                    station_type,
                    adapters[station_type],
                    adapter,
                )
            adapters[station_type] = adapter
            self._adapters = adapters

        logger.info(
            "[Registry] Registered adapter station_type=%s endpoint=%s",
            station_type,
            adapter.endpoint_path(),
        )

    def freeze(self) -> None:
        """Cierra la fase de registro. Idempotente."""
        with self._lock:
            if self._frozen:
                return
            self._adapters = MappingProxyType(dict(self._adapters))
            self._frozen = True
        logger.info("[Registry] Frozen with %d adapters", len(self._adapters))

    def lookup(self, station_type: str) -> ProtocolAdapter:
        """Adapter para el station type.

        Raises:
            UnknownStationType: si no hay adapter registrado (nunca hay default)
        """
        adapter = self._adapters.get(station_type)
        if adapter is None:
            raise UnknownStationType(station_type)
        return adapter

    def list_all(self) -> List[ProtocolAdapter]:
        """Todos los adapters, sin orden garantizado."""
        return list(self._adapters.values())

    def __contains__(self, station_type: object) -> bool:
        return station_type in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)


def build_default_registry() -> AdapterRegistry:
    """Registro con todos los protocolos soportados, ya congelado."""
    registry = AdapterRegistry()
    registry.register(EcowittAdapter())
    registry.register(WundergroundAdapter())
    registry.freeze()
    return registry


# Singleton
_registry: Optional[AdapterRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> AdapterRegistry:
    """Registro de proceso (se construye una vez)."""
    global _registry

    if _registry is not None:
        return _registry

    with _registry_lock:
        if _registry is None:
            _registry = build_default_registry()
    return _registry
