"""ProtocolAdapter - Interface base para los protocolos de estación.

Cada fabricante implementa esta interface para convertir su formato
clave-valor en una observación canónica, un descriptor de estación y los
descriptores de sensor del reporte.
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..core.domain import FieldIssue, ParsedReport, SensorDescriptor, SensorKind
from .units import identity

# Multimap de parámetros: dict[str, str], dict[str, list[str]],
# urllib.parse.parse_qs o los MultiDict de Starlette.
Params = Mapping[str, Any]

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def first_value(params: Params, key: str) -> str:
    """Primer valor de `key`, o "" si falta."""
    getlist = getattr(params, "getlist", None)
    if callable(getlist):
        values = getlist(key)
        return str(values[0]) if values else ""

    value = params.get(key)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else ""
    return str(value)


class ParamReader:
    """Lectura permisiva de parámetros.

    Claves ausentes devuelven None; valores malformados también, y quedan
    registrados como FieldIssue. Nunca lanza.
    """

    def __init__(self, params: Params):
        self._params = params
        self._issue_keys: Set[str] = set()
        self.issues: List[FieldIssue] = []

    def get(self, key: str) -> str:
        return first_value(self._params, key)

    def has(self, key: str) -> bool:
        return self.get(key) != ""

    def _issue(self, key: str, raw: str, reason: str) -> None:
        if key in self._issue_keys:
            return
        self._issue_keys.add(key)
        self.issues.append(FieldIssue(key=key, raw=raw, reason=reason))

    def parse_float(self, key: str) -> Optional[float]:
        raw = self.get(key)
        if raw == "":
            return None
        # Sólo decimal ASCII y finito: float() también acepta "1_000", " 45 " o "nan"
        value = float(raw) if _FLOAT_RE.fullmatch(raw) else None
        if value is None or not math.isfinite(value):
            self._issue(key, raw, "not a float")
            return None
        return value

    def parse_int(self, key: str) -> Optional[int]:
        raw = self.get(key)
        if raw == "":
            return None
        if not _INT_RE.fullmatch(raw):
            self._issue(key, raw, "not an integer")
            return None
        return int(raw)

    def get_float(self, key: str) -> float:
        value = self.parse_float(key)
        return 0.0 if value is None else value

    def get_int(self, key: str) -> int:
        value = self.parse_int(key)
        return 0 if value is None else value

    def get_dual(self, key: str, convert: Callable[[float], float]) -> Tuple[float, float]:
        """(valor nativo, valor SI). Ausente o malformado: (0.0, 0.0).

        El SI no se deriva del cero por defecto: 0 °F ausente no es -17.8 °C.
        """
        value = self.parse_float(key)
        if value is None:
            return 0.0, 0.0
        return value, convert(value)

    def get_timestamp(self, key: str, formats: Sequence[str]) -> Optional[datetime]:
        """Prueba los formatos en orden; gana el primero que parsea (UTC).

        Los campos son de ancho fijo: "2024-1-5 1:2:3" no es válido.
        """
        raw = self.get(key)
        if raw == "":
            return None
        for fmt in formats:
            try:
                parsed = datetime.strptime(raw, fmt)
            except ValueError:
                continue
            if parsed.strftime(fmt) == raw:
                return parsed.replace(tzinfo=timezone.utc)
        self._issue(key, raw, "unknown timestamp format")
        return None


@dataclass(frozen=True)
class SensorSpec:
    """Entrada del catálogo de sensores de un protocolo."""
    remote_id: str
    kind: SensorKind
    location: str
    name: str
    convert: Callable[[float], float] = identity
    integer: bool = False

    def descriptor(self) -> SensorDescriptor:
        return SensorDescriptor(
            remote_id=self.remote_id,
            kind=self.kind.value,
            location=self.location,
            name=self.name,
        )


def collect_sensors(
    reader: ParamReader,
    catalog: Iterable[SensorSpec],
) -> Tuple[Dict[str, SensorDescriptor], Dict[str, float]]:
    """Descriptores y medidas SI para los sensores presentes en el reporte.

    Un sensor presente con valor malformado se describe igual (su identidad
    se reconcilia) pero no produce medida.
    """
    sensors: Dict[str, SensorDescriptor] = {}
    measurements: Dict[str, float] = {}

    for spec in catalog:
        if not reader.has(spec.remote_id):
            continue
        sensors[spec.remote_id] = spec.descriptor()

        if spec.integer:
            raw_int = reader.parse_int(spec.remote_id)
            raw_value = None if raw_int is None else float(raw_int)
        else:
            raw_value = reader.parse_float(spec.remote_id)
        if raw_value is not None:
            measurements[spec.remote_id] = spec.convert(raw_value)

    return sensors, measurements


class ProtocolAdapter(ABC):
    """Interface común para todos los protocolos de estación.

    `parse` debe ser una función pura de sus parámetros: sin I/O ni estado
    compartido, para que reintentar la ingesta sea idempotente.
    """

    @abstractmethod
    def endpoint_path(self) -> str:
        """Ruta HTTP en la que el fabricante empuja sus reportes."""

    @abstractmethod
    def station_type(self) -> str:
        """Tag con el que se registra el adapter."""

    @abstractmethod
    def parse(self, params: Params) -> ParsedReport:
        """Convierte los parámetros del reporte a su forma canónica."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(station_type={self.station_type()!r}, endpoint={self.endpoint_path()!r})"
