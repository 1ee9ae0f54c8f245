from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from .config import Settings, get_settings


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def build_engine(database_url: str) -> Engine:
    """Crea un Engine para la URL dada.

    SQLite se usa en desarrollo y tests: se habilita el uso desde varios
    threads (FastAPI ejecuta los handlers síncronos en un threadpool) y un
    busy timeout para que los writers concurrentes esperen en vez de fallar.
    """
    url = make_url(database_url)
    connect_args: Dict[str, Any] = {}
    if url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, "timeout": 30}

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        connect_args=connect_args,
        future=True,
    )


def get_engine(settings: Optional[Settings] = None) -> Engine:
    global _engine

    if _engine is not None:
        return _engine

    settings = settings or get_settings()
    url = make_url(settings.database_url)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Create engine backend=%s host=%s db=%s user=%s",
        url.get_backend_name(),
        url.host,
        url.database,
        url.username,
    )

    engine = build_engine(settings.database_url)

    # Test de conexión: ayuda a ver en logs si el servicio realmente llega a la BD
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Connection test OK")
    except Exception:
        logger.exception("[DB] Connection test FAILED")

    _engine = engine
    return _engine


def dispose_engine() -> None:
    """Cierra el pool del engine singleton (shutdown y tests)."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None
