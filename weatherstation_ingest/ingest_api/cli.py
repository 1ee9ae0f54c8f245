"""CLI entry point: servidor HTTP y migraciones."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import uvicorn

from ..common.config import get_settings
from ..common.db import dispose_engine, get_engine
from .infrastructure.persistence import ensure_schema

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="weatherstation-ingest",
        description="Weather station telemetry ingest service",
    )
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP ingest server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--workers", type=int, default=1)

    sub.add_parser("migrate", help="apply the database schema and exit")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    if args.command == "migrate":
        try:
            ensure_schema(get_engine(settings))
        finally:
            dispose_engine()
        logger.info("Migrations applied")
        return 0

    logger.info("Weather ingest server starting on %s:%d", args.host, args.port)
    uvicorn.run(
        "weatherstation_ingest.ingest_api.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        workers=args.workers,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
