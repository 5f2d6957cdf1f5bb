"""
Configuration for the feed generator and the firehose ingest worker.

Everything is read from the environment (a local .env is loaded first).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PG_DSN = "dbname=skafeed user=skafeed password=skafeedpass host=localhost port=5432"
DEFAULT_SUBSCRIPTION_ENDPOINT = "wss://bsky.network"
DEFAULT_LOOKBACK_HOURS = 48
DEFAULT_PORT = 3000


class LoggingConfig:
    """Logging configuration shared by the worker and the web app."""

    LEVEL = logging.INFO
    FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: Optional[str] = None) -> None:
    resolved = logging.getLevelName((level or "").upper()) if level else LoggingConfig.LEVEL
    if not isinstance(resolved, int):
        resolved = LoggingConfig.LEVEL
    logging.basicConfig(level=resolved, format=LoggingConfig.FORMAT)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    pg_dsn: str = DEFAULT_PG_DSN
    index_backend: str = "postgres"
    port: int = DEFAULT_PORT
    listen_host: str = "0.0.0.0"
    hostname: str = "localhost"
    service_did: str = "did:web:localhost"
    publisher_did: Optional[str] = None
    subscription_endpoint: str = DEFAULT_SUBSCRIPTION_ENDPOINT
    replay_path: Optional[str] = None
    lookback_hours: int = DEFAULT_LOOKBACK_HOURS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        hostname = os.environ.get("FEEDGEN_HOSTNAME", "localhost").strip() or "localhost"
        return cls(
            pg_dsn=os.environ.get("PG_DSN", DEFAULT_PG_DSN),
            index_backend=os.environ.get("INDEX_BACKEND", "postgres").strip().lower() or "postgres",
            port=_env_int("FEEDGEN_PORT", DEFAULT_PORT),
            listen_host=os.environ.get("FEEDGEN_LISTENHOST", "0.0.0.0"),
            hostname=hostname,
            service_did=os.environ.get("FEEDGEN_SERVICE_DID", "").strip() or f"did:web:{hostname}",
            publisher_did=os.environ.get("FEEDGEN_PUBLISHER_DID", "").strip() or None,
            subscription_endpoint=os.environ.get("FEEDGEN_SUBSCRIPTION_ENDPOINT", DEFAULT_SUBSCRIPTION_ENDPOINT),
            replay_path=os.environ.get("FIREHOSE_REPLAY_PATH", "").strip() or None,
            lookback_hours=max(1, _env_int("FEED_LOOKBACK_HOURS", DEFAULT_LOOKBACK_HOURS)),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )
