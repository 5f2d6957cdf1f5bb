"""Postgres schema management for the ska feed index.

Schema creation is idempotent (CREATE IF NOT EXISTS) so both the ingest
worker and the web app can call it on startup.
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg


SCHEMA_STATEMENTS: list[str] = [
    # Indexed posts (one row per matching post uri)
    """
    CREATE TABLE IF NOT EXISTS post (
      uri TEXT PRIMARY KEY,
      cid TEXT NOT NULL,
      indexed_at TIMESTAMPTZ NOT NULL,
      like_count INTEGER NOT NULL DEFAULT 0 CHECK (like_count >= 0)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_post_indexed_at ON post (indexed_at DESC, uri DESC);",
    "CREATE INDEX IF NOT EXISTS idx_post_like_count ON post (like_count DESC, indexed_at DESC) WHERE like_count > 0;",
    # Stream position, one row per upstream service
    """
    CREATE TABLE IF NOT EXISTS sub_state (
      service TEXT PRIMARY KEY,
      cursor BIGINT NOT NULL,
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
]


def ensure_postgres_schema(pg_dsn: str, *, statements: Optional[Iterable[str]] = None) -> None:
    """Ensure Postgres schema exists."""
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
