"""Credential store: API key bindings and TOTP secrets in PostgreSQL.

The gate and the lifecycle manager only see the CredentialStore protocol.
PostgresCredentialStore shares one connection across all request threads
and serializes every query through a lock; uniqueness is still enforced by
the unique indexes in schema.sql, not by the lock.
"""

from __future__ import annotations

import logging
import threading
from importlib import resources
from typing import Any, Protocol

import psycopg
import psycopg.errors
import psycopg.rows
from psycopg.conninfo import make_conninfo

from gauth.config import DBSettings
from gauth.errors import DuplicateEntryError, StoreError
from gauth.models import SecretRecord

logger = logging.getLogger(__name__)

# Unique index names from schema.sql
API_KEY_CONSTRAINT = "api_keys_api_key_idx"
IDENT_CONSTRAINT = "secrets_ident_idx"
SECRET_CONSTRAINT = "secrets_secret_idx"


class CredentialStore(Protocol):
    def add_api_key(self, host: str, api_key: str) -> None: ...

    def get_host_for_api_key(self, api_key: str) -> str | None: ...

    def create_secret(self, ident: str, secret: str) -> int: ...

    def delete_secret(self, ident: str) -> int: ...

    def get_secret(self, ident: str) -> SecretRecord | None: ...


def load_schema() -> str:
    """Return the bundled schema.sql."""
    return resources.files("gauth").joinpath("schema.sql").read_text()


class PostgresCredentialStore:
    """CredentialStore over a single lock-guarded psycopg connection."""

    def __init__(self, conninfo: str) -> None:
        self._conninfo = conninfo
        self._conn: psycopg.Connection[dict[str, Any]] | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, db: DBSettings) -> PostgresCredentialStore:
        return cls(make_conninfo(**db.conninfo_params()))

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def _connection(self) -> psycopg.Connection[dict[str, Any]]:
        # Caller must hold self._lock.
        if self._conn is None or self._conn.closed or self._conn.broken:
            if self._conn is not None:
                logger.warning("Database connection lost, reconnecting")
            self._conn = psycopg.connect(
                self._conninfo,
                autocommit=True,
                row_factory=psycopg.rows.dict_row,
            )
        return self._conn

    def _run(
        self,
        query: str,
        params: tuple[Any, ...] | None = None,
        *,
        fetch: bool = False,
    ) -> tuple[list[dict[str, Any]], int]:
        """Execute one statement under the store lock.

        Returns (rows, rowcount). psycopg errors are translated into
        DuplicateEntryError for unique violations and StoreError otherwise.
        """
        with self._lock:
            try:
                conn = self._connection()
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall() if fetch and cur.description is not None else []
                    return rows, cur.rowcount
            except psycopg.errors.UniqueViolation as e:
                constraint = e.diag.constraint_name if e.diag else None
                raise DuplicateEntryError(f"unique constraint violated: {constraint}", constraint) from e
            except psycopg.Error as e:
                raise StoreError(str(e)) from e

    def open(self) -> None:
        """Connect eagerly so a bad DSN fails at startup."""
        with self._lock:
            try:
                self._connection()
            except psycopg.Error as e:
                raise StoreError(str(e)) from e

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def ping(self) -> bool:
        rows, _ = self._run("SELECT 1 AS ok", fetch=True)
        return bool(rows) and rows[0]["ok"] == 1

    def apply_schema(self) -> None:
        self._run(load_schema())

    # ------------------------------------------------------------------
    # API keys
    # ------------------------------------------------------------------

    def add_api_key(self, host: str, api_key: str) -> None:
        self._run(
            "INSERT INTO api_keys (host, api_key) VALUES (%s, %s)",
            (host, api_key),
        )

    def get_host_for_api_key(self, api_key: str) -> str | None:
        rows, _ = self._run(
            "SELECT host FROM api_keys WHERE api_key = %s",
            (api_key,),
            fetch=True,
        )
        return rows[0]["host"] if rows else None

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    def create_secret(self, ident: str, secret: str) -> int:
        rows, _ = self._run(
            "INSERT INTO secrets (ident, secret) VALUES (%s, %s) RETURNING id",
            (ident, secret),
            fetch=True,
        )
        return rows[0]["id"]

    def delete_secret(self, ident: str) -> int:
        _, count = self._run("DELETE FROM secrets WHERE ident = %s", (ident,))
        return max(count, 0)

    def get_secret(self, ident: str) -> SecretRecord | None:
        rows, _ = self._run(
            "SELECT id, ident, secret FROM secrets WHERE ident = %s",
            (ident,),
            fetch=True,
        )
        if not rows:
            return None
        return SecretRecord(**rows[0])
