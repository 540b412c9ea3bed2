"""PostgreSQL key-value backend."""

import logging
from collections.abc import Iterator
from typing import Any

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from flowvault.config import PostgresConfig
from flowvault.exceptions import StoreError
from flowvault.store.base import KeyValueStore

logger = logging.getLogger(__name__)


class PostgresKeyValueStore(KeyValueStore):
    """Key-value store persisted in a single PostgreSQL table.

    The connection runs with autocommit off, so every statement after a
    commit or rollback implicitly opens the next transaction; :meth:`begin`
    only marks the boundary.
    """

    def __init__(
        self,
        config: PostgresConfig | None = None,
        connection: Any = None,
    ) -> None:
        """Initialize the store.

        Parameters
        ----------
        config : PostgresConfig | None
            Connection settings and table name.
        connection : Any
            Existing psycopg connection (a new one is opened when omitted).
        """
        self.config = config or PostgresConfig()
        try:
            self._conn = (
                connection
                if connection is not None
                else psycopg.connect(self.config.connection_string)
            )
        except psycopg.Error as exc:
            raise StoreError(f"Cannot connect to PostgreSQL: {exc}") from exc
        self._table = sql.Identifier(self.config.table)
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        query = sql.SQL(
            "CREATE TABLE IF NOT EXISTS {} ("
            "namespace TEXT NOT NULL, "
            "key TEXT NOT NULL, "
            "value JSONB NOT NULL, "
            "PRIMARY KEY (namespace, key))"
        ).format(self._table)
        self._execute(query)
        self._conn.commit()
        logger.info("PostgreSQL store ready (table=%s)", self.config.table)

    def _execute(self, query: sql.Composable, params: tuple = ()) -> Any:
        try:
            return self._conn.execute(query, params)
        except psycopg.Error as exc:
            raise StoreError(f"PostgreSQL query failed: {exc}") from exc

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        query = sql.SQL("SELECT value FROM {} WHERE namespace = %s AND key = %s").format(
            self._table
        )
        row = self._execute(query, (namespace, key)).fetchone()
        return row[0] if row else default

    def put(self, namespace: str, key: str, value: Any) -> None:
        query = sql.SQL(
            "INSERT INTO {} (namespace, key, value) VALUES (%s, %s, %s) "
            "ON CONFLICT (namespace, key) DO UPDATE SET value = EXCLUDED.value"
        ).format(self._table)
        self._execute(query, (namespace, key, Jsonb(value)))

    def items(self, namespace: str) -> Iterator[tuple[str, Any]]:
        query = sql.SQL("SELECT key, value FROM {} WHERE namespace = %s ORDER BY key").format(
            self._table
        )
        for key, value in self._execute(query, (namespace,)).fetchall():
            yield key, value

    def begin(self) -> None:
        pass

    def commit(self) -> None:
        try:
            self._conn.commit()
        except psycopg.Error as exc:
            raise StoreError(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        try:
            self._conn.rollback()
        except psycopg.Error as exc:
            raise StoreError(f"Rollback failed: {exc}") from exc

    def close(self) -> None:
        self._conn.close()
        logger.info("PostgreSQL store closed")
