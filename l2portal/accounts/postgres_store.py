"""PostgreSQL implementation of AccountStore (accounts table)."""

import logging
import os
import threading
from typing import Any, Optional

import psycopg2

from l2portal.accounts.base import AccountConflict, AccountStore, AccountStoreError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _get_conn_params(config: dict) -> dict:
    """Build connection params from database config, with PG* env overrides for missing keys."""
    pg = config or {}
    return {
        "host": pg.get("host") or os.environ.get("PGHOST", "127.0.0.1"),
        "port": int(pg.get("port") or os.environ.get("PGPORT", "5432")),
        "dbname": pg.get("database") or pg.get("db") or os.environ.get("PGDATABASE", "l2db"),
        "user": pg.get("user") or os.environ.get("PGUSER", "postgres"),
        "password": pg.get("password") or os.environ.get("PGPASSWORD", ""),
    }


def _ensure_table(conn) -> None:
    """Create accounts if it does not exist. The login server may own this table already."""
    with conn.cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS accounts (
                id serial PRIMARY KEY,
                login text NOT NULL UNIQUE,
                password text NOT NULL
            )
        """)
    conn.commit()


class PostgresAccountStore(AccountStore):
    """One lazily opened connection, serialized by a lock; reconnects after failures."""

    def __init__(self, db_config: dict, ensure_table: bool = True) -> None:
        self._config = db_config
        self._ensure_table = ensure_table
        self._conn: Any = None
        self._lock = threading.Lock()

    def _connect(self) -> Any:
        if self._conn is not None:
            try:
                self._conn.rollback()
                return self._conn
            except psycopg2.Error:
                self._conn = None
        try:
            self._conn = psycopg2.connect(**_get_conn_params(self._config))
            if self._ensure_table:
                _ensure_table(self._conn)
            return self._conn
        except psycopg2.Error as e:
            self._conn = None
            raise AccountStoreError(f"connect failed: {e}") from e

    def account_exists(self, login: str) -> bool:
        with self._lock:
            conn = self._connect()
            try:
                with conn.cursor() as cur:
                    cur.execute("SELECT id FROM accounts WHERE login = %s", (login,))
                    return cur.fetchone() is not None
            except psycopg2.Error as e:
                self._drop()
                raise AccountStoreError(f"account lookup failed: {e}") from e

    def create_account(self, login: str, password: str) -> Optional[int]:
        with self._lock:
            conn = self._connect()
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        "INSERT INTO accounts (login, password) VALUES (%s, %s) RETURNING id",
                        (login, password),
                    )
                    row = cur.fetchone()
                conn.commit()
                return row[0] if row else None
            except psycopg2.Error as e:
                if getattr(e, "pgcode", None) == UNIQUE_VIOLATION:
                    conn.rollback()
                    raise AccountConflict(login) from e
                self._drop()
                raise AccountStoreError(f"account insert failed: {e}") from e

    def _drop(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except psycopg2.Error as e:
            logger.debug("close after error: %s", e)
        self._conn = None

    def close(self) -> None:
        with self._lock:
            self._drop()
