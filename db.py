# db.py
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Dict, Optional

import psycopg2
import psycopg2.extras

logger = logging.getLogger(__name__)

DB_PATH = os.getenv("CV_MAKER_DB_PATH", "drafts.db")


def is_postgres(database_url: Optional[str] = None) -> bool:
    if database_url is None:
        database_url = os.getenv("DATABASE_URL")
    return bool((database_url or "").strip())


def _sqlite_conn(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row  # dict-like rows
    return conn


def _pg_conn(database_url: str):
    db_url = database_url.strip()
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)

    return psycopg2.connect(
        db_url,
        sslmode="require",
        cursor_factory=psycopg2.extras.RealDictCursor,
    )


def _adapt_sql(sql: str, postgres: bool) -> str:
    """
    All SQL here is written with %s placeholders.
    For SQLite, we auto-convert %s -> ?
    """
    return sql if postgres else sql.replace("%s", "?")


class SQLStorage:
    """
    Flat key -> text blob storage in a single kv_store table.

    Local dev: SQLite file (CV_MAKER_DB_PATH, default drafts.db)
    Production: Postgres via DATABASE_URL
    """

    def __init__(self, db_path: str = DB_PATH, database_url: Optional[str] = None):
        self.db_path = db_path
        self.database_url = database_url if database_url is not None else (os.getenv("DATABASE_URL") or "")
        self.postgres = is_postgres(self.database_url)
        self._ready = False

    def _connect(self):
        return _pg_conn(self.database_url) if self.postgres else _sqlite_conn(self.db_path)

    @contextmanager
    def tx(self):
        """
        Transaction helper. Commits on success, rollbacks on exception.
        """
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _execute(self, conn, sql: str, params=()):
        cur = conn.cursor()
        cur.execute(_adapt_sql(sql, self.postgres), params)
        return cur

    def _ensure_table(self) -> None:
        if self._ready:
            return
        with self.tx() as conn:
            self._execute(
                conn,
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """,
            )
        self._ready = True
        logger.info("[DB] kv_store ready (%s)", "postgres" if self.postgres else self.db_path)

    def get_item(self, key: str) -> Optional[str]:
        self._ensure_table()
        with self.tx() as conn:
            row = self._execute(conn, "SELECT value FROM kv_store WHERE key = %s", (key,)).fetchone()
        if not row:
            return None
        return row["value"]

    def set_item(self, key: str, value: str) -> None:
        self._ensure_table()
        with self.tx() as conn:
            self._execute(
                conn,
                """
                INSERT INTO kv_store (key, value) VALUES (%s, %s)
                ON CONFLICT (key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def remove_item(self, key: str) -> None:
        self._ensure_table()
        with self.tx() as conn:
            self._execute(conn, "DELETE FROM kv_store WHERE key = %s", (key,))


class MemoryStorage:
    """In-process storage with the same get/set/remove surface (tests)."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})
        self.writes = 0

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.writes += 1
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)
