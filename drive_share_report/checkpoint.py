"""
SQLite checkpoint store for resumable report passes.

Schema:
- cursor(id INTEGER PRIMARY KEY CHECK (id = 1), page_token TEXT, query TEXT, sink TEXT, updated_at TEXT)
  page_token of the page currently being processed (NULL = first page), and the
  listing query and sink identity the checkpoint belongs to
- processed(file_id TEXT PRIMARY KEY, appended_at TEXT)
  every file id already appended to the sink

One connection is held per store; call close() when done.
"""
from __future__ import annotations
import sqlite3
from datetime import datetime, timezone
from typing import Optional, Set


class CheckpointMismatch(ValueError):
    """The stored checkpoint was written for a different query or sink."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CheckpointStore:
    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path)
        self._conn.execute("PRAGMA journal_mode = WAL;")
        self._conn.execute("PRAGMA synchronous = NORMAL;")
        self._ensure_tables()

    def close(self):
        self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _ensure_tables(self):
        with self._conn as conn:
            conn.execute("""
            CREATE TABLE IF NOT EXISTS cursor (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                page_token TEXT,
                query TEXT,
                sink TEXT,
                updated_at TEXT
            );
            """)
            conn.execute("""
            CREATE TABLE IF NOT EXISTS processed (
                file_id TEXT PRIMARY KEY,
                appended_at TEXT
            );
            """)

    def reset(self):
        with self._conn as conn:
            conn.execute("DELETE FROM cursor")
            conn.execute("DELETE FROM processed")

    def begin(self, query: str, sink: str) -> Optional[str]:
        """
        Bind the checkpoint to (query, sink) and return the saved page token.
        Raises CheckpointMismatch if it was written for another query or sink.
        """
        with self._conn as conn:
            row = conn.execute("SELECT page_token, query, sink FROM cursor WHERE id = 1").fetchone()
            if row is None:
                conn.execute("INSERT INTO cursor (id, page_token, query, sink, updated_at) VALUES (1, NULL, ?, ?, ?)",
                             (query, sink, _now()))
                return None
            page_token, saved_query, saved_sink = row
            if saved_query is None and saved_sink is None:
                conn.execute("UPDATE cursor SET query = ?, sink = ?, updated_at = ? WHERE id = 1",
                             (query, sink, _now()))
            elif (saved_query, saved_sink) != (query, sink):
                raise CheckpointMismatch(
                    f"checkpoint {self.db_path} belongs to query {saved_query!r} and sink {saved_sink!r}; "
                    "run 'start' to begin a new report")
            return page_token

    def get_page_token(self) -> Optional[str]:
        row = self._conn.execute("SELECT page_token FROM cursor WHERE id = 1").fetchone()
        return row[0] if row else None

    def save_page_token(self, page_token: Optional[str]):
        with self._conn as conn:
            conn.execute(
                "INSERT INTO cursor (id, page_token, updated_at) VALUES (1, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET page_token = excluded.page_token, updated_at = excluded.updated_at",
                (page_token, _now()),
            )

    def mark_processed(self, file_id: str):
        with self._conn as conn:
            conn.execute("INSERT OR IGNORE INTO processed (file_id, appended_at) VALUES (?, ?)", (file_id, _now()))

    def processed_ids(self) -> Set[str]:
        return {r[0] for r in self._conn.execute("SELECT file_id FROM processed")}
