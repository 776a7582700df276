from __future__ import annotations

import json
import sqlite3
import threading
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from sms_chat_relay.memory.models import Found, HistoryEntry, LookupResult, NotFound, Session


class StoreError(Exception):
    """A read or write against the session store failed."""


class StoreUnavailableError(StoreError):
    """The store could not be opened or initialized."""


def resolve_db_path(connection_string: str) -> str:
    """Accept ``sqlite:messages.db``, ``sqlite:///abs/path.db`` or a bare path."""
    value = connection_string.strip()
    for prefix in ("sqlite://", "sqlite:"):
        if value.startswith(prefix):
            value = value[len(prefix):]
            break
    if not value:
        raise StoreUnavailableError(f"Empty database path in {connection_string!r}")
    return value


class SessionStore:
    def __init__(self, db_path: str):
        self._db_path = Path(resolve_db_path(db_path))
        self._lock = threading.Lock()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._initialize_schema()
        except (sqlite3.Error, OSError) as ex:
            raise StoreUnavailableError(f"Cannot open session store at {self._db_path}: {ex}") from ex

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def get(self, sender_id: str) -> LookupResult:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT * FROM sessions WHERE sender_id = ? LIMIT 1",
                    (sender_id,),
                ).fetchone()
        except sqlite3.Error as ex:
            raise StoreError(f"Failed to load session for {sender_id}: {ex}") from ex

        if row is None:
            return NotFound(sender_id)

        try:
            session = Session(
                sender_id=row["sender_id"],
                total_received=int(row["total_received"]),
                total_sent=int(row["total_sent"]),
                received_today=int(row["received_today"]),
                last_reset=datetime.fromtimestamp(int(row["last_reset"]), UTC),
                history=self._decode_history(sender_id, row["history_json"]),
            )
        except (ValueError, TypeError, OverflowError, OSError) as ex:
            raise StoreError(f"Corrupt session row for {sender_id}: {ex}") from ex
        return Found(session)

    def upsert(self, session: Session) -> None:
        history_json = json.dumps(
            [entry.to_dict() for entry in session.history],
            ensure_ascii=True,
            separators=(",", ":"),
        )
        params = (
            session.sender_id,
            session.total_received,
            session.total_sent,
            session.received_today,
            history_json,
            int(session.last_reset.timestamp()),
        )
        with self._lock:
            try:
                self._conn.execute(
                    """
                    INSERT INTO sessions (sender_id, total_received, total_sent, received_today, history_json, last_reset)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(sender_id) DO UPDATE SET
                        total_received = excluded.total_received,
                        total_sent = excluded.total_sent,
                        received_today = excluded.received_today,
                        history_json = excluded.history_json,
                        last_reset = excluded.last_reset
                    """,
                    params,
                )
                self._conn.commit()
            except sqlite3.Error as ex:
                self._conn.rollback()
                raise StoreError(f"Failed to save session for {session.sender_id}: {ex}") from ex

    def _decode_history(self, sender_id: str, history_json: str) -> list[HistoryEntry]:
        try:
            raw = json.loads(history_json)
            if not isinstance(raw, list):
                raise ValueError(f"expected a list, got {type(raw).__name__}")
            return [HistoryEntry.from_dict(item) for item in raw]
        except (ValueError, KeyError, TypeError) as ex:
            logger.warning(f"Discarding malformed history for {sender_id}: {ex}")
            return []

    def _initialize_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                sender_id TEXT PRIMARY KEY,
                total_received INTEGER NOT NULL DEFAULT 0,
                total_sent INTEGER NOT NULL DEFAULT 0,
                received_today INTEGER NOT NULL DEFAULT 0,
                history_json TEXT NOT NULL DEFAULT '[]',
                last_reset INTEGER NOT NULL DEFAULT 0
            );
            """
        )
        self._conn.commit()
