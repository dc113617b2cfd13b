import logging
import os
import sqlite3
import threading
from typing import Dict, List, Optional

from .base import Store
from .exceptions import StorageError, UserAlreadyExistsError, UserNotFoundError

logger = logging.getLogger(__name__)

DATABASE_FILE = "database/authvault.db"

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    email TEXT,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS authenticators (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    secret TEXT NOT NULL,
    issuer TEXT,
    account_name TEXT,
    digits INTEGER NOT NULL DEFAULT 6,
    time_step INTEGER NOT NULL DEFAULT 30,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users (id)
);

CREATE INDEX IF NOT EXISTS idx_authenticators_user ON authenticators (user_id);
"""

_USER_COLUMNS = ("id", "username", "email", "password_hash", "created_at", "updated_at")
_ENTRY_COLUMNS = (
    "id", "user_id", "name", "secret", "issuer", "account_name",
    "digits", "time_step", "created_at", "updated_at",
)


class SqliteStore(Store):
    """sqlite3-backed store; one connection per call, schema created on open."""

    def __init__(self, path: str = DATABASE_FILE):
        self.path = path
        self._lock = threading.Lock()
        self.setup_database()

    def get_db_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row  # rows behave like dicts
        return conn

    def setup_database(self) -> None:
        directory = os.path.dirname(self.path)
        if directory and self.path != ":memory:":
            os.makedirs(directory, exist_ok=True)
        conn = self.get_db_connection()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()
        logger.debug("Database schema ready at %s", self.path)

    def _execute(self, sql: str, params=()) -> int:
        with self._lock:
            conn = self.get_db_connection()
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.rowcount
            except sqlite3.IntegrityError:
                raise
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e
            finally:
                conn.close()

    def _fetch(self, sql: str, params=()) -> List[Dict]:
        conn = self.get_db_connection()
        try:
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        finally:
            conn.close()
        return [dict(row) for row in rows]

    def _fetch_one(self, sql: str, params=()) -> Optional[Dict]:
        rows = self._fetch(sql, params)
        return rows[0] if rows else None

    # --- users -----------------------------------------------------------
    def add_user(self, user):
        try:
            self._execute(
                f"INSERT INTO users ({', '.join(_USER_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?)",
                tuple(user[c] for c in _USER_COLUMNS),
            )
        except sqlite3.IntegrityError as e:
            raise UserAlreadyExistsError(f"User '{user['username']}' already exists") from e

    def get_user_by_id(self, user_id) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    def get_user_by_username(self, username) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM users WHERE username = ?", (username,))

    def get_user_by_email(self, email) -> Optional[Dict]:
        return self._fetch_one("SELECT * FROM users WHERE email = ?", (email,))

    def set_password_hash(self, user_id, password_hash, updated_at):
        updated = self._execute(
            "UPDATE users SET password_hash = ?, updated_at = ? WHERE id = ?",
            (password_hash, updated_at, user_id),
        )
        if not updated:
            raise UserNotFoundError(user_id)

    # --- entries ---------------------------------------------------------
    def add_entry(self, entry):
        try:
            self._execute(
                f"INSERT INTO authenticators ({', '.join(_ENTRY_COLUMNS)}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                tuple(entry[c] for c in _ENTRY_COLUMNS),
            )
        except sqlite3.IntegrityError as e:
            raise StorageError(f"Cannot add entry {entry['id']}: {e}") from e

    def list_entries(self, user_id) -> List[Dict]:
        return self._fetch(
            "SELECT * FROM authenticators WHERE user_id = ? ORDER BY created_at, rowid",
            (user_id,),
        )

    def get_entry(self, entry_id, user_id) -> Optional[Dict]:
        return self._fetch_one(
            "SELECT * FROM authenticators WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )

    def save_entry(self, entry):
        self._execute(
            "UPDATE authenticators SET name = ?, issuer = ?, account_name = ?, updated_at = ? "
            "WHERE id = ? AND user_id = ?",
            (
                entry["name"], entry["issuer"], entry["account_name"], entry["updated_at"],
                entry["id"], entry["user_id"],
            ),
        )

    def remove_entry(self, entry_id, user_id) -> bool:
        deleted = self._execute(
            "DELETE FROM authenticators WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        return deleted > 0
