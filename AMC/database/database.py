import logging
import sqlite3
import threading
from pathlib import Path
from typing import Dict, Optional


class Database:

    def __init__(self, path="amc_state.db"):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.__conn = sqlite3.connect(str(self.path))
        self.__cursor = self.__conn.cursor()

    def __enter__(self):
        """
        Lets you write:     with Database(path) as db:
        and receive a ready-to-use Database instance.
        """
        return self

    def __exit__(self, exc_type, exc, tb):
        """
        No error      -> commit the outstanding work
        Error         -> roll back so the DB stays clean
        Always        -> close the connection to release the file handle
        """
        if exc_type is None:
            self.__conn.commit()
        else:
            self.__conn.rollback()

        self.__conn.close()
        return False

    def close(self):
        self.__conn.commit()
        self.__conn.close()

    def create_tables(self):
        self.__cursor.execute('''

        CREATE TABLE IF NOT EXISTS settings(
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        ''')
        self.__conn.commit()

    def read_setting(self, key: str) -> Optional[str]:
        """
        Reads a single setting.
        Args:
            key (str): The setting name.
        Returns:
            str | None: The stored value, or None if the key is absent.
        """
        self.__cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
        row = self.__cursor.fetchone()
        return row[0] if row else None

    def write_setting(self, key: str, value: str):
        """
        Inserts or replaces a setting.
        Args:
            key (str): The setting name.
            value (str): The value to store.
        """
        self.__cursor.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )

    def delete_setting(self, key: str):
        self.__cursor.execute("DELETE FROM settings WHERE key = ?", (key,))


class SettingsStore:
    """
    Durable key/value store for console state that must survive restarts.

    Each call opens its own short-lived connection, so the store can be used
    from any thread.
    """

    def __init__(self, path):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)
        with Database(self.path) as db:
            db.create_tables()

    def get(self, key: str) -> Optional[str]:
        with Database(self.path) as db:
            return db.read_setting(key)

    def set(self, key: str, value: str) -> None:
        with Database(self.path) as db:
            db.write_setting(key, value)
        self.logger.debug(f"Stored {key}={value}")

    def remove(self, key: str) -> None:
        with Database(self.path) as db:
            db.delete_setting(key)


class MemoryStore:
    """In-process stand-in for SettingsStore"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)
