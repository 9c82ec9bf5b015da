import aiosqlite
import asyncio
import json
import sqlite3
import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional, Any, AsyncIterator

import database as _pkg
from database.helpers import DatabaseError

logger = logging.getLogger(__name__)


class DatabaseCore:
    """Async SQLite database with persistent connection and async lock.

    Uses a single persistent connection with an async lock to serialize
    access (SQLite limitation). The connection is lazily initialized on
    first use and reused until explicitly closed.
    """
    _instance: Optional["DatabaseCore"] = None
    _instance_lock = threading.Lock()

    def __new__(cls) -> "DatabaseCore":
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
                    cls._instance._init_lock: Optional[asyncio.Lock] = None
                    cls._instance._conn: Optional[aiosqlite.Connection] = None
                    cls._instance._conn_lock: Optional[asyncio.Lock] = None
        return cls._instance

    async def _ensure_connection(self) -> aiosqlite.Connection:
        """Ensure we have an open connection, creating one if needed."""
        if self._conn is None:
            try:
                self._conn = await aiosqlite.connect(_pkg.DB_PATH)
                self._conn.row_factory = aiosqlite.Row
                await self._conn.execute("PRAGMA journal_mode=WAL")
                await self._conn.execute("PRAGMA busy_timeout=5000")
            except (sqlite3.Error, OSError) as e:
                self._conn = None
                raise DatabaseError(f"Cannot open database at {_pkg.DB_PATH}: {e}") from e
        return self._conn

    async def _get_lock(self) -> asyncio.Lock:
        """Get or create the async lock for connection serialization."""
        if self._conn_lock is None:
            self._conn_lock = asyncio.Lock()
        return self._conn_lock

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Get a database connection with serialized access."""
        lock = await self._get_lock()
        async with lock:
            conn = await self._ensure_connection()
            yield conn

    async def close(self) -> None:
        """Close the persistent connection."""
        if self._conn is not None:
            try:
                await self._conn.close()
            except (sqlite3.Error, OSError) as e:
                logger.warning(f"Error closing database connection: {e}")
            finally:
                self._conn = None
                self._initialized = False

    async def _get_init_lock(self) -> asyncio.Lock:
        """Get or create the async lock for init serialization."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def init_db(self) -> None:
        """Initialize the database schema if needed."""
        lock = await self._get_init_lock()
        async with lock:
            if self._initialized:
                return
            async with self._get_connection() as conn:
                try:
                    await conn.execute(
                        "CREATE TABLE IF NOT EXISTS settings "
                        "(key TEXT PRIMARY KEY, value TEXT NOT NULL)"
                    )
                    await conn.commit()
                except sqlite3.Error as e:
                    logger.error(f"Error initializing database schema: {e}")
                    raise DatabaseError(f"Failed to initialize schema: {e}") from e
            self._initialized = True

    async def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value. Returns default if not found or on error."""
        await self.init_db()
        try:
            async with self._get_connection() as conn:
                async with conn.execute(
                    "SELECT value FROM settings WHERE key=?",
                    (key,)
                ) as cursor:
                    row = await cursor.fetchone()
                    return json.loads(row["value"]) if row else default
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Error getting setting {key}: {e}")
            return default

    async def set_setting(self, key: str, value: Any) -> None:
        await self.init_db()
        try:
            async with self._get_connection() as conn:
                await conn.execute(
                    "INSERT OR REPLACE INTO settings (key,value) VALUES (?,?)",
                    (key, json.dumps(value))
                )
                await conn.commit()
        except (sqlite3.Error, ValueError, KeyError, TypeError) as e:
            logger.error(f"Error setting {key}: {e}")
            raise DatabaseError(f"Failed to save setting: {e}") from e

    async def delete_setting(self, key: str) -> None:
        await self.init_db()
        try:
            async with self._get_connection() as conn:
                await conn.execute("DELETE FROM settings WHERE key=?", (key,))
                await conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error deleting setting {key}: {e}")
            raise DatabaseError(f"Failed to delete setting: {e}") from e
