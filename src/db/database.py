# owns the sqlite file behind the marketplace backend: schema setup, seeding and connections
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row
from typing import Any, Dict

import aiosqlite

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

_HERE = os.path.dirname(os.path.abspath(__file__))

DB_PATH = config.DB_PATH
SCHEMA_VERSION = 1
DB_INIT_SCRIPTS = [
    os.path.join(_HERE, "tables.sql"),
    os.path.join(_HERE, "seed-data.sql"),
]

_initialized = False
_init_lock = asyncio.Lock()


async def _schema_version(conn: aiosqlite.Connection) -> int:
    cur = await conn.execute("PRAGMA user_version;")
    row = await cur.fetchone()
    await cur.close()
    return row[0] if row else 0


async def _create_schema(conn: aiosqlite.Connection) -> None:
    """Run the table and seed scripts on an empty file, then stamp the version."""
    for script in DB_INIT_SCRIPTS:
        _logger.info(f"Running {os.path.basename(script)} on {DB_PATH}")
        with open(script, "r", encoding="utf-8") as f:
            await conn.executescript(f.read())
    await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    await conn.commit()


async def _ensure_schema(conn: aiosqlite.Connection) -> None:
    global _initialized
    async with _init_lock:
        if _initialized:
            return
        version = await _schema_version(conn)
        if version == 0:
            await _create_schema(conn)
        elif version > SCHEMA_VERSION:
            raise RuntimeError(
                f"{DB_PATH} has schema version {version}, this build knows {SCHEMA_VERSION}"
            )
        _initialized = True


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    The first connection of the process creates and seeds the schema when the
    file is new.
    """
    parent = os.path.dirname(DB_PATH)
    if parent:
        os.makedirs(parent, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    try:
        conn.row_factory = Row
        await conn.execute("PRAGMA foreign_keys = ON;")
        if not _initialized:
            await _ensure_schema(conn)
        yield conn
    finally:
        await conn.close()


async def status() -> Dict[str, Any]:
    """
    Health of the backend file for the back-office overview.

    online is False when the file cannot be opened or queried; the error
    text is returned alongside instead of being raised.
    """
    info: Dict[str, Any] = {
        "path": DB_PATH,
        "size": os.path.getsize(DB_PATH) if os.path.exists(DB_PATH) else 0,
        "schema_version": None,
        "online": False,
        "error": None,
    }
    try:
        async with connect() as conn:
            info["schema_version"] = await _schema_version(conn)
            cur = await conn.execute("PRAGMA quick_check;")
            row = await cur.fetchone()
            await cur.close()
            info["online"] = row is not None and row[0] == "ok"
            if not info["online"]:
                info["error"] = row[0] if row else "quick_check returned nothing"
    except (aiosqlite.Error, OSError) as e:
        _logger.error(f"Database status check failed: {e}")
        info["error"] = str(e)
    return info
