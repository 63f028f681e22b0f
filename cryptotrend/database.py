import asyncio
import weakref

import aiosqlite
import structlog

from cryptotrend.config import settings

logger = structlog.get_logger()

_db: aiosqlite.Connection | None = None

# Writes that commit share one transaction per connection, so they are
# serialized; a rollback undoes every uncommitted write on that connection.
_write_locks: weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock] = (
    weakref.WeakKeyDictionary()
)

DDL_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS events (
        event_id TEXT PRIMARY KEY,
        aggregate_type TEXT NOT NULL,
        aggregate_id TEXT NOT NULL,
        event_type TEXT NOT NULL,
        event_data TEXT NOT NULL,
        metadata TEXT,
        version INTEGER NOT NULL,
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        UNIQUE(aggregate_id, version)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users_projection (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        display_name TEXT,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS portfolios_projection (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        is_public INTEGER NOT NULL DEFAULT 0,
        is_deleted INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS holdings_projection (
        id TEXT PRIMARY KEY,
        portfolio_id TEXT NOT NULL,
        coin_id TEXT NOT NULL,
        coin_symbol TEXT NOT NULL,
        coin_name TEXT NOT NULL,
        amount REAL NOT NULL,
        purchase_price REAL NOT NULL,
        purchase_date TEXT NOT NULL,
        notes TEXT,
        is_deleted INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS watchlist_projection (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        coin_id TEXT NOT NULL,
        coin_name TEXT NOT NULL,
        coin_symbol TEXT NOT NULL,
        coin_nameid TEXT,
        price_usd REAL,
        percent_change_24h REAL,
        percent_change_7d REAL,
        market_cap_usd REAL,
        volume24 REAL,
        rank INTEGER,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE(user_id, coin_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS alerts_projection (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        type TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        priority TEXT NOT NULL DEFAULT 'medium',
        is_enabled INTEGER NOT NULL DEFAULT 1,
        is_deleted INTEGER NOT NULL DEFAULT 0,
        trigger_count INTEGER NOT NULL DEFAULT 0,
        last_triggered TEXT,
        expires_at TEXT,
        coin_id TEXT,
        coin_symbol TEXT,
        coin_name TEXT,
        condition TEXT,
        target_price REAL,
        current_price REAL,
        target_percentage REAL,
        timeframe TEXT,
        current_change REAL,
        target_trend TEXT,
        current_trend TEXT,
        portfolio_value REAL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS alert_triggers (
        id TEXT PRIMARY KEY,
        alert_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        triggered_at TEXT NOT NULL,
        trigger_value REAL NOT NULL,
        message TEXT NOT NULL,
        metadata TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS alert_notifications (
        id TEXT PRIMARY KEY,
        alert_id TEXT NOT NULL,
        trigger_id TEXT,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'toast',
        title TEXT NOT NULL,
        message TEXT NOT NULL,
        priority TEXT NOT NULL DEFAULT 'medium',
        sent_at TEXT NOT NULL,
        is_read INTEGER NOT NULL DEFAULT 0
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_portfolios_user_id ON portfolios_projection(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_holdings_portfolio_id ON holdings_projection(portfolio_id)",
    "CREATE INDEX IF NOT EXISTS idx_alerts_user_id ON alerts_projection(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_alert_triggers_alert_id ON alert_triggers(alert_id)",
    "CREATE INDEX IF NOT EXISTS idx_alert_notifications_user_id ON alert_notifications(user_id)",
]


async def init_database(db_path: str | None = None) -> None:
    global _db
    path = db_path or settings.db_path
    _db = await aiosqlite.connect(path)
    _db.row_factory = aiosqlite.Row
    await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")

    for ddl in DDL_STATEMENTS:
        await _db.execute(ddl)
    await _db.commit()

    logger.info("database_initialized", path=path)


async def close_database() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("database_closed")


def get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _db


async def check_health() -> None:
    db = get_db()
    cursor = await db.execute("SELECT 1")
    await cursor.close()


def write_lock(db: aiosqlite.Connection) -> asyncio.Lock:
    lock = _write_locks.get(db)
    if lock is None:
        lock = _write_locks[db] = asyncio.Lock()
    return lock
