import aiosqlite

from cryptotrend.event_store.models import Event

_INSERT_EVENT = """
    INSERT INTO events (
        event_id, aggregate_type, aggregate_id, event_type,
        event_data, metadata, version, created_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""


class EventRepository:
    """Append-only access to the ``events`` table."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def insert(self, event: Event) -> None:
        await self._db.execute(
            _INSERT_EVENT,
            (
                event.event_id,
                event.aggregate_type,
                event.aggregate_id,
                event.event_type,
                event.event_data,
                event.metadata,
                event.version,
                event.created_at,
            ),
        )

    async def list_for_aggregate(self, aggregate_type: str, aggregate_id: str) -> list[Event]:
        cursor = await self._db.execute(
            "SELECT * FROM events WHERE aggregate_type = ? AND aggregate_id = ? ORDER BY version",
            (aggregate_type, aggregate_id),
        )
        return [Event(**dict(row)) for row in await cursor.fetchall()]

    async def next_version(self, aggregate_id: str) -> int:
        cursor = await self._db.execute(
            "SELECT COALESCE(MAX(version), 0) + 1 AS next_version FROM events WHERE aggregate_id = ?",
            (aggregate_id,),
        )
        row = await cursor.fetchone()
        return row["next_version"]

    async def has_idempotency_key(self, key: str) -> bool:
        cursor = await self._db.execute(
            """
            SELECT 1 FROM events
            WHERE metadata IS NOT NULL
              AND json_extract(metadata, '$.idempotency_key') = ?
            LIMIT 1
            """,
            (key,),
        )
        return await cursor.fetchone() is not None
