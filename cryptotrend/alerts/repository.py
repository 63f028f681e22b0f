import json

import aiosqlite

from cryptotrend.alerts.schemas import AlertFilters
from cryptotrend.database import write_lock

_OBSERVATION_FIELDS = frozenset({"current_price", "current_change", "current_trend", "portfolio_value"})


class AlertRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._lock = write_lock(db)

    async def get_by_id(self, alert_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM alerts_projection WHERE id = ? AND is_deleted = 0",
            (alert_id,),
        )
        row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def list_by_user(self, user_id: str, filters: AlertFilters | None = None) -> list[dict]:
        conditions = ["user_id = ?", "is_deleted = 0"]
        params: list = [user_id]

        if filters is not None:
            for column in ("type", "status", "priority", "coin_id"):
                values = getattr(filters, column)
                if values:
                    conditions.append(f"{column} IN ({', '.join('?' for _ in values)})")
                    params.extend(str(value) for value in values)
            if filters.is_enabled is not None:
                conditions.append("is_enabled = ?")
                params.append(1 if filters.is_enabled else 0)

        cursor = await self._db.execute(
            f"""
            SELECT * FROM alerts_projection
            WHERE {' AND '.join(conditions)}
            ORDER BY created_at DESC
            """,
            params,
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def list_checkable(self, user_id: str | None = None) -> list[dict]:
        """Enabled, active alerts of one user, or of every user when ``user_id`` is None."""
        query = """
            SELECT * FROM alerts_projection
            WHERE is_deleted = 0 AND is_enabled = 1 AND status = 'active'
        """
        params: tuple = ()
        if user_id is not None:
            query += " AND user_id = ?"
            params = (user_id,)
        cursor = await self._db.execute(query + " ORDER BY created_at ASC", params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def record_observation(self, alert_id: str, observation: dict) -> None:
        fields = [name for name in observation if name in _OBSERVATION_FIELDS]
        if not fields:
            return
        async with self._lock:
            await self._db.execute(
                f"UPDATE alerts_projection SET {', '.join(f'{name} = ?' for name in fields)} WHERE id = ?",
                [*(observation[name] for name in fields), alert_id],
            )
            await self._db.commit()

    async def list_triggers(self, alert_id: str, limit: int = 50) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT * FROM alert_triggers
            WHERE alert_id = ?
            ORDER BY triggered_at DESC
            LIMIT ?
            """,
            (alert_id, limit),
        )
        rows = await cursor.fetchall()
        triggers = []
        for row in rows:
            trigger = dict(row)
            trigger["metadata"] = json.loads(trigger["metadata"]) if trigger["metadata"] else {}
            triggers.append(trigger)
        return triggers

    async def list_notifications(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> list[dict]:
        query = "SELECT * FROM alert_notifications WHERE user_id = ?"
        if unread_only:
            query += " AND is_read = 0"
        cursor = await self._db.execute(query + " ORDER BY sent_at DESC LIMIT ?", (user_id, limit))
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def get_notification(self, notification_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM alert_notifications WHERE id = ?",
            (notification_id,),
        )
        row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def mark_notification_read(self, notification_id: str) -> None:
        async with self._lock:
            await self._db.execute(
                "UPDATE alert_notifications SET is_read = 1 WHERE id = ?",
                (notification_id,),
            )
            await self._db.commit()
