import aiosqlite


class WatchlistRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def list_by_user(self, user_id: str) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT * FROM watchlist_projection
            WHERE user_id = ?
            ORDER BY created_at DESC
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def get_by_coin(self, user_id: str, coin_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM watchlist_projection WHERE user_id = ? AND coin_id = ?",
            (user_id, coin_id),
        )
        row = await cursor.fetchone()
        return dict(row) if row is not None else None
