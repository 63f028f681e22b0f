import aiosqlite


class PortfolioRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get_by_id(self, portfolio_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM portfolios_projection WHERE id = ? AND is_deleted = 0",
            (portfolio_id,),
        )
        row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def get_by_name(self, user_id: str, name: str) -> dict | None:
        cursor = await self._db.execute(
            """
            SELECT * FROM portfolios_projection
            WHERE user_id = ? AND lower(name) = lower(?) AND is_deleted = 0
            """,
            (user_id, name.strip()),
        )
        row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def list_by_user(self, user_id: str) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT * FROM portfolios_projection
            WHERE user_id = ? AND is_deleted = 0
            ORDER BY created_at DESC
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def list_holdings(self, portfolio_id: str) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT * FROM holdings_projection
            WHERE portfolio_id = ? AND is_deleted = 0
            ORDER BY created_at ASC
            """,
            (portfolio_id,),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def get_holding(self, holding_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM holdings_projection WHERE id = ? AND is_deleted = 0",
            (holding_id,),
        )
        row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def list_user_holdings(self, user_id: str) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT h.* FROM holdings_projection h
            JOIN portfolios_projection p ON p.id = h.portfolio_id
            WHERE p.user_id = ? AND p.is_deleted = 0 AND h.is_deleted = 0
            ORDER BY h.created_at ASC
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]
