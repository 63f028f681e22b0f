import aiosqlite


class UserRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get_by_id(self, user_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM users_projection WHERE id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def get_by_email(self, email: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM users_projection WHERE email = ?",
            (email.strip().lower(),),
        )
        row = await cursor.fetchone()
        return dict(row) if row is not None else None
