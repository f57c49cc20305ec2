from typing import Any, Dict, Optional

from database import get_pool
from .models import User

USER_COLUMNS = 'id, address, nickname, avatar, bio, followers, following, created_at, updated_at'


class UserRepository:
    """asyncpg-backed storage for user profiles."""

    def __init__(self, pool=None):
        self.pool = pool

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            self.pool = await get_pool()

    async def get_by_address(self, address: str) -> Optional[User]:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {USER_COLUMNS} FROM users WHERE address = $1',
                address
            )
        return User(**dict(row)) if row else None

    async def create(self, address: str) -> User:
        """Insert a new user. Raises asyncpg.UniqueViolationError on duplicates."""
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f'''
                INSERT INTO users (address)
                VALUES ($1)
                RETURNING {USER_COLUMNS}
                ''',
                address
            )
        return User(**dict(row))

    async def update(self, address: str, updates: Dict[str, Any]) -> Optional[User]:
        """Update the given profile columns. Column names must be pre-validated."""
        await self.ensure_pool()

        fields = []
        values = []
        for i, (field, value) in enumerate(updates.items(), start=1):
            fields.append(f"{field} = ${i}")
            values.append(value)
        values.append(address)

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f'''
                UPDATE users
                SET {', '.join(fields + ['updated_at = now()'])}
                WHERE address = ${len(values)}
                RETURNING {USER_COLUMNS}
                ''',
                *values
            )
        return User(**dict(row)) if row else None
