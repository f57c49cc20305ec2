from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from database import get_pool
from .models import Campaign, Memo

CAMPAIGN_COLUMNS = '''
    id, type, name, description, goal, price, image, contract_id,
    transaction_hash, is_active, total_raised, supporter_count,
    created_by, creator_address, created_at, updated_at
'''

MEMO_COLUMNS = '''
    id, transaction_hash, campaign_id, creator_address, user_address,
    type, memo, amount, created_at
'''


def _campaign_filters(
    creator_address: Optional[str] = None,
    campaign_type: Optional[str] = None,
    is_active: Optional[bool] = None
) -> Tuple[str, List[Any]]:
    """Build a WHERE clause for the optional campaign list filters."""
    conditions = []
    values: List[Any] = []

    if creator_address is not None:
        values.append(creator_address)
        conditions.append(f"creator_address = ${len(values)}")
    if campaign_type is not None:
        values.append(campaign_type)
        conditions.append(f"type = ${len(values)}")
    if is_active is not None:
        values.append(is_active)
        conditions.append(f"is_active = ${len(values)}")

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ''
    return where, values


class CampaignRepository:
    """asyncpg-backed storage for campaigns."""

    def __init__(self, pool=None):
        self.pool = pool

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            self.pool = await get_pool()

    async def create(self, data: Dict[str, Any]) -> Campaign:
        await self.ensure_pool()
        columns = list(data.keys())
        placeholders = ', '.join(f"${i}" for i in range(1, len(columns) + 1))
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f'''
                INSERT INTO campaigns ({', '.join(columns)})
                VALUES ({placeholders})
                RETURNING {CAMPAIGN_COLUMNS}
                ''',
                *data.values()
            )
        return Campaign(**dict(row))

    async def get(self, campaign_id: UUID) -> Optional[Campaign]:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {CAMPAIGN_COLUMNS} FROM campaigns WHERE id = $1',
                campaign_id
            )
        return Campaign(**dict(row)) if row else None

    async def get_by_contract_id(self, contract_id: int, creator_address: str) -> Optional[Campaign]:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f'''
                SELECT {CAMPAIGN_COLUMNS} FROM campaigns
                WHERE contract_id = $1 AND creator_address = $2
                ORDER BY created_at ASC
                LIMIT 1
                ''',
                contract_id, creator_address
            )
        return Campaign(**dict(row)) if row else None

    async def list_by_creator_chronological(self, creator_address: str) -> List[Campaign]:
        """All of a creator's campaigns, oldest first."""
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f'''
                SELECT {CAMPAIGN_COLUMNS} FROM campaigns
                WHERE creator_address = $1
                ORDER BY created_at ASC, id ASC
                ''',
                creator_address
            )
        return [Campaign(**dict(row)) for row in rows]

    async def find(
        self,
        limit: int,
        offset: int,
        creator_address: Optional[str] = None,
        campaign_type: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> List[Campaign]:
        """A newest-first page of campaigns matching the filters."""
        await self.ensure_pool()
        where, values = _campaign_filters(creator_address, campaign_type, is_active)
        values.extend([limit, offset])
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f'''
                SELECT {CAMPAIGN_COLUMNS} FROM campaigns
                {where}
                ORDER BY created_at DESC
                LIMIT ${len(values) - 1} OFFSET ${len(values)}
                ''',
                *values
            )
        return [Campaign(**dict(row)) for row in rows]

    async def count(
        self,
        creator_address: Optional[str] = None,
        campaign_type: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> int:
        await self.ensure_pool()
        where, values = _campaign_filters(creator_address, campaign_type, is_active)
        async with self.pool.acquire() as conn:
            return await conn.fetchval(f'SELECT count(*) FROM campaigns {where}', *values)

    async def exists_with_contract_id(self, contract_id: int) -> bool:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                'SELECT EXISTS (SELECT 1 FROM campaigns WHERE contract_id = $1)',
                contract_id
            )

    async def set_contract_id(
        self,
        campaign_id: UUID,
        contract_id: int,
        transaction_hash: Optional[str] = None
    ) -> Optional[Campaign]:
        """Record the ledger id, keeping any existing transaction hash when none is given."""
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f'''
                UPDATE campaigns
                SET contract_id = $2,
                    transaction_hash = COALESCE($3, transaction_hash),
                    updated_at = now()
                WHERE id = $1
                RETURNING {CAMPAIGN_COLUMNS}
                ''',
                campaign_id, contract_id, transaction_hash
            )
        return Campaign(**dict(row)) if row else None


class MemoRepository:
    """asyncpg-backed storage for settlement memos."""

    def __init__(self, pool=None):
        self.pool = pool

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            self.pool = await get_pool()

    async def exists(self, transaction_hash: str) -> bool:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                'SELECT EXISTS (SELECT 1 FROM memos WHERE transaction_hash = $1)',
                transaction_hash
            )

    async def settle(
        self,
        memo: Dict[str, Any],
        campaign_id: UUID,
        raised: Decimal
    ) -> Tuple[Memo, Campaign]:
        """Insert the memo and apply its effect on the campaign atomically.

        The campaign row is locked first, so settlements on one campaign are
        serialized and the supporter is counted only on their first memo.

        Raises asyncpg.UniqueViolationError if the transaction hash was
        recorded concurrently.
        """
        await self.ensure_pool()
        columns = list(memo.keys())
        placeholders = ', '.join(f"${i}" for i in range(1, len(columns) + 1))

        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.fetchval(
                    'SELECT id FROM campaigns WHERE id = $1 FOR UPDATE',
                    campaign_id
                )
                supported = await conn.fetchval(
                    '''
                    SELECT EXISTS (
                        SELECT 1 FROM memos
                        WHERE campaign_id = $1 AND creator_address = $2 AND user_address = $3
                    )
                    ''',
                    memo['campaign_id'], memo['creator_address'], memo['user_address']
                )
                memo_row = await conn.fetchrow(
                    f'''
                    INSERT INTO memos ({', '.join(columns)})
                    VALUES ({placeholders})
                    RETURNING {MEMO_COLUMNS}
                    ''',
                    *memo.values()
                )
                campaign_row = await conn.fetchrow(
                    f'''
                    UPDATE campaigns
                    SET total_raised = total_raised + $2,
                        supporter_count = supporter_count + $3,
                        updated_at = now()
                    WHERE id = $1
                    RETURNING {CAMPAIGN_COLUMNS}
                    ''',
                    campaign_id, raised, 0 if supported else 1
                )

        return Memo(**dict(memo_row)), Campaign(**dict(campaign_row))

    async def find_for_campaign(
        self,
        contract_id: int,
        creator_address: str,
        limit: int,
        offset: int
    ) -> List[Memo]:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f'''
                SELECT {MEMO_COLUMNS} FROM memos
                WHERE campaign_id = $1 AND creator_address = $2
                ORDER BY created_at DESC
                LIMIT $3 OFFSET $4
                ''',
                contract_id, creator_address, limit, offset
            )
        return [Memo(**dict(row)) for row in rows]

    async def count_for_campaign(self, contract_id: int, creator_address: str) -> int:
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                'SELECT count(*) FROM memos WHERE campaign_id = $1 AND creator_address = $2',
                contract_id, creator_address
            )
