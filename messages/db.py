import json
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from database import get_pool
from .models import Conversation, Message

CONVERSATION_COLUMNS = '''
    thread_key, participant_a, participant_b, campaign_id, messages,
    last_message_at, created_at, updated_at
'''


def canonical_participants(user_a: str, user_b: str) -> Tuple[str, str]:
    """Order a pair of addresses ascending."""
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


def thread_key(user_a: str, user_b: str, campaign_id: Optional[int] = None) -> str:
    """Canonical key of the thread between two users about a campaign.

    The key is symmetric in the two users. Threads without a campaign use '-'.
    """
    first, second = canonical_participants(user_a, user_b)
    return f"{first}|{second}|{'-' if campaign_id is None else campaign_id}"


def _decode_messages(value) -> list:
    # asyncpg hands JSONB back as text unless a codec is registered
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return list(value)


def _to_conversation(row) -> Conversation:
    data = dict(row)
    data['messages'] = _decode_messages(data.get('messages'))
    return Conversation(**data)


class ConversationRepository:
    """asyncpg-backed storage for conversation threads."""

    def __init__(self, pool=None):
        self.pool = pool

    async def ensure_pool(self):
        """Ensure we have a database pool."""
        if not self.pool:
            self.pool = await get_pool()

    async def append(self, key: str, participants: Tuple[str, str],
                     campaign_id: Optional[int], message: Message):
        """Create the thread if needed and append a message in one statement."""
        await self.ensure_pool()
        payload = json.dumps([message.model_dump(mode='json')])
        async with self.pool.acquire() as conn:
            await conn.execute(
                '''
                INSERT INTO conversations (
                    thread_key, participant_a, participant_b, campaign_id,
                    messages, last_message_at
                ) VALUES ($1, $2, $3, $4, $5::JSONB, $6)
                ON CONFLICT (thread_key) DO UPDATE
                SET messages = conversations.messages || EXCLUDED.messages,
                    last_message_at = EXCLUDED.last_message_at,
                    updated_at = now()
                ''',
                key, participants[0], participants[1], campaign_id,
                payload, message.created_at
            )

    async def list_for_participant(self, address: str) -> List[Conversation]:
        """Threads the address takes part in, most recently active first."""
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f'''
                SELECT {CONVERSATION_COLUMNS} FROM conversations
                WHERE participant_a = $1 OR participant_b = $1
                ORDER BY last_message_at DESC
                ''',
                address
            )
        return [_to_conversation(row) for row in rows]

    async def read_and_mark(self, key: str, sender_address: str) -> Optional[Conversation]:
        """Load a thread and mark every unread message from sender_address as read.

        The row is locked for the duration so concurrent appends are not
        overwritten. Returns the thread as it was before marking.
        """
        await self.ensure_pool()
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    f'''
                    SELECT {CONVERSATION_COLUMNS} FROM conversations
                    WHERE thread_key = $1
                    FOR UPDATE
                    ''',
                    key
                )
                if not row:
                    return None

                conversation = _to_conversation(row)
                now = datetime.now(timezone.utc).isoformat()
                changed = False
                marked = []
                for item in _decode_messages(row['messages']):
                    if item.get('sender_address') == sender_address and not item.get('is_read'):
                        item = {**item, 'is_read': True, 'updated_at': now}
                        changed = True
                    marked.append(item)

                if changed:
                    await conn.execute(
                        '''
                        UPDATE conversations
                        SET messages = $2::JSONB, updated_at = now()
                        WHERE thread_key = $1
                        ''',
                        key, json.dumps(marked)
                    )

        return conversation
