"""Shared fixtures: in-memory repositories and managers wired around them."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from api import create_app
from api.deps import Services
from assistant import TextImprover
from campaigns import Campaign, CampaignManager, Memo
from messages import Conversation, Message, MessageManager
from users import User, UserManager

ALICE = "0x" + "a1" * 32
BOB = "0x" + "b2" * 32
CAROL = "0x" + "c3" * 32
STRANGER = "0x" + "ff" * 32


class Clock:
    """Strictly increasing timestamps, one second apart."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class FakeUserRepository:
    def __init__(self, clock: Clock):
        self.clock = clock
        self.users: Dict[str, User] = {}

    async def get_by_address(self, address: str) -> Optional[User]:
        return self.users.get(address)

    def add(self, address: str) -> User:
        now = self.clock()
        user = User(id=uuid.uuid4(), address=address, created_at=now, updated_at=now)
        self.users[address] = user
        return user

    async def create(self, address: str) -> User:
        return self.add(address)

    async def update(self, address: str, updates: Dict[str, Any]) -> Optional[User]:
        user = self.users.get(address)
        if not user:
            return None
        user = user.model_copy(update={**updates, 'updated_at': self.clock()})
        self.users[address] = user
        return user


class FakeCampaignRepository:
    def __init__(self, clock: Clock):
        self.clock = clock
        self.campaigns: Dict[uuid.UUID, Campaign] = {}

    async def create(self, data: Dict[str, Any]) -> Campaign:
        now = self.clock()
        campaign = Campaign(id=uuid.uuid4(), created_at=now, updated_at=now, **data)
        self.campaigns[campaign.id] = campaign
        return campaign

    async def get(self, campaign_id) -> Optional[Campaign]:
        return self.campaigns.get(campaign_id)

    async def get_by_contract_id(self, contract_id: int, creator_address: str) -> Optional[Campaign]:
        for campaign in await self.list_by_creator_chronological(creator_address):
            if campaign.contract_id == contract_id:
                return campaign
        return None

    async def list_by_creator_chronological(self, creator_address: str) -> List[Campaign]:
        return sorted(
            (c for c in self.campaigns.values() if c.creator_address == creator_address),
            key=lambda c: c.created_at
        )

    def _filter(self, creator_address=None, campaign_type=None, is_active=None) -> List[Campaign]:
        found = [
            c for c in self.campaigns.values()
            if (creator_address is None or c.creator_address == creator_address)
            and (campaign_type is None or c.type.value == campaign_type)
            and (is_active is None or c.is_active == is_active)
        ]
        return sorted(found, key=lambda c: c.created_at, reverse=True)

    async def find(self, limit: int, offset: int, **filters) -> List[Campaign]:
        return self._filter(**filters)[offset:offset + limit]

    async def count(self, **filters) -> int:
        return len(self._filter(**filters))

    async def exists_with_contract_id(self, contract_id: int) -> bool:
        return any(c.contract_id == contract_id for c in self.campaigns.values())

    async def set_contract_id(self, campaign_id, contract_id: int,
                              transaction_hash: Optional[str] = None) -> Optional[Campaign]:
        campaign = self.campaigns.get(campaign_id)
        if not campaign:
            return None
        update = {'contract_id': contract_id, 'updated_at': self.clock()}
        if transaction_hash is not None:
            update['transaction_hash'] = transaction_hash
        campaign = campaign.model_copy(update=update)
        self.campaigns[campaign_id] = campaign
        return campaign


class FakeMemoRepository:
    def __init__(self, campaigns: FakeCampaignRepository, clock: Clock):
        self.campaigns = campaigns
        self.clock = clock
        self.memos: List[Memo] = []

    async def exists(self, transaction_hash: str) -> bool:
        return any(m.transaction_hash == transaction_hash for m in self.memos)

    async def settle(self, memo: Dict[str, Any], campaign_id, raised: Decimal):
        new_supporter = not any(
            m.campaign_id == memo['campaign_id']
            and m.creator_address == memo['creator_address']
            and m.user_address == memo['user_address']
            for m in self.memos
        )
        record = Memo(id=uuid.uuid4(), created_at=self.clock(), **memo)
        self.memos.append(record)
        campaign = self.campaigns.campaigns[campaign_id]
        campaign = campaign.model_copy(update={
            'total_raised': campaign.total_raised + raised,
            'supporter_count': campaign.supporter_count + (1 if new_supporter else 0)
        })
        self.campaigns.campaigns[campaign_id] = campaign
        return record, campaign

    def _for_campaign(self, contract_id: int, creator_address: str) -> List[Memo]:
        found = [
            m for m in self.memos
            if m.campaign_id == contract_id and m.creator_address == creator_address
        ]
        return sorted(found, key=lambda m: m.created_at, reverse=True)

    async def find_for_campaign(self, contract_id: int, creator_address: str,
                                limit: int, offset: int) -> List[Memo]:
        return self._for_campaign(contract_id, creator_address)[offset:offset + limit]

    async def count_for_campaign(self, contract_id: int, creator_address: str) -> int:
        return len(self._for_campaign(contract_id, creator_address))


class FakeConversationRepository:
    def __init__(self):
        self.threads: Dict[str, Conversation] = {}
        self.calls: List[str] = []

    async def append(self, key: str, participants, campaign_id, message: Message):
        self.calls.append('append')
        thread = self.threads.get(key)
        if thread is None:
            thread = Conversation(
                thread_key=key,
                participant_a=participants[0],
                participant_b=participants[1],
                campaign_id=campaign_id,
                messages=[],
                last_message_at=message.created_at,
                created_at=message.created_at,
                updated_at=message.created_at
            )
        self.threads[key] = thread.model_copy(update={
            'messages': thread.messages + [message],
            'last_message_at': message.created_at,
            'updated_at': message.created_at
        })

    async def list_for_participant(self, address: str) -> List[Conversation]:
        self.calls.append('list_for_participant')
        found = [
            t for t in self.threads.values()
            if address in (t.participant_a, t.participant_b)
        ]
        return sorted(found, key=lambda t: t.last_message_at, reverse=True)

    async def read_and_mark(self, key: str, sender_address: str) -> Optional[Conversation]:
        self.calls.append('read_and_mark')
        thread = self.threads.get(key)
        if thread is None:
            return None
        marked = [
            m.model_copy(update={'is_read': True})
            if m.sender_address == sender_address and not m.is_read else m
            for m in thread.messages
        ]
        self.threads[key] = thread.model_copy(update={'messages': marked})
        return thread


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def user_repository(clock):
    return FakeUserRepository(clock)


@pytest.fixture
def campaign_repository(clock):
    return FakeCampaignRepository(clock)


@pytest.fixture
def memo_repository(campaign_repository, clock):
    return FakeMemoRepository(campaign_repository, clock)


@pytest.fixture
def conversation_repository():
    return FakeConversationRepository()


@pytest.fixture
def users(user_repository):
    """Registry with ALICE, BOB and CAROL registered."""
    for address in (ALICE, BOB, CAROL):
        user_repository.add(address)
    return user_repository


@pytest.fixture
def user_manager(users):
    return UserManager(users)


@pytest.fixture
def campaign_manager(campaign_repository, memo_repository, users):
    return CampaignManager(campaign_repository, memo_repository, users)


@pytest.fixture
def message_manager(conversation_repository, users, campaign_repository, clock):
    return MessageManager(conversation_repository, users, campaign_repository, clock=clock)


@pytest_asyncio.fixture
async def donation_campaign(campaign_manager) -> Campaign:
    """ALICE's first campaign, ledger id 1."""
    return await campaign_manager.create_campaign(
        created_by=ALICE,
        type="donation",
        name="Community garden",
        description="Seeds and tools for the neighbourhood garden",
        goal=Decimal("100"),
        contract_id=1
    )


@pytest.fixture
def services(user_manager, campaign_manager, message_manager):
    return Services(
        users=user_manager,
        campaigns=campaign_manager,
        messages=message_manager,
        assistant=TextImprover(None, "gpt-4o-mini", campaign_manager)
    )


@pytest.fixture
def client(services):
    return TestClient(create_app(services=services))


def async_context(value=None):
    """An object usable with `async with` that yields value."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=value)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


def mock_pool():
    """asyncpg pool double; returns (pool, connection)."""
    conn = AsyncMock()
    conn.transaction = MagicMock(return_value=async_context())
    pool = MagicMock()
    pool.acquire.return_value = async_context(conn)
    return pool, conn
