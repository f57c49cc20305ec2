"""Service wiring shared by the routers.

Managers are built once at startup and kept on app.state; routers get
them through the get_services dependency.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from openai import AsyncOpenAI

from assistant import TextImprover
from campaigns import CampaignManager, CampaignRepository, MemoRepository
from ledger import AptosClient
from messages import ConversationRepository, MessageManager
from users import UserManager, UserRepository


@dataclass
class Services:
    """Managers used by the request handlers."""
    users: UserManager
    campaigns: CampaignManager
    messages: MessageManager
    assistant: TextImprover
    pool: Optional[Any] = None


def build_services(pool, settings: Dict[str, Any]) -> Services:
    """Construct every manager around a shared database pool.

    Args:
        pool: asyncpg pool
        settings: Validated settings from config.get_settings()
    """
    user_repository = UserRepository(pool)
    campaign_repository = CampaignRepository(pool)

    ledger = AptosClient(
        settings['aptos_node_url'],
        settings['aptos_contract_address'],
        settings['aptos_module']
    )
    campaigns = CampaignManager(
        campaign_repository,
        MemoRepository(pool),
        user_repository,
        ledger=ledger
    )

    llm_client = None
    if settings.get('openai_api_key'):
        llm_client = AsyncOpenAI(
            api_key=settings['openai_api_key'],
            base_url=settings.get('openai_base_url') or None
        )

    return Services(
        users=UserManager(user_repository),
        campaigns=campaigns,
        messages=MessageManager(ConversationRepository(pool), user_repository, campaign_repository),
        assistant=TextImprover(llm_client, settings['openai_model'], campaigns),
        pool=pool
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the services built at startup."""
    return request.app.state.services
