"""Campaigns module for the off-chain campaign mirror.

This module provides functionality for:
- Creating campaigns and listing them
- Ingesting settlement memos and maintaining campaign statistics
- Reconciling ledger campaign ids with stored campaigns
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import asyncpg

from common.errors import (
    AppError,
    AuthorizationError,
    Conflict,
    InternalError,
    NotFound,
    ValidationError
)
from common.pagination import Page, build_page, validate_pagination
from .db import CampaignRepository, MemoRepository
from .models import Campaign, CampaignType, Memo, MemoType
from .resolver import PositionalContractIdResolver

logger = logging.getLogger(__name__)

OCTAS_PER_APT = Decimal(10 ** 8)

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 256
MEMO_MAX_LENGTH = 256


def _parse_campaign_id(campaign_id: Any) -> UUID:
    if isinstance(campaign_id, UUID):
        return campaign_id
    try:
        return UUID(str(campaign_id))
    except ValueError:
        raise NotFound("campaign")


def _parse_contract_id(contract_id: Any) -> int:
    if isinstance(contract_id, bool):
        raise ValidationError("invalid contract id")
    try:
        value = int(contract_id)
    except (TypeError, ValueError):
        raise ValidationError("invalid contract id")
    if value < 1:
        raise ValidationError("invalid contract id")
    return value


def _check_length(value: Optional[str], field: str, max_length: int):
    if not value or len(value) > max_length:
        raise ValidationError(f"{field} must be between 1 and {max_length} characters")


def _check_amount(value: Optional[Any], field: str) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        amount = Decimal(str(value))
    except ArithmeticError:
        raise ValidationError(f"invalid {field}")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"invalid {field}")
    return amount


class CampaignManager:
    """Manager class for campaign and settlement operations."""

    def __init__(
        self,
        campaigns: CampaignRepository,
        memos: MemoRepository,
        users,
        ledger=None,
        resolver: Optional[PositionalContractIdResolver] = None
    ):
        """Initialize the campaign manager.

        Args:
            campaigns: Campaign storage collaborator
            memos: Memo storage collaborator
            users: User storage collaborator, used for creator lookups
            ledger: Optional ledger client, required only for contract id sync
            resolver: Ledger id resolver, defaults to the positional heuristic
        """
        self.campaigns = campaigns
        self.memos = memos
        self.users = users
        self.ledger = ledger
        self.resolver = resolver or PositionalContractIdResolver()

    async def create_campaign(
        self,
        created_by: str,
        type: str,
        name: str,
        description: str,
        goal: Optional[Any] = None,
        price: Optional[Any] = None,
        image: Optional[str] = None,
        contract_id: Optional[int] = None,
        transaction_hash: Optional[str] = None
    ) -> Campaign:
        """Create a new campaign.

        Args:
            created_by: The creator's address
            type: One of donation, business, product
            name: Campaign name (1-100 characters)
            description: Campaign description (1-256 characters)
            goal: Funding goal in APT, kept only for donation campaigns
            price: Price in APT, kept only for business and product campaigns
            image: Optional image URL
            contract_id: Optional ledger id if already known
            transaction_hash: Optional campaign creation transaction

        Returns:
            The created campaign

        Raises:
            ValidationError: If any field is invalid
            NotFound: If the creator is not a registered user
        """
        try:
            campaign_type = CampaignType(type)
        except ValueError:
            raise ValidationError("invalid type")

        _check_length(name, "name", NAME_MAX_LENGTH)
        _check_length(description, "description", DESCRIPTION_MAX_LENGTH)
        goal = _check_amount(goal, "goal")
        price = _check_amount(price, "price")
        if contract_id is not None:
            contract_id = _parse_contract_id(contract_id)

        try:
            creator = await self.users.get_by_address(created_by)
            if not creator:
                raise NotFound("user")

            campaign = await self.campaigns.create({
                'type': campaign_type.value,
                'name': name,
                'description': description,
                'goal': goal if campaign_type == CampaignType.DONATION else None,
                'price': price if campaign_type != CampaignType.DONATION else None,
                'image': image,
                'contract_id': contract_id,
                'transaction_hash': transaction_hash,
                'created_by': creator.id,
                'creator_address': creator.address
            })
            logger.info(f"Created {campaign_type.value} campaign {campaign.id} for {created_by}")
            return campaign

        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error creating campaign for {created_by}: {e}")
            raise InternalError("Failed to create campaign", cause=e)

    async def get_campaign(self, campaign_id: Any, viewer_address: Optional[str] = None) -> Campaign:
        """Get a campaign, flagging ownership when a viewer is given.

        Raises:
            NotFound: If the campaign does not exist
        """
        campaign_id = _parse_campaign_id(campaign_id)
        try:
            campaign = await self.campaigns.get(campaign_id)
        except Exception as e:
            logger.error(f"Error loading campaign {campaign_id}: {e}")
            raise InternalError("Failed to load campaign", cause=e)

        if not campaign:
            raise NotFound("campaign")
        if viewer_address:
            campaign = campaign.model_copy(
                update={'is_owner': viewer_address == campaign.creator_address}
            )
        return campaign

    async def list_campaigns(
        self,
        page: Optional[Any] = None,
        page_size: Optional[Any] = None,
        campaign_type: Optional[str] = None,
        is_active: Optional[bool] = None,
        creator_address: Optional[str] = None
    ) -> Page:
        """List campaigns newest first.

        Raises:
            ValidationError: If pagination or the type filter is invalid
        """
        page, page_size = validate_pagination(page, page_size)
        if campaign_type is not None:
            try:
                campaign_type = CampaignType(campaign_type).value
            except ValueError:
                raise ValidationError("invalid type")

        filters = {
            'creator_address': creator_address,
            'campaign_type': campaign_type,
            'is_active': is_active
        }
        try:
            items, total = await asyncio.gather(
                self.campaigns.find(page_size, (page - 1) * page_size, **filters),
                self.campaigns.count(**filters)
            )
        except Exception as e:
            logger.error(f"Error listing campaigns: {e}")
            raise InternalError("Failed to list campaigns", cause=e)

        return build_page(items, total, page, page_size)

    async def list_user_campaigns(
        self,
        address: str,
        page: Optional[Any] = None,
        page_size: Optional[Any] = None,
        campaign_type: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> Page:
        """List the campaigns created by an address."""
        if not address:
            raise ValidationError("address is required")
        return await self.list_campaigns(page, page_size, campaign_type, is_active, creator_address=address)

    async def list_campaign_memos(
        self,
        campaign_id: Any,
        page: Optional[Any] = None,
        page_size: Optional[Any] = None
    ) -> Page:
        """List the settlement memos of a campaign, newest first.

        A campaign without a ledger id has no memos yet and yields an empty page.
        """
        page, page_size = validate_pagination(page, page_size)
        campaign = await self.get_campaign(campaign_id)

        if campaign.contract_id is None:
            return build_page([], 0, page, page_size)

        try:
            items, total = await asyncio.gather(
                self.memos.find_for_campaign(
                    campaign.contract_id, campaign.creator_address, page_size, (page - 1) * page_size
                ),
                self.memos.count_for_campaign(campaign.contract_id, campaign.creator_address)
            )
        except Exception as e:
            logger.error(f"Error listing memos for campaign {campaign.id}: {e}")
            raise InternalError("Failed to list memos", cause=e)

        return build_page(items, total, page, page_size)

    async def create_memo(
        self,
        campaign_id: Optional[Any],
        creator_address: Optional[str],
        user_address: Optional[str],
        memo: Optional[str],
        transaction_hash: Optional[str],
        type: Optional[str],
        amount: Optional[Any]
    ) -> Memo:
        """Record a settlement and apply it to the campaign statistics.

        The transaction hash is the idempotency key: a hash is applied at
        most once. The memo insert and the campaign update commit together.

        Args:
            campaign_id: Ledger id of the campaign (scoped to the creator)
            creator_address: Address of the campaign creator
            user_address: Address of the supporter
            memo: Supporter message (1-256 characters)
            transaction_hash: Ledger transaction of the settlement
            type: donation or purchase
            amount: Settled amount in octas

        Returns:
            The recorded memo

        Raises:
            ValidationError: If fields are missing or invalid
            NotFound: If the creator or the campaign does not exist
            Conflict: If the transaction hash was already recorded
        """
        required = (campaign_id, creator_address, user_address, memo, transaction_hash, type, amount)
        if any(value is None or value == '' for value in required):
            raise ValidationError("missing required fields")

        try:
            memo_type = MemoType(type)
        except ValueError:
            raise ValidationError("invalid type")

        contract_id = _parse_contract_id(campaign_id)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("amount must be a positive integer")
        if not isinstance(memo, str):
            raise ValidationError("memo must be a string")
        if len(memo) > MEMO_MAX_LENGTH:
            raise ValidationError(f"memo must be at most {MEMO_MAX_LENGTH} characters")

        try:
            if not await self.users.get_by_address(creator_address):
                raise NotFound("creator")

            campaign = await self.campaigns.get_by_contract_id(contract_id, creator_address)
            if not campaign:
                raise NotFound("campaign")

            if await self.memos.exists(transaction_hash):
                raise Conflict("duplicate transaction")

            record, updated = await self.memos.settle(
                {
                    'transaction_hash': transaction_hash,
                    'campaign_id': contract_id,
                    'creator_address': creator_address,
                    'user_address': user_address,
                    'type': memo_type.value,
                    'memo': memo,
                    'amount': amount
                },
                campaign.id,
                Decimal(amount) / OCTAS_PER_APT
            )
            logger.info(
                f"Settled {transaction_hash} on campaign {campaign.id}: "
                f"total_raised={updated.total_raised} supporters={updated.supporter_count}"
            )
            return record

        except asyncpg.UniqueViolationError:
            raise Conflict("duplicate transaction")
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error recording memo {transaction_hash}: {e}")
            raise InternalError("Failed to record memo", cause=e)

    async def get_by_contract_id(self, contract_id: Any, creator_address: str) -> Campaign:
        """Find the stored campaign a ledger id refers to.

        An exact (ledger id, creator) match wins. Otherwise the resolver
        picks a campaign by chronological position; an in-range pick that
        has no ledger id yet is backfilled with this one.

        Raises:
            ValidationError: If the id or creator is missing or malformed
            NotFound: If the creator is unknown or has no campaigns
        """
        if not creator_address:
            raise ValidationError("creator address is required")
        contract_id = _parse_contract_id(contract_id)

        try:
            if not await self.users.get_by_address(creator_address):
                raise NotFound("creator")

            campaign = await self.campaigns.get_by_contract_id(contract_id, creator_address)
            if campaign:
                return campaign

            candidates = await self.campaigns.list_by_creator_chronological(creator_address)
            if not candidates:
                raise NotFound("campaign")

            campaign, positional = self.resolver.resolve(contract_id, candidates)

        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error resolving contract id {contract_id} for {creator_address}: {e}")
            raise InternalError("Failed to resolve campaign", cause=e)

        if positional and campaign.contract_id is None:
            try:
                campaign = await self.campaigns.set_contract_id(campaign.id, contract_id) or campaign
                logger.info(f"Backfilled contract id {contract_id} on campaign {campaign.id}")
            except Exception as e:
                logger.warning(f"Could not backfill contract id on campaign {campaign.id}: {e}")

        return campaign

    async def assign_contract_id(
        self,
        campaign_id: Any,
        contract_id: Any,
        creator_address: str,
        transaction_hash: Optional[str] = None
    ) -> Campaign:
        """Record the ledger id of a campaign.

        Raises:
            AuthorizationError: If the caller is not the campaign creator
            Conflict: If a different ledger id is already recorded, or the id
                belongs to another of the creator's campaigns
        """
        contract_id = _parse_contract_id(contract_id)
        campaign = await self.get_campaign(campaign_id)

        if campaign.creator_address != creator_address:
            raise AuthorizationError("only the campaign creator can assign its contract id")
        if campaign.contract_id == contract_id:
            return campaign
        if campaign.contract_id is not None:
            raise Conflict("campaign already has a contract id")

        try:
            other = await self.campaigns.get_by_contract_id(contract_id, creator_address)
            if other and other.id != campaign.id:
                raise Conflict("contract id already assigned")

            updated = await self.campaigns.set_contract_id(campaign.id, contract_id, transaction_hash)
            if not updated:
                raise NotFound("campaign")
            logger.info(f"Assigned contract id {contract_id} to campaign {campaign.id}")
            return updated

        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error assigning contract id to campaign {campaign.id}: {e}")
            raise InternalError("Failed to assign contract id", cause=e)

    async def sync_contract_id(self, campaign_id: Any, creator_address: str) -> Campaign:
        """Backfill a campaign's ledger id once the ledger has recorded it.

        Raises:
            AuthorizationError: If the caller is not the campaign creator
            Conflict: If the ledger does not know the campaign yet
            InternalError: If the ledger is unreachable or not configured
        """
        if self.ledger is None:
            raise InternalError("Ledger client not configured")

        campaign = await self.get_campaign(campaign_id)
        if campaign.creator_address != creator_address:
            raise AuthorizationError("only the campaign creator can sync its contract id")
        if campaign.contract_id is not None:
            return campaign

        try:
            candidates = await self.campaigns.list_by_creator_chronological(creator_address)
        except Exception as e:
            logger.error(f"Error listing campaigns for {creator_address}: {e}")
            raise InternalError("Failed to sync contract id", cause=e)

        position = next(
            (i for i, candidate in enumerate(candidates, start=1) if candidate.id == campaign.id),
            None
        )
        if position is None:
            raise NotFound("campaign")

        try:
            recorded = await asyncio.to_thread(self.ledger.get_total_campaigns, creator_address)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error querying ledger for {creator_address}: {e}")
            raise InternalError("Failed to query ledger", cause=e)

        if recorded < position:
            raise Conflict("campaign not yet recorded on ledger")

        return await self.assign_contract_id(campaign.id, position, creator_address)


__all__ = [
    'CampaignManager',
    'CampaignRepository',
    'MemoRepository',
    'PositionalContractIdResolver',
    'Campaign',
    'CampaignType',
    'Memo',
    'MemoType',
    'OCTAS_PER_APT'
]
