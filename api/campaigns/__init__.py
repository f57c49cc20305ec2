"""Campaign, memo and ledger reconciliation endpoints."""

from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field

from campaigns import Campaign, Memo
from common.pagination import Page
from ..deps import Services, get_services

router = APIRouter(tags=["Campaigns"])


class CreateCampaignRequest(BaseModel):
    """Request model for creating a campaign."""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal['donation', 'business', 'product']
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=256)
    created_by: str = Field(..., alias='createdBy', min_length=1)
    goal: Optional[Decimal] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0)
    image: Optional[str] = None
    contract_id: Optional[int] = Field(None, alias='contractId', ge=1)
    transaction_hash: Optional[str] = Field(None, min_length=1, max_length=100)


class CreateMemoRequest(BaseModel):
    """Request model for recording a settlement memo."""
    model_config = ConfigDict(populate_by_name=True)

    contract_id: int = Field(..., alias='contractId', ge=1)
    creator_address: str = Field(..., min_length=1, max_length=100)
    user_address: str = Field(..., min_length=1, max_length=100)
    memo: str = Field(..., min_length=1, max_length=256)
    transaction_hash: str = Field(..., min_length=1, max_length=100)
    type: Literal['donation', 'purchase']
    amount: int = Field(..., gt=0)


class AssignContractRequest(BaseModel):
    """Request model for recording a campaign's ledger id."""
    model_config = ConfigDict(populate_by_name=True)

    contract_id: int = Field(..., alias='contractId', ge=1)
    creator_address: str = Field(..., alias='creatorAddress', min_length=1)
    transaction_hash: Optional[str] = Field(None, min_length=1, max_length=100)


class SyncContractRequest(BaseModel):
    """Request model for syncing a campaign's ledger id."""
    model_config = ConfigDict(populate_by_name=True)

    creator_address: str = Field(..., alias='creatorAddress', min_length=1)


CampaignTypeFilter = Optional[Literal['donation', 'business', 'product']]


@router.post("/create-campaign", response_model=Campaign, status_code=status.HTTP_201_CREATED)
async def create_campaign(request: CreateCampaignRequest, services: Services = Depends(get_services)):
    """Create a campaign."""
    return await services.campaigns.create_campaign(
        created_by=request.created_by,
        type=request.type,
        name=request.name,
        description=request.description,
        goal=request.goal,
        price=request.price,
        image=request.image,
        contract_id=request.contract_id,
        transaction_hash=request.transaction_hash
    )


@router.post("/create-memo", response_model=Memo, status_code=status.HTTP_201_CREATED)
async def create_memo(request: CreateMemoRequest, services: Services = Depends(get_services)):
    """Record a settlement and update the campaign statistics."""
    return await services.campaigns.create_memo(
        campaign_id=request.contract_id,
        creator_address=request.creator_address,
        user_address=request.user_address,
        memo=request.memo,
        transaction_hash=request.transaction_hash,
        type=request.type,
        amount=request.amount
    )


@router.get("/campaign/{campaign_id}", response_model=Campaign)
async def get_campaign(
    campaign_id: str,
    viewer: Optional[str] = Query(None, description="Address of the viewing user"),
    services: Services = Depends(get_services)
):
    """Get a campaign, with is_owner set when a viewer is given."""
    return await services.campaigns.get_campaign(campaign_id, viewer_address=viewer)


@router.put("/campaign/{campaign_id}/contract", response_model=Campaign)
async def assign_contract_id(
    campaign_id: str,
    request: AssignContractRequest,
    services: Services = Depends(get_services)
):
    """Record the ledger id of a campaign."""
    return await services.campaigns.assign_contract_id(
        campaign_id,
        request.contract_id,
        request.creator_address,
        transaction_hash=request.transaction_hash
    )


@router.post("/campaign/{campaign_id}/sync-contract", response_model=Campaign)
async def sync_contract_id(
    campaign_id: str,
    request: SyncContractRequest,
    services: Services = Depends(get_services)
):
    """Backfill a campaign's ledger id from the ledger."""
    return await services.campaigns.sync_contract_id(campaign_id, request.creator_address)


@router.get("/user/campaigns", response_model=Page)
async def list_user_campaigns(
    address: str = Query(..., min_length=1),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    type: CampaignTypeFilter = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    services: Services = Depends(get_services)
):
    """List the campaigns created by an address, newest first."""
    return await services.campaigns.list_user_campaigns(
        address, page, limit, campaign_type=type, is_active=is_active
    )


@router.get("/campaigns", response_model=Page)
async def list_campaigns(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    type: CampaignTypeFilter = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    services: Services = Depends(get_services)
):
    """List all campaigns, newest first."""
    return await services.campaigns.list_campaigns(
        page, limit, campaign_type=type, is_active=is_active
    )


@router.get("/campaign-contract", response_model=Campaign)
async def get_campaign_by_contract_id(
    contract_id: int = Query(..., alias="contractId"),
    creator_address: str = Query(..., alias="creatorAddress", min_length=1),
    services: Services = Depends(get_services)
):
    """Find the stored campaign a ledger id refers to."""
    return await services.campaigns.get_by_contract_id(contract_id, creator_address)


@router.get("/campaign/{campaign_id}/memos", response_model=Page)
async def list_campaign_memos(
    campaign_id: str,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    services: Services = Depends(get_services)
):
    """List a campaign's settlement memos, newest first."""
    return await services.campaigns.list_campaign_memos(campaign_id, page, limit)
