"""Campaign copy improvement endpoint."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ..deps import Services, get_services

router = APIRouter(tags=["Assistant"])


class ImproveCampaignRequest(BaseModel):
    """Request model for improving a campaign field."""
    model_config = ConfigDict(populate_by_name=True)

    campaign_id: Optional[str] = Field(None, alias='campaignId')
    field: Literal['name', 'description']
    context: str = Field(..., min_length=1)
    current_value: Optional[str] = Field(None, alias='currentValue')


class ImproveCampaignResponse(BaseModel):
    field: str
    value: str


@router.post("/improve-campaign", response_model=ImproveCampaignResponse)
async def improve_campaign(request: ImproveCampaignRequest, services: Services = Depends(get_services)):
    """Suggest a better campaign name or description."""
    value = await services.assistant.improve_field(
        request.field,
        request.context,
        current_value=request.current_value,
        campaign_id=request.campaign_id
    )
    return ImproveCampaignResponse(field=request.field, value=value)
