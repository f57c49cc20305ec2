"""Messaging endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from common.pagination import Page
from messages import Message
from ..deps import Services, get_services

router = APIRouter(
    prefix="/messages",
    tags=["Messages"]
)


class SendMessageRequest(BaseModel):
    """Request model for sending a message."""
    sender_address: str = Field(..., min_length=1, max_length=100)
    receiver_address: str = Field(..., min_length=1, max_length=100)
    campaign_id: Optional[int] = None
    message: str = Field(..., min_length=1, max_length=1000)
    subject: Optional[str] = None


@router.post("", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_message(request: SendMessageRequest, services: Services = Depends(get_services)):
    """Send a message, opening the thread on first contact."""
    return await services.messages.send_message(
        request.sender_address,
        request.receiver_address,
        request.message,
        subject=request.subject,
        campaign_id=request.campaign_id
    )


@router.get("/user", response_model=Page)
async def get_user_messages(
    address: str = Query(..., min_length=1),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    services: Services = Depends(get_services)
):
    """All messages of a user across threads, newest first."""
    return await services.messages.get_user_messages(address, page, limit)


@router.get("/conversation/{user_address}/{other_address}", response_model=Page)
async def get_conversation(
    user_address: str,
    other_address: str,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    campaign_id: Optional[int] = Query(None),
    services: Services = Depends(get_services)
):
    """One thread, oldest first. Marks the other user's messages as read."""
    return await services.messages.get_conversation(
        user_address, other_address, campaign_id=campaign_id, page=page, page_size=limit
    )
