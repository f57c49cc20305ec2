"""User registration and profile endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from users import ADDRESS_PATTERN, User
from ..deps import Services, get_services

router = APIRouter(tags=["Users"])


class AddressRequest(BaseModel):
    """Request model carrying a wallet address."""
    address: str = Field(..., pattern=ADDRESS_PATTERN)


class UpdateProfileRequest(BaseModel):
    """Request model for profile updates."""
    address: str = Field(..., pattern=ADDRESS_PATTERN)
    nickname: Optional[str] = Field(None, min_length=2, max_length=50)
    avatar: Optional[str] = None
    bio: Optional[str] = None


@router.post("/create-user", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(request: AddressRequest, services: Services = Depends(get_services)):
    """Register a wallet address."""
    return await services.users.create_user(request.address)


@router.post("/profile", response_model=User)
async def get_profile(request: AddressRequest, services: Services = Depends(get_services)):
    """Get a user's profile."""
    return await services.users.get_profile(request.address)


@router.put("/update-profile", response_model=User)
async def update_profile(request: UpdateProfileRequest, services: Services = Depends(get_services)):
    """Update nickname, avatar or bio."""
    return await services.users.update_profile(
        request.address,
        nickname=request.nickname,
        avatar=request.avatar,
        bio=request.bio
    )
