from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel


class User(BaseModel):
    id: UUID
    address: str
    nickname: str = ""
    avatar: Optional[str] = None
    bio: str = ""
    followers: int = 0
    following: int = 0
    created_at: datetime
    updated_at: datetime
