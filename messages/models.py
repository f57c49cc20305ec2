from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field


class Message(BaseModel):
    id: UUID
    sender_address: str
    receiver_address: str
    message: str
    subject: Optional[str] = None
    # Redundant copy of the thread's campaign; never used for routing
    campaign_id: Optional[int] = None
    is_read: bool = False
    created_at: datetime
    updated_at: datetime


class Conversation(BaseModel):
    thread_key: str
    participant_a: str
    participant_b: str
    campaign_id: Optional[int] = None
    messages: List[Message] = Field(default_factory=list)
    last_message_at: datetime
    created_at: datetime
    updated_at: datetime
