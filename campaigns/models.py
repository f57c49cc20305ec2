from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, field_serializer


class CampaignType(str, Enum):
    DONATION = 'donation'
    BUSINESS = 'business'
    PRODUCT = 'product'


class MemoType(str, Enum):
    DONATION = 'donation'
    PURCHASE = 'purchase'


class Campaign(BaseModel):
    id: UUID
    type: CampaignType
    name: str
    description: str
    goal: Optional[Decimal] = None
    price: Optional[Decimal] = None
    image: Optional[str] = None
    contract_id: Optional[int] = None
    transaction_hash: Optional[str] = None
    is_active: bool = True
    total_raised: Decimal = Decimal('0')
    supporter_count: int = 0
    created_by: UUID
    creator_address: str
    created_at: datetime
    updated_at: datetime
    # Only set when a viewer address was supplied
    is_owner: Optional[bool] = None

    @field_serializer('goal', 'price', 'total_raised', when_used='json')
    def serialize_apt(self, value: Optional[Decimal]) -> Optional[float]:
        return None if value is None else float(value)


class Memo(BaseModel):
    id: UUID
    transaction_hash: str
    campaign_id: int
    creator_address: str
    user_address: str
    type: MemoType
    memo: str
    amount: int
    created_at: datetime
