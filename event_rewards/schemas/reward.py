from datetime import datetime
from typing import Any, Dict, Literal, Optional

from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field


RewardTypeLiteral = Literal["POINT", "ITEM", "COUPON", "CURRENCY", "BADGE"]


class RewardCreate(BaseModel):
    event_id: UUID
    name: str = Field(min_length=1)
    description: Optional[str] = None
    type: RewardTypeLiteral
    value: str
    metadata: Optional[Dict[str, Any]] = None
    total_quantity: int = Field(ge=0)
    expiry_date: Optional[datetime] = None


class RewardUpdate(BaseModel):
    # event_id et issued_quantity ne sont pas modifiables
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    type: Optional[RewardTypeLiteral] = None
    value: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    total_quantity: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[datetime] = None


class RewardOut(BaseModel):
    id: UUID
    event_id: UUID
    name: str
    description: Optional[str] = None
    type: str
    value: str
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias=AliasChoices("meta", "metadata"))
    total_quantity: int
    issued_quantity: int
    expiry_date: Optional[datetime] = None

    created_by: str
    updated_by: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
