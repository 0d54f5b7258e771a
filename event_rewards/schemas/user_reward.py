from datetime import datetime
from typing import Any, Dict, Optional

from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field


class UserRewardOut(BaseModel):
    id: UUID
    user_id: str
    event_id: UUID
    reward_id: UUID
    request_id: UUID

    name: str
    description: Optional[str] = None
    type: str
    value: str
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias=AliasChoices("meta", "metadata"))

    status: str

    issued_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    used_at: Optional[datetime] = None

    class Config:
        from_attributes = True
