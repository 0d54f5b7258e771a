from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from uuid import UUID

from pydantic import BaseModel


RewardRequestStatusLiteral = Literal["PENDING", "APPROVED", "REJECTED", "ISSUED", "CANCELLED"]


class RewardRequestCreate(BaseModel):
    event_id: UUID
    # liste vide refusée par le workflow (400)
    reward_ids: List[UUID]
    verification_data: Optional[Dict[str, Any]] = None


class RewardRequestUpdate(BaseModel):
    status: RewardRequestStatusLiteral
    rejected_reason: Optional[str] = None


class RewardRequestOut(BaseModel):
    id: UUID
    user_id: str
    event_id: UUID
    reward_ids: List[UUID]

    status: str

    verification_data: Optional[Dict[str, Any]] = None

    requested_at: datetime
    approved_at: Optional[datetime] = None
    issued_at: Optional[datetime] = None

    rejected_reason: Optional[str] = None
    processed_by: Optional[str] = None

    class Config:
        from_attributes = True
