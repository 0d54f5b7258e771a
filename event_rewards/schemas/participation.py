from datetime import datetime
from typing import Any, Dict, Optional

from uuid import UUID

from pydantic import BaseModel, Field


class ParticipationCreate(BaseModel):
    event_id: UUID
    verification_data: Optional[Dict[str, Any]] = None
    additional_data: Optional[Dict[str, Any]] = None


class ParticipationOut(BaseModel):
    id: UUID
    user_id: str
    event_id: UUID

    status: str
    participated_at: datetime

    verification_data: Optional[Dict[str, Any]] = None
    additional_data: Optional[Dict[str, Any]] = None

    is_reward_requested: bool
    reward_requested_at: Optional[datetime] = None
    reward_request_id: Optional[UUID] = None
    rewarded_at: Optional[datetime] = None

    participation_count: int

    class Config:
        from_attributes = True


class ParticipationStatsOut(BaseModel):
    total_participations: int
    unique_participants: int
    participations_by_day: Dict[str, int] = Field(default_factory=dict)
    reward_request_rate: float
    success_rate: float
