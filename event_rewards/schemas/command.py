from typing import Any, Dict, Optional

from uuid import UUID

from pydantic import BaseModel, Field

from event_rewards.schemas.event import EventCreate, EventUpdate
from event_rewards.schemas.participation import ParticipationCreate
from event_rewards.schemas.reward import RewardCreate, RewardUpdate
from event_rewards.schemas.reward_request import RewardRequestCreate, RewardRequestUpdate


class CommandIn(BaseModel):
    cmd: str
    payload: Dict[str, Any] = Field(default_factory=dict)


# Payloads: resource fields plus the caller identity resolved upstream.
class CreateEventCommand(EventCreate):
    user_id: str = Field(min_length=1)


class UpdateEventCommand(EventUpdate):
    id: UUID
    user_id: str = Field(min_length=1)


class EventFilterCommand(BaseModel):
    status: Optional[str] = None
    condition_type: Optional[str] = None


class IdCommand(BaseModel):
    id: UUID


class EventIdCommand(BaseModel):
    event_id: UUID


class UserIdCommand(BaseModel):
    user_id: str = Field(min_length=1)


class CreateRewardCommand(RewardCreate):
    user_id: str = Field(min_length=1)


class UpdateRewardCommand(RewardUpdate):
    id: UUID
    user_id: str = Field(min_length=1)


class CreateParticipationCommand(ParticipationCreate):
    user_id: str = Field(min_length=1)


class CreateRewardRequestCommand(RewardRequestCreate):
    user_id: str = Field(min_length=1)


class UpdateRewardRequestCommand(RewardRequestUpdate):
    id: UUID
    operator_id: str = Field(min_length=1)


class RewardRequestFilterCommand(BaseModel):
    status: Optional[str] = None
    event_id: Optional[UUID] = None
    user_id: Optional[str] = None
