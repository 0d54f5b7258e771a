from datetime import datetime
from typing import Any, Dict, Literal, Optional

from uuid import UUID

from pydantic import BaseModel, Field


EventStatusLiteral = Literal["DRAFT", "ACTIVE", "PAUSED", "ENDED"]
ConditionTypeLiteral = Literal[
    "LOGIN_DAYS",
    "INVITE_FRIENDS",
    "PURCHASE_AMOUNT",
    "QUEST_COMPLETION",
    "ATTENDANCE",
    "CUSTOM",
]


class EventCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""

    # ISO 8601, parsed here
    start_date: datetime
    end_date: datetime

    status: EventStatusLiteral = "DRAFT"

    condition_type: ConditionTypeLiteral
    condition_value: Dict[str, Any] = Field(default_factory=dict)

    auto_reward: bool = False
    allow_multiple_participation: bool = False
    max_participants: Optional[int] = Field(default=None, ge=1)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    status: Optional[EventStatusLiteral] = None

    condition_type: Optional[ConditionTypeLiteral] = None
    condition_value: Optional[Dict[str, Any]] = None

    auto_reward: Optional[bool] = None
    allow_multiple_participation: Optional[bool] = None
    max_participants: Optional[int] = Field(default=None, ge=1)


class EventOut(BaseModel):
    id: UUID
    title: str
    description: str

    start_date: datetime
    end_date: datetime

    status: str

    condition_type: str
    condition_value: Dict[str, Any] = Field(default_factory=dict)

    auto_reward: bool
    allow_multiple_participation: bool
    participant_count: int
    max_participants: Optional[int] = None

    created_by: str
    updated_by: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
