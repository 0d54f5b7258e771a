import uuid
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, JSON, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from event_rewards.db import Base


EVENT_STATUSES = ("DRAFT", "ACTIVE", "PAUSED", "ENDED")

CONDITION_TYPES = (
    "LOGIN_DAYS",
    "INVITE_FRIENDS",
    "PURCHASE_AMOUNT",
    "QUEST_COMPLETION",
    "ATTENDANCE",
    "CUSTOM",
)


class Event(Base):
    __tablename__ = "events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")

    start_date = Column(TIMESTAMP, nullable=False)
    end_date = Column(TIMESTAMP, nullable=False)

    status = Column(String(20), nullable=False, default="DRAFT")
    # DRAFT | ACTIVE | PAUSED | ENDED

    condition_type = Column(String(30), nullable=False)
    condition_value = Column(JSON, nullable=False, default=dict)
    # ex: {"days": 7} ou {"count": 3} ou {"amount": 10000}

    auto_reward = Column(Boolean, nullable=False, default=False)
    allow_multiple_participation = Column(Boolean, nullable=False, default=False)

    # incrémenté uniquement via UPDATE atomique
    participant_count = Column(Integer, nullable=False, default=0)
    max_participants = Column(Integer, nullable=True)

    created_by = Column(String(100), nullable=False)
    updated_by = Column(String(100), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
