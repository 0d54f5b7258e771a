import uuid
from sqlalchemy import Column, String, TIMESTAMP, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from event_rewards.db import Base


LOG_TYPES = (
    "EVENT_CREATED",
    "EVENT_UPDATED",
    "EVENT_STATUS_CHANGED",
    "EVENT_PARTICIPATED",
    "REWARD_CREATED",
    "REWARD_UPDATED",
    "REWARD_REQUESTED",
    "REWARD_APPROVED",
    "REWARD_REJECTED",
    "REWARD_CANCELLED",
    "REWARD_ISSUED",
    "REWARD_DELIVERED",
    "REWARD_USED",
)


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    log_type = Column(String(30), nullable=False)
    actor_user_id = Column(String(100), nullable=False)

    # pas de FK : le journal survit à tout
    event_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    reward_id = Column(UUID(as_uuid=True), nullable=True)
    request_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    details = Column(JSON, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
