import uuid
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, JSON, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from event_rewards.db import Base


class EventParticipation(Base):
    __tablename__ = "event_participations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(String(100), nullable=False, index=True)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default="PARTICIPATED")
    # PARTICIPATED | REWARDED | FAILED

    participated_at = Column(TIMESTAMP, nullable=False, server_default=func.now())

    verification_data = Column(JSON, nullable=True)
    additional_data = Column(JSON, nullable=True)

    is_reward_requested = Column(Boolean, nullable=False, default=False)
    reward_requested_at = Column(TIMESTAMP, nullable=True)
    reward_request_id = Column(UUID(as_uuid=True), nullable=True)
    rewarded_at = Column(TIMESTAMP, nullable=True)

    participation_count = Column(Integer, nullable=False, default=1)

    # "<event_id>:<user_id>" pour les events à participation unique, NULL sinon
    dedupe_key = Column(String(200), nullable=True, unique=True)
