import uuid
from sqlalchemy import Column, String, TIMESTAMP, JSON, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from event_rewards.db import Base


REWARD_REQUEST_STATUSES = ("PENDING", "APPROVED", "REJECTED", "ISSUED", "CANCELLED")


class RewardRequest(Base):
    __tablename__ = "reward_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(String(100), nullable=False, index=True)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)

    # liste ordonnée d'ids (str) de rewards de l'event
    reward_ids = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default="PENDING")
    # PENDING | APPROVED | REJECTED | ISSUED | CANCELLED

    verification_data = Column(JSON, nullable=True)

    requested_at = Column(TIMESTAMP, nullable=False, server_default=func.now())
    approved_at = Column(TIMESTAMP, nullable=True)
    issued_at = Column(TIMESTAMP, nullable=True)

    rejected_reason = Column(String(500), nullable=True)
    processed_by = Column(String(100), nullable=True)

    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
