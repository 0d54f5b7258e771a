import uuid
from sqlalchemy import Column, String, TIMESTAMP, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from event_rewards.db import Base


class UserReward(Base):
    __tablename__ = "user_rewards"

    __table_args__ = (UniqueConstraint("request_id", "reward_id", name="uq_user_rewards_request_reward"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(String(100), nullable=False, index=True)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id"), nullable=False)
    reward_id = Column(UUID(as_uuid=True), ForeignKey("rewards.id"), nullable=False)
    request_id = Column(UUID(as_uuid=True), ForeignKey("reward_requests.id"), nullable=False)

    # copie du reward au moment de l'émission
    name = Column(String(100), nullable=False)
    description = Column(String(255))
    type = Column(String(20), nullable=False)
    value = Column(String(255), nullable=False)
    meta = Column("metadata", JSON, nullable=True)

    status = Column(String(20), nullable=False, default="ACTIVE")
    # ACTIVE | USED | EXPIRED

    issued_at = Column(TIMESTAMP, server_default=func.now())
    expiry_date = Column(TIMESTAMP, nullable=True)
    used_at = Column(TIMESTAMP, nullable=True)
