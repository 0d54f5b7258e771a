import uuid
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from event_rewards.db import Base


class RewardRequestClaim(Base):
    """
    One row per (event, user, reward) held by a live request.

    Rows exist while the owning request is PENDING, APPROVED or ISSUED and
    are removed when it is rejected or cancelled.
    """

    __tablename__ = "reward_request_claims"

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", "reward_id", name="uq_reward_request_claims_event_user_reward"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    request_id = Column(UUID(as_uuid=True), ForeignKey("reward_requests.id"), nullable=False, index=True)

    event_id = Column(UUID(as_uuid=True), nullable=False)
    user_id = Column(String(100), nullable=False)
    reward_id = Column(UUID(as_uuid=True), nullable=False)

    created_at = Column(TIMESTAMP, server_default=func.now())
