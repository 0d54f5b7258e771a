import uuid
from sqlalchemy import Column, String, Integer, TIMESTAMP, JSON, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from event_rewards.db import Base


REWARD_TYPES = ("POINT", "ITEM", "COUPON", "CURRENCY", "BADGE")


class Reward(Base):
    __tablename__ = "rewards"

    __table_args__ = (
        CheckConstraint("issued_quantity <= total_quantity", name="ck_rewards_issued_lte_total"),
        CheckConstraint("issued_quantity >= 0", name="ck_rewards_issued_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    description = Column(String(255))

    type = Column(String(20), nullable=False)
    # POINT | ITEM | COUPON | CURRENCY | BADGE

    # payload opaque (montant, code coupon, sku...)
    value = Column(String(255), nullable=False)
    meta = Column("metadata", JSON, nullable=True)

    total_quantity = Column(Integer, nullable=False, default=0)
    issued_quantity = Column(Integer, nullable=False, default=0)

    expiry_date = Column(TIMESTAMP, nullable=True)

    created_by = Column(String(100), nullable=False)
    updated_by = Column(String(100), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
