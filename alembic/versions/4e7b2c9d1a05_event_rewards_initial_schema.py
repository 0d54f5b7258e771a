"""event rewards initial schema

Revision ID: 4e7b2c9d1a05
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "4e7b2c9d1a05"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


UUID = postgresql.UUID(as_uuid=True)


def _table_exists(bind, table_name: str) -> bool:
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()

    if not _table_exists(bind, "events"):
        op.create_table(
            "events",
            sa.Column("id", UUID, primary_key=True, nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("start_date", sa.TIMESTAMP(), nullable=False),
            sa.Column("end_date", sa.TIMESTAMP(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("condition_type", sa.String(length=30), nullable=False),
            sa.Column("condition_value", sa.JSON(), nullable=False),
            sa.Column("auto_reward", sa.Boolean(), nullable=False),
            sa.Column("allow_multiple_participation", sa.Boolean(), nullable=False),
            sa.Column("participant_count", sa.Integer(), nullable=False),
            sa.Column("max_participants", sa.Integer(), nullable=True),
            sa.Column("created_by", sa.String(length=100), nullable=False),
            sa.Column("updated_by", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        )

    if not _table_exists(bind, "rewards"):
        op.create_table(
            "rewards",
            sa.Column("id", UUID, primary_key=True, nullable=False),
            sa.Column("event_id", UUID, sa.ForeignKey("events.id"), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.String(length=255), nullable=True),
            sa.Column("type", sa.String(length=20), nullable=False),
            sa.Column("value", sa.String(length=255), nullable=False),
            sa.Column("metadata", sa.JSON(), nullable=True),
            sa.Column("total_quantity", sa.Integer(), nullable=False),
            sa.Column("issued_quantity", sa.Integer(), nullable=False),
            sa.Column("expiry_date", sa.TIMESTAMP(), nullable=True),
            sa.Column("created_by", sa.String(length=100), nullable=False),
            sa.Column("updated_by", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.CheckConstraint("issued_quantity <= total_quantity", name="ck_rewards_issued_lte_total"),
            sa.CheckConstraint("issued_quantity >= 0", name="ck_rewards_issued_non_negative"),
        )
        op.create_index("ix_rewards_event_id", "rewards", ["event_id"])

    if not _table_exists(bind, "event_participations"):
        op.create_table(
            "event_participations",
            sa.Column("id", UUID, primary_key=True, nullable=False),
            sa.Column("user_id", sa.String(length=100), nullable=False),
            sa.Column("event_id", UUID, sa.ForeignKey("events.id"), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("participated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
            sa.Column("verification_data", sa.JSON(), nullable=True),
            sa.Column("additional_data", sa.JSON(), nullable=True),
            sa.Column("is_reward_requested", sa.Boolean(), nullable=False),
            sa.Column("reward_requested_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("reward_request_id", UUID, nullable=True),
            sa.Column("rewarded_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("participation_count", sa.Integer(), nullable=False),
            sa.Column("dedupe_key", sa.String(length=200), nullable=True),
            sa.UniqueConstraint("dedupe_key", name="uq_event_participations_dedupe_key"),
        )
        op.create_index("ix_event_participations_user_id", "event_participations", ["user_id"])
        op.create_index("ix_event_participations_event_id", "event_participations", ["event_id"])

    if not _table_exists(bind, "reward_requests"):
        op.create_table(
            "reward_requests",
            sa.Column("id", UUID, primary_key=True, nullable=False),
            sa.Column("user_id", sa.String(length=100), nullable=False),
            sa.Column("event_id", UUID, sa.ForeignKey("events.id"), nullable=False),
            sa.Column("reward_ids", sa.JSON(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("verification_data", sa.JSON(), nullable=True),
            sa.Column("requested_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
            sa.Column("approved_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("issued_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("rejected_reason", sa.String(length=500), nullable=True),
            sa.Column("processed_by", sa.String(length=100), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        )
        op.create_index("ix_reward_requests_user_id", "reward_requests", ["user_id"])
        op.create_index("ix_reward_requests_event_id", "reward_requests", ["event_id"])

    if not _table_exists(bind, "reward_request_claims"):
        op.create_table(
            "reward_request_claims",
            sa.Column("id", UUID, primary_key=True, nullable=False),
            sa.Column("request_id", UUID, sa.ForeignKey("reward_requests.id"), nullable=False),
            sa.Column("event_id", UUID, nullable=False),
            sa.Column("user_id", sa.String(length=100), nullable=False),
            sa.Column("reward_id", UUID, nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.UniqueConstraint(
                "event_id", "user_id", "reward_id", name="uq_reward_request_claims_event_user_reward"
            ),
        )
        op.create_index("ix_reward_request_claims_request_id", "reward_request_claims", ["request_id"])

    if not _table_exists(bind, "user_rewards"):
        op.create_table(
            "user_rewards",
            sa.Column("id", UUID, primary_key=True, nullable=False),
            sa.Column("user_id", sa.String(length=100), nullable=False),
            sa.Column("event_id", UUID, sa.ForeignKey("events.id"), nullable=False),
            sa.Column("reward_id", UUID, sa.ForeignKey("rewards.id"), nullable=False),
            sa.Column("request_id", UUID, sa.ForeignKey("reward_requests.id"), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.String(length=255), nullable=True),
            sa.Column("type", sa.String(length=20), nullable=False),
            sa.Column("value", sa.String(length=255), nullable=False),
            sa.Column("metadata", sa.JSON(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("issued_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("expiry_date", sa.TIMESTAMP(), nullable=True),
            sa.Column("used_at", sa.TIMESTAMP(), nullable=True),
            sa.UniqueConstraint("request_id", "reward_id", name="uq_user_rewards_request_reward"),
        )
        op.create_index("ix_user_rewards_user_id", "user_rewards", ["user_id"])

    if not _table_exists(bind, "event_logs"):
        op.create_table(
            "event_logs",
            sa.Column("id", UUID, primary_key=True, nullable=False),
            sa.Column("log_type", sa.String(length=30), nullable=False),
            sa.Column("actor_user_id", sa.String(length=100), nullable=False),
            sa.Column("event_id", UUID, nullable=True),
            sa.Column("reward_id", UUID, nullable=True),
            sa.Column("request_id", UUID, nullable=True),
            sa.Column("details", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        )
        op.create_index("ix_event_logs_event_id", "event_logs", ["event_id"])
        op.create_index("ix_event_logs_request_id", "event_logs", ["request_id"])


def downgrade() -> None:
    bind = op.get_bind()

    for table_name in (
        "event_logs",
        "user_rewards",
        "reward_request_claims",
        "reward_requests",
        "event_participations",
        "rewards",
        "events",
    ):
        if _table_exists(bind, table_name):
            op.drop_table(table_name)
