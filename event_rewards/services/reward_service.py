import logging
from datetime import datetime

from sqlalchemy.orm import Session

from event_rewards.errors import BadRequestError, ForbiddenError, NotFoundError
from event_rewards.models.reward import Reward
from event_rewards.models.user_reward import UserReward
from event_rewards.schemas.reward import RewardCreate, RewardOut, RewardUpdate
from event_rewards.services import audit_service
from event_rewards.services.event_service import find_event_by_id
from event_rewards.utils.time import to_utc_naive, utcnow


logger = logging.getLogger(__name__)


def _snapshot(reward: Reward) -> dict:
    return RewardOut.model_validate(reward).model_dump(mode="json")


# ============================================================
# CATALOG
# ============================================================
def create_reward(db: Session, payload: RewardCreate, actor_id: str) -> Reward:
    event = find_event_by_id(db, payload.event_id)

    reward = Reward(
        event_id=event.id,
        name=payload.name,
        description=payload.description,
        type=payload.type,
        value=payload.value,
        meta=payload.metadata,
        total_quantity=payload.total_quantity,
        issued_quantity=0,
        expiry_date=to_utc_naive(payload.expiry_date),
        created_by=actor_id,
    )
    db.add(reward)
    db.flush()

    audit_service.record(
        db,
        "REWARD_CREATED",
        actor_id,
        event_id=event.id,
        reward_id=reward.id,
        details={"reward": _snapshot(reward)},
    )
    return reward


def find_reward_by_id(db: Session, reward_id) -> Reward:
    reward = db.query(Reward).filter(Reward.id == reward_id).first()
    if not reward:
        raise NotFoundError(f"Reward with ID {reward_id} not found")
    return reward


def find_rewards_by_event_id(db: Session, event_id):
    return (
        db.query(Reward)
        .filter(Reward.event_id == event_id)
        .order_by(Reward.created_at.asc(), Reward.name.asc())
        .all()
    )


def update_reward(db: Session, reward_id, payload: RewardUpdate, actor_id: str) -> Reward:
    reward = find_reward_by_id(db, reward_id)

    data = payload.model_dump(exclude_unset=True)

    total = data.get("total_quantity")
    if "total_quantity" in data:
        if total is None:
            raise BadRequestError("total_quantity cannot be cleared")
        if total < (reward.issued_quantity or 0):
            raise BadRequestError(
                f"total_quantity ({total}) cannot be lower than issued_quantity ({reward.issued_quantity})"
            )

    if "expiry_date" in data:
        data["expiry_date"] = to_utc_naive(data["expiry_date"])

    for k, v in data.items():
        if k == "metadata":
            k = "meta"
        setattr(reward, k, v)
    reward.updated_by = actor_id
    db.flush()

    audit_service.record(
        db,
        "REWARD_UPDATED",
        actor_id,
        event_id=reward.event_id,
        reward_id=reward.id,
        details={"changes": sorted(data.keys()), "reward": _snapshot(reward)},
    )
    return reward


# ============================================================
# USER REWARDS (grants émis)
# ============================================================
def find_user_rewards_by_user_id(db: Session, user_id: str):
    return (
        db.query(UserReward)
        .filter(UserReward.user_id == user_id)
        .order_by(UserReward.issued_at.desc())
        .all()
    )


def find_user_reward_by_id(db: Session, user_reward_id) -> UserReward:
    user_reward = db.query(UserReward).filter(UserReward.id == user_reward_id).first()
    if not user_reward:
        raise NotFoundError(f"User reward with ID {user_reward_id} not found")
    return user_reward


def use_user_reward(db: Session, user_reward_id, user_id: str, now: datetime | None = None) -> UserReward:
    if now is None:
        now = utcnow()

    user_reward = (
        db.query(UserReward)
        .filter(UserReward.id == user_reward_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not user_reward:
        raise NotFoundError(f"User reward with ID {user_reward_id} not found")
    if user_reward.user_id != user_id:
        raise ForbiddenError("User reward belongs to another user")
    if user_reward.status != "ACTIVE":
        raise BadRequestError("Reward not usable")
    if user_reward.expiry_date is not None and user_reward.expiry_date < now:
        raise BadRequestError("Reward has expired")

    user_reward.status = "USED"
    user_reward.used_at = now
    db.flush()

    audit_service.record(
        db,
        "REWARD_USED",
        user_id,
        event_id=user_reward.event_id,
        reward_id=user_reward.reward_id,
        request_id=user_reward.request_id,
        details={"userRewardId": user_reward.id},
    )
    return user_reward


def expire_user_rewards(db: Session, now: datetime | None = None) -> int:
    if now is None:
        now = utcnow()

    expired = (
        db.query(UserReward)
        .filter(UserReward.status == "ACTIVE")
        .filter(UserReward.expiry_date.isnot(None))
        .filter(UserReward.expiry_date < now)
        .all()
    )

    for ur in expired:
        ur.status = "EXPIRED"

    db.flush()
    if expired:
        logger.info("user rewards expired", extra={"count": len(expired), "now": now.isoformat()})
    return len(expired)
