import logging
import uuid
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_rewards.errors import BadRequestError, ConflictError, NotFoundError
from event_rewards.models.reward import Reward
from event_rewards.models.reward_request import RewardRequest
from event_rewards.models.user_reward import UserReward
from event_rewards.schemas.user_reward import UserRewardOut
from event_rewards.services import audit_service
from event_rewards.utils.time import utcnow


logger = logging.getLogger(__name__)


def _reserve_one(db: Session, reward: Reward) -> bool:
    # UPDATE gardé : jamais issued_quantity > total_quantity, même en concurrence
    updated = (
        db.query(Reward)
        .filter(Reward.id == reward.id)
        .filter(Reward.issued_quantity < Reward.total_quantity)
        .update(
            {Reward.issued_quantity: Reward.issued_quantity + 1},
            synchronize_session=False,
        )
    )
    return updated == 1


def find_grants_for_request(db: Session, request_id):
    return (
        db.query(UserReward)
        .filter(UserReward.request_id == request_id)
        .order_by(UserReward.issued_at.asc())
        .all()
    )


def issue(db: Session, request_id, operator_id: str | None, now: datetime | None = None) -> list[UserReward]:
    """
    Materialise one UserReward per reward of an approvable request.

    Already approved/issued requests are a no-op returning their grants.
    Rewards that no longer exist are skipped with a warning. An exhausted
    reward aborts the whole issuance with a ConflictError; the caller's
    transaction must then be rolled back so no grant or counter change
    survives.
    """
    if now is None:
        now = utcnow()
    actor = operator_id or "system"

    request = db.query(RewardRequest).filter(RewardRequest.id == request_id).first()
    if not request:
        raise NotFoundError(f"Reward request with ID {request_id} not found")

    if request.status in ("APPROVED", "ISSUED"):
        logger.warning("reward request already approved", extra={"request_id": str(request.id)})
        return find_grants_for_request(db, request.id)

    reward_ids = [uuid.UUID(str(r)) for r in (request.reward_ids or [])]
    if not reward_ids:
        raise BadRequestError("No rewards to issue")

    # ordre stable pour limiter les deadlocks entre approbations concurrentes
    rewards = {
        r.id: r
        for r in db.query(Reward)
        .filter(Reward.id.in_(reward_ids))
        .order_by(Reward.id.asc())
        .with_for_update()
        .populate_existing()
        .all()
    }

    grants = []
    for reward_id in reward_ids:
        reward = rewards.get(reward_id)
        if reward is None:
            logger.warning(
                "reward not found during issuance, skipped",
                extra={"request_id": str(request.id), "reward_id": str(reward_id)},
            )
            continue

        if not _reserve_one(db, reward):
            logger.warning(
                "reward out of stock",
                extra={
                    "request_id": str(request.id),
                    "reward_id": str(reward.id),
                    "total_quantity": reward.total_quantity,
                },
            )
            raise ConflictError(f"Reward {reward.id} ({reward.name}) is out of stock")

        grant = UserReward(
            user_id=request.user_id,
            event_id=request.event_id,
            reward_id=reward.id,
            request_id=request.id,
            name=reward.name,
            description=reward.description,
            type=reward.type,
            value=reward.value,
            meta=dict(reward.meta) if reward.meta else reward.meta,
            status="ACTIVE",
            issued_at=now,
            expiry_date=reward.expiry_date,
        )
        try:
            with db.begin_nested():
                db.add(grant)
                db.flush()
        except IntegrityError:
            raise ConflictError(f"Reward {reward.id} was already issued for request {request.id}")

        audit_service.record(
            db,
            "REWARD_ISSUED",
            actor,
            event_id=request.event_id,
            reward_id=reward.id,
            request_id=request.id,
            details={"userReward": UserRewardOut.model_validate(grant).model_dump(mode="json")},
        )
        grants.append(grant)

    if not grants:
        raise BadRequestError("None of the requested rewards exist anymore")

    # les compteurs ont été modifiés par UPDATE direct
    for reward in rewards.values():
        db.refresh(reward)

    logger.info(
        "rewards issued",
        extra={"request_id": str(request.id), "count": len(grants), "operator_id": actor},
    )
    return grants
