from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from event_rewards.db import get_db
from event_rewards.deps.actor import get_actor_id
from event_rewards.schemas.reward_request import RewardRequestCreate, RewardRequestOut, RewardRequestUpdate
from event_rewards.schemas.user_reward import UserRewardOut
from event_rewards.services import issuance_service, reward_request_service


router = APIRouter(prefix="/reward-requests", tags=["reward-requests"])


@router.post("", response_model=RewardRequestOut, status_code=201)
def create_reward_request(
    payload: RewardRequestCreate,
    user_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    request = reward_request_service.create_request(
        db,
        payload.event_id,
        payload.reward_ids,
        user_id,
        verification_data=payload.verification_data,
    )
    db.commit()
    db.refresh(request)
    return request


@router.get("", response_model=list[RewardRequestOut])
def list_reward_requests(
    status: str | None = None,
    event_id: UUID | None = None,
    user_id: str | None = None,
    db: Session = Depends(get_db),
):
    return reward_request_service.find_reward_requests(db, status=status, event_id=event_id, user_id=user_id)


@router.get("/me", response_model=list[RewardRequestOut])
def list_my_reward_requests(
    user_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return reward_request_service.find_reward_requests_by_user_id(db, user_id)


@router.get("/{request_id}", response_model=RewardRequestOut)
def get_reward_request(request_id: UUID, db: Session = Depends(get_db)):
    return reward_request_service.find_reward_request_by_id(db, request_id)


@router.get("/{request_id}/user-rewards", response_model=list[UserRewardOut])
def list_request_user_rewards(request_id: UUID, db: Session = Depends(get_db)):
    request = reward_request_service.find_reward_request_by_id(db, request_id)
    return issuance_service.find_grants_for_request(db, request.id)


@router.patch("/{request_id}", response_model=RewardRequestOut)
def update_reward_request(
    request_id: UUID,
    payload: RewardRequestUpdate,
    operator_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    request = reward_request_service.transition(
        db,
        request_id,
        payload.status,
        operator_id,
        rejected_reason=payload.rejected_reason,
    )
    db.commit()
    db.refresh(request)
    return request


@router.post("/{request_id}/cancel", response_model=RewardRequestOut)
def cancel_reward_request(
    request_id: UUID,
    user_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    request = reward_request_service.cancel_request(db, request_id, user_id)
    db.commit()
    db.refresh(request)
    return request
