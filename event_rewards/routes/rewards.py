from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from event_rewards.db import get_db
from event_rewards.deps.actor import get_actor_id
from event_rewards.schemas.reward import RewardCreate, RewardOut, RewardUpdate
from event_rewards.services import reward_service


router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.post("", response_model=RewardOut, status_code=201)
def create_reward(
    payload: RewardCreate,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    reward = reward_service.create_reward(db, payload, actor_id)
    db.commit()
    db.refresh(reward)
    return reward


@router.get("/{reward_id}", response_model=RewardOut)
def get_reward(reward_id: UUID, db: Session = Depends(get_db)):
    return reward_service.find_reward_by_id(db, reward_id)


@router.patch("/{reward_id}", response_model=RewardOut)
def update_reward(
    reward_id: UUID,
    payload: RewardUpdate,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    reward = reward_service.update_reward(db, reward_id, payload, actor_id)
    db.commit()
    db.refresh(reward)
    return reward
