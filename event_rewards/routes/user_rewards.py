from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from event_rewards.db import get_db
from event_rewards.deps.actor import get_actor_id
from event_rewards.schemas.user_reward import UserRewardOut
from event_rewards.services import reward_service


router = APIRouter(prefix="/user-rewards", tags=["user-rewards"])


@router.get("/me", response_model=list[UserRewardOut])
def list_my_user_rewards(
    user_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return reward_service.find_user_rewards_by_user_id(db, user_id)


@router.get("/users/{user_id}", response_model=list[UserRewardOut])
def list_user_rewards(user_id: str, db: Session = Depends(get_db)):
    return reward_service.find_user_rewards_by_user_id(db, user_id)


@router.post("/{user_reward_id}/use", response_model=UserRewardOut)
def use_user_reward(
    user_reward_id: UUID,
    user_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    user_reward = reward_service.use_user_reward(db, user_reward_id, user_id)
    db.commit()
    db.refresh(user_reward)
    return user_reward
