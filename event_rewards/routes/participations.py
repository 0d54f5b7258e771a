from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from event_rewards.db import get_db
from event_rewards.deps.actor import get_actor_id
from event_rewards.schemas.participation import ParticipationCreate, ParticipationOut
from event_rewards.services import participation_service


router = APIRouter(prefix="/participations", tags=["participations"])


@router.post("", response_model=ParticipationOut, status_code=201)
def create_participation(
    payload: ParticipationCreate,
    user_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    participation = participation_service.participate(
        db,
        payload.event_id,
        user_id,
        verification_data=payload.verification_data,
        additional_data=payload.additional_data,
    )
    db.commit()
    db.refresh(participation)
    return participation


@router.get("/me", response_model=list[ParticipationOut])
def list_my_participations(
    user_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return participation_service.find_participations_by_user_id(db, user_id)
