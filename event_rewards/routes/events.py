from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from event_rewards.db import get_db
from event_rewards.deps.actor import get_actor_id
from event_rewards.schemas.event import EventCreate, EventOut, EventUpdate
from event_rewards.schemas.participation import ParticipationOut, ParticipationStatsOut
from event_rewards.schemas.reward import RewardOut
from event_rewards.services import event_service, participation_service, reward_service


router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=list[EventOut])
def list_events(
    status: str | None = None,
    condition_type: str | None = None,
    db: Session = Depends(get_db),
):
    return event_service.find_all_events(db, status=status, condition_type=condition_type)


@router.get("/active", response_model=list[EventOut])
def list_active_events(db: Session = Depends(get_db)):
    return event_service.find_active_events(db)


@router.post("", response_model=EventOut, status_code=201)
def create_event(
    payload: EventCreate,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    event = event_service.create_event(db, payload, actor_id)
    db.commit()
    db.refresh(event)
    return event


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: UUID, db: Session = Depends(get_db)):
    return event_service.find_event_by_id(db, event_id)


@router.patch("/{event_id}", response_model=EventOut)
def update_event(
    event_id: UUID,
    payload: EventUpdate,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    event = event_service.update_event(db, event_id, payload, actor_id)
    db.commit()
    db.refresh(event)
    return event


@router.get("/{event_id}/rewards", response_model=list[RewardOut])
def list_event_rewards(event_id: UUID, db: Session = Depends(get_db)):
    event = event_service.find_event_by_id(db, event_id)
    return reward_service.find_rewards_by_event_id(db, event.id)


@router.get("/{event_id}/participations", response_model=list[ParticipationOut])
def list_event_participations(event_id: UUID, db: Session = Depends(get_db)):
    return participation_service.find_participations_by_event_id(db, event_id)


@router.get("/{event_id}/stats", response_model=ParticipationStatsOut)
def get_event_stats(event_id: UUID, db: Session = Depends(get_db)):
    return participation_service.stats_for(db, event_id)
