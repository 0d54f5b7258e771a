import logging
from datetime import datetime

from sqlalchemy.orm import Session

from event_rewards.errors import BadRequestError, NotFoundError
from event_rewards.models.event import Event
from event_rewards.schemas.event import EventCreate, EventOut, EventUpdate
from event_rewards.services import audit_service
from event_rewards.utils.time import to_utc_naive, utcnow


logger = logging.getLogger(__name__)


def is_within_active_window(event: Event, now: datetime | None = None) -> bool:
    if now is None:
        now = utcnow()
    if event.status != "ACTIVE":
        return False
    return event.start_date <= now <= event.end_date


def _snapshot(event: Event) -> dict:
    return EventOut.model_validate(event).model_dump(mode="json")


def _check_window(start_date: datetime, end_date: datetime):
    if start_date >= end_date:
        raise BadRequestError("start_date must be before end_date")


def create_event(db: Session, payload: EventCreate, actor_id: str) -> Event:
    start_date = to_utc_naive(payload.start_date)
    end_date = to_utc_naive(payload.end_date)
    _check_window(start_date, end_date)

    event = Event(
        title=payload.title,
        description=payload.description,
        start_date=start_date,
        end_date=end_date,
        status=payload.status,
        condition_type=payload.condition_type,
        condition_value=payload.condition_value or {},
        auto_reward=payload.auto_reward,
        allow_multiple_participation=payload.allow_multiple_participation,
        participant_count=0,
        max_participants=payload.max_participants,
        created_by=actor_id,
    )
    db.add(event)
    db.flush()

    audit_service.record(
        db,
        "EVENT_CREATED",
        actor_id,
        event_id=event.id,
        details={"event": _snapshot(event)},
    )

    logger.info("event created", extra={"event_id": str(event.id), "actor_id": actor_id})
    return event


def find_event_by_id(db: Session, event_id) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError(f"Event with ID {event_id} not found")
    return event


def find_all_events(db: Session, *, status: str | None = None, condition_type: str | None = None):
    q = db.query(Event)
    if status:
        q = q.filter(Event.status == status)
    if condition_type:
        q = q.filter(Event.condition_type == condition_type)
    return q.order_by(Event.start_date.desc()).all()


def find_active_events(db: Session, now: datetime | None = None):
    if now is None:
        now = utcnow()
    return (
        db.query(Event)
        .filter(
            Event.status == "ACTIVE",
            Event.start_date <= now,
            Event.end_date >= now,
        )
        .order_by(Event.end_date.asc())
        .all()
    )


def update_event(db: Session, event_id, payload: EventUpdate, actor_id: str) -> Event:
    event = find_event_by_id(db, event_id)

    data = payload.model_dump(exclude_unset=True)
    for key in ("start_date", "end_date"):
        if key in data:
            if data[key] is None:
                raise BadRequestError(f"{key} cannot be cleared")
            data[key] = to_utc_naive(data[key])

    _check_window(data.get("start_date", event.start_date), data.get("end_date", event.end_date))

    previous_status = event.status
    new_status = data.get("status")
    if new_status is None:
        data.pop("status", None)

    for k, v in data.items():
        if k == "condition_value" and v is None:
            v = {}
        setattr(event, k, v)
    event.updated_by = actor_id
    db.flush()

    if new_status and new_status != previous_status:
        audit_service.record(
            db,
            "EVENT_STATUS_CHANGED",
            actor_id,
            event_id=event.id,
            details={"previousStatus": previous_status, "newStatus": new_status},
        )
        logger.info(
            "event status changed",
            extra={"event_id": str(event.id), "from": previous_status, "to": new_status},
        )

    audit_service.record(
        db,
        "EVENT_UPDATED",
        actor_id,
        event_id=event.id,
        details={"changes": sorted(data.keys()), "event": _snapshot(event)},
    )
    return event
