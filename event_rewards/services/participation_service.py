import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_rewards.errors import BadRequestError, ConflictError, NotFoundError
from event_rewards.models.event import Event
from event_rewards.models.event_participation import EventParticipation
from event_rewards.models.reward_request import RewardRequest
from event_rewards.schemas.participation import ParticipationOut, ParticipationStatsOut
from event_rewards.services import audit_service, condition_verifier
from event_rewards.services.event_service import find_event_by_id, is_within_active_window
from event_rewards.utils.time import utcnow


logger = logging.getLogger(__name__)


def _dedupe_key(event: Event, user_id: str) -> str | None:
    if event.allow_multiple_participation:
        return None
    return f"{event.id}:{user_id}"


def participate(
    db: Session,
    event_id,
    user_id: str,
    verification_data: dict | None = None,
    additional_data: dict | None = None,
    now: datetime | None = None,
) -> EventParticipation:
    if now is None:
        now = utcnow()

    # verrou sur l'event : sérialise les participations concurrentes
    event = db.query(Event).filter(Event.id == event_id).with_for_update().populate_existing().first()
    if not event:
        raise NotFoundError(f"Event with ID {event_id} not found")

    if not is_within_active_window(event, now):
        raise BadRequestError("Event is not active")

    if not condition_verifier.verify(event, user_id, verification_data, now):
        raise BadRequestError("Event conditions not met")

    previous = (
        db.query(func.count(EventParticipation.id))
        .filter(EventParticipation.event_id == event.id)
        .filter(EventParticipation.user_id == user_id)
        .filter(EventParticipation.status == "PARTICIPATED")
        .scalar()
    ) or 0

    if previous and not event.allow_multiple_participation:
        raise ConflictError("User has already participated in this event")

    if event.max_participants is not None and (event.participant_count or 0) >= event.max_participants:
        raise BadRequestError("Event has reached its participant limit")

    participation = EventParticipation(
        event_id=event.id,
        user_id=user_id,
        status="PARTICIPATED",
        participated_at=now,
        verification_data=verification_data or {},
        additional_data=additional_data or {},
        is_reward_requested=False,
        participation_count=previous + 1,
        dedupe_key=_dedupe_key(event, user_id),
    )

    try:
        with db.begin_nested():
            db.add(participation)
            db.flush()
    except IntegrityError:
        logger.warning(
            "duplicate participation rejected by constraint",
            extra={"event_id": str(event.id), "user_id": user_id},
        )
        raise ConflictError("User has already participated in this event")

    db.query(Event).filter(Event.id == event.id).update(
        {Event.participant_count: Event.participant_count + 1},
        synchronize_session=False,
    )
    db.flush()

    audit_service.record(
        db,
        "EVENT_PARTICIPATED",
        user_id,
        event_id=event.id,
        details={
            "participation": ParticipationOut.model_validate(participation).model_dump(mode="json"),
            "conditionType": event.condition_type,
        },
    )
    return participation


def find_participations_by_event_id(db: Session, event_id):
    return (
        db.query(EventParticipation)
        .filter(EventParticipation.event_id == event_id)
        .order_by(EventParticipation.participated_at.desc())
        .all()
    )


def find_participations_by_user_id(db: Session, user_id: str):
    return (
        db.query(EventParticipation)
        .filter(EventParticipation.user_id == user_id)
        .order_by(EventParticipation.participated_at.desc())
        .all()
    )


def find_latest_participation(db: Session, event_id, user_id: str):
    return (
        db.query(EventParticipation)
        .filter(EventParticipation.event_id == event_id)
        .filter(EventParticipation.user_id == user_id)
        .filter(EventParticipation.status == "PARTICIPATED")
        .order_by(EventParticipation.participated_at.desc())
        .first()
    )


def stats_for(db: Session, event_id) -> ParticipationStatsOut:
    event = find_event_by_id(db, event_id)

    participated = (
        EventParticipation.event_id == event.id,
        EventParticipation.status == "PARTICIPATED",
    )

    total = db.query(func.count(EventParticipation.id)).filter(*participated).scalar() or 0

    unique = (
        db.query(func.count(func.distinct(EventParticipation.user_id)))
        .filter(*participated)
        .scalar()
    ) or 0

    day = func.date(EventParticipation.participated_at)
    rows = (
        db.query(day, func.count(EventParticipation.id))
        .filter(*participated)
        .group_by(day)
        .order_by(day)
        .all()
    )
    by_day = {str(d): int(c) for d, c in rows}

    requests = (
        db.query(func.count(RewardRequest.id))
        .filter(RewardRequest.event_id == event.id)
        .scalar()
    ) or 0
    approved = (
        db.query(func.count(RewardRequest.id))
        .filter(RewardRequest.event_id == event.id)
        .filter(RewardRequest.status.in_(("APPROVED", "ISSUED")))
        .scalar()
    ) or 0

    return ParticipationStatsOut(
        total_participations=int(total),
        unique_participants=int(unique),
        participations_by_day=by_day,
        reward_request_rate=(requests / total) if total > 0 else 0.0,
        success_rate=(approved / requests) if requests > 0 else 0.0,
    )
