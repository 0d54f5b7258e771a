import logging
import os
import uuid
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_rewards.errors import BadRequestError, ConflictError, DomainError, ForbiddenError, NotFoundError
from event_rewards.models.event import Event
from event_rewards.models.reward import Reward
from event_rewards.models.reward_request import REWARD_REQUEST_STATUSES, RewardRequest
from event_rewards.models.reward_request_claim import RewardRequestClaim
from event_rewards.services import audit_service, condition_verifier, issuance_service
from event_rewards.services.event_service import is_within_active_window
from event_rewards.services.participation_service import find_latest_participation
from event_rewards.utils.time import utcnow


logger = logging.getLogger(__name__)


# Every status change not listed here is refused.
ALLOWED_TRANSITIONS = {
    "PENDING": {"APPROVED", "REJECTED", "CANCELLED"},
    "APPROVED": {"ISSUED"},
    "REJECTED": set(),
    "ISSUED": set(),
    "CANCELLED": set(),
}


def system_operator_id() -> str:
    return os.getenv("SYSTEM_OPERATOR_ID") or "system"


def _ordered_unique(reward_ids) -> list[uuid.UUID]:
    seen = set()
    ordered = []
    for rid in reward_ids or []:
        rid = rid if isinstance(rid, uuid.UUID) else uuid.UUID(str(rid))
        if rid in seen:
            continue
        seen.add(rid)
        ordered.append(rid)
    return ordered


def _request_details(request: RewardRequest, **extra) -> dict:
    details = {
        "userId": request.user_id,
        "rewardIds": list(request.reward_ids or []),
        "status": request.status,
    }
    details.update(extra)
    return details


def _first_reward_id(request: RewardRequest):
    if not request.reward_ids:
        return None
    return uuid.UUID(str(request.reward_ids[0]))


# ============================================================
# CREATE
# ============================================================
def create_request(
    db: Session,
    event_id,
    reward_ids,
    user_id: str,
    verification_data: dict | None = None,
    now: datetime | None = None,
) -> RewardRequest:
    if now is None:
        now = utcnow()

    # verrou sur l'event : sérialise les demandes concurrentes
    event = db.query(Event).filter(Event.id == event_id).with_for_update().populate_existing().first()
    if not event:
        raise NotFoundError(f"Event with ID {event_id} not found")

    requested = _ordered_unique(reward_ids)
    if not requested:
        raise BadRequestError("At least one reward ID must be provided")

    found = {
        rid
        for (rid,) in db.query(Reward.id)
        .filter(Reward.id.in_(requested))
        .filter(Reward.event_id == event.id)
        .all()
    }
    if len(found) != len(requested):
        raise NotFoundError("Some reward IDs are invalid or do not belong to this event")

    if not is_within_active_window(event, now):
        raise BadRequestError("Event is not active")

    if not condition_verifier.verify(event, user_id, verification_data, now):
        raise BadRequestError("Event conditions not met")

    existing = (
        db.query(RewardRequestClaim.id)
        .filter(RewardRequestClaim.event_id == event.id)
        .filter(RewardRequestClaim.user_id == user_id)
        .filter(RewardRequestClaim.reward_id.in_(requested))
        .first()
    )
    if existing:
        raise ConflictError("A reward request for this event and reward already exists")

    request = RewardRequest(
        event_id=event.id,
        user_id=user_id,
        reward_ids=[str(rid) for rid in requested],
        status="PENDING",
        verification_data=verification_data or {},
        requested_at=now,
    )

    try:
        with db.begin_nested():
            db.add(request)
            db.flush()
            for rid in requested:
                db.add(
                    RewardRequestClaim(
                        request_id=request.id,
                        event_id=event.id,
                        user_id=user_id,
                        reward_id=rid,
                    )
                )
            db.flush()
    except IntegrityError:
        logger.warning(
            "duplicate reward request rejected by constraint",
            extra={"event_id": str(event.id), "user_id": user_id},
        )
        raise ConflictError("A reward request for this event and reward already exists")

    participation = find_latest_participation(db, event.id, user_id)
    if participation is not None:
        participation.is_reward_requested = True
        participation.reward_requested_at = now
        participation.reward_request_id = request.id
        db.flush()

    audit_service.record(
        db,
        "REWARD_REQUESTED",
        user_id,
        event_id=event.id,
        reward_id=requested[0],
        request_id=request.id,
        details=_request_details(request),
    )

    if event.auto_reward:
        _auto_approve(db, request)

    return request


def _auto_approve(db: Session, request: RewardRequest):
    operator_id = system_operator_id()
    try:
        with db.begin_nested():
            transition(db, request.id, "APPROVED", operator_id)
    except DomainError as e:
        # la demande reste PENDING pour traitement manuel
        db.refresh(request)
        logger.warning(
            "automatic approval failed, request left pending",
            extra={"request_id": str(request.id), "reason": e.detail},
        )


# ============================================================
# TRANSITIONS
# ============================================================
def _release_claims(db: Session, request: RewardRequest):
    db.query(RewardRequestClaim).filter(RewardRequestClaim.request_id == request.id).delete(
        synchronize_session=False
    )


def transition(
    db: Session,
    request_id,
    new_status: str,
    operator_id: str,
    rejected_reason: str | None = None,
    now: datetime | None = None,
) -> RewardRequest:
    if now is None:
        now = utcnow()

    if new_status not in REWARD_REQUEST_STATUSES:
        raise BadRequestError(f"Unknown reward request status: {new_status}")

    request = (
        db.query(RewardRequest)
        .filter(RewardRequest.id == request_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not request:
        raise NotFoundError(f"Reward request with ID {request_id} not found")

    current = request.status
    if new_status == current:
        logger.info(
            "reward request transition is a no-op",
            extra={"request_id": str(request.id), "status": current},
        )
        return request

    if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ConflictError(f"Cannot change reward request status from {current} to {new_status}")

    if new_status == "APPROVED":
        # l'émission passe avant le changement de statut : un échec laisse PENDING
        with db.begin_nested():
            grants = issuance_service.issue(db, request.id, operator_id, now=now)
            request.status = "APPROVED"
            request.approved_at = now
            request.issued_at = now
            request.processed_by = operator_id
            db.flush()

        participation = find_latest_participation(db, request.event_id, request.user_id)
        if participation is not None and participation.reward_request_id == request.id:
            participation.rewarded_at = now
            db.flush()

        audit_service.record(
            db,
            "REWARD_APPROVED",
            operator_id,
            event_id=request.event_id,
            reward_id=_first_reward_id(request),
            request_id=request.id,
            details=_request_details(request, previousStatus=current, grantCount=len(grants)),
        )

    elif new_status == "REJECTED":
        request.status = "REJECTED"
        request.rejected_reason = rejected_reason
        request.processed_by = operator_id
        _release_claims(db, request)
        db.flush()

        audit_service.record(
            db,
            "REWARD_REJECTED",
            operator_id,
            event_id=request.event_id,
            reward_id=_first_reward_id(request),
            request_id=request.id,
            details=_request_details(request, previousStatus=current, rejectedReason=rejected_reason),
        )

    elif new_status == "CANCELLED":
        request.status = "CANCELLED"
        request.processed_by = operator_id
        _release_claims(db, request)
        db.flush()

        audit_service.record(
            db,
            "REWARD_CANCELLED",
            operator_id,
            event_id=request.event_id,
            reward_id=_first_reward_id(request),
            request_id=request.id,
            details=_request_details(request, previousStatus=current),
        )

    elif new_status == "ISSUED":
        request.status = "ISSUED"
        request.issued_at = now
        request.processed_by = operator_id
        db.flush()

        audit_service.record(
            db,
            "REWARD_DELIVERED",
            operator_id,
            event_id=request.event_id,
            reward_id=_first_reward_id(request),
            request_id=request.id,
            details=_request_details(request, previousStatus=current),
        )

    logger.info(
        "reward request transitioned",
        extra={"request_id": str(request.id), "from": current, "to": new_status, "operator_id": operator_id},
    )
    return request


def cancel_request(db: Session, request_id, user_id: str) -> RewardRequest:
    request = find_reward_request_by_id(db, request_id)
    if request.user_id != user_id:
        raise ForbiddenError("Reward request belongs to another user")
    return transition(db, request.id, "CANCELLED", user_id)


# ============================================================
# QUERIES
# ============================================================
def find_reward_request_by_id(db: Session, request_id) -> RewardRequest:
    request = db.query(RewardRequest).filter(RewardRequest.id == request_id).first()
    if not request:
        raise NotFoundError(f"Reward request with ID {request_id} not found")
    return request


def find_reward_requests_by_user_id(db: Session, user_id: str):
    return (
        db.query(RewardRequest)
        .filter(RewardRequest.user_id == user_id)
        .order_by(RewardRequest.requested_at.desc())
        .all()
    )


def find_reward_requests(
    db: Session,
    *,
    status: str | None = None,
    event_id=None,
    user_id: str | None = None,
):
    q = db.query(RewardRequest)
    if status:
        q = q.filter(RewardRequest.status == status)
    if event_id:
        q = q.filter(RewardRequest.event_id == event_id)
    if user_id:
        q = q.filter(RewardRequest.user_id == user_id)
    return q.order_by(RewardRequest.requested_at.desc()).all()
