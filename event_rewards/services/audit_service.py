import logging

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from event_rewards.models.event_log import EventLog
from event_rewards.utils.time import utcnow


logger = logging.getLogger(__name__)


def record(
    db: Session,
    log_type: str,
    actor_user_id: str,
    *,
    event_id=None,
    reward_id=None,
    request_id=None,
    details: dict | None = None,
):
    """
    Append one EventLog entry inside a SAVEPOINT.

    A failing write is logged and dropped: the audit trail never aborts the
    operation that produced it. Returns the entry, or None when it was dropped.
    """
    try:
        with db.begin_nested():
            entry = EventLog(
                log_type=log_type,
                actor_user_id=actor_user_id or "system",
                event_id=event_id,
                reward_id=reward_id,
                request_id=request_id,
                details=jsonable_encoder(details) if details is not None else None,
                created_at=utcnow(),
            )
            db.add(entry)
            db.flush()
        return entry
    except Exception:
        logger.exception(
            "event log write failed",
            extra={
                "log_type": log_type,
                "actor_user_id": actor_user_id,
                "event_id": str(event_id) if event_id else None,
                "request_id": str(request_id) if request_id else None,
            },
        )
        return None


def find_event_logs(
    db: Session,
    *,
    event_id=None,
    request_id=None,
    log_type: str | None = None,
    limit: int = 50,
    offset: int = 0,
):
    q = db.query(EventLog)
    if event_id:
        q = q.filter(EventLog.event_id == event_id)
    if request_id:
        q = q.filter(EventLog.request_id == request_id)
    if log_type:
        q = q.filter(EventLog.log_type == log_type)

    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    return (
        q.order_by(EventLog.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
