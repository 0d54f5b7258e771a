from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from event_rewards.db import get_db
from event_rewards.schemas.event_log import EventLogOut
from event_rewards.services import audit_service
from event_rewards.services.reward_service import expire_user_rewards


router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/user-rewards/expire")
def admin_expire_user_rewards(db: Session = Depends(get_db)):
    expired_count = expire_user_rewards(db)
    db.commit()
    return {"expired": expired_count}


@router.get("/event-logs", response_model=list[EventLogOut])
def list_event_logs(
    event_id: UUID | None = None,
    request_id: UUID | None = None,
    log_type: str | None = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return audit_service.find_event_logs(
        db,
        event_id=event_id,
        request_id=request_id,
        log_type=log_type,
        limit=limit,
        offset=offset,
    )
