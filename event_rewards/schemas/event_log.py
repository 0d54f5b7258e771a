from datetime import datetime
from typing import Any, Dict, Optional

from uuid import UUID

from pydantic import BaseModel


class EventLogOut(BaseModel):
    id: UUID
    log_type: str
    actor_user_id: str

    event_id: Optional[UUID] = None
    reward_id: Optional[UUID] = None
    request_id: Optional[UUID] = None

    details: Optional[Dict[str, Any]] = None

    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
