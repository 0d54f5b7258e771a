"""
Participation condition checks.

Each condition type maps to one verifier ``fn(event, user_id, data) -> bool``.
New condition kinds are added with ``@register("KIND")``; kinds without a
verifier (QUEST_COMPLETION, CUSTOM, anything unknown) are never satisfied.
"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from event_rewards.models.event import Event
from event_rewards.schemas.verification import InviteFriendsVerification, PurchaseVerification
from event_rewards.services.event_service import is_within_active_window


Verifier = Callable[[Event, str, Dict[str, Any]], bool]

_VERIFIERS: Dict[str, Verifier] = {}


def register(*condition_types: str):
    def decorator(fn: Verifier) -> Verifier:
        for condition_type in condition_types:
            _VERIFIERS[condition_type] = fn
        return fn

    return decorator


def get_verifier(condition_type: str) -> Optional[Verifier]:
    return _VERIFIERS.get(condition_type)


@register("LOGIN_DAYS", "ATTENDANCE")
def _verify_presence(event: Event, user_id: str, data: Dict[str, Any]) -> bool:
    # the request itself is the proof; a login-count lookup would plug in here
    return True


@register("PURCHASE_AMOUNT")
def _verify_purchase(event: Event, user_id: str, data: Dict[str, Any]) -> bool:
    # purchaseId stands in for a purchase-ledger lookup, no amount threshold
    try:
        PurchaseVerification.model_validate(data)
    except ValidationError:
        return False
    return True


@register("INVITE_FRIENDS")
def _verify_invites(event: Event, user_id: str, data: Dict[str, Any]) -> bool:
    try:
        InviteFriendsVerification.model_validate(data)
    except ValidationError:
        return False
    return True


def verify(
    event: Event,
    user_id: str,
    verification_data: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> bool:
    if not is_within_active_window(event, now):
        return False

    verifier = get_verifier(event.condition_type)
    if verifier is None:
        return False

    data = verification_data if isinstance(verification_data, dict) else {}
    return bool(verifier(event, user_id, data))
