from datetime import timedelta

import pytest

from event_rewards.models.event import Event
from event_rewards.services import condition_verifier
from event_rewards.utils.time import utcnow


def _event(condition_type, status="ACTIVE", start_offset=-1, end_offset=1):
    now = utcnow()
    return Event(
        title="t",
        description="",
        start_date=now + timedelta(days=start_offset),
        end_date=now + timedelta(days=end_offset),
        status=status,
        condition_type=condition_type,
        condition_value={},
        created_by="admin-1",
    )


@pytest.mark.parametrize("condition_type", ["LOGIN_DAYS", "ATTENDANCE"])
def test_presence_conditions_pass_without_data(condition_type):
    assert condition_verifier.verify(_event(condition_type), "u1") is True


def test_purchase_requires_purchase_id():
    ev = _event("PURCHASE_AMOUNT")
    assert condition_verifier.verify(ev, "u1", {"purchaseId": "P-100"}) is True
    assert condition_verifier.verify(ev, "u1", {"purchaseId": 42, "amount": 5}) is True
    assert condition_verifier.verify(ev, "u1", {"purchaseId": ""}) is False
    assert condition_verifier.verify(ev, "u1", {"purchaseId": None}) is False
    assert condition_verifier.verify(ev, "u1", {"amount": 5000}) is False
    assert condition_verifier.verify(ev, "u1", None) is False


def test_purchase_ignores_extra_fields():
    ev = _event("PURCHASE_AMOUNT")
    assert condition_verifier.verify(ev, "u1", {"purchaseId": "p-1", "amount": "12 EUR"}) is True
    assert condition_verifier.verify(ev, "u1", {"purchaseId": {"store": 7, "ref": "A1"}}) is True


def test_invite_friends_requires_non_empty_list():
    ev = _event("INVITE_FRIENDS")
    assert condition_verifier.verify(ev, "u1", {"invitedUsers": ["u2"]}) is True
    assert condition_verifier.verify(ev, "u1", {"invitedUsers": []}) is False
    assert condition_verifier.verify(ev, "u1", {"invitedUsers": "u2"}) is False
    assert condition_verifier.verify(ev, "u1", {}) is False


@pytest.mark.parametrize("condition_type", ["QUEST_COMPLETION", "CUSTOM", "SOMETHING_NEW"])
def test_unsupported_conditions_never_pass(condition_type):
    assert condition_verifier.verify(_event(condition_type), "u1", {"anything": True}) is False


def test_inactive_event_never_passes():
    assert condition_verifier.verify(_event("ATTENDANCE", status="DRAFT"), "u1") is False
    assert condition_verifier.verify(_event("ATTENDANCE", status="PAUSED"), "u1") is False


def test_outside_window_never_passes():
    assert condition_verifier.verify(_event("ATTENDANCE", start_offset=1, end_offset=2), "u1") is False
    assert condition_verifier.verify(_event("ATTENDANCE", start_offset=-3, end_offset=-2), "u1") is False


def test_window_bounds_are_inclusive():
    ev = _event("ATTENDANCE")
    assert condition_verifier.verify(ev, "u1", now=ev.start_date) is True
    assert condition_verifier.verify(ev, "u1", now=ev.end_date) is True


def test_register_adds_a_new_condition_kind():
    @condition_verifier.register("TEST_ONLY_KIND")
    def _always(event, user_id, data):
        return data.get("ok") is True

    try:
        ev = _event("TEST_ONLY_KIND")
        assert condition_verifier.verify(ev, "u1", {"ok": True}) is True
        assert condition_verifier.verify(ev, "u1", {"ok": False}) is False
    finally:
        condition_verifier._VERIFIERS.pop("TEST_ONLY_KIND", None)
