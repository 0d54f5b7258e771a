import uuid

import pytest
from sqlalchemy import event, insert

from event_rewards.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from event_rewards.models.event_log import EventLog
from event_rewards.models.reward_request import RewardRequest
from event_rewards.models.reward_request_claim import RewardRequestClaim
from event_rewards.models.user_reward import UserReward
from event_rewards.services import participation_service, reward_request_service


def test_attendance_request_then_approval(db, make_event, make_reward):
    """
    Participate, request one reward, approve: one grant and one unit consumed.
    """
    ev = make_event()
    reward = make_reward(ev, total_quantity=10)
    participation = participation_service.participate(db, ev.id, "u1")

    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    assert request.status == "PENDING"
    assert request.reward_ids == [str(reward.id)]
    assert participation.is_reward_requested is True
    assert participation.reward_request_id == request.id

    approved = reward_request_service.transition(db, request.id, "APPROVED", "admin-1")

    assert approved.status == "APPROVED"
    assert approved.processed_by == "admin-1"
    assert approved.approved_at is not None
    assert approved.issued_at is not None
    db.refresh(reward)
    assert reward.issued_quantity == 1
    db.refresh(participation)
    assert participation.rewarded_at is not None

    grants = db.query(UserReward).filter(UserReward.request_id == request.id).all()
    assert len(grants) == 1
    assert grants[0].user_id == "u1"
    assert grants[0].status == "ACTIVE"
    assert grants[0].value == reward.value


def test_request_on_draft_event(db, make_event, make_reward):
    ev = make_event(status="DRAFT")
    reward = make_reward(ev)

    with pytest.raises(BadRequestError) as exc:
        reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    assert exc.value.detail == "Event is not active"


def test_request_with_empty_reward_list(db, make_event):
    ev = make_event()

    with pytest.raises(BadRequestError) as exc:
        reward_request_service.create_request(db, ev.id, [], "u1")

    assert exc.value.detail == "At least one reward ID must be provided"


def test_request_for_unknown_event(db):
    with pytest.raises(NotFoundError):
        reward_request_service.create_request(db, uuid.uuid4(), [uuid.uuid4()], "u1")


def test_request_with_reward_of_another_event(db, make_event, make_reward):
    ev = make_event()
    foreign = make_reward(make_event(title="other"))

    with pytest.raises(NotFoundError) as exc:
        reward_request_service.create_request(db, ev.id, [foreign.id], "u1")

    assert exc.value.detail == "Some reward IDs are invalid or do not belong to this event"


def test_request_conditions_not_met(db, make_event, make_reward):
    ev = make_event(condition_type="PURCHASE_AMOUNT")
    reward = make_reward(ev)

    with pytest.raises(BadRequestError) as exc:
        reward_request_service.create_request(db, ev.id, [reward.id], "u1", verification_data={})
    assert exc.value.detail == "Event conditions not met"

    request = reward_request_service.create_request(
        db, ev.id, [reward.id], "u1", verification_data={"purchaseId": "P-9"}
    )
    assert request.verification_data == {"purchaseId": "P-9"}


def test_duplicate_request_conflicts(db, make_event, make_reward):
    ev = make_event()
    a = make_reward(ev, name="A")
    b = make_reward(ev, name="B")
    reward_request_service.create_request(db, ev.id, [a.id], "u1")

    with pytest.raises(ConflictError):
        reward_request_service.create_request(db, ev.id, [a.id], "u1")
    with pytest.raises(ConflictError):
        reward_request_service.create_request(db, ev.id, [b.id, a.id], "u1")

    # autre reward ou autre user : ok
    reward_request_service.create_request(db, ev.id, [b.id], "u1")
    reward_request_service.create_request(db, ev.id, [a.id], "u2")


def test_claim_constraint_rejects_concurrent_duplicate(db, make_event, make_reward):
    """
    A claim committed by another transaction after the duplicate lookup is
    caught by the unique (event, user, reward) constraint.
    """
    ev = make_event()
    reward = make_reward(ev)
    seeded = []

    def _concurrent_claim(session, flush_context, instances):
        if seeded:
            return
        seeded.append(True)
        session.connection().execute(
            insert(RewardRequestClaim.__table__).values(
                id=uuid.uuid4(),
                request_id=uuid.uuid4(),
                event_id=ev.id,
                user_id="u1",
                reward_id=reward.id,
            )
        )

    event.listen(db, "before_flush", _concurrent_claim)
    try:
        with pytest.raises(ConflictError):
            reward_request_service.create_request(db, ev.id, [reward.id], "u1")
    finally:
        event.remove(db, "before_flush", _concurrent_claim)

    assert seeded
    assert db.query(RewardRequest).count() == 0
    assert db.query(EventLog).filter(EventLog.log_type == "REWARD_REQUESTED").count() == 0


def test_rejected_request_releases_its_claims(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev)
    first = reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    rejected = reward_request_service.transition(db, first.id, "REJECTED", "admin-1", rejected_reason="no proof")

    assert rejected.status == "REJECTED"
    assert rejected.rejected_reason == "no proof"
    assert db.query(RewardRequestClaim).filter(RewardRequestClaim.request_id == first.id).count() == 0

    again = reward_request_service.create_request(db, ev.id, [reward.id], "u1")
    assert again.status == "PENDING"


def test_duplicate_reward_ids_are_collapsed(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev)

    request = reward_request_service.create_request(db, ev.id, [reward.id, reward.id], "u1")

    assert request.reward_ids == [str(reward.id)]


def test_double_approval_issues_once(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev)
    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    reward_request_service.transition(db, request.id, "APPROVED", "admin-1")
    again = reward_request_service.transition(db, request.id, "APPROVED", "admin-2")

    assert again.status == "APPROVED"
    assert again.processed_by == "admin-1"
    db.refresh(reward)
    assert reward.issued_quantity == 1
    assert db.query(UserReward).filter(UserReward.request_id == request.id).count() == 1


def test_rejected_request_cannot_be_approved(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev)
    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")
    reward_request_service.transition(db, request.id, "REJECTED", "admin-1")

    with pytest.raises(ConflictError):
        reward_request_service.transition(db, request.id, "APPROVED", "admin-1")

    db.refresh(reward)
    assert reward.issued_quantity == 0


def test_transition_graph(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev)
    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    with pytest.raises(ConflictError):
        reward_request_service.transition(db, request.id, "ISSUED", "admin-1")
    with pytest.raises(BadRequestError):
        reward_request_service.transition(db, request.id, "SHIPPED", "admin-1")

    reward_request_service.transition(db, request.id, "APPROVED", "admin-1")
    issued = reward_request_service.transition(db, request.id, "ISSUED", "admin-1")
    assert issued.status == "ISSUED"

    with pytest.raises(ConflictError):
        reward_request_service.transition(db, request.id, "CANCELLED", "admin-1")


def test_delivery_confirmation_is_not_counted_as_a_grant(db, make_event, make_reward):
    ev = make_event()
    a = make_reward(ev, name="A")
    b = make_reward(ev, name="B")
    request = reward_request_service.create_request(db, ev.id, [a.id, b.id], "u1")
    reward_request_service.transition(db, request.id, "APPROVED", "admin-1")
    reward_request_service.transition(db, request.id, "ISSUED", "admin-2")

    logs = db.query(EventLog).filter(EventLog.request_id == request.id)
    assert logs.filter(EventLog.log_type == "REWARD_ISSUED").count() == 2
    delivered = logs.filter(EventLog.log_type == "REWARD_DELIVERED").one()
    assert delivered.actor_user_id == "admin-2"
    assert delivered.details["previousStatus"] == "APPROVED"


def test_out_of_stock_keeps_request_pending(db, make_event, make_reward):
    ev = make_event()
    plenty = make_reward(ev, name="plenty", total_quantity=5)
    gone = make_reward(ev, name="gone", total_quantity=1, issued_quantity=1)
    request = reward_request_service.create_request(db, ev.id, [plenty.id, gone.id], "u1")

    with pytest.raises(ConflictError):
        reward_request_service.transition(db, request.id, "APPROVED", "admin-1")

    db.refresh(request)
    db.refresh(plenty)
    db.refresh(gone)
    assert request.status == "PENDING"
    assert plenty.issued_quantity == 0
    assert gone.issued_quantity == 1
    assert db.query(UserReward).filter(UserReward.request_id == request.id).count() == 0


def test_zero_quantity_reward_is_never_issued(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev, total_quantity=0)
    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    with pytest.raises(ConflictError):
        reward_request_service.transition(db, request.id, "APPROVED", "admin-1")


def test_stock_is_shared_between_users(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev, total_quantity=1)
    first = reward_request_service.create_request(db, ev.id, [reward.id], "u1")
    second = reward_request_service.create_request(db, ev.id, [reward.id], "u2")

    reward_request_service.transition(db, first.id, "APPROVED", "admin-1")
    with pytest.raises(ConflictError):
        reward_request_service.transition(db, second.id, "APPROVED", "admin-1")

    db.refresh(reward)
    assert reward.issued_quantity == reward.total_quantity == 1


def test_auto_reward_event_approves_on_request(db, make_event, make_reward, monkeypatch):
    monkeypatch.setenv("SYSTEM_OPERATOR_ID", "robot")
    ev = make_event(auto_reward=True)
    reward = make_reward(ev)

    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    assert request.status == "APPROVED"
    assert request.processed_by == "robot"
    db.refresh(reward)
    assert reward.issued_quantity == 1


def test_auto_reward_out_of_stock_stays_pending(db, make_event, make_reward):
    ev = make_event(auto_reward=True)
    reward = make_reward(ev, total_quantity=0)

    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    assert request.status == "PENDING"
    assert db.query(UserReward).count() == 0


def test_cancel_request(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev)
    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")

    with pytest.raises(ForbiddenError):
        reward_request_service.cancel_request(db, request.id, "u2")

    cancelled = reward_request_service.cancel_request(db, request.id, "u1")
    assert cancelled.status == "CANCELLED"
    assert db.query(RewardRequestClaim).count() == 0


def test_workflow_writes_audit_trail(db, make_event, make_reward):
    ev = make_event()
    reward = make_reward(ev)
    request = reward_request_service.create_request(db, ev.id, [reward.id], "u1")
    reward_request_service.transition(db, request.id, "APPROVED", "admin-1")

    logs = db.query(EventLog).filter(EventLog.request_id == request.id).all()
    assert sorted(log.log_type for log in logs) == ["REWARD_APPROVED", "REWARD_ISSUED", "REWARD_REQUESTED"]
    approved = next(log for log in logs if log.log_type == "REWARD_APPROVED")
    assert approved.actor_user_id == "admin-1"
    assert approved.details["previousStatus"] == "PENDING"


def test_queries(db, make_event, make_reward):
    ev = make_event()
    a = make_reward(ev, name="A")
    b = make_reward(ev, name="B")
    r1 = reward_request_service.create_request(db, ev.id, [a.id], "u1")
    reward_request_service.create_request(db, ev.id, [b.id], "u2")
    reward_request_service.transition(db, r1.id, "REJECTED", "admin-1")

    assert reward_request_service.find_reward_request_by_id(db, r1.id).id == r1.id
    assert len(reward_request_service.find_reward_requests_by_user_id(db, "u1")) == 1
    assert len(reward_request_service.find_reward_requests(db, event_id=ev.id)) == 2
    assert [r.user_id for r in reward_request_service.find_reward_requests(db, status="PENDING")] == ["u2"]

    with pytest.raises(NotFoundError):
        reward_request_service.find_reward_request_by_id(db, uuid.uuid4())
