import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from event_rewards.db import get_db
from event_rewards.errors import BadRequestError, failure_body
from event_rewards.schemas.command import (
    CommandIn,
    CreateEventCommand,
    CreateParticipationCommand,
    CreateRewardCommand,
    CreateRewardRequestCommand,
    EventFilterCommand,
    EventIdCommand,
    IdCommand,
    RewardRequestFilterCommand,
    UpdateEventCommand,
    UpdateRewardCommand,
    UpdateRewardRequestCommand,
    UserIdCommand,
)
from event_rewards.schemas.event import EventCreate, EventOut, EventUpdate
from event_rewards.schemas.participation import ParticipationOut
from event_rewards.schemas.reward import RewardCreate, RewardOut, RewardUpdate
from event_rewards.schemas.reward_request import RewardRequestOut
from event_rewards.schemas.user_reward import UserRewardOut
from event_rewards.services import (
    event_service,
    participation_service,
    reward_request_service,
    reward_service,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commands", tags=["commands"])


def _many(schema, items):
    return [schema.model_validate(item) for item in items]


# ─── events ───────────────────────────────────────────────────────
def _create_event(db: Session, payload: dict):
    cmd = CreateEventCommand.model_validate(payload)
    fields = EventCreate(**cmd.model_dump(exclude={"user_id"}))
    return EventOut.model_validate(event_service.create_event(db, fields, cmd.user_id))


def _update_event(db: Session, payload: dict):
    cmd = UpdateEventCommand.model_validate(payload)
    patch = EventUpdate(**cmd.model_dump(exclude_unset=True, exclude={"id", "user_id"}))
    return EventOut.model_validate(event_service.update_event(db, cmd.id, patch, cmd.user_id))


def _find_all_events(db: Session, payload: dict):
    cmd = EventFilterCommand.model_validate(payload)
    return _many(EventOut, event_service.find_all_events(db, status=cmd.status, condition_type=cmd.condition_type))


def _find_active_events(db: Session, payload: dict):
    return _many(EventOut, event_service.find_active_events(db))


def _find_event_by_id(db: Session, payload: dict):
    cmd = IdCommand.model_validate(payload)
    return EventOut.model_validate(event_service.find_event_by_id(db, cmd.id))


# ─── rewards ──────────────────────────────────────────────────────
def _create_reward(db: Session, payload: dict):
    cmd = CreateRewardCommand.model_validate(payload)
    fields = RewardCreate(**cmd.model_dump(exclude={"user_id"}))
    return RewardOut.model_validate(reward_service.create_reward(db, fields, cmd.user_id))


def _update_reward(db: Session, payload: dict):
    cmd = UpdateRewardCommand.model_validate(payload)
    patch = RewardUpdate(**cmd.model_dump(exclude_unset=True, exclude={"id", "user_id"}))
    return RewardOut.model_validate(reward_service.update_reward(db, cmd.id, patch, cmd.user_id))


def _find_rewards_by_event_id(db: Session, payload: dict):
    cmd = EventIdCommand.model_validate(payload)
    return _many(RewardOut, reward_service.find_rewards_by_event_id(db, cmd.event_id))


def _find_reward_by_id(db: Session, payload: dict):
    cmd = IdCommand.model_validate(payload)
    return RewardOut.model_validate(reward_service.find_reward_by_id(db, cmd.id))


# ─── participations ───────────────────────────────────────────────
def _create_participation(db: Session, payload: dict):
    cmd = CreateParticipationCommand.model_validate(payload)
    participation = participation_service.participate(
        db,
        cmd.event_id,
        cmd.user_id,
        verification_data=cmd.verification_data,
        additional_data=cmd.additional_data,
    )
    return ParticipationOut.model_validate(participation)


def _find_participations_by_event_id(db: Session, payload: dict):
    cmd = EventIdCommand.model_validate(payload)
    return _many(ParticipationOut, participation_service.find_participations_by_event_id(db, cmd.event_id))


def _find_participations_by_user_id(db: Session, payload: dict):
    cmd = UserIdCommand.model_validate(payload)
    return _many(ParticipationOut, participation_service.find_participations_by_user_id(db, cmd.user_id))


def _get_participation_stats(db: Session, payload: dict):
    cmd = EventIdCommand.model_validate(payload)
    return participation_service.stats_for(db, cmd.event_id)


# ─── reward requests ──────────────────────────────────────────────
def _create_reward_request(db: Session, payload: dict):
    cmd = CreateRewardRequestCommand.model_validate(payload)
    request = reward_request_service.create_request(
        db,
        cmd.event_id,
        cmd.reward_ids,
        cmd.user_id,
        verification_data=cmd.verification_data,
    )
    return RewardRequestOut.model_validate(request)


def _update_reward_request(db: Session, payload: dict):
    cmd = UpdateRewardRequestCommand.model_validate(payload)
    request = reward_request_service.transition(
        db,
        cmd.id,
        cmd.status,
        cmd.operator_id,
        rejected_reason=cmd.rejected_reason,
    )
    return RewardRequestOut.model_validate(request)


def _find_reward_request_by_id(db: Session, payload: dict):
    cmd = IdCommand.model_validate(payload)
    return RewardRequestOut.model_validate(reward_request_service.find_reward_request_by_id(db, cmd.id))


def _find_reward_requests_by_user_id(db: Session, payload: dict):
    cmd = UserIdCommand.model_validate(payload)
    return _many(RewardRequestOut, reward_request_service.find_reward_requests_by_user_id(db, cmd.user_id))


def _find_reward_requests(db: Session, payload: dict):
    cmd = RewardRequestFilterCommand.model_validate(payload)
    requests = reward_request_service.find_reward_requests(
        db,
        status=cmd.status,
        event_id=cmd.event_id,
        user_id=cmd.user_id,
    )
    return _many(RewardRequestOut, requests)


def _find_user_rewards_by_user_id(db: Session, payload: dict):
    cmd = UserIdCommand.model_validate(payload)
    return _many(UserRewardOut, reward_service.find_user_rewards_by_user_id(db, cmd.user_id))


COMMANDS = {
    "create_event": _create_event,
    "update_event": _update_event,
    "find_all_events": _find_all_events,
    "find_active_events": _find_active_events,
    "find_event_by_id": _find_event_by_id,
    "create_reward": _create_reward,
    "update_reward": _update_reward,
    "find_rewards_by_event_id": _find_rewards_by_event_id,
    "find_reward_by_id": _find_reward_by_id,
    "create_participation": _create_participation,
    "find_participations_by_event_id": _find_participations_by_event_id,
    "find_participations_by_user_id": _find_participations_by_user_id,
    "get_participation_stats": _get_participation_stats,
    "create_reward_request": _create_reward_request,
    "update_reward_request": _update_reward_request,
    "find_reward_request_by_id": _find_reward_request_by_id,
    "find_reward_requests_by_user_id": _find_reward_requests_by_user_id,
    "find_reward_requests": _find_reward_requests,
    "find_user_rewards_by_user_id": _find_user_rewards_by_user_id,
}


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )


@router.post("")
def dispatch_command(command: CommandIn, db: Session = Depends(get_db)):
    handler = COMMANDS.get(command.cmd)
    try:
        if handler is None:
            raise BadRequestError(f"Unknown command: {command.cmd}")
        result = handler(db, command.payload)
        db.commit()
    except HTTPException as e:
        db.rollback()
        logger.info("command failed", extra={"cmd": command.cmd, "status_code": e.status_code, "detail": e.detail})
        return JSONResponse(status_code=e.status_code, content=failure_body(e.detail))
    except ValidationError as e:
        db.rollback()
        return JSONResponse(status_code=400, content=failure_body(_validation_message(e)))

    return {"success": True, "data": jsonable_encoder(result)}
