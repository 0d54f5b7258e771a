import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from event_rewards.db import engine, Base
from event_rewards.errors import http_exception_handler, validation_exception_handler

# registers every table on Base.metadata
import event_rewards.models  # noqa: F401

from event_rewards.routes.events import router as events_router
from event_rewards.routes.rewards import router as rewards_router
from event_rewards.routes.participations import router as participations_router
from event_rewards.routes.reward_requests import router as reward_requests_router
from event_rewards.routes.user_rewards import router as user_rewards_router
from event_rewards.routes.admin import router as admin_router
from event_rewards.routes.commands import router as commands_router

logging.basicConfig(level=os.getenv("LOG_LEVEL") or "INFO")

app = FastAPI(title="Event Rewards")

# ─── CORS ─────────────────────────────────────────────────────────
_default_origins = "http://localhost:3000,http://127.0.0.1:3000"
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in (os.getenv("CORS_ORIGINS") or _default_origins).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Errors → {"success": false, "message": ...} ──────────────────
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(events_router)
app.include_router(rewards_router)
app.include_router(participations_router)
app.include_router(reward_requests_router)
app.include_router(user_rewards_router)
app.include_router(admin_router)
app.include_router(commands_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("event_rewards.main:app", host="127.0.0.1", port=8001, reload=True)
