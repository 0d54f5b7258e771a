from __future__ import annotations

import logging
import os
import time
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from croniter import croniter

from event_rewards.db import SessionLocal
from event_rewards.services.reward_service import expire_user_rewards
from event_rewards.utils.time import utcnow


logger = logging.getLogger(__name__)

DEFAULT_CRON = "*/15 * * * *"


def _as_utc_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def compute_next_run_at(*, base_utc: datetime, cron_expr: str, tz_name: str = "UTC") -> datetime:
    if not croniter.is_valid(cron_expr):
        raise ValueError(f"Invalid cron expression: {cron_expr}")

    tz = ZoneInfo(tz_name or "UTC")
    base_local = _as_utc_aware(base_utc).astimezone(tz)
    it = croniter(cron_expr, base_local)
    next_local: datetime = it.get_next(datetime)
    return _as_utc_aware(next_local).replace(tzinfo=None)


def run_once(now: datetime | None = None) -> int:
    if now is None:
        now = utcnow()

    db = SessionLocal()
    try:
        expired = expire_user_rewards(db, now=now)
        db.commit()
        return expired
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def run_expiry_loop(
    *,
    cron_expr: str = DEFAULT_CRON,
    tz_name: str = "UTC",
    max_sleep_seconds: int = 60,
):
    logger.info(
        "grant expiry scheduler started",
        extra={"cron": cron_expr, "timezone": tz_name, "max_sleep_seconds": max_sleep_seconds},
    )

    next_run_at = compute_next_run_at(base_utc=utcnow(), cron_expr=cron_expr, tz_name=tz_name)

    while True:
        now = utcnow()
        if now < next_run_at:
            sleep_for = min(max_sleep_seconds, max(1, int((next_run_at - now).total_seconds())))
            logger.debug(
                "expiry not due; sleeping",
                extra={"sleep_for_seconds": sleep_for, "next_run_at": next_run_at.isoformat()},
            )
            time.sleep(sleep_for)
            continue

        try:
            expired = run_once(now)
            logger.info("grant expiry run success", extra={"expired": expired, "now": now.isoformat()})
        except Exception:
            # on avance quand même next_run_at pour éviter une boucle serrée
            logger.exception("grant expiry run failed", extra={"now": now.isoformat()})

        next_run_at = compute_next_run_at(base_utc=now, cron_expr=cron_expr, tz_name=tz_name)


def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL") or "INFO")
    run_expiry_loop(
        cron_expr=os.getenv("GRANT_EXPIRY_CRON") or DEFAULT_CRON,
        tz_name=os.getenv("GRANT_EXPIRY_TIMEZONE") or "UTC",
        max_sleep_seconds=int(os.getenv("GRANT_EXPIRY_MAX_SLEEP_SECONDS") or "60"),
    )


if __name__ == "__main__":
    main()
