import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from event_rewards.db import Base, get_db
import event_rewards.models  # noqa: F401
from event_rewards.main import app
from event_rewards.models.event import Event
from event_rewards.models.reward import Reward
from event_rewards.utils.time import utcnow


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite ne gère pas SAVEPOINT tout seul : on prend la main sur BEGIN
    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def make_event(db):
    def _make(**overrides):
        now = utcnow()
        fields = dict(
            title="Spring attendance",
            description="Check in during the festival",
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=1),
            status="ACTIVE",
            condition_type="ATTENDANCE",
            condition_value={},
            auto_reward=False,
            allow_multiple_participation=False,
            participant_count=0,
            max_participants=None,
            created_by="admin-1",
        )
        fields.update(overrides)
        ev = Event(**fields)
        db.add(ev)
        db.flush()
        return ev

    return _make


@pytest.fixture()
def make_reward(db):
    def _make(event, **overrides):
        fields = dict(
            event_id=event.id,
            name="Coffee coupon",
            description="One free coffee",
            type="COUPON",
            value="COFFEE-1",
            meta={"shop": "main"},
            total_quantity=10,
            issued_quantity=0,
            expiry_date=None,
            created_by="admin-1",
        )
        fields.update(overrides)
        reward = Reward(**fields)
        db.add(reward)
        db.flush()
        return reward

    return _make


@pytest.fixture()
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
