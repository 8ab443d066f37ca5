import os
import pathlib

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session

from lift_tracker.auth.identity import Principal
from lift_tracker.db.models import AppUser, Lift

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session")
def database_url(tmp_path_factory):
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    db_path = tmp_path_factory.mktemp("lift_tracker_db") / "test_lifts.db"
    return f"sqlite:///{db_path}"


@pytest.fixture(scope="session")
def engine(database_url):
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(alembic_cfg, "head")

    engine = create_engine(database_url, future=True)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = Session(bind=engine, future=True)

    yield session

    session.rollback()
    session.close()
    with engine.begin() as connection:
        connection.execute(delete(Lift))
        connection.execute(delete(AppUser))


@pytest.fixture
def owner():
    return Principal(subject="google-oauth2|owner")


@pytest.fixture
def intruder():
    return Principal(subject="google-oauth2|intruder")


@pytest.fixture
def lift_payload():
    return {
        "exercise": "Bench Press",
        "weight": 90,
        "reps": 8,
        "sets": 3,
        "date": "2024-01-02",
        "workout_type": "Chest & Shoulders",
    }
