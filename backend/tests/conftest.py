import os
from datetime import date

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_SEED_ON_EMPTY", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from league import lifecycle, models, schemas
from league.database import Base, get_db
from league.main import app


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_factory = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    Base.metadata.create_all(bind=engine)
    return session_factory


@pytest.fixture()
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def league_data(session_factory):
    """One division with three teams and two players per team."""
    with session_factory() as db:
        division = models.Division(name="Premier Division", season="2026")
        db.add(division)
        db.flush()

        teams = {}
        players = {}
        for name in ("Alpha", "Bravo", "Charlie"):
            team = models.Team(name=name, division_id=division.id)
            db.add(team)
            db.flush()
            teams[name] = team.id

            for slot in (1, 2):
                player = models.Player(first_name=name, last_name=f"P{slot}", team_id=team.id)
                db.add(player)
                db.flush()
                players[f"{name[0]}{slot}"] = player.id

        db.commit()
        return {"division_id": division.id, "teams": teams, "players": players}


@pytest.fixture()
def schedule(db, league_data):
    """Schedule Alpha (home) vs Bravo (away) unless other teams are given."""

    def _schedule(
        home: str = "Alpha",
        away: str = "Bravo",
        on: date = date(2026, 2, 1),
        max_frames: int = 25,
    ) -> models.Match:
        return lifecycle.schedule_match(
            db,
            schemas.MatchCreate(
                home_team_id=league_data["teams"][home],
                away_team_id=league_data["teams"][away],
                match_date=on,
                division_id=league_data["division_id"],
                max_frames=max_frames,
            ),
        )

    return _schedule
