import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .database import transaction
from .errors import ValidationError
from .lifecycle import SCHEDULED, default_race_to

logger = logging.getLogger(__name__)

MATCH_WEEKDAY = 6  # Sunday
DEFAULT_MAX_FRAMES = 25


@dataclass(frozen=True)
class Pairing:
    round: int
    week: int
    home_team_id: int
    away_team_id: int


def round_robin_pairings(team_ids: list[int], rounds: int = 2) -> list[Pairing]:
    """Circle-method round robin; every leg is a full cycle of weeks.

    Odd team counts get a bye slot. Even-numbered legs swap home and away so a
    double round robin gives each pairing one home fixture per side.
    """
    slots: list[int | None] = list(team_ids)
    if len(slots) % 2:
        slots.append(None)

    size = len(slots)
    half = size // 2
    pairings: list[Pairing] = []
    week = 1

    for leg in range(1, rounds + 1):
        order = list(slots)
        for _ in range(size - 1):
            for index in range(half):
                home = order[index]
                away = order[size - 1 - index]
                if home is None or away is None:
                    continue
                if leg % 2 == 0:
                    home, away = away, home
                pairings.append(Pairing(round=leg, week=week, home_team_id=home, away_team_id=away))

            # Keep the first slot fixed and rotate the rest.
            order = [order[0], order[-1], *order[1:-1]]
            week += 1

    return pairings


def first_match_day(start: date) -> date:
    return start + timedelta(days=(MATCH_WEEKDAY - start.weekday()) % 7)


def generate_fixtures(db: Session, payload: schemas.FixtureRequest) -> list[models.Match]:
    division = crud.get_division_or_raise(db, payload.division_id)
    teams = [crud.get_team_or_raise(db, team_id) for team_id in payload.team_ids]

    foreign = [team.name for team in teams if team.division_id not in (None, division.id)]
    if foreign:
        raise ValidationError(f"Teams outside division {division.name}: {', '.join(foreign)}.")

    pairings = round_robin_pairings(payload.team_ids, payload.rounds)
    opening_day = first_match_day(payload.start_date)

    with transaction(db):
        stale = (
            db.query(models.Match)
            .filter(models.Match.division_id == division.id, models.Match.status == SCHEDULED)
            .all()
        )
        for match in stale:
            db.delete(match)

        created: list[models.Match] = []
        for pairing in pairings:
            match = models.Match(
                division_id=division.id,
                round=pairing.round,
                home_team_id=pairing.home_team_id,
                away_team_id=pairing.away_team_id,
                match_date=opening_day + timedelta(weeks=pairing.week - 1),
                match_time=payload.match_time,
                status=SCHEDULED,
                max_frames=DEFAULT_MAX_FRAMES,
                race_to=default_race_to(DEFAULT_MAX_FRAMES),
            )
            db.add(match)
            created.append(match)

    weeks = max((pairing.week for pairing in pairings), default=0)
    logger.info(
        "Generated %s fixtures over %s weeks for division %s (replaced %s scheduled)",
        len(created),
        weeks,
        division.name,
        len(stale),
    )
    return crud.list_matches(db, division_id=division.id, status=SCHEDULED)
