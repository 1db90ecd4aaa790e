"""League tables derived from completed matches.

Nothing here is stored: every call scans the division's completed matches and
rebuilds the table. A match counts as a win for the team recorded in
``winner_team_id`` and as a draw when no winner is recorded.
"""

import os
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .database import storage_errors
from .lifecycle import COMPLETED

POINTS_PER_WIN = 3
POINTS_PER_DRAW = int(os.getenv("LEAGUE_POINTS_PER_DRAW", "0"))


def _standing_sort_key(item: tuple[int, dict[str, int | str]], points_per_draw: int) -> tuple:
    team_id, row = item
    points = int(row["wins"]) * POINTS_PER_WIN + int(row["draws"]) * points_per_draw
    frame_difference = int(row["frames_for"]) - int(row["frames_against"])
    return (-points, -frame_difference, str(row["team"]), team_id)


def compute_standings(
    db: Session,
    division_id: int,
    points_per_draw: int = POINTS_PER_DRAW,
) -> list[schemas.StandingRow]:
    with storage_errors():
        crud.get_division_or_raise(db, division_id)
        teams = crud.get_teams(db, division_id=division_id)
        matches = (
            db.query(models.Match)
            .filter(models.Match.division_id == division_id, models.Match.status == COMPLETED)
            .all()
        )

    table: dict[int, dict[str, int | str]] = {
        team.id: {
            "team": team.name,
            "played": 0,
            "wins": 0,
            "draws": 0,
            "losses": 0,
            "frames_for": 0,
            "frames_against": 0,
        }
        for team in teams
    }

    for match in matches:
        sides = (
            (match.home_team_id, match.home_score, match.away_score),
            (match.away_team_id, match.away_score, match.home_score),
        )
        for team_id, frames_for, frames_against in sides:
            row = table.get(team_id)
            if row is None:
                continue

            row["played"] += 1
            row["frames_for"] += frames_for
            row["frames_against"] += frames_against

            if match.winner_team_id is None:
                row["draws"] += 1
            elif match.winner_team_id == team_id:
                row["wins"] += 1
            else:
                row["losses"] += 1

    ranked = sorted(table.items(), key=lambda item: _standing_sort_key(item, points_per_draw))

    standings: list[schemas.StandingRow] = []
    for rank, (team_id, row) in enumerate(ranked, start=1):
        played = int(row["played"])
        wins = int(row["wins"])
        draws = int(row["draws"])
        frames_for = int(row["frames_for"])
        frames_against = int(row["frames_against"])

        standings.append(
            schemas.StandingRow(
                rank=rank,
                team_id=team_id,
                team=str(row["team"]),
                played=played,
                wins=wins,
                draws=draws,
                losses=int(row["losses"]),
                frames_for=frames_for,
                frames_against=frames_against,
                frame_difference=frames_for - frames_against,
                frames_per_match=round(frames_for / played, 3) if played > 0 else 0.0,
                points=wins * POINTS_PER_WIN + draws * points_per_draw,
            )
        )

    return standings


def compute_all_standings(
    db: Session,
    points_per_draw: int = POINTS_PER_DRAW,
) -> list[schemas.DivisionStandings]:
    computed_at = datetime.now(timezone.utc)
    with storage_errors():
        divisions = crud.get_divisions(db)
    return [
        schemas.DivisionStandings(
            division_id=division.id,
            division=division.name,
            standings=compute_standings(db, division.id, points_per_draw),
            last_updated=computed_at,
        )
        for division in divisions
    ]
