"""Per-player frame statistics read from the frame ledger.

Every frame a player appears in counts as played, void frames included. Win
percentage is frames won over frames played. The current streak counts
consecutive frame wins back from the player's most recent decided frame.
"""

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from . import crud, models, schemas
from .database import storage_errors


def _stat_sort_key(row: schemas.PlayerStatRow) -> tuple:
    return (-row.frames_won, -row.win_percentage, row.last_name, row.first_name, row.player_id)


def player_stats(db: Session, division_id: int | None = None) -> list[schemas.PlayerStatRow]:
    with storage_errors():
        query = (
            db.query(models.Player)
            .options(selectinload(models.Player.team))
            .filter(models.Player.is_active.is_(True))
        )
        if division_id is not None:
            crud.get_division_or_raise(db, division_id)
            query = query.join(models.Team, models.Player.team_id == models.Team.id).filter(
                models.Team.division_id == division_id
            )
        players = query.all()
        if not players:
            return []

        player_ids = [player.id for player in players]
        # Newest first, so the streak walk stops at the first lost frame.
        frames = (
            db.query(models.FrameResult)
            .join(models.Match, models.FrameResult.match_id == models.Match.id)
            .filter(
                or_(
                    models.FrameResult.home_player_id.in_(player_ids),
                    models.FrameResult.away_player_id.in_(player_ids),
                )
            )
            .order_by(
                models.Match.match_date.desc(),
                models.Match.id.desc(),
                models.FrameResult.frame_number.desc(),
            )
            .all()
        )

    table = {
        player.id: {
            "matches": set(),
            "played": 0,
            "won": 0,
            "lost": 0,
            "streak": 0,
            "streak_open": True,
        }
        for player in players
    }

    for frame in frames:
        for player_id in (frame.home_player_id, frame.away_player_id):
            row = table.get(player_id)
            if row is None:
                continue

            row["matches"].add(frame.match_id)
            row["played"] += 1
            if frame.winner_player_id is None:
                continue

            if frame.winner_player_id == player_id:
                row["won"] += 1
                if row["streak_open"]:
                    row["streak"] += 1
            else:
                row["lost"] += 1
                row["streak_open"] = False

    stats: list[schemas.PlayerStatRow] = []
    for player in players:
        row = table[player.id]
        played = row["played"]
        stats.append(
            schemas.PlayerStatRow(
                player_id=player.id,
                first_name=player.first_name,
                last_name=player.last_name,
                team_id=player.team_id,
                team=player.team.name if player.team else None,
                matches_played=len(row["matches"]),
                frames_played=played,
                frames_won=row["won"],
                frames_lost=row["lost"],
                frame_difference=row["won"] - row["lost"],
                win_percentage=round(row["won"] / played * 100, 2) if played > 0 else 0.0,
                current_streak=row["streak"],
            )
        )

    stats.sort(key=_stat_sort_key)
    return stats
