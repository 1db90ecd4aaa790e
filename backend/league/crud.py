from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from . import models, schemas
from .database import storage_errors, transaction
from .errors import ConflictError, NotFoundError, ValidationError


def _normalize_text(value: str) -> str:
    return " ".join(value.split())


# ---------------------------------------------------------------------------
# Divisions, teams and players
# ---------------------------------------------------------------------------


def get_divisions(db: Session) -> list[models.Division]:
    return db.query(models.Division).order_by(models.Division.name.asc()).all()


def get_division_or_raise(db: Session, division_id: int) -> models.Division:
    division = db.get(models.Division, division_id)
    if not division:
        raise NotFoundError("Division not found.")
    return division


def create_division(db: Session, payload: schemas.DivisionCreate) -> models.Division:
    name = _normalize_text(payload.name)
    if not name:
        raise ValidationError("Division name cannot be empty.")

    existing = (
        db.query(models.Division)
        .filter(func.lower(models.Division.name) == name.lower())
        .first()
    )
    if existing:
        raise ConflictError("A division with this name already exists.")

    division = models.Division(name=name, season=payload.season)
    with transaction(db):
        db.add(division)
    db.refresh(division)
    return division


def get_teams(db: Session, division_id: int | None = None) -> list[models.Team]:
    query = db.query(models.Team)
    if division_id is not None:
        query = query.filter(models.Team.division_id == division_id)
    return query.order_by(models.Team.name.asc()).all()


def get_team_or_raise(db: Session, team_id: int) -> models.Team:
    team = db.get(models.Team, team_id)
    if not team:
        raise NotFoundError("Team not found.")
    return team


def create_team(db: Session, payload: schemas.TeamCreate) -> models.Team:
    name = _normalize_text(payload.name)
    if not name:
        raise ValidationError("Team name cannot be empty.")

    if payload.division_id is not None:
        get_division_or_raise(db, payload.division_id)

    existing = (
        db.query(models.Team)
        .filter(func.lower(models.Team.name) == name.lower())
        .first()
    )
    if existing:
        raise ConflictError("A team with this name already exists.")

    team = models.Team(name=name, division_id=payload.division_id)
    with transaction(db):
        db.add(team)
    db.refresh(team)
    return team


def get_players(db: Session, team_id: int | None = None) -> list[models.Player]:
    query = db.query(models.Player).options(selectinload(models.Player.team))
    if team_id is not None:
        query = query.filter(models.Player.team_id == team_id)
    return query.order_by(models.Player.last_name.asc(), models.Player.first_name.asc()).all()


def get_player_or_raise(db: Session, player_id: int) -> models.Player:
    player = db.get(models.Player, player_id)
    if not player:
        raise NotFoundError(f"Player {player_id} not found.")
    return player


def create_player(db: Session, payload: schemas.PlayerCreate) -> models.Player:
    first_name = _normalize_text(payload.first_name)
    last_name = _normalize_text(payload.last_name)
    if not first_name:
        raise ValidationError("Player name cannot be empty.")

    if payload.team_id is not None:
        get_team_or_raise(db, payload.team_id)

        existing = (
            db.query(models.Player)
            .filter(
                models.Player.team_id == payload.team_id,
                func.lower(models.Player.first_name) == first_name.lower(),
                func.lower(models.Player.last_name) == last_name.lower(),
            )
            .first()
        )
        if existing:
            raise ConflictError("A player with this name already exists for this team.")

    player = models.Player(first_name=first_name, last_name=last_name, team_id=payload.team_id)
    with transaction(db):
        db.add(player)
    db.refresh(player)
    return player


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------


def _match_query(db: Session):
    return db.query(models.Match).options(
        selectinload(models.Match.home_team),
        selectinload(models.Match.away_team),
        selectinload(models.Match.winner_team),
        selectinload(models.Match.result),
    )


def list_matches(
    db: Session,
    division_id: int | None = None,
    round_no: int | None = None,
    status: schemas.MatchStatus | None = None,
    team_id: int | None = None,
) -> list[models.Match]:
    query = _match_query(db)

    if division_id is not None:
        query = query.filter(models.Match.division_id == division_id)
    if round_no is not None:
        query = query.filter(models.Match.round == round_no)
    if status:
        query = query.filter(models.Match.status == status)
    if team_id is not None:
        query = query.filter(
            or_(models.Match.home_team_id == team_id, models.Match.away_team_id == team_id)
        )

    with storage_errors():
        return query.order_by(
            models.Match.match_date.asc(),
            models.Match.match_time.asc(),
            models.Match.round.asc(),
            models.Match.id.asc(),
        ).all()


def get_match_or_raise(db: Session, match_id: int) -> models.Match:
    match = _match_query(db).filter(models.Match.id == match_id).first()
    if not match:
        raise NotFoundError("Match not found.")

    return match
