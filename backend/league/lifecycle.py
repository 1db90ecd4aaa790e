"""Match lifecycle: scheduling, result submission and resets.

A match is either ``scheduled`` or ``completed``. Submitting a result moves it
to ``completed`` (re-submitting overwrites the previous result), and a reset
moves it back to ``scheduled`` and discards everything recorded for it. Every
transition writes the match and its owned rows in a single transaction.
"""

import logging
from datetime import date

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .database import transaction
from .errors import LeagueError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SCHEDULED = "scheduled"
COMPLETED = "completed"


def score_implied_winner(
    home_team_id: int,
    away_team_id: int,
    home_score: int,
    away_score: int,
) -> int | None:
    # Level scores produce no winner; draw points are a standings concern.
    if home_score > away_score:
        return home_team_id
    if away_score > home_score:
        return away_team_id
    return None


def default_race_to(max_frames: int) -> int:
    return max_frames // 2 + 1


def lock_match(db: Session, match_id: int) -> models.Match:
    match = (
        db.query(models.Match)
        .filter(models.Match.id == match_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not match:
        raise NotFoundError("Match not found.")
    return match


def schedule_match(db: Session, payload: schemas.MatchCreate) -> models.Match:
    if payload.home_team_id == payload.away_team_id:
        raise ValidationError("A team cannot play against itself.")
    if payload.max_frames < 1:
        raise ValidationError("A match needs at least one frame.")

    race_to = payload.race_to if payload.race_to is not None else default_race_to(payload.max_frames)
    if race_to < 1 or race_to > payload.max_frames:
        raise ValidationError("race_to must lie between 1 and max_frames.")

    crud.get_team_or_raise(db, payload.home_team_id)
    crud.get_team_or_raise(db, payload.away_team_id)
    if payload.division_id is not None:
        crud.get_division_or_raise(db, payload.division_id)

    match = models.Match(
        division_id=payload.division_id,
        round=payload.round,
        home_team_id=payload.home_team_id,
        away_team_id=payload.away_team_id,
        match_date=payload.match_date,
        match_time=payload.match_time,
        status=SCHEDULED,
        home_score=0,
        away_score=0,
        winner_team_id=None,
        max_frames=payload.max_frames,
        race_to=race_to,
    )
    with transaction(db):
        db.add(match)

    logger.info(
        "Scheduled match %s: team %s vs team %s on %s",
        match.id,
        match.home_team_id,
        match.away_team_id,
        match.match_date,
    )
    return crud.get_match_or_raise(db, match.id)


def _validate_scores(match: models.Match, home_score: int, away_score: int) -> None:
    if home_score < 0 or away_score < 0:
        raise ValidationError("Scores cannot be negative.")
    if home_score + away_score > match.max_frames:
        raise ValidationError(
            f"A {match.max_frames}-frame match cannot finish {home_score}-{away_score}."
        )


def apply_result(
    db: Session,
    match: models.Match,
    home_score: int,
    away_score: int,
    submitted_by: int | None = None,
) -> None:
    """Write scores and winner to the match and its result row.

    Callers own the transaction; nothing is committed here.
    """
    _validate_scores(match, home_score, away_score)
    winner_team_id = score_implied_winner(match.home_team_id, match.away_team_id, home_score, away_score)

    match.home_score = home_score
    match.away_score = away_score
    match.winner_team_id = winner_team_id
    match.status = COMPLETED

    result = match.result
    if result is None:
        result = models.MatchResult(match_id=match.id, is_approved=True)
        match.result = result

    result.home_score = home_score
    result.away_score = away_score
    result.winner_team_id = winner_team_id
    result.submitted_by = submitted_by
    result.submitted_at = models.utcnow()
    db.flush()


def reopen_match(match: models.Match) -> None:
    """Return a completed match to scheduled, keeping its frames and lineup.

    Callers own the transaction; nothing is committed here.
    """
    match.result = None
    match.home_score = 0
    match.away_score = 0
    match.winner_team_id = None
    match.status = SCHEDULED


def submit_result(
    db: Session,
    match_id: int,
    home_score: int,
    away_score: int,
    submitted_by: int | None = None,
) -> models.Match:
    with transaction(db):
        match = lock_match(db, match_id)
        apply_result(db, match, home_score, away_score, submitted_by)

    logger.info(
        "Result for match %s: %s-%s, winner team %s",
        match_id,
        home_score,
        away_score,
        match.winner_team_id,
    )
    return crud.get_match_or_raise(db, match_id)


def reset_match(db: Session, match_id: int) -> models.Match:
    with transaction(db):
        match = lock_match(db, match_id)

        frame_count = len(match.frames)
        lineup_count = len(match.lineup)
        had_result = match.result is not None

        match.frames.clear()
        match.lineup.clear()
        match.result = None

        match.home_score = 0
        match.away_score = 0
        match.winner_team_id = None
        match.status = SCHEDULED

    logger.info(
        "Reset match %s: removed %s frames, %s lineup entries, result=%s",
        match_id,
        frame_count,
        lineup_count,
        had_result,
    )
    return crud.get_match_or_raise(db, match_id)


def reset_completed_matches(db: Session, from_date: date) -> schemas.ResetReport:
    match_ids = [
        row.id
        for row in db.query(models.Match.id)
        .filter(models.Match.status == COMPLETED, models.Match.match_date >= from_date)
        .order_by(models.Match.id.asc())
        .all()
    ]
    report = schemas.ResetReport()
    if not match_ids:
        logger.info("No completed matches on or after %s", from_date)
        return report

    logger.info("Resetting %s completed matches from %s onwards", len(match_ids), from_date)
    for match_id in match_ids:
        try:
            reset_match(db, match_id)
        except LeagueError:
            logger.warning("Reset of match %s failed", match_id, exc_info=True)
            report.failed.append(match_id)
            continue
        report.reset.append(match_id)

    return report
