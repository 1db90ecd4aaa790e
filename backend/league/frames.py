import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .database import transaction
from .errors import ConflictError, ValidationError
from .lifecycle import COMPLETED, apply_result, lock_match, reopen_match

logger = logging.getLogger(__name__)


def _validate_frame(
    match: models.Match,
    frame_number: int,
    home_player_id: int,
    away_player_id: int,
    winner_player_id: int | None,
) -> None:
    if frame_number < 1 or frame_number > match.max_frames:
        raise ValidationError(f"Frame number must be between 1 and {match.max_frames}.")
    if home_player_id == away_player_id:
        raise ValidationError("A frame needs two different players.")
    if winner_player_id is not None and winner_player_id not in (home_player_id, away_player_id):
        raise ValidationError("Winner must be one of the playing players.")


def _ensure_players(db: Session, player_ids: Iterable[int]) -> None:
    for player_id in sorted(set(player_ids)):
        crud.get_player_or_raise(db, player_id)


def _upsert_frame(
    db: Session,
    match: models.Match,
    frame_number: int,
    home_player_id: int,
    away_player_id: int,
    winner_player_id: int | None,
    overwrite: bool,
) -> models.FrameResult:
    frame = (
        db.query(models.FrameResult)
        .filter(
            models.FrameResult.match_id == match.id,
            models.FrameResult.frame_number == frame_number,
        )
        .first()
    )
    if frame is not None and not overwrite:
        raise ConflictError(f"Frame {frame_number} is already recorded for match {match.id}.")

    if frame is None:
        frame = models.FrameResult(match_id=match.id, frame_number=frame_number)
        db.add(frame)

    frame.home_player_id = home_player_id
    frame.away_player_id = away_player_id
    frame.winner_player_id = winner_player_id
    return frame


def record_frame(
    db: Session,
    match_id: int,
    frame_number: int,
    home_player_id: int,
    away_player_id: int,
    winner_player_id: int | None,
    overwrite: bool = True,
) -> models.FrameResult:
    match = crud.get_match_or_raise(db, match_id)
    _validate_frame(match, frame_number, home_player_id, away_player_id, winner_player_id)
    _ensure_players(db, (home_player_id, away_player_id))

    with transaction(db):
        frame = _upsert_frame(
            db,
            match,
            frame_number,
            home_player_id,
            away_player_id,
            winner_player_id,
            overwrite,
        )

    db.refresh(frame)
    return frame


def list_frames(db: Session, match_id: int) -> list[models.FrameResult]:
    crud.get_match_or_raise(db, match_id)
    return (
        db.query(models.FrameResult)
        .filter(models.FrameResult.match_id == match_id)
        .order_by(models.FrameResult.frame_number.asc())
        .all()
    )


def frame_tally(frames: Iterable[models.FrameResult]) -> tuple[int, int]:
    home_score = 0
    away_score = 0
    for frame in frames:
        if frame.winner_player_id is None:
            continue
        if frame.winner_player_id == frame.home_player_id:
            home_score += 1
        elif frame.winner_player_id == frame.away_player_id:
            away_score += 1
    return home_score, away_score


def is_decided(match: models.Match, home_score: int, away_score: int) -> bool:
    return (
        home_score >= match.race_to
        or away_score >= match.race_to
        or home_score + away_score >= match.max_frames
    )


def save_frames(
    db: Session,
    match_id: int,
    frames: list[schemas.FrameWrite],
    submitted_by: int | None = None,
) -> schemas.FrameTally:
    """Record a batch of frames and complete the match once it is decided."""
    match = crud.get_match_or_raise(db, match_id)

    numbers = [frame.frame_number for frame in frames]
    if len(set(numbers)) != len(numbers):
        raise ValidationError("Each frame number may appear only once per batch.")

    for frame in frames:
        _validate_frame(
            match,
            frame.frame_number,
            frame.home_player_id,
            frame.away_player_id,
            frame.winner_player_id,
        )
    _ensure_players(
        db,
        [frame.home_player_id for frame in frames] + [frame.away_player_id for frame in frames],
    )

    with transaction(db):
        match = lock_match(db, match_id)
        for frame in frames:
            _upsert_frame(
                db,
                match,
                frame.frame_number,
                frame.home_player_id,
                frame.away_player_id,
                frame.winner_player_id,
                overwrite=True,
            )
        db.flush()

        stored = (
            db.query(models.FrameResult)
            .filter(models.FrameResult.match_id == match_id)
            .all()
        )
        home_score, away_score = frame_tally(stored)
        decided = is_decided(match, home_score, away_score)
        reopened = False
        if decided:
            apply_result(db, match, home_score, away_score, submitted_by)
        elif match.status == COMPLETED:
            # The corrected frames no longer decide the match.
            reopen_match(match)
            db.flush()
            reopened = True

    logger.info(
        "Saved %s frames for match %s: tally %s-%s%s",
        len(frames),
        match_id,
        home_score,
        away_score,
        " (decided)" if decided else "",
    )
    if reopened:
        logger.info("Match %s returned to scheduled: frame tally no longer decides it", match_id)
    return schemas.FrameTally(
        match_id=match_id,
        home_score=home_score,
        away_score=away_score,
        frames_recorded=len(stored),
        decided=decided,
        status=match.status,
    )


# ---------------------------------------------------------------------------
# Lineups
# ---------------------------------------------------------------------------


def get_lineup(db: Session, match_id: int) -> list[models.MatchLineup]:
    crud.get_match_or_raise(db, match_id)
    return (
        db.query(models.MatchLineup)
        .filter(models.MatchLineup.match_id == match_id)
        .order_by(
            models.MatchLineup.team_id.asc(),
            models.MatchLineup.is_reserve.asc(),
            models.MatchLineup.lineup_position.asc(),
        )
        .all()
    )


def save_lineup(db: Session, match_id: int, entries: list[schemas.LineupEntry]) -> list[models.MatchLineup]:
    match = crud.get_match_or_raise(db, match_id)

    sides = {match.home_team_id, match.away_team_id}
    seen: set[tuple[int, int]] = set()
    for entry in entries:
        if entry.team_id not in sides:
            raise ValidationError(f"Team {entry.team_id} is not playing in match {match_id}.")
        key = (entry.team_id, entry.player_id)
        if key in seen:
            raise ValidationError(f"Player {entry.player_id} is listed twice for team {entry.team_id}.")
        seen.add(key)
    _ensure_players(db, [entry.player_id for entry in entries])

    with transaction(db):
        match = lock_match(db, match_id)
        match.lineup.clear()
        db.flush()
        for entry in entries:
            match.lineup.append(
                models.MatchLineup(
                    team_id=entry.team_id,
                    player_id=entry.player_id,
                    is_reserve=entry.is_reserve,
                    lineup_position=entry.lineup_position,
                )
            )

    logger.info("Saved lineup for match %s with %s entries", match_id, len(entries))
    return get_lineup(db, match_id)
