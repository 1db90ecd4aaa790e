from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import frames, schemas
from ..database import get_db
from ..errors import ConflictError

router = APIRouter(tags=["frames"])


@router.get("/{match_id}/frames", response_model=list[schemas.FrameRead])
def list_frames(match_id: int, db: Session = Depends(get_db)) -> list[schemas.FrameRead]:
    try:
        return frames.list_frames(db, match_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/{match_id}/frames", response_model=schemas.FrameTally)
def save_frames(
    match_id: int,
    payload: schemas.FrameBatch,
    db: Session = Depends(get_db),
) -> schemas.FrameTally:
    try:
        return frames.save_frames(db, match_id, payload.frames, submitted_by=payload.submitted_by)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.put("/{match_id}/frames/{frame_number}", response_model=schemas.FrameRead)
def record_frame(
    match_id: int,
    frame_number: int,
    payload: schemas.FrameUpdate,
    db: Session = Depends(get_db),
) -> schemas.FrameRead:
    try:
        return frames.record_frame(
            db,
            match_id,
            frame_number,
            payload.home_player_id,
            payload.away_player_id,
            payload.winner_player_id,
            overwrite=payload.overwrite,
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/{match_id}/lineup", response_model=list[schemas.LineupRead])
def get_lineup(match_id: int, db: Session = Depends(get_db)) -> list[schemas.LineupRead]:
    try:
        return frames.get_lineup(db, match_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/{match_id}/lineup", response_model=list[schemas.LineupRead])
def save_lineup(
    match_id: int,
    payload: list[schemas.LineupEntry],
    db: Session = Depends(get_db),
) -> list[schemas.LineupRead]:
    try:
        return frames.save_lineup(db, match_id, payload)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
