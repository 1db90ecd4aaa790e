from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import crud, fixtures, lifecycle, schemas, serializers
from ..database import get_db

router = APIRouter(tags=["matches"])


@router.get("/", response_model=list[schemas.MatchRead])
def list_matches(
    division_id: int | None = Query(default=None, ge=1),
    round_no: int | None = Query(default=None, ge=1, alias="round"),
    status_filter: schemas.MatchStatus | None = Query(default=None, alias="status"),
    team_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> list[schemas.MatchRead]:
    matches = crud.list_matches(
        db,
        division_id=division_id,
        round_no=round_no,
        status=status_filter,
        team_id=team_id,
    )
    return [serializers.match_to_read(match) for match in matches]


@router.post("/", response_model=schemas.MatchRead, status_code=status.HTTP_201_CREATED)
def schedule_match(payload: schemas.MatchCreate, db: Session = Depends(get_db)) -> schemas.MatchRead:
    try:
        match = lifecycle.schedule_match(db, payload)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return serializers.match_to_read(match)


@router.post(
    "/generate-fixtures",
    response_model=list[schemas.MatchRead],
    status_code=status.HTTP_201_CREATED,
)
def generate_fixtures(payload: schemas.FixtureRequest, db: Session = Depends(get_db)) -> list[schemas.MatchRead]:
    try:
        matches = fixtures.generate_fixtures(db, payload)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return [serializers.match_to_read(match) for match in matches]


@router.get("/{match_id}", response_model=schemas.MatchRead)
def get_match(match_id: int, db: Session = Depends(get_db)) -> schemas.MatchRead:
    try:
        match = crud.get_match_or_raise(db, match_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return serializers.match_to_read(match)


@router.post("/{match_id}/result", response_model=schemas.MatchRead)
def submit_result(
    match_id: int,
    payload: schemas.ResultSubmit,
    db: Session = Depends(get_db),
) -> schemas.MatchRead:
    try:
        match = lifecycle.submit_result(
            db,
            match_id,
            payload.home_score,
            payload.away_score,
            submitted_by=payload.submitted_by,
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return serializers.match_to_read(match)


@router.post("/{match_id}/reset", response_model=schemas.MatchRead)
def reset_match(match_id: int, db: Session = Depends(get_db)) -> schemas.MatchRead:
    try:
        match = lifecycle.reset_match(db, match_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return serializers.match_to_read(match)
