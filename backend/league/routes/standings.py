from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, schemas, standings
from ..database import get_db

router = APIRouter(tags=["standings"])


@router.get("/division/{division_id}", response_model=schemas.DivisionStandings)
def division_standings(division_id: int, db: Session = Depends(get_db)) -> schemas.DivisionStandings:
    try:
        division = crud.get_division_or_raise(db, division_id)
        rows = standings.compute_standings(db, division_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return schemas.DivisionStandings(
        division_id=division.id,
        division=division.name,
        standings=rows,
        last_updated=datetime.now(timezone.utc),
    )


@router.get("/season", response_model=list[schemas.DivisionStandings])
def season_standings(db: Session = Depends(get_db)) -> list[schemas.DivisionStandings]:
    return standings.compute_all_standings(db)
