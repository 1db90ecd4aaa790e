from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..errors import ConflictError

router = APIRouter(tags=["teams"])


@router.get("/", response_model=list[schemas.TeamRead])
def list_teams(
    division_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> list[schemas.TeamRead]:
    return crud.get_teams(db, division_id=division_id)


@router.post("/", response_model=schemas.TeamRead, status_code=status.HTTP_201_CREATED)
def create_team(team: schemas.TeamCreate, db: Session = Depends(get_db)) -> schemas.TeamRead:
    try:
        return crud.create_team(db, team)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
