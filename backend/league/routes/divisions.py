from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db
from ..errors import ConflictError

router = APIRouter(tags=["divisions"])


@router.get("/", response_model=list[schemas.DivisionRead])
def list_divisions(db: Session = Depends(get_db)) -> list[schemas.DivisionRead]:
    return crud.get_divisions(db)


@router.post("/", response_model=schemas.DivisionRead, status_code=status.HTTP_201_CREATED)
def create_division(division: schemas.DivisionCreate, db: Session = Depends(get_db)) -> schemas.DivisionRead:
    try:
        return crud.create_division(db, division)
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
