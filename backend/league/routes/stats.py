from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas, stats
from ..database import get_db

router = APIRouter(tags=["stats"])


@router.get("/players", response_model=list[schemas.PlayerStatRow])
def player_stats(
    division_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> list[schemas.PlayerStatRow]:
    try:
        return stats.player_stats(db, division_id=division_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
