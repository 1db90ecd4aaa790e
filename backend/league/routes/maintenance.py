from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import lifecycle, reconciler, schemas
from ..database import get_db

router = APIRouter(tags=["maintenance"])


@router.get("/inconsistencies", response_model=list[schemas.InconsistencyRead])
def list_inconsistencies(db: Session = Depends(get_db)) -> list[schemas.InconsistencyRead]:
    return [reconciler.to_inconsistency(match) for match in reconciler.find_inconsistencies(db)]


@router.post("/reconcile", response_model=schemas.ReconcileReport)
def reconcile_winners(
    dry_run: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> schemas.ReconcileReport:
    return reconciler.reconcile_all(db, dry_run=dry_run)


@router.post("/reset", response_model=schemas.ResetReport)
def reset_completed_matches(
    from_date: date = Query(),
    db: Session = Depends(get_db),
) -> schemas.ResetReport:
    return lifecycle.reset_completed_matches(db, from_date)
