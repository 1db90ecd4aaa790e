from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import notifications, schemas
from ..database import get_db

router = APIRouter(tags=["notifications"])


def current_user_id(x_user_id: int = Header(gt=0)) -> int:
    return x_user_id


@router.get("/", response_model=list[schemas.NotificationRead])
def list_notifications(
    limit: int = Query(default=50, ge=1, le=notifications.MAX_NOTIFICATION_PAGE),
    unread_only: bool = Query(default=False),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
) -> list[schemas.NotificationRead]:
    return notifications.get_notifications(db, user_id, limit=limit, unread_only=unread_only)


@router.post("/", response_model=schemas.NotificationRead, status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: schemas.NotificationCreate,
    db: Session = Depends(get_db),
) -> schemas.NotificationRead:
    try:
        return notifications.create_notification(db, payload.user_id, payload.title, payload.message)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.patch("/read-all")
def mark_all_as_read(
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    return {"updated": notifications.mark_all_as_read(db, user_id)}


@router.patch("/{notification_id}/read", response_model=schemas.NotificationRead)
def mark_as_read(
    notification_id: int,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
) -> schemas.NotificationRead:
    try:
        return notifications.mark_as_read(db, notification_id, user_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
