from sqlalchemy.orm import Session

from . import models
from .database import storage_errors, transaction
from .errors import NotFoundError, ValidationError

MAX_NOTIFICATION_PAGE = 200


def create_notification(db: Session, user_id: int, title: str, message: str = "") -> models.Notification:
    title = " ".join(title.split())
    if not title:
        raise ValidationError("Notification title cannot be empty.")

    notification = models.Notification(user_id=user_id, title=title, message=message, is_read=False)
    with transaction(db):
        db.add(notification)
    db.refresh(notification)
    return notification


def get_notifications(
    db: Session,
    user_id: int,
    limit: int = 50,
    unread_only: bool = False,
) -> list[models.Notification]:
    if limit < 1 or limit > MAX_NOTIFICATION_PAGE:
        raise ValidationError(f"limit must be between 1 and {MAX_NOTIFICATION_PAGE}.")

    query = db.query(models.Notification).filter(models.Notification.user_id == user_id)
    if unread_only:
        query = query.filter(models.Notification.is_read.is_(False))

    with storage_errors():
        return (
            query.order_by(models.Notification.created_at.desc(), models.Notification.id.desc())
            .limit(limit)
            .all()
        )


def mark_as_read(db: Session, notification_id: int, user_id: int) -> models.Notification:
    notification = (
        db.query(models.Notification)
        .filter(
            models.Notification.id == notification_id,
            models.Notification.user_id == user_id,
        )
        .first()
    )
    if not notification:
        raise NotFoundError("Notification not found.")

    if not notification.is_read:
        with transaction(db):
            notification.is_read = True
            notification.read_at = models.utcnow()

    return notification


def mark_all_as_read(db: Session, user_id: int) -> int:
    with transaction(db):
        updated = (
            db.query(models.Notification)
            .filter(
                models.Notification.user_id == user_id,
                models.Notification.is_read.is_(False),
            )
            .update(
                {
                    models.Notification.is_read: True,
                    models.Notification.read_at: models.utcnow(),
                },
                synchronize_session="fetch",
            )
        )
    return updated
