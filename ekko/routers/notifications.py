"""Notification inbox endpoints."""
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ekko.config import get_settings
from ekko.db import get_db
from ekko.models.user import User
from ekko.schemas.notification import NotificationPage, NotificationRead, UnreadCount
from ekko.security import get_current_user
from ekko.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationPage)
def list_notifications(
    cursor: int | None = Query(default=None, ge=1),
    limit: int | None = Query(default=None, ge=1, le=50),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> NotificationPage:
    items, next_cursor = notification_service.list_notifications(
        db, user, cursor=cursor, limit=limit or get_settings().NOTIFICATION_PAGE_SIZE
    )
    return NotificationPage(
        items=[NotificationRead.model_validate(item) for item in items],
        next_cursor=next_cursor,
    )


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> UnreadCount:
    return UnreadCount(count=notification_service.unread_count(db, user))


@router.post("/read-all", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def mark_all_read(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    notification_service.mark_all_read(db, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Response:
    notification_service.mark_read(db, user, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
