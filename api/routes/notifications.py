"""In-app notifications of the current user."""

from uuid import UUID

import logfire
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.dependencies import PaginationParams, get_current_user
from api.errors import http_error
from database import get_db
from models.user import User
from schemas.common import MessageResponse
from schemas.notifications import NotificationList, NotificationResponse
from services import notifications as notification_service
from services.exceptions import AdminError


router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("/", response_model=NotificationList)
async def list_notifications(
    pagination: PaginationParams,
    unread_only: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    List the current user's notifications, newest first.

    Args:
        pagination: limit/offset (injected by dependency)
        unread_only: Only return unread notifications
        current_user: Authenticated user (injected by dependency)
        db: Database session (injected by dependency)

    Returns:
        NotificationList: One page plus the total and unread counts
    """
    with logfire.span("api.list_notifications", user_id=str(current_user.id), unread_only=unread_only):
        items, total = notification_service.list_notifications(
            db,
            current_user,
            unread_only=unread_only,
            limit=pagination["limit"],
            offset=pagination["offset"],
        )
        return {
            "items": [item.to_dict() for item in items],
            "total": total,
            "unread": notification_service.unread_count(db, current_user),
            **pagination,
        }


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"unread": notification_service.unread_count(db, current_user)}


@router.post("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    marked = notification_service.mark_all_read(db, current_user)
    db.commit()
    return {"marked": marked}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        notification = notification_service.mark_read(db, current_user, notification_id)
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return notification.to_dict()


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        notification_service.delete_notification(db, current_user, notification_id)
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return {"message": "Notification deleted"}
