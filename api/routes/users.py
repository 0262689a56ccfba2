"""User management endpoints."""

from typing import Optional
from uuid import UUID

import logfire
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from api.dependencies import PaginationParams, require_permission
from api.errors import http_error
from database import get_db
from models.user import User
from schemas.common import MessageResponse, PaginatedResponse
from schemas.users import UserCreate, UserResponse, UserUpdate
from services import users as user_service
from services.exceptions import AdminError
from services.notifications import NotificationBuilder


router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/", response_model=PaginatedResponse[UserResponse])
async def list_users(
    pagination: PaginationParams,
    search: Optional[str] = Query(default=None, max_length=255),
    current_user: User = Depends(require_permission("view users")),
    db: Session = Depends(get_db),
):
    """
    List live users, newest first.

    Args:
        pagination: limit/offset (injected by dependency)
        search: Optional case-insensitive match on name, username or email
        current_user: Authenticated user holding "view users"
        db: Database session (injected by dependency)

    Returns:
        PaginatedResponse[UserResponse]: One page of users and the total count
    """
    with logfire.span("api.list_users", user_id=str(current_user.id), **pagination):
        query = db.query(User).filter(User.deleted_at.is_(None))
        if search and search.strip():
            term = f"%{search.strip()}%"
            query = query.filter(or_(User.name.ilike(term), User.username.ilike(term), User.email.ilike(term)))

        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id)
            .offset(pagination["offset"])
            .limit(pagination["limit"])
            .all()
        )
        return {
            "items": [user.to_dict() for user in users],
            "total": total,
            **pagination,
        }


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    current_user: User = Depends(require_permission("create users")),
    db: Session = Depends(get_db),
):
    """
    Create a user.

    Raises:
        HTTPException 409: If the username or email is already taken
        HTTPException 400: If a role, team or permission name is unknown
    """
    with logfire.span("api.create_user", user_id=str(current_user.id)):
        try:
            user = user_service.create_user(
                db,
                name=payload.name,
                username=payload.username,
                email=payload.email,
                password=payload.password,
                is_active=payload.is_active,
                timezone_name=payload.timezone,
                locale=payload.locale,
                roles=payload.roles,
                teams=payload.teams,
                permissions=payload.permissions,
                created_by=current_user,
            )
            db.commit()
            db.refresh(user)
        except AdminError as e:
            db.rollback()
            logfire.warning("User creation rejected", error=e.message)
            raise http_error(e)

        return user.to_dict()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    current_user: User = Depends(require_permission("view users")),
    db: Session = Depends(get_db),
):
    try:
        return user_service.get_user(db, user_id).to_dict()
    except AdminError as e:
        raise http_error(e)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    current_user: User = Depends(require_permission("edit users")),
    db: Session = Depends(get_db),
):
    """
    Partially update a user. Passwords only change when the caller is a super admin.

    Raises:
        HTTPException 404: If the user does not exist
        HTTPException 409: If the new username or email is taken
        HTTPException 400: If the caller tries to deactivate themselves
    """
    changes = payload.model_dump(exclude_unset=True)
    if "timezone" in changes:
        changes["timezone_name"] = changes.pop("timezone")

    with logfire.span("api.update_user", user_id=str(current_user.id), target_id=str(user_id)):
        try:
            user = user_service.get_user(db, user_id)
            user_service.update_user(db, user, acting_user=current_user, **changes)
            db.commit()
            db.refresh(user)
        except AdminError as e:
            db.rollback()
            raise http_error(e)

        return user.to_dict()


@router.post("/{user_id}/activate", response_model=UserResponse)
async def activate_user(
    user_id: UUID,
    current_user: User = Depends(require_permission("activate users")),
    db: Session = Depends(get_db),
):
    try:
        user = user_service.activate_user(db, user_service.get_user(db, user_id))
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return user.to_dict()


@router.post("/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    user_id: UUID,
    current_user: User = Depends(require_permission("activate users")),
    db: Session = Depends(get_db),
):
    try:
        user = user_service.deactivate_user(db, user_service.get_user(db, user_id), acting_user=current_user)
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return user.to_dict()


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    current_user: User = Depends(require_permission("delete users")),
    db: Session = Depends(get_db),
):
    """
    Soft delete a user.

    Raises:
        HTTPException 404: If the user does not exist
        HTTPException 400: If the caller tries to delete themselves
    """
    with logfire.span("api.delete_user", user_id=str(current_user.id), target_id=str(user_id)):
        try:
            user = user_service.get_user(db, user_id)
            user_service.delete_user(db, user, acting_user=current_user)
            db.commit()
        except AdminError as e:
            db.rollback()
            raise http_error(e)

        return {
            "message": "User deleted",
            "toast": NotificationBuilder.make("User deleted").content(user.name).toast(),
        }
