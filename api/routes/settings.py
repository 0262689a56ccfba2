"""Scoped mail settings endpoints. Passwords are accepted but never returned."""

from typing import List, Optional
from uuid import UUID

import logfire
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.dependencies import require_permission
from api.errors import http_error
from database import get_db
from models.mail_settings import MailScope
from models.user import User
from schemas.common import MessageResponse
from schemas.mail_settings import MailSettingsInput, MailSettingsResponse, ResolvedMailCredentials
from services import mail_settings as mail_service
from services.exceptions import AdminError
from services.users import get_user


router = APIRouter(prefix="/api/settings/mail", tags=["Mail Settings"])


@router.get("/", response_model=List[MailSettingsResponse])
async def list_mail_settings(
    current_user: User = Depends(require_permission("view mail_settings")),
    db: Session = Depends(get_db),
):
    return [record.to_dict() for record in mail_service.list_settings(db)]


@router.put("/", response_model=MailSettingsResponse)
async def save_mail_settings(
    payload: MailSettingsInput,
    current_user: User = Depends(require_permission("configure mail_settings")),
    db: Session = Depends(get_db),
):
    """
    Create or update the settings of one scope.

    An empty password keeps the stored one.

    Raises:
        HTTPException 400: If the scope and owner_id do not match
        HTTPException 404: If the owning team or user does not exist
    """
    values = payload.model_dump(mode="json", exclude={"scope", "owner_id"})
    with logfire.span("api.save_mail_settings", user_id=str(current_user.id), scope=payload.scope.value):
        try:
            record = mail_service.save_settings(db, payload.scope.value, payload.owner_id, **values)
            db.commit()
            db.refresh(record)
        except AdminError as e:
            db.rollback()
            raise http_error(e)
        return record.to_dict()


@router.delete("/", response_model=MessageResponse)
async def delete_mail_settings(
    scope: MailScope = Query(default=MailScope.APP),
    owner_id: Optional[UUID] = Query(default=None),
    current_user: User = Depends(require_permission("configure mail_settings")),
    db: Session = Depends(get_db),
):
    try:
        mail_service.delete_settings(db, scope.value, owner_id)
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return {"message": "Mail settings deleted"}


@router.get("/resolve", response_model=ResolvedMailCredentials)
async def resolve_mail_settings(
    user_id: Optional[UUID] = Query(default=None, description="Resolve for this user; app-wide when omitted"),
    current_user: User = Depends(require_permission("view mail_settings")),
    db: Session = Depends(get_db),
):
    """Show which credentials a user's outgoing mail would use."""
    try:
        user = get_user(db, user_id) if user_id is not None else None
    except AdminError as e:
        raise http_error(e)
    return mail_service.MailCredentialResolver(db).resolve(user).public_dict()
