"""Email template and layout endpoints: CRUD, drafts, publishing and preview."""

from typing import List, Optional
from uuid import UUID

import logfire
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.dependencies import require_permission
from api.errors import http_error
from database import get_db
from models.email_template import EmailTemplate
from models.user import User
from schemas.common import MessageResponse
from schemas.email_templates import (
    EmailTemplateCreate,
    EmailTemplateDetail,
    EmailTemplateResponse,
    EmailTemplateUpdate,
    MergeTagsResponse,
    RenderedEmailResponse,
    RenderRequest,
    TranslationInput,
)
from services.email_templates import service as template_service
from services.email_templates.merge_tags import ENTITY_TYPES, MergeTagEngine
from services.exceptions import AdminError, InvalidOperationError, NotFoundError


router = APIRouter(prefix="/api/email-templates", tags=["Email Templates"])


def _detail(template: EmailTemplate) -> dict:
    data = template.to_dict()
    data["translations"] = [translation.to_dict() for translation in template.translations]
    return data


def _load_entities(db: Session, references: dict) -> dict:
    entities = {}
    for entity_type, entity_id in references.items():
        model = ENTITY_TYPES.get(entity_type)
        if model is None:
            raise InvalidOperationError(f"Unknown entity type '{entity_type}'")
        entity = db.query(model).filter(model.id == entity_id).first()
        if entity is None:
            raise NotFoundError(entity_type.capitalize(), entity_id)
        entities[entity_type] = entity
    return entities


@router.get("/", response_model=List[EmailTemplateResponse])
async def list_templates(
    layouts: Optional[bool] = Query(default=None, description="Only layouts (true) or only templates (false)"),
    current_user: User = Depends(require_permission("view email_templates")),
    db: Session = Depends(get_db),
):
    query = db.query(EmailTemplate).filter(EmailTemplate.deleted_at.is_(None))
    if layouts is not None:
        query = query.filter(EmailTemplate.is_layout.is_(layouts))
    return [template.to_dict() for template in query.order_by(EmailTemplate.name).all()]


@router.get("/merge-tags", response_model=MergeTagsResponse)
async def merge_tags(
    entity_types: List[str] = Query(default=[]),
    context: List[str] = Query(default=[]),
    current_user: User = Depends(require_permission("view email_templates")),
):
    """Merge tags available to a template using these entity types and context variables."""
    return {"tags": MergeTagEngine().available_tags(entity_types, context)}


@router.post("/", response_model=EmailTemplateDetail, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: EmailTemplateCreate,
    current_user: User = Depends(require_permission("create email_templates")),
    db: Session = Depends(get_db),
):
    """
    Create a draft template or layout.

    Args:
        payload: Template metadata and optional draft translations
        current_user: Authenticated user holding "create email_templates"
        db: Database session (injected by dependency)

    Returns:
        EmailTemplateDetail: The template with its translations

    Raises:
        HTTPException 409: If the name is taken
        HTTPException 400: If an entity type, layout or locale is invalid
    """
    with logfire.span("api.create_email_template", user_id=str(current_user.id), name=payload.name):
        data = payload.model_dump(mode="json", exclude={"layout_id", "translations"})
        try:
            template = template_service.create_template(
                db,
                layout_id=payload.layout_id,
                translations=[t.model_dump() for t in payload.translations],
                created_by=current_user,
                **data,
            )
            db.commit()
            db.refresh(template)
        except AdminError as e:
            db.rollback()
            raise http_error(e)
        return _detail(template)


@router.get("/{template_id}", response_model=EmailTemplateDetail)
async def get_template(
    template_id: UUID,
    current_user: User = Depends(require_permission("view email_templates")),
    db: Session = Depends(get_db),
):
    try:
        return _detail(template_service.get_template(db, template_id))
    except AdminError as e:
        raise http_error(e)


@router.patch("/{template_id}", response_model=EmailTemplateDetail)
async def update_template(
    template_id: UUID,
    payload: EmailTemplateUpdate,
    current_user: User = Depends(require_permission("edit email_templates")),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("type") is not None:
        changes["type"] = changes["type"].value
    try:
        template = template_service.get_template(db, template_id)
        template_service.update_template(db, template, **changes)
        db.commit()
        db.refresh(template)
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return _detail(template)


@router.put("/{template_id}/translations", response_model=EmailTemplateDetail)
async def save_translation(
    template_id: UUID,
    payload: TranslationInput,
    current_user: User = Depends(require_permission("edit email_templates")),
    db: Session = Depends(get_db),
):
    """Save draft content for one locale. Live content changes only on publish."""
    with logfire.span("api.save_translation", template_id=str(template_id), locale=payload.locale):
        try:
            template = template_service.get_template(db, template_id)
            template_service.save_translation(db, template, **payload.model_dump())
            db.commit()
            db.refresh(template)
        except AdminError as e:
            db.rollback()
            raise http_error(e)
        return _detail(template)


@router.post("/{template_id}/publish", response_model=EmailTemplateDetail)
async def publish_template(
    template_id: UUID,
    current_user: User = Depends(require_permission("publish email_templates")),
    db: Session = Depends(get_db),
):
    """
    Copy drafts to live content.

    Raises:
        HTTPException 400: If no translation has a subject and HTML body, or merge tags are unknown
    """
    with logfire.span("api.publish_template", user_id=str(current_user.id), template_id=str(template_id)):
        try:
            template = template_service.get_template(db, template_id)
            template_service.publish(db, template)
            db.commit()
            db.refresh(template)
        except AdminError as e:
            db.rollback()
            raise http_error(e)
        return _detail(template)


@router.post("/{template_id}/archive", response_model=EmailTemplateResponse)
async def archive_template(
    template_id: UUID,
    current_user: User = Depends(require_permission("edit email_templates")),
    db: Session = Depends(get_db),
):
    try:
        template = template_service.archive(db, template_service.get_template(db, template_id))
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return template.to_dict()


@router.delete("/{template_id}", response_model=MessageResponse)
async def delete_template(
    template_id: UUID,
    current_user: User = Depends(require_permission("delete email_templates")),
    db: Session = Depends(get_db),
):
    try:
        template_service.delete_template(db, template_service.get_template(db, template_id))
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return {"message": "Email template deleted"}


@router.post("/{template_id}/render", response_model=RenderedEmailResponse)
async def render_template(
    template_id: UUID,
    payload: RenderRequest,
    current_user: User = Depends(require_permission("view email_templates")),
    db: Session = Depends(get_db),
):
    """
    Preview a template with its layout and resolved merge tags.

    Drafts are used by default so unpublished edits can be previewed.

    Raises:
        HTTPException 404: If the template or a referenced entity does not exist
        HTTPException 400: If there is no translation for the locale or its fallback
    """
    with logfire.span("api.render_template", template_id=str(template_id), locale=payload.locale):
        try:
            template = template_service.get_template(db, template_id)
            rendered = template_service.render(
                db,
                template,
                locale=payload.locale,
                entities=_load_entities(db, payload.entities),
                context=payload.context,
                use_drafts=payload.use_drafts,
            )
        except AdminError as e:
            raise http_error(e)
        return rendered.to_dict()
