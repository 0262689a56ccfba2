"""
Email template management and rendering.

Edits are written to the draft columns of a translation; publish() copies
drafts into the live columns that render() reads. Functions flush but do
not commit.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

import logfire
from sqlalchemy.orm import Session

from config import settings
from models.email_template import EmailTemplate, EmailTranslation, TemplateStatus
from services.email_templates import composer
from services.email_templates.merge_tags import ENTITY_TYPES, MergeTagEngine
from services.exceptions import DuplicateRecordError, InvalidOperationError, NotFoundError

CONTENT_FIELDS = ("subject", "html_content", "text_content", "preheader")


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: Optional[str]
    preheader: Optional[str]
    locale: str
    template_name: str

    def to_dict(self) -> dict:
        return {
            "subject": self.subject,
            "html": self.html,
            "text": self.text,
            "preheader": self.preheader,
            "locale": self.locale,
            "template_name": self.template_name,
        }


# ============================================================================
# Lookups
# ============================================================================

def get_template(db: Session, template_id: UUID) -> EmailTemplate:
    template = (
        db.query(EmailTemplate)
        .filter(EmailTemplate.id == template_id, EmailTemplate.deleted_at.is_(None))
        .first()
    )
    if template is None:
        raise NotFoundError("Email template", template_id)
    return template


def find_published(db: Session, name: str) -> EmailTemplate:
    """
    Raises:
        NotFoundError: no published template with this name
    """
    template = (
        db.query(EmailTemplate)
        .filter(
            EmailTemplate.name == name,
            EmailTemplate.status == TemplateStatus.PUBLISHED.value,
            EmailTemplate.deleted_at.is_(None),
        )
        .first()
    )
    if template is None:
        raise NotFoundError("Published email template", name)
    return template


def default_layout(db: Session) -> Optional[EmailTemplate]:
    return (
        db.query(EmailTemplate)
        .filter(
            EmailTemplate.is_layout.is_(True),
            EmailTemplate.is_default.is_(True),
            EmailTemplate.deleted_at.is_(None),
        )
        .first()
    )


# ============================================================================
# Validation helpers
# ============================================================================

def _validate_entity_types(entity_types: List[str]) -> None:
    unknown = [entity for entity in entity_types if entity not in ENTITY_TYPES]
    if unknown:
        raise InvalidOperationError(f"Unknown entity types: {', '.join(unknown)}")


def _validate_locale(locale: str) -> None:
    if locale not in settings.supported_locales:
        raise InvalidOperationError(f"Unsupported locale '{locale}'")


def _validate_layout(db: Session, layout_id: Optional[UUID]) -> None:
    if layout_id is None:
        return
    layout = get_template(db, layout_id)
    if not layout.is_layout:
        raise InvalidOperationError("layout_id must reference a layout")


def _name_taken(db: Session, name: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(EmailTemplate.id).filter(EmailTemplate.name == name)
    if exclude_id is not None:
        query = query.filter(EmailTemplate.id != exclude_id)
    return query.first() is not None


def invalid_tags(template: EmailTemplate, content: Optional[str]) -> List[str]:
    """Tags in content that cannot resolve for this template's entity types and context variables."""
    return MergeTagEngine().validate_tags(
        content,
        template.entity_types or [],
        template.context_variables or [],
    )


def _unset_other_default_layouts(db: Session, keep_id: UUID) -> None:
    db.query(EmailTemplate).filter(
        EmailTemplate.is_layout.is_(True),
        EmailTemplate.is_default.is_(True),
        EmailTemplate.id != keep_id,
    ).update({EmailTemplate.is_default: False}, synchronize_session=False)


# ============================================================================
# Mutations
# ============================================================================

def create_template(
    db: Session,
    *,
    name: str,
    description: Optional[str] = None,
    is_layout: bool = False,
    layout_id: Optional[UUID] = None,
    type: str = "transactional",
    entity_types: Optional[List[str]] = None,
    context_variables: Optional[List[str]] = None,
    is_default: bool = False,
    all_teams: bool = True,
    translations: Optional[List[Dict[str, Any]]] = None,
    created_by=None,
) -> EmailTemplate:
    """
    Create a draft template, optionally with draft translations.

    Raises:
        DuplicateRecordError: name already in use
        InvalidOperationError: unknown entity type, bad layout or unsupported locale
    """
    name = name.strip()
    if _name_taken(db, name):
        raise DuplicateRecordError("template name", name)
    entity_types = entity_types or []
    _validate_entity_types(entity_types)
    _validate_layout(db, layout_id)

    template = EmailTemplate(
        name=name,
        description=description,
        is_layout=is_layout,
        layout_id=layout_id,
        type=type,
        entity_types=entity_types,
        context_variables=context_variables or [],
        status=TemplateStatus.DRAFT.value,
        is_default=is_default and is_layout,
        all_teams=all_teams,
        created_by_user_id=created_by.id if created_by else None,
    )
    db.add(template)
    db.flush()

    for translation in translations or []:
        save_translation(db, template, **translation)

    if template.is_default:
        _unset_other_default_layouts(db, template.id)

    logfire.info("Email template created", template_id=str(template.id), name=template.name, is_layout=is_layout)
    return template


def update_template(db: Session, template: EmailTemplate, **changes) -> EmailTemplate:
    """
    Partial update of template metadata.

    Raises:
        InvalidOperationError: renaming a system template, or invalid values
        DuplicateRecordError: new name already in use
    """
    new_name = (changes.get("name") or "").strip()
    if new_name and new_name != template.name:
        if template.is_system:
            raise InvalidOperationError("System templates cannot be renamed")
        if _name_taken(db, new_name, exclude_id=template.id):
            raise DuplicateRecordError("template name", new_name)
        template.name = new_name

    if "entity_types" in changes and changes["entity_types"] is not None:
        _validate_entity_types(changes["entity_types"])
        template.entity_types = list(changes["entity_types"])
    if "layout_id" in changes:
        if changes["layout_id"] == template.id:
            raise InvalidOperationError("A template cannot be its own layout")
        _validate_layout(db, changes["layout_id"])
        template.layout_id = changes["layout_id"]
    if "context_variables" in changes and changes["context_variables"] is not None:
        template.context_variables = list(changes["context_variables"])

    for field in ("description", "type", "all_teams"):
        if field in changes and changes[field] is not None:
            setattr(template, field, changes[field])

    if changes.get("is_default") is not None and template.is_layout:
        template.is_default = changes["is_default"]
        if template.is_default:
            _unset_other_default_layouts(db, template.id)

    db.flush()
    logfire.info("Email template updated", template_id=str(template.id), fields=sorted(changes))
    return template


def save_translation(db: Session, template: EmailTemplate, *, locale: str, **content) -> EmailTranslation:
    """
    Write draft content for one locale, creating the translation if needed.

    Accepted content keys: subject, html_content, text_content, preheader.
    """
    _validate_locale(locale)
    translation = template.translation_for(locale)
    if translation is None:
        translation = EmailTranslation(locale=locale)
        template.translations.append(translation)

    for field in CONTENT_FIELDS:
        if field in content and content[field] is not None:
            setattr(translation, f"draft_{field}", content[field])

    if template.status == TemplateStatus.ARCHIVED.value:
        template.status = TemplateStatus.DRAFT.value

    db.flush()
    return translation


def publish(db: Session, template: EmailTemplate) -> EmailTemplate:
    """
    Copy draft content into live columns for every translation.

    Raises:
        InvalidOperationError: the template has no translation with a subject
            and HTML body, or uses merge tags it cannot resolve
    """
    for translation in template.translations:
        for field in CONTENT_FIELDS:
            draft = getattr(translation, f"draft_{field}")
            if draft is not None:
                setattr(translation, field, draft)

    publishable = [t for t in template.translations if t.subject and t.html_content]
    if not publishable:
        raise InvalidOperationError("A template needs a subject and HTML content before it can be published")

    if not template.is_layout:
        bad = sorted({
            tag
            for translation in template.translations
            for content in (translation.subject, translation.html_content, translation.text_content, translation.preheader)
            for tag in invalid_tags(template, content)
        })
        if bad:
            raise InvalidOperationError(f"Unknown merge tags: {', '.join(bad)}")

    for translation in template.translations:
        for field in CONTENT_FIELDS:
            setattr(translation, f"draft_{field}", None)

    template.status = TemplateStatus.PUBLISHED.value
    db.flush()
    logfire.info("Email template published", template_id=str(template.id), locales=template.locales)
    return template


def archive(db: Session, template: EmailTemplate) -> EmailTemplate:
    if template.is_system:
        raise InvalidOperationError("System templates cannot be archived")
    template.status = TemplateStatus.ARCHIVED.value
    db.flush()
    logfire.info("Email template archived", template_id=str(template.id))
    return template


def delete_template(db: Session, template: EmailTemplate) -> None:
    """
    Soft delete. Templates using a deleted layout fall back to the default layout.

    Raises:
        InvalidOperationError: the template is a system template
    """
    if template.is_system:
        raise InvalidOperationError("System templates cannot be deleted")
    if template.is_layout:
        db.query(EmailTemplate).filter(EmailTemplate.layout_id == template.id).update(
            {EmailTemplate.layout_id: None}, synchronize_session=False
        )
    template.deleted_at = datetime.now(timezone.utc)
    db.flush()
    logfire.info("Email template deleted", template_id=str(template.id))


# ============================================================================
# Rendering
# ============================================================================

def _translation_with_fallback(template: EmailTemplate, locale: Optional[str]) -> EmailTranslation:
    requested = locale if locale in settings.supported_locales else settings.default_locale
    translation = template.translation_for(requested) or template.translation_for(settings.fallback_locale)
    if translation is None:
        raise InvalidOperationError(
            f"No translation for template '{template.name}' in locale '{requested}' "
            f"or fallback '{settings.fallback_locale}'"
        )
    return translation


def _content(translation: EmailTranslation, field: str, use_drafts: bool) -> Optional[str]:
    if use_drafts:
        draft = getattr(translation, f"draft_{field}")
        if draft is not None:
            return draft
    return getattr(translation, field)


def _layout_content(layout: EmailTemplate, locale: str, field: str) -> Optional[str]:
    translation = layout.translation_for(locale) or layout.translation_for(settings.fallback_locale)
    if translation is None:
        return None
    return getattr(translation, field)


def render(
    db: Session,
    template: EmailTemplate,
    locale: Optional[str] = None,
    entities: Optional[Dict[str, Any]] = None,
    context: Optional[Dict[str, Any]] = None,
    use_drafts: bool = False,
) -> RenderedEmail:
    """
    Render a template for sending or preview.

    The requested locale falls back to the configured fallback locale. The
    body is wrapped in the template's layout (or the default layout) unless
    it is already a full HTML document, and merge tags are resolved after
    composition so layouts may use them too.

    Raises:
        InvalidOperationError: no translation in the locale or its fallback
    """
    with logfire.span("email_templates.render", template=template.name, locale=locale):
        translation = _translation_with_fallback(template, locale)
        engine = MergeTagEngine().set_entities(entities or {}).set_context(context or {})

        html_body = _content(translation, "html_content", use_drafts) or ""
        text_body = _content(translation, "text_content", use_drafts)

        layout = None
        if not template.is_layout and not composer.is_full_document(html_body):
            layout = template.layout if template.layout is not None and template.layout.deleted_at is None else default_layout(db)

        if layout is not None:
            html_body = composer.compose(_layout_content(layout, translation.locale, "html_content"), html_body)
            if text_body:
                text_body = composer.compose(_layout_content(layout, translation.locale, "text_content"), text_body)

        preheader = _content(translation, "preheader", use_drafts)
        return RenderedEmail(
            subject=engine.resolve(_content(translation, "subject", use_drafts)),
            html=engine.resolve(html_body),
            text=engine.resolve(text_body) if text_body else None,
            preheader=engine.resolve(preheader) if preheader else None,
            locale=translation.locale,
            template_name=template.name,
        )


def render_by_name(
    db: Session,
    name: str,
    locale: Optional[str] = None,
    entities: Optional[Dict[str, Any]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> RenderedEmail:
    return render(db, find_published(db, name), locale=locale, entities=entities, context=context)
