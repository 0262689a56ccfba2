"""
Email template models for SQLAlchemy ORM.
Represent the email_templates and email_translations tables in the database.
"""

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from database.base import Base
from models.mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class TemplateType(str, Enum):
    TRANSACTIONAL = "transactional"
    MARKETING = "marketing"
    SYSTEM = "system"


class TemplateStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class EmailTemplate(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Email template or layout.

    Content lives in EmailTranslation rows, one per locale. A layout is a
    template whose HTML contains the {{ slot }} placeholder into which
    the body of templates using it is composed.

    Attributes:
        name (str): Unique machine name, e.g. "user-welcome"
        description (str): Free text description
        is_layout (bool): True for layouts
        layout_id (UUID): Optional layout wrapping this template
        type (str): transactional, marketing or system
        entity_types (list): Entity prefixes whose attributes are usable as merge tags
        context_variables (list): Names of action.* variables the sender provides
        status (str): draft, published or archived
        is_system (bool): System templates cannot be deleted
        is_default (bool): Default layout flag
        all_teams (bool): Whether every team may use the template
    """

    __tablename__ = "email_templates"

    name = Column(
        String(150),
        nullable=False,
        unique=True,
        comment="Unique template name"
    )

    description = Column(
        Text,
        nullable=True,
        comment="Template description"
    )

    is_layout = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this record is a layout"
    )

    layout_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("email_templates.id", ondelete="SET NULL"),
        nullable=True,
        comment="Layout wrapping this template"
    )

    type = Column(
        String(32),
        nullable=False,
        default=TemplateType.TRANSACTIONAL.value,
        comment="Template classification"
    )

    entity_types = Column(
        JSON,
        nullable=False,
        default=list,
        comment="Entity prefixes available as merge tags"
    )

    context_variables = Column(
        JSON,
        nullable=False,
        default=list,
        comment="action.* variables supplied at send time"
    )

    status = Column(
        String(16),
        nullable=False,
        default=TemplateStatus.DRAFT.value,
        comment="draft, published or archived"
    )

    is_system = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Protected system template"
    )

    is_default = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Default layout flag"
    )

    all_teams = Column(
        Boolean,
        nullable=False,
        default=True,
        comment="Available to every team"
    )

    created_by_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="User who created the template"
    )

    # Relationships
    layout = relationship("EmailTemplate", remote_side="EmailTemplate.id")
    translations = relationship(
        "EmailTranslation",
        back_populates="template",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    created_by = relationship("User")

    __table_args__ = (
        Index("ix_email_templates_status", "status"),
        Index("ix_email_templates_is_layout", "is_layout"),
    )

    def translation_for(self, locale: str):
        """Return the translation for a locale, or None."""
        for translation in self.translations:
            if translation.locale == locale:
                return translation
        return None

    @property
    def locales(self) -> list:
        return sorted(translation.locale for translation in self.translations)

    def __repr__(self) -> str:
        return f"<EmailTemplate(id={self.id}, name='{self.name}', status='{self.status}')>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "is_layout": self.is_layout,
            "layout_id": str(self.layout_id) if self.layout_id else None,
            "type": self.type,
            "entity_types": self.entity_types or [],
            "context_variables": self.context_variables or [],
            "status": self.status,
            "is_system": self.is_system,
            "is_default": self.is_default,
            "all_teams": self.all_teams,
            "locales": self.locales,
        }


class EmailTranslation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Per-locale content of an email template.

    Edits go to the draft_* columns; publishing copies them into the live
    columns used for rendering.
    """

    __tablename__ = "email_translations"

    template_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("email_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning template"
    )

    locale = Column(
        String(10),
        nullable=False,
        comment="Locale code, e.g. en_US"
    )

    # Live content
    subject = Column(String(255), nullable=True, comment="Published subject")
    html_content = Column(Text, nullable=True, comment="Published HTML body")
    text_content = Column(Text, nullable=True, comment="Published plain text body")
    preheader = Column(String(255), nullable=True, comment="Published preheader")

    # Draft content
    draft_subject = Column(String(255), nullable=True, comment="Draft subject")
    draft_html_content = Column(Text, nullable=True, comment="Draft HTML body")
    draft_text_content = Column(Text, nullable=True, comment="Draft plain text body")
    draft_preheader = Column(String(255), nullable=True, comment="Draft preheader")

    template = relationship("EmailTemplate", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("template_id", "locale", name="uq_email_translations_template_locale"),
    )

    @property
    def has_draft(self) -> bool:
        return any(
            getattr(self, f"draft_{field}") is not None
            for field in ("subject", "html_content", "text_content", "preheader")
        )

    def __repr__(self) -> str:
        return f"<EmailTranslation(template_id={self.template_id}, locale='{self.locale}')>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "template_id": str(self.template_id),
            "locale": self.locale,
            "subject": self.subject,
            "html_content": self.html_content,
            "text_content": self.text_content,
            "preheader": self.preheader,
            "draft_subject": self.draft_subject,
            "draft_html_content": self.draft_html_content,
            "draft_text_content": self.draft_text_content,
            "draft_preheader": self.draft_preheader,
        }
