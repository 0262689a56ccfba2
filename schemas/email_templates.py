"""Email template schemas."""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.email_template import TemplateType


class TranslationInput(BaseModel):
    """Draft content for one locale."""

    locale: str = Field(..., min_length=2, max_length=10)
    subject: Optional[str] = Field(default=None, max_length=255)
    html_content: Optional[str] = None
    text_content: Optional[str] = None
    preheader: Optional[str] = Field(default=None, max_length=255)


class EmailTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    is_layout: bool = False
    layout_id: Optional[uuid.UUID] = None
    type: TemplateType = TemplateType.TRANSACTIONAL
    entity_types: List[str] = Field(default_factory=list)
    context_variables: List[str] = Field(default_factory=list)
    is_default: bool = False
    all_teams: bool = True
    translations: List[TranslationInput] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "welcome",
                "entity_types": ["user"],
                "translations": [
                    {
                        "locale": "en_US",
                        "subject": "Welcome {{ user.name }}",
                        "html_content": "<p>Hello {{ user.name }}, welcome to {{ app.name }}.</p>",
                    }
                ],
            }
        }
    )


class EmailTemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    layout_id: Optional[uuid.UUID] = None
    type: Optional[TemplateType] = None
    entity_types: Optional[List[str]] = None
    context_variables: Optional[List[str]] = None
    is_default: Optional[bool] = None
    all_teams: Optional[bool] = None


class EmailTranslationResponse(BaseModel):
    id: uuid.UUID
    locale: str
    subject: Optional[str]
    html_content: Optional[str]
    text_content: Optional[str]
    preheader: Optional[str]
    draft_subject: Optional[str]
    draft_html_content: Optional[str]
    draft_text_content: Optional[str]
    draft_preheader: Optional[str]


class EmailTemplateResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str]
    is_layout: bool
    layout_id: Optional[uuid.UUID]
    type: str
    entity_types: List[str]
    context_variables: List[str]
    status: str
    is_system: bool
    is_default: bool
    all_teams: bool
    locales: List[str]


class EmailTemplateDetail(EmailTemplateResponse):
    translations: List[EmailTranslationResponse] = Field(default_factory=list)


class RenderRequest(BaseModel):
    """
    Preview request. Entities are referenced by id, e.g. {"user": "<uuid>"}.
    """

    locale: Optional[str] = None
    entities: Dict[str, uuid.UUID] = Field(default_factory=dict)
    context: Dict[str, Any] = Field(default_factory=dict)
    use_drafts: bool = True


class RenderedEmailResponse(BaseModel):
    subject: str
    html: str
    text: Optional[str]
    preheader: Optional[str]
    locale: str
    template_name: str


class MergeTagsResponse(BaseModel):
    tags: Dict[str, List[str]]
