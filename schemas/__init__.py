"""
Pydantic schemas for request/response validation.
"""

from schemas.auth import LoginRequest, TokenResponse, CurrentUser
from schemas.common import PaginatedResponse, MessageResponse
from schemas.users import UserCreate, UserUpdate, UserResponse
from schemas.roles import (
    RoleCreate,
    RoleUpdate,
    RoleResponse,
    TeamCreate,
    TeamUpdate,
    TeamResponse,
    PermissionMatrixResponse,
)
from schemas.email_templates import (
    TranslationInput,
    EmailTemplateCreate,
    EmailTemplateUpdate,
    EmailTemplateResponse,
    EmailTemplateDetail,
    RenderRequest,
    RenderedEmailResponse,
)
from schemas.notifications import NotificationResponse, NotificationList
from schemas.mail_settings import MailSettingsInput, MailSettingsResponse, ResolvedMailCredentials
from schemas.datatables import DataTableRequest, StateRequest, ActionRequest, ConfirmRequest

__all__ = [
    # Auth schemas
    "LoginRequest",
    "TokenResponse",
    "CurrentUser",

    # Shared
    "PaginatedResponse",
    "MessageResponse",

    # Users, roles, teams
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "RoleCreate",
    "RoleUpdate",
    "RoleResponse",
    "TeamCreate",
    "TeamUpdate",
    "TeamResponse",
    "PermissionMatrixResponse",

    # Email templates
    "TranslationInput",
    "EmailTemplateCreate",
    "EmailTemplateUpdate",
    "EmailTemplateResponse",
    "EmailTemplateDetail",
    "RenderRequest",
    "RenderedEmailResponse",

    # Notifications and mail
    "NotificationResponse",
    "NotificationList",
    "MailSettingsInput",
    "MailSettingsResponse",
    "ResolvedMailCredentials",

    # DataTables
    "DataTableRequest",
    "StateRequest",
    "ActionRequest",
    "ConfirmRequest",
]
