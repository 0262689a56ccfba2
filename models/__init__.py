"""
Models module initialization.
Imports all SQLAlchemy models for Alembic autodiscovery.
"""

from models.associations import permission_role, permission_user, role_user, team_user
from models.user import User
from models.role import Role, Permission
from models.team import Team
from models.email_template import EmailTemplate, EmailTranslation, TemplateStatus, TemplateType
from models.notification import Notification, NotificationLevel
from models.mail_settings import MailSettings, MailScope

__all__ = [
    "User",
    "Role",
    "Permission",
    "Team",
    "EmailTemplate",
    "EmailTranslation",
    "TemplateStatus",
    "TemplateType",
    "Notification",
    "NotificationLevel",
    "MailSettings",
    "MailScope",
    "role_user",
    "permission_role",
    "permission_user",
    "team_user",
]
