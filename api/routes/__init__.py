"""
API route handlers.
"""

from api.routes.auth import router as auth_router
from api.routes.users import router as users_router
from api.routes.roles import router as roles_router, teams_router
from api.routes.permissions import router as permissions_router
from api.routes.email_templates import router as email_templates_router
from api.routes.notifications import router as notifications_router
from api.routes.settings import router as mail_settings_router
from api.routes.datatables import router as datatables_router

__all__ = [
    "auth_router",
    "users_router",
    "roles_router",
    "teams_router",
    "permissions_router",
    "email_templates_router",
    "notifications_router",
    "mail_settings_router",
    "datatables_router",
]
