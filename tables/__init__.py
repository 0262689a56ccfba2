"""
Concrete DataTables. Importing this package registers every table.
"""

from tables.users import UserTable
from tables.roles import RoleTable
from tables.teams import TeamTable
from tables.email_templates import EmailTemplateTable
from tables.trash import RoleTrashTable, TeamTrashTable, UserTrashTable

__all__ = [
    "UserTable",
    "RoleTable",
    "TeamTable",
    "EmailTemplateTable",
    "UserTrashTable",
    "RoleTrashTable",
    "TeamTrashTable",
]
