"""
Services module for business logic.
"""

from services.exceptions import (
    AdminError,
    DuplicateRecordError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
)
from services.permission_matrix import PermissionMatrix, permission_matrix, sync_permissions

__all__ = [
    "AdminError",
    "DuplicateRecordError",
    "InvalidOperationError",
    "NotFoundError",
    "PermissionDeniedError",
    "PermissionMatrix",
    "permission_matrix",
    "sync_permissions",
]
