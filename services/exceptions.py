"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP responses; the handlers registered in
api/errors.py cover anything a route does not catch itself.
"""

from fastapi import status


class AdminError(Exception):
    """Base class for service-layer failures."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AdminError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} '{identifier}' not found"
        super().__init__(message)
        self.resource = resource
        self.identifier = identifier


class DuplicateRecordError(AdminError):
    """A unique field (username, email, name) is already taken."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, field: str, value):
        super().__init__(f"The {field} '{value}' is already taken")
        self.field = field
        self.value = value


class PermissionDeniedError(AdminError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, permission: str = None, message: str = None):
        if message is None:
            message = "You are not allowed to perform this action"
            if permission:
                message = f"Missing permission: {permission}"
        super().__init__(message)
        self.permission = permission


class InvalidOperationError(AdminError):
    """The request is well-formed but not allowed in the current state."""

    status_code = status.HTTP_400_BAD_REQUEST
