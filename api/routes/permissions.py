"""Permission matrix endpoint."""

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user
from models.user import User
from schemas.roles import PermissionMatrixResponse
from services.permission_matrix import permission_matrix


router = APIRouter(prefix="/api/permissions", tags=["Permissions"])


@router.get("/matrix", response_model=PermissionMatrixResponse)
async def get_matrix(current_user: User = Depends(get_current_user)):
    """Entities as rows and actions as columns, for the role editor."""
    return {
        "actions": permission_matrix.all_actions(),
        "rows": permission_matrix.matrix_for_ui(),
    }
