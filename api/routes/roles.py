"""Role and team endpoints."""

from typing import List
from uuid import UUID

import logfire
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.dependencies import require_permission
from api.errors import http_error
from database import get_db
from models.role import Role
from models.team import Team
from models.user import User
from schemas.common import MessageResponse
from schemas.roles import RoleCreate, RoleResponse, RoleUpdate, TeamCreate, TeamResponse, TeamUpdate
from services import roles as role_service
from services import teams as team_service
from services.exceptions import AdminError


router = APIRouter(prefix="/api/roles", tags=["Roles"])
teams_router = APIRouter(prefix="/api/teams", tags=["Teams"])


# ============================================================================
# Roles
# ============================================================================

@router.get("/", response_model=List[RoleResponse])
async def list_roles(
    current_user: User = Depends(require_permission("view roles")),
    db: Session = Depends(get_db),
):
    roles = db.query(Role).filter(Role.deleted_at.is_(None)).order_by(Role.name).all()
    return [role.to_dict() for role in roles]


@router.post("/", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    payload: RoleCreate,
    current_user: User = Depends(require_permission("create roles")),
    db: Session = Depends(get_db),
):
    """
    Create a role with permissions given by name ("edit users").

    Raises:
        HTTPException 409: If the name is taken
        HTTPException 400: If a permission is not part of the matrix
    """
    with logfire.span("api.create_role", user_id=str(current_user.id)):
        try:
            role = role_service.create_role(db, **payload.model_dump())
            db.commit()
            db.refresh(role)
        except AdminError as e:
            db.rollback()
            raise http_error(e)
        return role.to_dict()


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: UUID,
    current_user: User = Depends(require_permission("view roles")),
    db: Session = Depends(get_db),
):
    try:
        return role_service.get_role(db, role_id).to_dict()
    except AdminError as e:
        raise http_error(e)


@router.patch("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: UUID,
    payload: RoleUpdate,
    current_user: User = Depends(require_permission("edit roles")),
    db: Session = Depends(get_db),
):
    with logfire.span("api.update_role", user_id=str(current_user.id), role_id=str(role_id)):
        try:
            role = role_service.get_role(db, role_id)
            role_service.update_role(db, role, **payload.model_dump(exclude_unset=True))
            db.commit()
            db.refresh(role)
        except AdminError as e:
            db.rollback()
            raise http_error(e)
        return role.to_dict()


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role(
    role_id: UUID,
    current_user: User = Depends(require_permission("delete roles")),
    db: Session = Depends(get_db),
):
    """
    Raises:
        HTTPException 400: If the role is a system role
    """
    try:
        role_service.delete_role(db, role_service.get_role(db, role_id))
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return {"message": "Role deleted"}


# ============================================================================
# Teams
# ============================================================================

@teams_router.get("/", response_model=List[TeamResponse])
async def list_teams(
    current_user: User = Depends(require_permission("view teams")),
    db: Session = Depends(get_db),
):
    teams = db.query(Team).filter(Team.deleted_at.is_(None)).order_by(Team.name).all()
    return [team.to_dict() for team in teams]


@teams_router.post("/", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    payload: TeamCreate,
    current_user: User = Depends(require_permission("create teams")),
    db: Session = Depends(get_db),
):
    """
    Create a team. Members are given by username.

    Raises:
        HTTPException 409: If the name is taken
        HTTPException 400: If a member username is unknown
    """
    with logfire.span("api.create_team", user_id=str(current_user.id)):
        try:
            team = team_service.create_team(db, **payload.model_dump())
            db.commit()
            db.refresh(team)
        except AdminError as e:
            db.rollback()
            raise http_error(e)
        return team.to_dict()


@teams_router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: UUID,
    payload: TeamUpdate,
    current_user: User = Depends(require_permission("edit teams")),
    db: Session = Depends(get_db),
):
    try:
        team = team_service.get_team(db, team_id)
        team_service.update_team(db, team, **payload.model_dump(exclude_unset=True))
        db.commit()
        db.refresh(team)
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return team.to_dict()


@teams_router.delete("/{team_id}", response_model=MessageResponse)
async def delete_team(
    team_id: UUID,
    current_user: User = Depends(require_permission("delete teams")),
    db: Session = Depends(get_db),
):
    try:
        team_service.delete_team(db, team_service.get_team(db, team_id))
        db.commit()
    except AdminError as e:
        db.rollback()
        raise http_error(e)
    return {"message": "Team deleted"}
