"""Team management and membership syncing."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

import logfire
from sqlalchemy.orm import Session

from models.team import Team
from models.user import User
from services.exceptions import DuplicateRecordError, InvalidOperationError, NotFoundError


def get_team(db: Session, team_id: UUID) -> Team:
    team = db.query(Team).filter(Team.id == team_id, Team.deleted_at.is_(None)).first()
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


def _members(db: Session, usernames: List[str]) -> List[User]:
    usernames = list(dict.fromkeys(usernames))
    if not usernames:
        return []
    users = db.query(User).filter(User.username.in_(usernames), User.deleted_at.is_(None)).all()
    missing = set(usernames) - {user.username for user in users}
    if missing:
        raise InvalidOperationError(f"Unknown users: {', '.join(sorted(missing))}")
    return users


def _name_taken(db: Session, name: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(Team.id).filter(Team.name == name)
    if exclude_id is not None:
        query = query.filter(Team.id != exclude_id)
    return query.first() is not None


def create_team(
    db: Session,
    *,
    name: str,
    display_name: Optional[str] = None,
    description: Optional[str] = None,
    members: Optional[List[str]] = None,
) -> Team:
    """
    Raises:
        DuplicateRecordError: a team with this name exists
        InvalidOperationError: a member username is unknown
    """
    name = name.strip()
    if _name_taken(db, name):
        raise DuplicateRecordError("team name", name)

    team = Team(name=name, display_name=display_name, description=description)
    team.users = _members(db, members or [])
    db.add(team)
    db.flush()
    logfire.info("Team created", team_id=str(team.id), name=team.name, members=len(team.users))
    return team


def update_team(db: Session, team: Team, **changes) -> Team:
    """Partial update. Accepted keys: name, display_name, description, members."""
    new_name = (changes.get("name") or "").strip()
    if new_name and new_name != team.name:
        if _name_taken(db, new_name, exclude_id=team.id):
            raise DuplicateRecordError("team name", new_name)
        team.name = new_name

    for field in ("display_name", "description"):
        if field in changes:
            setattr(team, field, changes[field])

    if changes.get("members") is not None:
        team.users = _members(db, changes["members"])

    db.flush()
    logfire.info("Team updated", team_id=str(team.id), fields=sorted(changes))
    return team


def delete_team(db: Session, team: Team) -> None:
    team.users = []
    team.deleted_at = datetime.now(timezone.utc)
    db.flush()
    logfire.info("Team deleted", team_id=str(team.id), name=team.name)
