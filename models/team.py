"""
Team model for SQLAlchemy ORM.
Represents the teams table in the database.
"""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from database.base import Base
from models.associations import team_user
from models.mixins import SoftDeleteMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Team(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Team model grouping users. Team-scoped mail settings apply to members.

    Relationships:
        users: Many-to-many with User
    """

    __tablename__ = "teams"

    name = Column(
        String(100),
        nullable=False,
        unique=True,
        comment="Unique team name"
    )

    display_name = Column(
        String(255),
        nullable=True,
        comment="Human readable team name"
    )

    description = Column(
        Text,
        nullable=True,
        comment="Team description"
    )

    users = relationship("User", secondary=team_user, back_populates="teams", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name='{self.name}')>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "member_count": len(self.users),
        }
