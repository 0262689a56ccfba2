"""Shared response shapes."""

from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Offset-paginated list returned by the plain list endpoints."""

    items: List[T]
    total: int
    limit: int
    offset: int


class MessageResponse(BaseModel):
    message: str
    toast: dict | None = None
