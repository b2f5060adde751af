"""Schemas shared across routers."""

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Page position within a listing."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=-(-total // limit) if total else 0)


class CountItem(BaseModel):
    """A grouped value with its occurrence count."""

    value: str
    count: int
