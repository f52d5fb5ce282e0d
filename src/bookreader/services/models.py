"""Pydantic models for records consumed from the library REST API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

UserRole = Literal["admin", "professor", "student"]
BookType = Literal["student", "professor"]


class User(BaseModel):
    """A user record returned by the auth service."""

    id: str
    name: str
    email: str
    role: UserRole
    avatar: str | None = None
    professor_id: str | None = None
    class_group: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class Book(BaseModel):
    """A book record returned by the books service."""

    id: str
    title: str
    author: str = ""
    description: str = ""
    cover_url: str = ""
    pdf_url: str | None = None
    curriculum_component: str = ""
    book_type: BookType = "student"
    class_groups: list[str] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def has_pdf(self) -> bool:
        return bool(self.pdf_url)


class BookPage(BaseModel):
    """Paginated list of books."""

    data: list[Book]
    total: int
    limit: int
    offset: int
