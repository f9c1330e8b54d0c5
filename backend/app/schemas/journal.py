from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, StringConstraints, model_validator

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Content = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

SortOrder = Literal["newest", "oldest", "title", "updated"]


class JournalCreate(BaseModel):
    title: Title
    content: Content


class JournalUpdate(BaseModel):
    title: Title | None = None
    content: Content | None = None

    @model_validator(mode="after")
    def _require_one_field(self) -> JournalUpdate:
        if self.title is None and self.content is None:
            raise ValueError("At least one field (title or content) must be provided for update.")
        return self


class JournalEntryModel(BaseModel):
    id: int
    user_id: int
    title: str
    content: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_entries: int
    entries_per_page: int
    has_next_page: bool
    has_prev_page: bool


class JournalFilters(BaseModel):
    search: str = ""
    sort: SortOrder = "newest"


class JournalListResponse(BaseModel):
    entries: list[JournalEntryModel]
    pagination: Pagination
    filters: JournalFilters
