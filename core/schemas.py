# core/schemas.py
"""
Shared pydantic pieces: camelCase wire format and common response parts.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Larger ?limit= values are clamped, not rejected
MAX_PAGE_SIZE = 100


class ApiModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; readable from ORM objects."""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MessageResponse(ApiModel):
    success: bool = True
    message: str


class Pagination(ApiModel):
    total: int
    page: int
    pages: int
    limit: int


class UserRef(ApiModel):
    """Compact author/assignee reference embedded in complaint payloads."""
    id: int
    first_name: str
    last_name: str
    email: str | None = None
    role: str | None = None
