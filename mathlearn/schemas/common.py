"""
Shared Pydantic schemas: camelCase base model and response envelopes
"""
from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mathlearn.database import utcnow

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema serialised with camelCase keys, accepting either form on input"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Standard response envelope"""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


class PaginationMeta(CamelModel):
    """Pagination block for list endpoints"""
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = (total + limit - 1) // limit if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class PaginatedApiResponse(ApiResponse[T], Generic[T]):
    """Envelope for paginated list endpoints"""
    pagination: PaginationMeta


def error_body(message: str, details: Optional[list] = None) -> dict:
    """Error envelope as a JSON-ready dict, used by the exception handlers"""
    body = ApiResponse[None](success=False, error=message).model_dump(mode="json", by_alias=True)
    if details is not None:
        body["details"] = details
    return body
