from datetime import datetime, timezone
from typing import Any, Optional, List, Generic, TypeVar

from pydantic import Field

from peopleflow.core.schemas.base import BaseSchema

T = TypeVar("T")


class ApiResponse(BaseSchema):
    status_code: int
    error: Optional[str] = None
    detail: Optional[str] = None
    data: Optional[Any] = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class PaginatedResponse(BaseSchema, Generic[T]):
    page: int
    page_size: int
    total: int
    results: List[T]
