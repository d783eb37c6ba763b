from typing import Optional, List
from pydantic import BaseModel, Field


class BaseFilter(BaseModel):
    page: int = Field(default=1, ge=1, description="Page number (starts from 1)")
    page_size: int = Field(default=20, ge=1, le=1000, description="Items per page")
    logic_operator: Optional[str] = Field(default="and", description="Operator to be applied on the query")
    sort: Optional[List[str]] = Field(default=None, description="Sort fields like column+ or column-")
