from peopleflow.core.schemas.base import BaseSchema
from peopleflow.core.schemas.base_filter import BaseFilter
from peopleflow.core.schemas.api_response import ApiResponse, PaginatedResponse

__all__ = ["BaseSchema", "BaseFilter", "ApiResponse", "PaginatedResponse"]
