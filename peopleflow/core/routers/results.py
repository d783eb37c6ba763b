from fastapi import HTTPException, status

from peopleflow.api.v1.schemas import ErrorCode, OperationResult
from peopleflow.core.schemas import ApiResponse

ERROR_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_api_response(result: OperationResult, success_status: int = status.HTTP_200_OK, detail: str = None) -> ApiResponse:
    """Wrap a successful use-case result, or raise the HTTP error matching its failure code."""
    if not result.success:
        raise HTTPException(
            status_code=ERROR_STATUS.get(result.code, status.HTTP_400_BAD_REQUEST),
            detail=result.error,
        )
    return ApiResponse(status_code=success_status, detail=detail, data=result.data)
