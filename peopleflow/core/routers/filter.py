from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.core.repositories import BaseRepository
from peopleflow.core.schemas import ApiResponse, BaseFilter, PaginatedResponse


async def filter_items(filters: BaseFilter, db: AsyncSession, item_repository: BaseRepository, schema, **scope) -> ApiResponse:
    """Run the repository's filtered listing and wrap one page of results."""
    try:
        response = await item_repository.get_filtered_items(db, filters, **scope)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    page = PaginatedResponse(
        page=filters.page,
        page_size=filters.page_size,
        total=response["total"],
        results=[schema.model_validate(item) for item in response["items"]],
    )
    return ApiResponse(
        status_code=status.HTTP_200_OK,
        detail="Filtrar elementos: elementos filtrados con éxito",
        data=page,
    )
