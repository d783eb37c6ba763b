from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from peopleflow.core.helpers.filter_helper import apply_filters_and_sorting, paginate
from peopleflow.core.models import Base
from peopleflow.core.schemas import BaseFilter

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Generic async CRUD over a single ORM model."""

    def __init__(self, model: Type[T]):
        self.model = model

    async def create(self, db: AsyncSession, values: dict, schema=None):
        item = self.model(**values)
        db.add(item)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ValueError(f"Creando {self.model.__name__}: los datos violan una restricción única.") from e
        await db.refresh(item)
        return schema.model_validate(item) if schema else item

    async def get_by_id(self, db: AsyncSession, item_id: Any, schema=None):
        item = await self._get_by_id_orm(db, item_id)
        if item is None:
            return None
        return schema.model_validate(item) if schema else item

    async def _get_by_id_orm(self, db: AsyncSession, item_id: Any) -> Optional[T]:
        result = await db.execute(select(self.model).where(self.model.id == item_id))
        return result.scalars().first()

    async def update(self, db: AsyncSession, values: dict, item_id: Any, schema=None):
        item = await self._get_by_id_orm(db, item_id)
        if item is None:
            return None
        for key, value in values.items():
            setattr(item, key, value)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ValueError(f"Actualizando {self.model.__name__}: los datos violan una restricción única.") from e
        await db.refresh(item)
        return schema.model_validate(item) if schema else item

    async def delete(self, db: AsyncSession, item_id: Any) -> bool:
        item = await self._get_by_id_orm(db, item_id)
        if item is None:
            return False
        try:
            await db.delete(item)
            await db.commit()
            return True
        except IntegrityError as e:
            await db.rollback()
            raise ValueError(f"Eliminando {self.model.__name__}: el registro está en uso.") from e

    async def get_filtered_items(self, db: AsyncSession, filters: BaseFilter):
        filter_dict, sort_fields, logic_operator = self.build_filters_from_params(filters).values()
        query, _ = apply_filters_and_sorting(
            self.get_filter_query(), self.model,
            filters=filter_dict, sort=sort_fields, logic_operator=logic_operator,
        )
        return await paginate(db, query, page=filters.page, page_size=filters.page_size)

    def get_filter_query(self):
        return select(self.model)

    def build_filters_from_params(self, filters: BaseFilter):
        filter_dict = filters.model_dump(exclude={"sort", "page", "page_size", "logic_operator"}, exclude_none=True)
        sort_fields = filters.sort or []
        logic_operator = filters.logic_operator or "and"

        return {"filter_dict": filter_dict, "sort_fields": sort_fields, "logic_operator": logic_operator}
