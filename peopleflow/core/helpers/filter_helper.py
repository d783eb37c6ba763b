from typing import Any, Callable, Optional

from sqlalchemy import select, func, and_, or_, asc, desc
from sqlalchemy.orm import aliased
from sqlalchemy.sql import operators


OPERATOR_MAPPING: dict[str, Callable[[Any, Any], Any]] = {
    "eq": operators.eq,
    "ne": operators.ne,
    "lt": operators.lt,
    "lte": operators.le,
    "gt": operators.gt,
    "gte": operators.ge,
    "in": lambda field, value: field.in_(value),
    "not_in": lambda field, value: ~field.in_(value),
    "icontains": lambda field, value: field.ilike(f"%{value}%"),
    "istartswith": lambda field, value: field.ilike(f"{value}%"),
    "isnull": lambda field, value: field.is_(None) if value else field.is_not(None),
}


def _resolve_column(query, model, field_path: str, joins: dict):
    """Return (query, column) for `field` or `relationship.field`, joining the relationship once."""
    if "." not in field_path:
        return query, getattr(model, field_path)

    rel_name, field_name = field_path.split(".", 1)
    if rel_name not in joins:
        relationship = getattr(model, rel_name)
        alias = aliased(relationship.property.mapper.class_)
        joins[rel_name] = alias
        query = query.join(alias, relationship)
    return query, getattr(joins[rel_name], field_name)


def apply_filters_and_sorting(query, model, filters: dict, sort: Optional[list[str]] = None, logic_operator: str = "and"):
    """
    Apply `field__operator=value` filters and `field+` / `field-` sorting to a select.

    Unknown operators raise ValueError.
    """
    joins: dict = {}
    conditions = []
    logic_fn = or_ if (logic_operator or "and").lower() == "or" else and_

    for key, value in filters.items():
        field_path, _, operator_key = key.partition("__")
        operator_func = OPERATOR_MAPPING.get(operator_key or "eq")
        if operator_func is None:
            raise ValueError(f"Unsupported filter operator: {operator_key}")

        query, column = _resolve_column(query, model, field_path, joins)
        conditions.append(operator_func(column, value))

    if conditions:
        query = query.where(logic_fn(*conditions))

    order_by = []
    for field in sort or []:
        direction = asc if field.endswith("+") else desc
        query, column = _resolve_column(query, model, field.rstrip("+-"), joins)
        order_by.append(direction(column))

    if order_by:
        query = query.order_by(*order_by)

    return query, joins


async def paginate(session, query, page: int = 1, page_size: int = 20):
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await session.scalar(count_query) or 0

    offset = (page - 1) * page_size

    result = await session.execute(query.limit(page_size).offset(offset))
    items = result.scalars().unique().all()

    return {
        "total": total,
        "items": items,
    }
