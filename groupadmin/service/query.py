"""
Query shaping shared by every listing: ordering, counting over the filtered
set, then pagination.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import Row, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from groupadmin.core.models import PageFilter


def sort_key(sort_by: str | None) -> str | None:
    """
    Normalize a client supplied sort key, so that `firstName`, `first_name`
    and `firstname` all name the same column.
    """
    if not sort_by:
        return None
    return sort_by.replace("_", "").strip().lower()


def order(
    query: Select,
    page_filter: PageFilter,
    columns: Mapping[str, Any],
    default: str,
    unsorted: Sequence[Any] | None = None,
    filtered: bool = False,
    tiebreak: Sequence[Any] = (),
) -> Select:
    """
    Apply ordering to `query`.

    Parameters
    ----------
    columns
        Sortable columns, keyed by their normalized sort key.
    default
        Key of the column used when `sort_by` is missing or unknown.
    unsorted
        Ordering used instead when the caller gave neither a filter nor a
        `sort_by`.
    filtered
        Whether any filter was applied to the query.
    tiebreak
        Trailing columns that make the ordering total, so pages are stable.
    """
    key = sort_key(page_filter.sort_by)

    if key is None and not filtered and unsorted is not None:
        return query.order_by(*unsorted, *tiebreak)

    column = columns.get(key, columns[default])
    column = column.desc() if page_filter.descending else column.asc()

    return query.order_by(column, *tiebreak)


def paginate(query: Select, page_filter: PageFilter) -> Select:
    if page_filter.page_no is None or page_filter.page_size is None:
        return query

    return query.offset((page_filter.page_no - 1) * page_filter.page_size).limit(
        page_filter.page_size
    )


async def count(query: Select, conn: AsyncSession) -> int:
    """
    Number of rows `query` yields, ignoring any ordering or pagination.
    """
    subquery = query.order_by(None).limit(None).offset(None).subquery()
    return await conn.scalar(select(func.count()).select_from(subquery))


async def shape(
    query: Select,
    page_filter: PageFilter,
    conn: AsyncSession,
    columns: Mapping[str, Any],
    default: str,
    unsorted: Sequence[Any] | None = None,
    filtered: bool = False,
    tiebreak: Sequence[Any] = (),
) -> tuple[Sequence[Row], int]:
    """
    Order, count and paginate a filtered query, then fetch the page.

    Returns
    -------
    rows
        The rows of the requested page.
    total_records
        The size of the filtered set before pagination.
    """
    query = order(
        query,
        page_filter=page_filter,
        columns=columns,
        default=default,
        unsorted=unsorted,
        filtered=filtered,
        tiebreak=tiebreak,
    )

    total_records = await count(query, conn=conn)

    result = await conn.execute(paginate(query, page_filter=page_filter))

    return result.all(), total_records
