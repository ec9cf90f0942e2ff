"""
Soft-Delete Repository

Every read issued through a repository only sees live rows
(``deleteAt = 0``) and every delete is turned into an UPDATE that stamps
``deleteAt`` with the current unix time. Deleted rows stay in the table for
audit and recovery; only a raw ``select`` on the session can see them.

Usage:
    brands = SoftDeleteRepository(session, Brand)

    brand = await brands.find_unique(id=3)
    await brands.delete(id=3)
    await session.commit()

Filters:
    Keyword filters are equality tests on mapped attributes. ``None`` values
    are ignored so optional query parameters can be passed straight through;
    use a positional criterion (``Brand.logo.is_(None)``) to match NULL.
    Single-row lookups (``find_unique``, ``find_unique_or_raise`` and
    ``delete``) refuse ``None`` values and empty filters with ``ValueError``
    so they never widen to an arbitrary row.
    A caller-supplied ``delete_at`` filter is always replaced by ``0``.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from bitenet_admin.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

LIVE = 0


def unix_now() -> int:
    """Current time as whole unix seconds, the value written to ``deleteAt``."""
    return int(time.time())


@dataclass
class Page(Generic[ModelT]):
    """One page of a paged query."""
    page: int
    page_size: int
    page_count: int
    total_count: int
    record: List[ModelT] = field(default_factory=list)


class SoftDeleteRepository(Generic[ModelT]):
    """Data access for one soft-deletable model."""

    def __init__(self, session: AsyncSession, model: Type[ModelT]):
        if not hasattr(model, "delete_at"):
            raise TypeError(
                f"{model.__name__} has no delete_at column and cannot be used "
                f"with SoftDeleteRepository"
            )
        self.session = session
        self.model = model

    # =========================================================================
    # WHERE CLAUSE
    # =========================================================================

    def _where(
        self,
        criteria: Sequence[ColumnElement],
        filters: dict[str, Any],
    ) -> List[ColumnElement]:
        if "delete_at" in filters:
            logger.debug(
                f"{self.model.__name__}: ignoring caller delete_at={filters['delete_at']!r}"
            )
            filters = {k: v for k, v in filters.items() if k != "delete_at"}

        clauses = list(criteria)
        for name, value in filters.items():
            if value is None:
                continue
            clauses.append(getattr(self.model, name) == value)
        clauses.append(self.model.delete_at == LIVE)
        return clauses

    def _require_key(self, criteria: Sequence[ColumnElement], filters: dict[str, Any]) -> None:
        missing = [name for name, value in filters.items() if value is None]
        if missing:
            raise ValueError(f"{self.model.__name__}: None given for {', '.join(missing)}")
        if not criteria and not filters:
            raise ValueError(f"{self.model.__name__}: a single-row lookup needs a filter")

    def _select(
        self,
        criteria: Sequence[ColumnElement],
        filters: dict[str, Any],
        order_by: Optional[Sequence[Any]] = None,
    ) -> Select:
        stmt = select(self.model).where(*self._where(criteria, filters))
        if order_by is not None:
            stmt = stmt.order_by(*order_by)
        return stmt

    # =========================================================================
    # READS
    # =========================================================================

    async def find_unique(self, *criteria: ColumnElement, **filters: Any) -> Optional[ModelT]:
        """Return the single live row matching, or ``None``."""
        self._require_key(criteria, filters)
        result = await self.session.execute(self._select(criteria, filters))
        return result.scalar_one_or_none()

    async def find_first(
        self,
        *criteria: ColumnElement,
        order_by: Optional[Sequence[Any]] = None,
        **filters: Any,
    ) -> Optional[ModelT]:
        stmt = self._select(criteria, filters, order_by or [self.model.id]).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def find_many(
        self,
        *criteria: ColumnElement,
        order_by: Optional[Sequence[Any]] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        **filters: Any,
    ) -> List[ModelT]:
        stmt = self._select(criteria, filters, order_by or [self.model.id])
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_unique_or_raise(self, *criteria: ColumnElement, **filters: Any) -> ModelT:
        entity = await self.find_unique(*criteria, **filters)
        if entity is None:
            raise NotFoundError(f"{self.model.__name__} not found", details=_printable(filters))
        return entity

    async def find_first_or_raise(self, *criteria: ColumnElement, **filters: Any) -> ModelT:
        entity = await self.find_first(*criteria, **filters)
        if entity is None:
            raise NotFoundError(f"{self.model.__name__} not found", details=_printable(filters))
        return entity

    async def count(self, *criteria: ColumnElement, **filters: Any) -> int:
        stmt = select(func.count()).select_from(self.model).where(*self._where(criteria, filters))
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def paginate(
        self,
        page: int,
        page_size: int,
        *criteria: ColumnElement,
        order_by: Optional[Sequence[Any]] = None,
        **filters: Any,
    ) -> Page[ModelT]:
        """Count, then fetch one page; the fetch is skipped when nothing matches."""
        total_count = await self.count(*criteria, **filters)
        page_count = math.ceil(total_count / page_size)
        record: List[ModelT] = []
        if total_count > 0:
            record = await self.find_many(
                *criteria,
                order_by=order_by,
                offset=(page - 1) * page_size,
                limit=page_size,
                **filters,
            )
        return Page(
            page=page,
            page_size=page_size,
            page_count=page_count,
            total_count=total_count,
            record=record,
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create(self, **values: Any) -> ModelT:
        entity = self.model(**values)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(self, entity: ModelT, **values: Any) -> ModelT:
        values.pop("delete_at", None)
        for name, value in values.items():
            setattr(entity, name, value)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def delete(self, *criteria: ColumnElement, **filters: Any) -> ModelT:
        """
        Soft-delete the live row matching the filters.

        Returns:
            The row, now carrying a non-zero ``delete_at``

        Raises:
            NotFoundError: No live row matches
        """
        entity = await self.find_unique_or_raise(*criteria, **filters)
        entity.delete_at = unix_now()
        await self.session.flush()
        logger.info(f"Soft-deleted {self.model.__name__} #{entity.id} at {entity.delete_at}")
        return entity

    async def delete_many(
        self,
        *criteria: ColumnElement,
        data: Optional[dict[str, Any]] = None,
        **filters: Any,
    ) -> int:
        """
        Soft-delete every live row matching, in one UPDATE.

        Fields in ``data`` are written alongside ``delete_at``.

        Returns:
            Number of rows stamped
        """
        values = {getattr(self.model, name): value for name, value in (data or {}).items()}
        values[self.model.delete_at] = unix_now()
        stmt = (
            update(self.model)
            .where(*self._where(criteria, filters))
            .values(values)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        logger.info(f"Soft-deleted {result.rowcount} {self.model.__name__} row(s)")
        return result.rowcount


def _printable(filters: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in filters.items() if v is not None and k != "delete_at"}
