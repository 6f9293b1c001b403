from contextlib import asynccontextmanager
from typing import AsyncGenerator, Mapping, Optional, Sequence

from sqlalchemy import Table, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from usageflow.common.core.exceptions import StorageError
from usageflow.common.core.telemetry import get_logger, trace_span
from usageflow.common.db.scoped import get_session, transaction
from usageflow.common.repositories.base import (
    EventStore,
    Filter,
    FilterOp,
    Record,
    describe_filters,
)

logger = get_logger(__name__)


class SQLAlchemyEventStore(EventStore):
    """
    Event store backed by SQLAlchemy Core tables.

    Sessions are acquired per operation and released immediately, unless the
    call runs inside ``transaction()``, in which case the shared session is
    reused and committed once at the end.
    """

    def __init__(
        self,
        tables: Mapping[str, Table],
        session_factory: async_sessionmaker[AsyncSession],
    ):
        self._tables = dict(tables)
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Group several store calls into one commit."""
        async with transaction(self._session_factory) as session:
            yield session

    def _table(self, collection: str) -> Table:
        try:
            return self._tables[collection]
        except KeyError:
            raise StorageError(
                f"Unknown collection: {collection}",
                details={"collection": collection},
            )

    def _where(self, table: Table, filters: Sequence[Filter]) -> list:
        clauses = []
        for term in filters:
            if term.field not in table.c:
                raise StorageError(
                    f"Unknown field {term.field} in collection {table.name}",
                    details={"collection": table.name, "field": term.field},
                )
            column = table.c[term.field]
            if term.op == FilterOp.EQ:
                clauses.append(column.is_(None) if term.value is None else column == term.value)
            elif term.op == FilterOp.GTE:
                clauses.append(column >= term.value)
            elif term.op == FilterOp.LTE:
                clauses.append(column <= term.value)
            elif term.op == FilterOp.IN:
                clauses.append(column.in_(list(term.value)))
        return clauses

    def _storage_error(
        self,
        operation: str,
        collection: str,
        error: Exception,
        filters: Sequence[Filter] = (),
    ) -> StorageError:
        logger.error(
            f"Store {operation} failed on {collection}: {error}",
            extra={"collection": collection, "operation": operation},
        )
        return StorageError(
            f"Store {operation} failed on {collection}",
            details={
                "collection": collection,
                "operation": operation,
                "filters": describe_filters(filters),
                "error": str(error),
            },
        )

    @trace_span
    async def fetch_one(
        self, collection: str, filters: Sequence[Filter]
    ) -> Optional[Record]:
        rows = await self.fetch_many(collection, filters, limit=1)
        return rows[0] if rows else None

    @trace_span
    async def fetch_many(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Record]:
        table = self._table(collection)
        query = select(table).where(*self._where(table, filters))

        if order_by is not None:
            if order_by not in table.c:
                raise StorageError(
                    f"Unknown field {order_by} in collection {collection}",
                    details={"collection": collection, "field": order_by},
                )
            column = table.c[order_by]
            # id breaks ties so equal timestamps keep insertion order
            tiebreak = table.c.id if "id" in table.c else column
            if descending:
                query = query.order_by(column.desc(), tiebreak.desc())
            else:
                query = query.order_by(column.asc(), tiebreak.asc())

        if limit is not None:
            query = query.limit(limit)

        try:
            async with get_session(self._session_factory) as session:
                result = await session.execute(query)
                return [dict(row) for row in result.mappings().all()]
        except (SQLAlchemyError, OSError) as e:
            raise self._storage_error("fetch", collection, e, filters) from e

    @trace_span
    async def insert(self, collection: str, record: Record) -> Record:
        table = self._table(collection)
        try:
            async with get_session(self._session_factory) as session:
                result = await session.execute(insert(table).values(**record))
                key = result.inserted_primary_key
                stored = await session.execute(
                    select(table).where(
                        *[column == value for column, value in zip(table.primary_key.columns, key)]
                    )
                )
                return dict(stored.mappings().one())
        except (SQLAlchemyError, OSError) as e:
            raise self._storage_error("insert", collection, e) from e

    @trace_span
    async def update(
        self, collection: str, filters: Sequence[Filter], values: Record
    ) -> int:
        table = self._table(collection)
        query = update(table).where(*self._where(table, filters)).values(**values)
        try:
            async with get_session(self._session_factory) as session:
                result = await session.execute(query)
                return result.rowcount
        except (SQLAlchemyError, OSError) as e:
            raise self._storage_error("update", collection, e, filters) from e
