from typing import Generic, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from usageflow.common.core.telemetry import trace_span
from usageflow.common.repositories.base import EventStore, Filter, Record

DomainModelType = TypeVar("DomainModelType", bound=BaseModel)
CreateModelType = TypeVar("CreateModelType", bound=BaseModel)


class BaseRepository(Generic[DomainModelType]):
    """
    Base repository over one collection of an EventStore.

    Converts store records to domain models; subclasses add the typed
    queries their services need.
    """

    def __init__(
        self,
        store: EventStore,
        collection: str,
        domain_class: Type[DomainModelType],
    ):
        self.store = store
        self.collection = collection
        self.domain_class = domain_class

    def _record_to_domain(self, record: Record) -> DomainModelType:
        """Convert a store record to a domain model."""
        return self.domain_class.model_validate(record)

    def _records_to_domain(self, records: Sequence[Record]) -> list[DomainModelType]:
        return [self._record_to_domain(record) for record in records]

    @trace_span
    async def get_one(self, filters: Sequence[Filter]) -> Optional[DomainModelType]:
        record = await self.store.fetch_one(self.collection, filters)
        return self._record_to_domain(record) if record else None

    @trace_span
    async def get_many(
        self,
        filters: Sequence[Filter],
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[DomainModelType]:
        records = await self.store.fetch_many(
            self.collection,
            filters,
            order_by=order_by,
            descending=descending,
            limit=limit,
        )
        return self._records_to_domain(records)

    @trace_span
    async def create(self, create_model: BaseModel) -> DomainModelType:
        """Create a new record from a typed create model."""
        data = create_model.model_dump(mode="python")
        record = await self.store.insert(self.collection, data)
        return self._record_to_domain(record)
