"""
Storage-agnostic event store interface.

The usage engine only needs predicate-filtered reads and inserts over named
collections. Predicates are conjunctions of Filter terms; cross-collection
resolution is done by callers as sequential lookups, never joins.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

Record = dict[str, Any]


class FilterOp(str, Enum):
    """Comparison operators supported by every store."""

    EQ = "eq"
    GTE = "gte"
    LTE = "lte"
    IN = "in"


@dataclass(frozen=True)
class Filter:
    """A single predicate term: ``field <op> value``."""

    field: str
    op: FilterOp
    value: Any

    def describe(self) -> dict[str, Any]:
        """Loggable form of the term."""
        value = list(self.value) if self.op == FilterOp.IN else self.value
        return {"field": self.field, "op": self.op.value, "value": value}


def eq(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.EQ, value)


def gte(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.GTE, value)


def lte(field: str, value: Any) -> Filter:
    return Filter(field, FilterOp.LTE, value)


def in_(field: str, values: Sequence[Any]) -> Filter:
    return Filter(field, FilterOp.IN, tuple(values))


def describe_filters(filters: Sequence[Filter]) -> list[dict[str, Any]]:
    return [f.describe() for f in filters]


class EventStore(ABC):
    """
    Abstract interface for the durable store behind the usage engine.

    Implementations raise StorageError for any backend failure, with the
    collection name and filter keys attached to the error details.
    """

    @abstractmethod
    async def fetch_one(
        self, collection: str, filters: Sequence[Filter]
    ) -> Optional[Record]:
        """
        Fetch the first record matching all filters.

        Returns:
            The record, or None if nothing matches
        """
        pass

    @abstractmethod
    async def fetch_many(
        self,
        collection: str,
        filters: Sequence[Filter],
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Record]:
        """
        Fetch every record matching all filters.

        Args:
            collection: Collection (table) name
            filters: Conjunction of predicate terms
            order_by: Optional field to sort by
            descending: Sort direction when order_by is given
            limit: Optional maximum number of records
        """
        pass

    @abstractmethod
    async def insert(self, collection: str, record: Record) -> Record:
        """
        Append a record.

        Returns:
            The stored record, including store-generated fields such as id
        """
        pass

    @abstractmethod
    async def update(
        self, collection: str, filters: Sequence[Filter], values: Record
    ) -> int:
        """
        Update matching records.

        Only used by the payment integration to maintain user profiles;
        usage events and adjustments are never updated.

        Returns:
            Number of records updated
        """
        pass
