"""
Document store interface.

The booking engine only needs keyed reads, equality-style queries, and an
all-or-nothing write of several documents. Production deployments back this
with Firestore; ``carebook.store.memory`` provides an in-process store with
the same semantics for tests and the console.
"""

import operator
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

Document = dict[str, Any]
Filter = tuple[str, str, Any]

FILTER_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
}


class StoreError(Exception):
    """Unexpected failure inside the document store."""


class DocumentExistsError(StoreError):
    """A create-if-absent write found an existing document."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"Document {collection}/{doc_id} already exists")
        self.collection = collection
        self.doc_id = doc_id


class DocumentMissingError(StoreError):
    """An update targeted a document that does not exist."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"Document {collection}/{doc_id} does not exist")
        self.collection = collection
        self.doc_id = doc_id


def matches(document: Document, filters: list[Filter]) -> bool:
    """True when a document satisfies every ``(field, op, value)`` filter."""
    for field_name, op, value in filters:
        if op not in FILTER_OPERATORS:
            raise StoreError(f"Unsupported filter operator: {op!r}")
        if field_name not in document:
            return False
        try:
            if not FILTER_OPERATORS[op](document[field_name], value):
                return False
        except TypeError:
            return False
    return True


class WriteKind(str, Enum):
    SET = "set"
    CREATE = "create"
    UPDATE = "update"


@dataclass
class PendingWrite:
    kind: WriteKind
    collection: str
    doc_id: str
    data: Document = field(default_factory=dict)


class Transaction(ABC):
    """Reads against committed state plus a buffer of writes applied atomically."""

    def __init__(self) -> None:
        self.writes: list[PendingWrite] = []

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Fetch one document (with its ``id``) or None."""

    @abstractmethod
    async def query(self, collection: str, filters: list[Filter]) -> list[Document]:
        """Fetch every document matching all filters."""

    def set(self, collection: str, doc_id: str, data: Document) -> None:
        """Overwrite (or create) a document."""
        self.writes.append(PendingWrite(WriteKind.SET, collection, doc_id, data))

    def create(self, collection: str, doc_id: str, data: Document) -> None:
        """Create a document; the whole commit fails if it already exists."""
        self.writes.append(PendingWrite(WriteKind.CREATE, collection, doc_id, data))

    def update(self, collection: str, doc_id: str, fields: Document) -> None:
        """Merge fields into an existing document."""
        self.writes.append(PendingWrite(WriteKind.UPDATE, collection, doc_id, fields))


class DocumentStore(ABC):
    """Keyed document store with queries and atomic transactions."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Fetch one committed document or None."""

    @abstractmethod
    async def query(self, collection: str, filters: list[Filter]) -> list[Document]:
        """Fetch committed documents matching all filters."""

    async def list_documents(self, collection: str) -> list[Document]:
        """Every document in a collection."""
        return await self.query(collection, [])

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[Transaction]:
        """Open a transaction.

        Writes buffered on the yielded transaction are committed together
        when the block exits cleanly and discarded if it raises.
        """
