"""
In-process document store.

In production the engine talks to Firestore. This store keeps the same
contract: transactions are serialized (one at a time per store), see only
committed data, and apply their writes all-or-nothing.
"""

import asyncio
import copy
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from carebook.store.base import (
    DocumentExistsError,
    DocumentMissingError,
    DocumentStore,
    Document,
    Filter,
    PendingWrite,
    Transaction,
    WriteKind,
    matches,
)

logger = logging.getLogger(__name__)


class InMemoryTransaction(Transaction):
    def __init__(self, store: "InMemoryDocumentStore") -> None:
        super().__init__()
        self._store = store

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return self._store._read(collection, doc_id)

    async def query(self, collection: str, filters: list[Filter]) -> list[Document]:
        return self._store._select(collection, filters)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store. Documents are deep-copied in and out."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def _read(self, collection: str, doc_id: str) -> Optional[Document]:
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return {"id": doc_id, **copy.deepcopy(data)}

    def _select(self, collection: str, filters: list[Filter]) -> list[Document]:
        return [
            {"id": doc_id, **copy.deepcopy(data)}
            for doc_id, data in self._collections.get(collection, {}).items()
            if matches(data, filters)
        ]

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return self._read(collection, doc_id)

    async def query(self, collection: str, filters: list[Filter]) -> list[Document]:
        return self._select(collection, filters)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryTransaction]:
        async with self._lock:
            txn = InMemoryTransaction(self)
            yield txn
            self._commit(txn.writes)

    def _commit(self, writes: list[PendingWrite]) -> None:
        self._check_preconditions(writes)
        self._apply_writes(writes)
        if writes:
            logger.debug("Committed %d writes", len(writes))

    def _check_preconditions(self, writes: list[PendingWrite]) -> None:
        created: set[tuple[str, str]] = set()
        for write in writes:
            key = (write.collection, write.doc_id)
            exists = write.doc_id in self._collections.get(write.collection, {}) or key in created
            if write.kind == WriteKind.CREATE and exists:
                raise DocumentExistsError(write.collection, write.doc_id)
            if write.kind == WriteKind.UPDATE and not exists:
                raise DocumentMissingError(write.collection, write.doc_id)
            if write.kind != WriteKind.UPDATE:
                created.add(key)

    def _apply_writes(self, writes: list[PendingWrite]) -> None:
        for write in writes:
            documents = self._collections.setdefault(write.collection, {})
            data = {k: v for k, v in copy.deepcopy(write.data).items() if k != "id"}
            if write.kind == WriteKind.UPDATE:
                documents[write.doc_id].update(data)
            else:
                documents[write.doc_id] = data

    def count(self, collection: str) -> int:
        """Number of documents in a collection."""
        return len(self._collections.get(collection, {}))
