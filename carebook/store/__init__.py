from carebook.store.base import (
    DocumentExistsError,
    DocumentMissingError,
    DocumentStore,
    StoreError,
    Transaction,
)
from carebook.store.memory import InMemoryDocumentStore
from carebook.store.seed import load_seed

__all__ = [
    "DocumentStore",
    "Transaction",
    "StoreError",
    "DocumentExistsError",
    "DocumentMissingError",
    "InMemoryDocumentStore",
    "load_seed",
]
