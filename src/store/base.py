"""Document store interface consumed by the migration."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class StoreError(Exception):
    """Raised when a store round trip fails (transport, quota, validation)."""


@dataclass
class SourceDocument:
    """A legacy document as read from the store."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


class WriteBatch(ABC):
    """A group of document writes committed as one atomic unit."""

    @abstractmethod
    def set(self, collection: str, document_id: str, fields: dict) -> None:
        """Stage a full overwrite of ``collection/document_id``."""
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit all staged writes.

        Raises:
            StoreError: If the group could not be committed
        """
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class DocumentStore(ABC):
    """Minimal document store surface: read a collection, write in batches."""

    @abstractmethod
    def fetch_all(self, collection: str) -> list[SourceDocument]:
        """Load every document of a collection eagerly."""
        pass

    @abstractmethod
    def new_batch(self) -> WriteBatch:
        """Start an empty write batch."""
        pass

    @abstractmethod
    def new_document_id(self, collection: str) -> str:
        """Allocate a fresh unique document id for ``collection``."""
        pass
