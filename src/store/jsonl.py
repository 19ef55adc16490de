"""Local JSONL store for rehearsing a migration without the live database.

The legacy collection is read from an export file with one JSON object per
line (``{"id": "...", ...fields}``). Committed batches are appended to
``<output_dir>/<collection>.jsonl``; a later line for the same id supersedes
an earlier one. A commit that fails part way is truncated back out of
every file it touched.
"""

import logging
import uuid
from collections import defaultdict
from pathlib import Path
from typing import Optional, Union

from src.store.base import DocumentStore, SourceDocument, StoreError, WriteBatch
from src.utils.file_io import read_jsonl, write_jsonl

logger = logging.getLogger(__name__)


class JsonlBatch(WriteBatch):
    """Batch that appends its documents to per-collection JSONL files."""

    def __init__(self, store: "JsonlStore"):
        self._store = store
        self._writes: list[tuple[str, str, dict]] = []

    def set(self, collection: str, document_id: str, fields: dict) -> None:
        self._writes.append((collection, document_id, {**fields, "id": document_id}))

    def commit(self) -> None:
        if not self._writes:
            return

        by_collection: dict[str, list[dict]] = defaultdict(list)
        for collection, _, fields in self._writes:
            by_collection[collection].append(fields)

        commit_id = uuid.uuid4().hex[:12]
        # Size of each output file before this commit; None if it did not exist
        offsets: dict[Path, Optional[int]] = {}
        try:
            for collection, documents in by_collection.items():
                path = self._store.output_path(collection)
                offsets[path] = path.stat().st_size if path.exists() else None
                write_jsonl(documents, path, commit_id=commit_id)
        except OSError as e:
            self._rollback(offsets)
            raise StoreError(f"Failed to write commit {commit_id}: {e}") from e

        self._writes = []

    @staticmethod
    def _rollback(offsets: dict[Path, Optional[int]]) -> None:
        for path, size in offsets.items():
            try:
                if size is None:
                    path.unlink(missing_ok=True)
                else:
                    with open(path, "r+b") as f:
                        f.truncate(size)
            except OSError as e:
                logger.error(
                    f"Could not roll back partial commit in {path}: {e}",
                    extra={"path": str(path)},
                )

    def __len__(self) -> int:
        return len(self._writes)


class JsonlStore(DocumentStore):
    """Reads a legacy export file and writes JSONL output files."""

    def __init__(
        self,
        source_path: Union[str, Path],
        output_dir: Union[str, Path],
    ):
        self.source_path = Path(source_path)
        self.output_dir = Path(output_dir)

    def output_path(self, collection: str) -> Path:
        return self.output_dir / f"{collection}.jsonl"

    def fetch_all(self, collection: str) -> list[SourceDocument]:
        """Load the export file; ``collection`` is only used for logging."""
        try:
            records = read_jsonl(self.source_path)
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read {self.source_path}: {e}") from e

        documents = []
        for i, record in enumerate(records):
            if "id" not in record:
                raise StoreError(f"Line {i + 1} of {self.source_path} has no id")
            data = dict(record)
            document_id = str(data.pop("id"))
            documents.append(SourceDocument(id=document_id, data=data))

        logger.info(
            f"Loaded {len(documents)} {collection} documents from {self.source_path}",
            extra={"collection": collection, "record_count": len(documents)},
        )
        return documents

    def new_batch(self) -> JsonlBatch:
        return JsonlBatch(self)

    def new_document_id(self, collection: str) -> str:
        return uuid.uuid4().hex
