"""Bounded write buffer committed in atomic groups."""

import logging
from dataclasses import dataclass
from typing import Optional

from src.migration.exceptions import BatchCommitError
from src.store.base import DocumentStore, StoreError
from src.utils.pipeline_logger import PipelineLogger, timed_operation

logger = logging.getLogger(__name__)


@dataclass
class WriteOp:
    """A full-document write into a collection."""

    collection: str
    document_id: str
    fields: dict
    # Set on the last write derived from a legacy record, marking it complete
    source_id: Optional[str] = None


class BatchWriter:
    """Accumulates writes and commits them in groups of at most ``capacity``.

    ``capacity`` stays strictly below the store's ``hard_limit`` so a group
    can never overflow the per-commit cap. A failed commit is not retried.
    """

    def __init__(
        self,
        store: DocumentStore,
        capacity: int,
        hard_limit: int,
        pipeline_logger: Optional[PipelineLogger] = None,
    ):
        """Initialize batch writer.

        Args:
            store: Store to commit into
            capacity: Flush threshold; a group holds at most this many writes
            hard_limit: The store's per-commit operation limit
            pipeline_logger: Optional structured logger for commit events

        Raises:
            ValueError: If capacity is not in ``[1, hard_limit)``
        """
        if not 0 < capacity < hard_limit:
            raise ValueError(
                f"capacity must be between 1 and {hard_limit - 1}, got {capacity}"
            )

        self.store = store
        self.capacity = capacity
        self.hard_limit = hard_limit
        self.pipeline_logger = pipeline_logger

        self._pending: list[WriteOp] = []
        self.commit_count = 0
        self.committed_ops = 0
        self.last_committed_source_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def is_full(self) -> bool:
        return len(self._pending) >= self.capacity

    def try_add(self, op: WriteOp) -> bool:
        """Add a write, committing the pending group first when it is full.

        Returns:
            True if a flush happened before the write was added
        """
        flushed = False
        if self.is_full:
            self._flush()
            flushed = True
        self._pending.append(op)
        return flushed

    def enqueue(self, op: WriteOp) -> None:
        self.try_add(op)

    def flush_if_threshold(self) -> bool:
        """Commit the pending group if it reached capacity.

        Returns:
            True if a flush happened
        """
        if not self.is_full:
            return False
        self._flush()
        return True

    def flush_remainder(self) -> int:
        """Commit whatever is pending.

        Returns:
            Number of writes committed
        """
        if not self._pending:
            return 0
        return self._flush()

    def _flush(self) -> int:
        ops, self._pending = self._pending, []

        commit_number = self.commit_count + 1
        group_source_ids = [op.source_id for op in ops if op.source_id is not None]
        last_source_id = group_source_ids[-1] if group_source_ids else None

        batch = self.store.new_batch()
        for op in ops:
            batch.set(op.collection, op.document_id, op.fields)

        logger.info(
            f"Committing batch of {len(ops)} operations...",
            extra={"commit_number": commit_number, "operation_count": len(ops)},
        )

        try:
            with timed_operation("batch_commit", logger) as timer:
                batch.commit()
        except StoreError as e:
            if self.pipeline_logger:
                self.pipeline_logger.error("batch_commit", e, row_count=len(ops))
            raise BatchCommitError(
                commit_number=commit_number,
                operation_count=len(ops),
                last_source_id=last_source_id,
                last_committed_source_id=self.last_committed_source_id,
            ) from e

        self.commit_count = commit_number
        self.committed_ops += len(ops)
        if last_source_id is not None:
            self.last_committed_source_id = last_source_id

        if self.pipeline_logger:
            self.pipeline_logger.log_commit(
                commit_number=commit_number,
                operation_count=len(ops),
                duration_ms=timer.duration_ms,
                last_source_id=last_source_id,
            )

        return len(ops)
