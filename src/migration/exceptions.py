"""Migration error types."""

from typing import Optional


class MigrationError(Exception):
    """Base class for migration errors."""


class SkippableRecordError(MigrationError):
    """A legacy record cannot be migrated; the run skips it and continues."""

    def __init__(self, record_id: str, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Skipping legacy record {record_id}: {reason}")


class BatchCommitError(MigrationError):
    """A write group failed to commit; the run must abort.

    Nothing in the failed group is known to be durable. Groups committed
    before it stay in place.
    """

    def __init__(
        self,
        commit_number: int,
        operation_count: int,
        last_source_id: Optional[str] = None,
        last_committed_source_id: Optional[str] = None,
    ):
        self.commit_number = commit_number
        self.operation_count = operation_count
        self.last_source_id = last_source_id
        self.last_committed_source_id = last_committed_source_id
        super().__init__(
            f"Commit #{commit_number} of {operation_count} operations failed "
            f"(last record in group: {last_source_id}, "
            f"last durable record: {last_committed_source_id})"
        )
