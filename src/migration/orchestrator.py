"""Drives a complete migration run.

Fetch the legacy snapshot → transform each visit in order → enqueue the
writes → flush the remainder → write aggregate summaries.
"""

import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from src.config import MigrationConfig
from src.migration.aggregates import AggregationReporter
from src.migration.batch import BatchWriter, WriteOp
from src.migration.dedupe import ShipRegistry
from src.migration.exceptions import SkippableRecordError
from src.migration.transformer import TransformResult, transform_visit
from src.store.base import DocumentStore, SourceDocument
from src.utils.pipeline_logger import PipelineLogger, timed_operation

logger = logging.getLogger(__name__)


class MigrationState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PROCESSING = "processing"
    FLUSHING_FINAL = "flushing_final"
    WRITING_AGGREGATES = "writing_aggregates"
    DONE = "done"
    FAILED = "failed"


@dataclass
class MigrationResult:
    """Outcome and counters of one run."""

    run_id: str
    state: MigrationState = MigrationState.IDLE
    records_fetched: int = 0
    records_migrated: int = 0
    records_skipped: int = 0
    missing_inbound: int = 0
    ships_created: int = 0
    trips_written: int = 0
    commits: int = 0
    operations_committed: int = 0
    last_committed_source_id: Optional[str] = None
    skipped_ids: list[str] = field(default_factory=list)
    visit_counts_by_year: dict[int, int] = field(default_factory=dict)
    trip_counts_by_year: dict[int, int] = field(default_factory=dict)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def status(self) -> str:
        return "success" if self.state is MigrationState.DONE else "error"

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict:
        data = asdict(self)
        data["state"] = self.state.value
        data["status"] = self.status
        data["duration_seconds"] = self.duration_seconds
        return data


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MigrationRunner:
    """Runs the legacy visit migration once.

    Records are processed strictly one after another: the ship registry and
    the pending batch are shared state of this single processing path.
    """

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[MigrationConfig] = None,
        run_id: Optional[str] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize a runner.

        Args:
            store: Document store holding the legacy and the new collections
            config: Migration constants (defaults to MigrationConfig())
            run_id: Identifier for logs (auto-generated if not provided)
            clock: Source of "now" for audit fields and missing dates
        """
        self.store = store
        self.config = config or MigrationConfig()
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.clock = clock

        self.state = MigrationState.IDLE
        self.pipeline_logger = PipelineLogger(self.config.source_collection, self.run_id)
        self.registry = ShipRegistry(
            lambda: self.store.new_document_id(self.config.ships_collection)
        )
        self.writer = BatchWriter(
            store,
            capacity=self.config.flush_threshold,
            hard_limit=self.config.hard_limit,
            pipeline_logger=self.pipeline_logger,
        )
        self.reporter = AggregationReporter(self.config)
        self.result = MigrationResult(run_id=self.run_id)

    def _transition(self, state: MigrationState) -> None:
        logger.debug(
            f"Migration state {self.state.value} -> {state.value}",
            extra={"run_id": self.run_id},
        )
        self.state = state
        self.result.state = state

    def run(self) -> MigrationResult:
        """Execute the migration.

        Returns:
            MigrationResult; ``state`` is DONE or FAILED. Batches committed
            before a failure are not rolled back.

        Raises:
            RuntimeError: If this runner has already been used
        """
        if self.state is not MigrationState.IDLE:
            raise RuntimeError(f"Migration run {self.run_id} already started")

        self.result.started_at = self.clock()
        self.pipeline_logger.start("migration")

        try:
            self._run()
        except Exception as e:
            logger.error(
                f"CRITICAL ERROR during migration in state {self.state.value}: {e}",
                exc_info=True,
                extra={
                    "run_id": self.run_id,
                    "last_committed_source_id": self.writer.last_committed_source_id,
                },
            )
            self.pipeline_logger.error("migration", e)
            self.result.error = str(e)
            self._transition(MigrationState.FAILED)

        self.result.completed_at = self.clock()
        self.result.commits = self.writer.commit_count
        self.result.operations_committed = self.writer.committed_ops
        self.result.last_committed_source_id = self.writer.last_committed_source_id
        self.result.ships_created = len(self.registry)
        self.result.visit_counts_by_year = self.reporter.visit_counts_by_year
        self.result.trip_counts_by_year = self.reporter.trip_counts_by_year

        if self.state is MigrationState.DONE:
            self.pipeline_logger.success(
                "migration",
                row_count=self.result.records_migrated,
                extra=self.pipeline_logger.get_metrics(),
            )
        return self.result

    def _run(self) -> None:
        self._transition(MigrationState.FETCHING)
        with timed_operation("fetch_snapshot", logger) as timer:
            documents = self.store.fetch_all(self.config.source_collection)
        self.result.records_fetched = len(documents)

        if not documents:
            logger.info(
                f"No documents found in {self.config.source_collection}. Migration complete.",
                extra={"run_id": self.run_id},
            )
            self._transition(MigrationState.DONE)
            return

        logger.info(
            f"Found {len(documents)} legacy visit documents to process",
            extra={"run_id": self.run_id, "fetch_ms": round(timer.duration_ms, 2)},
        )

        self._transition(MigrationState.PROCESSING)
        for document in documents:
            self._process(document)

        self._transition(MigrationState.FLUSHING_FINAL)
        self.writer.flush_remainder()

        self._transition(MigrationState.WRITING_AGGREGATES)
        self.reporter.finalize(self.store, ship_count=len(self.registry), now=self.clock())

        self._transition(MigrationState.DONE)
        logger.info(
            f"MIGRATION SUCCESSFUL: {len(self.registry)} ships, "
            f"{self.result.records_migrated} of {len(documents)} visits migrated",
            extra={"run_id": self.run_id},
        )

    def _process(self, document: SourceDocument) -> None:
        try:
            transformed = transform_visit(
                document,
                self.registry,
                new_trip_id=lambda: self.store.new_document_id(self.config.trips_collection),
                recorded_by=self.config.audit_actor,
                now=self.clock(),
            )
        except SkippableRecordError as e:
            logger.warning(str(e), extra={"record_id": e.record_id})
            self.pipeline_logger.log_skip(e.record_id, e.reason)
            self.result.records_skipped += 1
            self.result.skipped_ids.append(e.record_id)
            return

        logger.debug(
            f"Visit {document.id} produced {transformed.operation_count} writes",
            extra={"record_id": document.id, "operation_count": transformed.operation_count},
        )
        for op in self._write_ops(document.id, transformed):
            self.writer.enqueue(op)

        self.reporter.record_visit(transformed.visit["initialEta"])
        for trip in transformed.trips:
            self.reporter.record_trip(trip["boarding"])

        self.result.records_migrated += 1
        self.result.trips_written += len(transformed.trips)
        if transformed.missing_inbound:
            self.result.missing_inbound += 1

        self.writer.flush_if_threshold()

    def _write_ops(self, source_id: str, transformed: TransformResult) -> list[WriteOp]:
        """Order the writes so referenced documents precede their dependents."""
        ops = []
        if transformed.new_ship is not None:
            ship = transformed.new_ship
            ops.append(WriteOp(self.config.ships_collection, ship["id"], ship))
        ops.append(
            WriteOp(self.config.visits_collection, transformed.visit["id"], transformed.visit)
        )
        for trip in transformed.trips:
            ops.append(WriteOp(self.config.trips_collection, trip["id"], trip))

        ops[-1].source_id = source_id
        return ops
