"""Structured logging utilities for migration observability.

Provides consistent logging format with required fields:
- source
- run_id
- step
- row_count
- duration_ms
- status
"""

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class PipelineLogContext:
    """Context for pipeline logging with required fields."""

    source: str
    run_id: str
    step: str = ""
    row_count: int = 0
    collection: Optional[str] = None
    duration_ms: Optional[float] = None
    status: str = "started"
    error: Optional[str] = None
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        data = asdict(self)
        data["timestamp"] = datetime.now(timezone.utc).isoformat()
        # Remove None values
        return {k: v for k, v in data.items() if v is not None}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class PipelineLogger:
    """Structured logger for migration steps."""

    def __init__(self, source: str, run_id: str):
        """Initialize pipeline logger.

        Args:
            source: Legacy collection being migrated
            run_id: Unique run identifier
        """
        self.source = source
        self.run_id = run_id
        self.logger = logging.getLogger(f"migration.{source}")
        self._start_times: dict[str, float] = {}
        self._commit_times: list[float] = []
        self._commit_ops = 0
        self._skipped = 0

    def _log(self, level: int, step: str, **kwargs) -> None:
        """Internal logging method with structured context."""
        ctx = PipelineLogContext(
            source=self.source,
            run_id=self.run_id,
            step=step,
            **kwargs
        )
        self.logger.log(level, ctx.to_json(), extra=ctx.to_dict())

    def _elapsed_ms(self, step: str) -> Optional[float]:
        started = self._start_times.get(step)
        if started is None:
            return None
        return (time.time() - started) * 1000

    def start(self, step: str) -> None:
        """Log step start."""
        self._start_times[step] = time.time()
        self._log(logging.INFO, step, status="started")

    def success(self, step: str, **kwargs) -> None:
        """Log step success."""
        self._log(
            logging.INFO,
            step,
            status="success",
            duration_ms=self._elapsed_ms(step),
            **kwargs
        )

    def error(self, step: str, error: Exception, **kwargs) -> None:
        """Log step error."""
        self._log(
            logging.ERROR,
            step,
            status="error",
            error=str(error),
            duration_ms=self._elapsed_ms(step),
            **kwargs
        )

    def log_commit(
        self,
        commit_number: int,
        operation_count: int,
        duration_ms: float,
        last_source_id: Optional[str] = None,
    ) -> None:
        """Log a committed write group."""
        self._commit_times.append(duration_ms)
        self._commit_ops += operation_count
        self._log(
            logging.INFO,
            step="batch_commit",
            status="success",
            row_count=operation_count,
            duration_ms=duration_ms,
            extra={
                "commit_number": commit_number,
                "last_source_id": last_source_id,
            }
        )

    def log_skip(self, record_id: str, reason: str) -> None:
        """Log a skipped legacy record."""
        self._skipped += 1
        self._log(
            logging.WARNING,
            step="transform",
            status="skipped",
            extra={"record_id": record_id, "reason": reason},
        )

    def get_metrics(self) -> dict:
        """Get aggregated metrics."""
        return {
            "source": self.source,
            "run_id": self.run_id,
            "total_commits": len(self._commit_times),
            "total_committed_ops": self._commit_ops,
            "total_commit_time_ms": sum(self._commit_times),
            "avg_commit_time_ms": (
                sum(self._commit_times) / len(self._commit_times)
                if self._commit_times else 0
            ),
            "skipped_records": self._skipped,
        }


@contextmanager
def timed_operation(name: str, logger: logging.Logger = None):
    """Context manager to time an operation.

    Usage:
        with timed_operation("fetch_snapshot") as timer:
            documents = store.fetch_all("visits")
        print(f"Took {timer.duration_ms}ms")

    Args:
        name: Operation name for logging
        logger: Optional logger instance

    Yields:
        Timer object with duration_ms attribute
    """
    class Timer:
        def __init__(self):
            self.start_time = time.time()
            self.end_time = None
            self.duration_ms = 0

    timer = Timer()

    try:
        yield timer
    finally:
        timer.end_time = time.time()
        timer.duration_ms = (timer.end_time - timer.start_time) * 1000

        if logger:
            logger.debug(
                f"Operation '{name}' completed",
                extra={"operation": name, "duration_ms": timer.duration_ms}
            )
