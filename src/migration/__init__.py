"""Legacy visit migration engine.

Handles:
- Ship deduplication
- Visit and trip document construction
- Bounded batch commits
- Per-year aggregate summaries
- Run orchestration
"""

from .aggregates import AggregationReporter
from .batch import BatchWriter, WriteOp
from .dedupe import ShipRegistry, ShipResolution, ship_dedupe_key
from .exceptions import BatchCommitError, MigrationError, SkippableRecordError
from .orchestrator import MigrationResult, MigrationRunner, MigrationState
from .transformer import TransformResult, TripType, transform_visit

__all__ = [
    # Deduplication
    "ShipRegistry",
    "ShipResolution",
    "ship_dedupe_key",
    # Transformation
    "transform_visit",
    "TransformResult",
    "TripType",
    # Writing
    "BatchWriter",
    "WriteOp",
    "AggregationReporter",
    # Orchestration
    "MigrationRunner",
    "MigrationResult",
    "MigrationState",
    # Errors
    "MigrationError",
    "SkippableRecordError",
    "BatchCommitError",
]
