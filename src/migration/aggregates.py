"""Per-year tallies and summary documents."""

import logging
from collections import Counter
from datetime import datetime

from src.config import MigrationConfig
from src.store.base import DocumentStore

logger = logging.getLogger(__name__)


class AggregationReporter:
    """Counts visits and trips by calendar year for the current run.

    Years are taken from the UTC timestamps the records carry. Summaries are
    written as full overwrites, so they only ever describe the latest run.
    """

    def __init__(self, config: MigrationConfig):
        self.config = config
        self._visits: Counter = Counter()
        self._trips: Counter = Counter()

    def record_visit(self, timestamp: datetime) -> None:
        self._visits[timestamp.year] += 1

    def record_trip(self, timestamp: datetime) -> None:
        self._trips[timestamp.year] += 1

    @property
    def visit_counts_by_year(self) -> dict[int, int]:
        return dict(sorted(self._visits.items()))

    @property
    def trip_counts_by_year(self) -> dict[int, int]:
        return dict(sorted(self._trips.items()))

    def summary_documents(self, ship_count: int, now: datetime) -> dict[str, dict]:
        """Build the three summary documents keyed by document id.

        Year keys are strings since document stores only allow string map keys.
        """
        return {
            self.config.ship_summary_id: {
                "totalShips": ship_count,
                "lastUpdated": now,
            },
            self.config.visit_summary_id: {
                "countsByYear": {str(y): n for y, n in self.visit_counts_by_year.items()},
                "lastUpdated": now,
            },
            self.config.trip_summary_id: {
                "countsByYear": {str(y): n for y, n in self.trip_counts_by_year.items()},
                "lastUpdated": now,
            },
        }

    def finalize(self, store: DocumentStore, ship_count: int, now: datetime) -> dict[str, dict]:
        """Overwrite the summary documents in a single commit.

        Args:
            store: Target store
            ship_count: Number of distinct ships created this run
            now: Timestamp for ``lastUpdated``

        Returns:
            The documents written, keyed by document id

        Raises:
            StoreError: If the commit fails
        """
        documents = self.summary_documents(ship_count, now)

        batch = store.new_batch()
        for document_id, fields in documents.items():
            batch.set(self.config.metadata_collection, document_id, fields)
        batch.commit()

        logger.info(
            "Wrote aggregate statistics",
            extra={
                "total_ships": ship_count,
                "visit_counts_by_year": self.visit_counts_by_year,
                "trip_counts_by_year": self.trip_counts_by_year,
            },
        )
        return documents
