"""Migration configuration.

The migration itself is driven by a fixed set of named constants; store
connection settings are resolved by the store adapters from the environment.
"""

from dataclasses import dataclass

# ============================================
# Collections
# ============================================

OLD_VISITS_COLLECTION = "visits"
SHIPS_COLLECTION = "ships"
# Kept apart from the legacy collection so the source is never overwritten
VISITS_COLLECTION = "visits_new"
TRIPS_COLLECTION = "trips"
METADATA_COLLECTION = "system_metadata"

SHIP_SUMMARY_ID = "ship_summary"
VISIT_SUMMARY_ID = "visit_summary"
TRIP_SUMMARY_ID = "trip_summary"

# ============================================
# Run settings
# ============================================

AUDIT_ACTOR = "Migration_Script_Pilot"
# DynamoDB TransactWriteItems cap
HARD_COMMIT_LIMIT = 100
FLUSH_THRESHOLD = 90


@dataclass(frozen=True)
class MigrationConfig:
    """Named constants for one migration run."""

    source_collection: str = OLD_VISITS_COLLECTION
    ships_collection: str = SHIPS_COLLECTION
    visits_collection: str = VISITS_COLLECTION
    trips_collection: str = TRIPS_COLLECTION
    metadata_collection: str = METADATA_COLLECTION
    ship_summary_id: str = SHIP_SUMMARY_ID
    visit_summary_id: str = VISIT_SUMMARY_ID
    trip_summary_id: str = TRIP_SUMMARY_ID
    audit_actor: str = AUDIT_ACTOR
    flush_threshold: int = FLUSH_THRESHOLD
    hard_limit: int = HARD_COMMIT_LIMIT

    def __post_init__(self):
        if not 0 < self.flush_threshold < self.hard_limit:
            raise ValueError(
                f"flush_threshold must be between 1 and {self.hard_limit - 1}, "
                f"got {self.flush_threshold}"
            )
