"""Tests for yearly aggregation."""

from datetime import datetime, timezone

from src.config import MigrationConfig
from src.migration.aggregates import AggregationReporter


def ts(year, month=1):
    return datetime(year, month, 1, tzinfo=timezone.utc)


class TestAggregationReporter:
    """Tests for counting and summary documents."""

    def test_counts_by_year(self):
        reporter = AggregationReporter(MigrationConfig())

        for t in (ts(2021), ts(2022), ts(2021, 6)):
            reporter.record_trip(t)
        reporter.record_visit(ts(2020))

        assert reporter.trip_counts_by_year == {2021: 2, 2022: 1}
        assert reporter.visit_counts_by_year == {2020: 1}

    def test_finalize_overwrites_summaries(self, fake_store, fixed_now):
        config = MigrationConfig()
        fake_store.collections[config.metadata_collection]["trip_summary"] = {
            "countsByYear": {"1999": 40},
            "stale": True,
        }
        reporter = AggregationReporter(config)
        reporter.record_trip(ts(2021))
        reporter.record_trip(ts(2021))
        reporter.record_trip(ts(2022))

        reporter.finalize(fake_store, ship_count=4, now=fixed_now)

        summaries = fake_store.collections[config.metadata_collection]
        assert summaries["trip_summary"] == {
            "countsByYear": {"2021": 2, "2022": 1},
            "lastUpdated": fixed_now,
        }
        assert summaries["ship_summary"] == {"totalShips": 4, "lastUpdated": fixed_now}
        assert summaries["visit_summary"]["countsByYear"] == {}
        assert len(fake_store.commits) == 1
