"""Tests for run-scoped ship deduplication."""

import itertools

from src.migration.dedupe import ShipRegistry, ship_dedupe_key
from src.transform.normalize import ShipInfo


def make_registry():
    counter = itertools.count(1)
    return ShipRegistry(lambda: f"ship-{next(counter)}")


class TestShipDedupeKey:
    """Tests for dedup key construction."""

    def test_imo_key(self):
        assert ship_dedupe_key(ShipInfo(name="Anything", imo="9100126")) == "id_9100126"

    def test_name_key_lowercased_and_trimmed(self):
        info = ShipInfo(name=" MV Example ", gross_tonnage=5000)
        assert ship_dedupe_key(info) == "name_mv example_cap_5000"

    def test_name_key_default_capacity(self):
        assert ship_dedupe_key(ShipInfo(name="Tug", gross_tonnage=None)) == "name_tug_cap_0"

    def test_imo_compared_as_is(self):
        """Test the IMO is not case-folded."""
        assert ship_dedupe_key(ShipInfo(name="A", imo="ab1")) != \
            ship_dedupe_key(ShipInfo(name="A", imo="AB1"))


class TestShipRegistry:
    """Tests for ship id resolution."""

    def test_first_occurrence_creates_document(self, fixed_now):
        registry = make_registry()
        info = ShipInfo(name="MV Example", gross_tonnage=5000, notes="note")

        resolution = registry.resolve(info, fixed_now)

        assert resolution.created
        assert resolution.ship_id == "ship-1"
        assert resolution.document == {
            "id": "ship-1",
            "shipName": "MV Example",
            "grossTonnage": 5000,
            "imoNumber": None,
            "marineTrafficLink": None,
            "shipNotes": "note",
            "createdAt": fixed_now,
            "updatedAt": fixed_now,
        }
        assert len(registry) == 1

    def test_same_name_different_case_reuses_id(self, fixed_now):
        registry = make_registry()

        first = registry.resolve(ShipInfo(name="MV Example", gross_tonnage=5000), fixed_now)
        second = registry.resolve(ShipInfo(name="mv example", gross_tonnage=5000), fixed_now)

        assert second.ship_id == first.ship_id
        assert not second.created
        assert len(registry) == 1

    def test_same_name_different_capacity_is_new_ship(self, fixed_now):
        registry = make_registry()

        first = registry.resolve(ShipInfo(name="MV Example", gross_tonnage=5000), fixed_now)
        second = registry.resolve(ShipInfo(name="MV Example", gross_tonnage=6000), fixed_now)

        assert second.ship_id != first.ship_id
        assert len(registry) == 2

    def test_imo_match_ignores_name(self, fixed_now):
        registry = make_registry()

        first = registry.resolve(ShipInfo(name="Old Name", imo="9100126"), fixed_now)
        second = registry.resolve(ShipInfo(name="New Name", imo="9100126"), fixed_now)

        assert second.ship_id == first.ship_id
        assert not second.created

    def test_mixed_keys(self, fixed_now):
        """One IMO ship and one name-matched ship seen twice give two ships."""
        registry = make_registry()
        created = [
            registry.resolve(info, fixed_now).created
            for info in (
                ShipInfo(name="Imo Ship", imo="9100126"),
                ShipInfo(name="MV Example", gross_tonnage=5000),
                ShipInfo(name="MV Example", gross_tonnage=5000),
            )
        ]

        assert created == [True, True, False]
        assert len(registry) == 2

    def test_registries_are_independent(self, fixed_now):
        info = ShipInfo(name="MV Example", gross_tonnage=5000)

        make_registry().resolve(info, fixed_now)

        assert make_registry().resolve(info, fixed_now).created
