"""Conversion of one legacy visit into ship, visit and trip documents."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Mapping, Optional

from src.migration.dedupe import ShipRegistry
from src.migration.exceptions import SkippableRecordError
from src.store.base import SourceDocument
from src.transform.normalize import (
    TripFields,
    first_present,
    normalize_ship_info,
    normalize_trip,
    to_timestamp,
)

logger = logging.getLogger(__name__)

DEFAULT_VISIT_STATUS = "Due"


class TripType:
    """Conventional trip types. Extra trips may carry any other label."""

    IN = "In"
    OUT = "Out"
    SHIFT = "Shift"
    OTHER = "Other"


# Legacy arrays holding extra trips, in priority order
EXTRA_TRIP_FIELDS = ("extra", "trips")


@dataclass
class TransformResult:
    """Documents produced from one legacy visit."""

    visit: dict
    trips: list[dict] = field(default_factory=list)
    new_ship: Optional[dict] = None
    missing_inbound: bool = False

    @property
    def operation_count(self) -> int:
        return 1 + len(self.trips) + (1 if self.new_ship is not None else 0)


def build_trip_document(
    fields: TripFields,
    trip_id: str,
    visit_id: str,
    ship_id: str,
    recorded_by: str,
    recorded_at: datetime,
) -> dict:
    return {
        "id": trip_id,
        "visitId": visit_id,
        "shipId": ship_id,
        "typeTrip": fields.trip_type,
        "boarding": fields.boarding,
        "pilot": fields.pilot,
        "fromPort": fields.from_port,
        "toPort": fields.to_port,
        "pilotNotes": fields.pilot_notes,
        "extraChargesNotes": fields.extra_charges_notes,
        "isConfirmed": fields.is_confirmed,
        "ownNote": fields.own_note,
        "pilotNo": fields.pilot_no,
        "monthNo": fields.month_no,
        "car": fields.car,
        "timeOff": fields.time_off,
        "good": fields.good,
        "recordedBy": recorded_by,
        "recordedAt": recorded_at,
    }


def _has_boarding(trip: object) -> bool:
    return isinstance(trip, Mapping) and bool(trip.get("boarding"))


def collect_trip_fields(
    legacy: Mapping,
    now: datetime,
) -> tuple[list[TripFields], bool]:
    """Gather the canonical trips of a legacy visit.

    Args:
        legacy: Legacy visit fields
        now: Fallback timestamp

    Returns:
        Tuple of (trip fields in inbound, outbound, extra order,
        whether the inbound trip is missing)
    """
    trips = []

    inward = legacy.get("inward")
    missing_inbound = not _has_boarding(inward)
    if not missing_inbound:
        trip = normalize_trip(inward, TripType.IN, now)
        confirmed = legacy.get("inwardConfirmed") is True or trip.is_confirmed
        trips.append(replace(trip, is_confirmed=confirmed))

    outward = legacy.get("outward")
    if _has_boarding(outward):
        trip = normalize_trip(outward, TripType.OUT, now)
        confirmed = legacy.get("outwardConfirmed") is True or trip.is_confirmed
        trips.append(replace(trip, is_confirmed=confirmed))

    extra_trips = first_present(legacy, EXTRA_TRIP_FIELDS) or []
    if isinstance(extra_trips, list):
        for extra_trip in extra_trips:
            if _has_boarding(extra_trip) and extra_trip.get("typeTrip"):
                trips.append(normalize_trip(extra_trip, extra_trip["typeTrip"], now))

    return trips, missing_inbound


def transform_visit(
    source: SourceDocument,
    registry: ShipRegistry,
    new_trip_id: Callable[[], str],
    recorded_by: str,
    now: datetime,
) -> TransformResult:
    """Transform one legacy visit.

    Args:
        source: Legacy visit document
        registry: Run-scoped ship registry
        new_trip_id: Factory for trip document ids
        recorded_by: Audit actor stamped on the new documents
        now: Timestamp used for audit fields and missing dates

    Returns:
        TransformResult with the visit (id equal to the legacy id), its trips
        and the ship document when the ship is new

    Raises:
        SkippableRecordError: If no ship name can be found
    """
    legacy = source.data
    ship_info = normalize_ship_info(legacy)

    if not ship_info.name:
        raise SkippableRecordError(source.id, "no ship name found")

    resolution = registry.resolve(ship_info, now)

    visit = {
        "id": source.id,
        "shipId": resolution.ship_id,
        "shipName": ship_info.name,
        "grossTonnage": ship_info.gross_tonnage,
        "currentStatus": legacy.get("status") or DEFAULT_VISIT_STATUS,
        "initialEta": to_timestamp(legacy.get("eta"), now),
        "berthPort": legacy.get("berth") or None,
        "statusLastUpdated": to_timestamp(legacy.get("updateTime"), now),
        "updatedBy": first_present(legacy, ("updatedBy", "updateUser")) or recorded_by,
        "visitNotes": legacy.get("note") or None,
    }

    trip_fields, missing_inbound = collect_trip_fields(legacy, now)
    if missing_inbound:
        logger.warning(
            f"Missing In trip for {ship_info.name} ({source.id})",
            extra={"record_id": source.id, "ship_name": ship_info.name},
        )

    trips = [
        build_trip_document(
            fields,
            trip_id=new_trip_id(),
            visit_id=source.id,
            ship_id=resolution.ship_id,
            recorded_by=recorded_by,
            recorded_at=now,
        )
        for fields in trip_fields
    ]

    return TransformResult(
        visit=visit,
        trips=trips,
        new_ship=resolution.document,
        missing_inbound=missing_inbound,
    )
