"""Normalization of legacy visit documents.

Legacy visits were written by two generations of the app, so the same value
can live under different field names or inside an optional ``shipInfo``
sub-object. Everything here is a pure function of its input.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

# Common timestamp formats to try parsing
TIMESTAMP_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
]

# Epoch values above this (year 3000 in seconds) are milliseconds
_EPOCH_MILLIS_BOUNDARY = 32503680000

IMO_PATTERN = re.compile(r"imo:(\d+)", re.IGNORECASE)

DEFAULT_PILOT = "Unknown Pilot"


def _utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_timestamp(value: Any) -> Optional[datetime]:
    """Normalize any legacy timestamp representation to an aware UTC datetime.

    Args:
        value: A datetime or date, a legacy store timestamp (mapping with
            ``seconds``/``_seconds`` and optional nanoseconds, or an object
            exposing ``to_datetime()``), a date string, or an epoch number

    Returns:
        Aware UTC datetime or None if the value cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float, Decimal)) and not isinstance(seconds, bool):
            nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
            try:
                return datetime.fromtimestamp(
                    float(seconds) + float(nanos) / 1e9, tz=timezone.utc
                )
            except (OverflowError, OSError, ValueError, TypeError):
                logger.warning(f"Store timestamp out of range: {dict(value)}")
                return None
        return None

    if callable(getattr(value, "to_datetime", None)):
        return normalize_timestamp(value.to_datetime())

    if isinstance(value, (int, float, Decimal)):
        value = float(value)
        if value > _EPOCH_MILLIS_BOUNDARY:
            value = value / 1000
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning(f"Epoch value out of range: {value}")
            return None

    if isinstance(value, str):
        text = value.strip()
        for fmt in TIMESTAMP_FORMATS:
            try:
                return _utc(datetime.strptime(text, fmt))
            except ValueError:
                continue
        try:
            return _utc(datetime.fromisoformat(text))
        except ValueError:
            pass

        logger.warning(f"Could not parse timestamp: {value}")
        return None

    return None


def to_timestamp(value: Any, now: datetime) -> datetime:
    """Normalize a timestamp, falling back to ``now`` when it is missing or bad."""
    return normalize_timestamp(value) or now


def first_present(record: Mapping, names: Sequence[str]) -> Any:
    """Return the first non-empty value among ``names``, else None."""
    for name in names:
        value = record.get(name)
        if value:
            return value
    return None


def extract_imo_from_url(url: Any) -> Optional[str]:
    """Extract an IMO number from a MarineTraffic URL.

    Example:
        >>> extract_imo_from_url("https://www.marinetraffic.com/en/ais/details/ships/imo:9100126/")
        '9100126'
    """
    if not isinstance(url, str) or not url:
        return None
    match = IMO_PATTERN.search(url)
    return match.group(1) if match else None


# ============================================
# Ship info
# ============================================

class LegacyLayout(Enum):
    """Where a legacy visit keeps its ship fields."""

    NESTED = "nested"
    FLAT = "flat"


# Per layout, the aliases for each canonical ship field in priority order
SHIP_FIELD_ALIASES: dict[LegacyLayout, dict[str, tuple[str, ...]]] = {
    LegacyLayout.NESTED: {
        "name": ("ship",),
        "gross_tonnage": ("gt",),
        "imo": ("imo",),
        "marine_traffic_link": ("marineTrafficLink", "marineTraffic"),
        "notes": ("shipnote",),
    },
    LegacyLayout.FLAT: {
        "name": ("ship",),
        "gross_tonnage": ("gt",),
        "imo": ("imoNumber", "imo"),
        "marine_traffic_link": ("marineTraffic",),
        "notes": ("shipNote",),
    },
}


@dataclass(frozen=True)
class ShipInfo:
    """Canonical ship fields extracted from a legacy visit."""

    name: str
    gross_tonnage: Any = 0
    imo: Optional[Any] = None
    marine_traffic_link: Optional[str] = None
    notes: Optional[str] = None


def detect_layout(record: Mapping) -> LegacyLayout:
    """A ``shipInfo`` sub-object, even an empty one, wins over flat fields."""
    if isinstance(record.get("shipInfo"), Mapping):
        return LegacyLayout.NESTED
    return LegacyLayout.FLAT


def normalize_ship_info(record: Mapping) -> ShipInfo:
    """Extract canonical ship fields from a legacy visit document.

    Args:
        record: Legacy visit fields

    Returns:
        ShipInfo with a trimmed name ("" when absent), gross tonnage (0 when
        absent) and an IMO taken from the MarineTraffic link when not stored
        directly
    """
    layout = detect_layout(record)
    source = record["shipInfo"] if layout is LegacyLayout.NESTED else record
    aliases = SHIP_FIELD_ALIASES[layout]

    raw_name = first_present(source, aliases["name"])
    name = str(raw_name).strip() if raw_name else ""

    link = first_present(source, aliases["marine_traffic_link"])
    imo = first_present(source, aliases["imo"])
    if not imo:
        imo = extract_imo_from_url(link)

    return ShipInfo(
        name=name,
        gross_tonnage=first_present(source, aliases["gross_tonnage"]) or 0,
        imo=imo,
        marine_traffic_link=link,
        notes=first_present(source, aliases["notes"]),
    )


# ============================================
# Trips
# ============================================

@dataclass(frozen=True)
class TripFields:
    """Canonical fields of one embedded legacy trip."""

    trip_type: str
    boarding: datetime
    pilot: str = DEFAULT_PILOT
    from_port: Optional[str] = None
    to_port: Optional[str] = None
    pilot_notes: Optional[str] = None
    extra_charges_notes: Optional[str] = None
    is_confirmed: bool = False
    own_note: Optional[str] = None
    pilot_no: Any = None
    month_no: Any = None
    car: Any = None
    time_off: Any = None
    good: Any = None


def normalize_trip(
    raw: Mapping,
    trip_type: str,
    now: Optional[datetime] = None,
) -> TripFields:
    """Convert one embedded legacy trip object.

    Args:
        raw: The ``inward``, ``outward`` or extra trip object
        trip_type: Type to use unless the object carries its own ``typeTrip``
        now: Fallback boarding time (defaults to current UTC time)

    Returns:
        TripFields
    """
    if now is None:
        now = datetime.now(timezone.utc)

    return TripFields(
        trip_type=raw.get("typeTrip") or trip_type,
        boarding=to_timestamp(raw.get("boarding"), now),
        pilot=raw.get("pilot") or DEFAULT_PILOT,
        from_port=raw.get("fromPort") or None,
        to_port=raw.get("port") or None,
        pilot_notes=first_present(raw, ("preTripNote", "note")),
        extra_charges_notes=raw.get("extra") or None,
        is_confirmed=raw.get("confirmed") is True,
        own_note=raw.get("ownNote") or None,
        pilot_no=raw.get("pilotNo") or None,
        month_no=raw.get("monthNo") or None,
        car=raw.get("car") or None,
        time_off=raw.get("timeOff") or None,
        good=raw.get("good") or None,
    )
