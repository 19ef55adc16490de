"""Legacy record normalization.

Handles:
- Timestamp normalization across legacy representations
- Ship field resolution for nested and flat layouts
- IMO extraction from MarineTraffic links
- Embedded trip conversion
"""

from .normalize import (
    normalize_timestamp,
    to_timestamp,
    extract_imo_from_url,
    normalize_ship_info,
    normalize_trip,
    LegacyLayout,
    ShipInfo,
    TripFields,
)

__all__ = [
    # Timestamps
    "normalize_timestamp",
    "to_timestamp",
    # Ships
    "extract_imo_from_url",
    "normalize_ship_info",
    "LegacyLayout",
    "ShipInfo",
    # Trips
    "normalize_trip",
    "TripFields",
]
