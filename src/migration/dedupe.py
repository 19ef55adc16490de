"""Run-scoped ship deduplication."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from src.transform.normalize import ShipInfo

logger = logging.getLogger(__name__)


def ship_dedupe_key(info: ShipInfo) -> str:
    """Build the dedup key for a ship.

    The IMO number identifies a ship on its own. Without one, the lowercased
    name combined with the gross tonnage is used.

    Example:
        >>> ship_dedupe_key(ShipInfo(name="MV Example", gross_tonnage=5000))
        'name_mv example_cap_5000'
    """
    if info.imo:
        return f"id_{info.imo}"
    return f"name_{info.name.strip().lower()}_cap_{info.gross_tonnage or 0}"


@dataclass
class ShipResolution:
    """Outcome of resolving a ship against the registry."""

    ship_id: str
    key: str
    document: Optional[dict] = None

    @property
    def created(self) -> bool:
        return self.document is not None


class ShipRegistry:
    """Maps dedup keys to ship ids for the duration of one run.

    Only ships seen in the current run are known; nothing is looked up in
    the store.
    """

    def __init__(self, new_id: Callable[[], str]):
        """Initialize an empty registry.

        Args:
            new_id: Factory for fresh ship document ids
        """
        self._new_id = new_id
        self._ids: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._ids)

    def resolve(self, info: ShipInfo, now: datetime) -> ShipResolution:
        """Return the ship id for ``info``, allocating one on first sight.

        Args:
            info: Canonical ship fields
            now: Creation timestamp for a new ship document

        Returns:
            ShipResolution; ``document`` is set only when the ship is new and
            must be written
        """
        key = ship_dedupe_key(info)

        if key in self._ids:
            return ShipResolution(ship_id=self._ids[key], key=key)

        ship_id = self._new_id()
        self._ids[key] = ship_id
        logger.debug(f"New ship {info.name!r}", extra={"ship_id": ship_id, "dedupe_key": key})

        return ShipResolution(
            ship_id=ship_id,
            key=key,
            document={
                "id": ship_id,
                "shipName": info.name,
                "grossTonnage": info.gross_tonnage,
                "imoNumber": info.imo,
                "marineTrafficLink": info.marine_traffic_link,
                "shipNotes": info.notes,
                "createdAt": now,
                "updatedAt": now,
            },
        )
