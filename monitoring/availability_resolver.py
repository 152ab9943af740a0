"""Resolve the seating areas shown for the current unit, date, time and party size."""

from __future__ import annotations
from tracking import t

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from booking import messages
from reservations.api import ApiError, ReservationApiClient
from reservations.models import Area


@dataclass
class AreaResolution:
    """Areas to display and the area that should be selected afterwards.

    ``stale`` results were superseded by a newer request and must not be applied.
    """

    areas: List[Area] = field(default_factory=list)
    selected_area_id: Optional[str] = None
    error: Optional[str] = None
    stale: bool = False
    scoped: bool = False


def merge_areas(available: Sequence[Area], static: Iterable[Area]) -> List[Area]:
    """Enrich each availability entry with the static metadata of the same id."""
    t('monitoring.availability_resolver.merge_areas')
    by_id: Dict[str, Area] = {area.id: area for area in static}
    return [area.merged_with_metadata(by_id.get(area.id)) for area in available]


def reselect_area(
    areas: Sequence[Area], party_size: int, current_id: Optional[str]
) -> Optional[str]:
    """Keep ``current_id`` when it still fits, else the first area that does."""
    t('monitoring.availability_resolver.reselect_area')
    current = next((area for area in areas if area.id == current_id), None)
    if current is not None and current.fits(party_size):
        return current.id
    first_fit = next((area for area in areas if area.fits(party_size)), None)
    return first_fit.id if first_fit else None


class AvailabilityResolver:
    """Scoped availability queries where only the latest request may win.

    Every call to :meth:`resolve` takes a generation ticket. When the call
    finishes after a newer one started, its result comes back with
    ``stale=True`` and the caller drops it.
    """

    def __init__(
        self,
        client: ReservationApiClient,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('monitoring.availability_resolver.AvailabilityResolver.__init__')
        self.client = client
        self.logger = logger or logging.getLogger('AvailabilityResolver')
        self._generation = 0
        self._static_cache: Dict[str, List[Area]] = {}

    def invalidate(self) -> int:
        """Mark every in-flight resolution as stale."""
        t('monitoring.availability_resolver.AvailabilityResolver.invalidate')
        self._generation += 1
        return self._generation

    def is_current(self, ticket: int) -> bool:
        return ticket == self._generation

    async def static_areas(self, unit_id: str) -> List[Area]:
        """Per-unit metadata, cached after the first successful fetch."""
        t('monitoring.availability_resolver.AvailabilityResolver.static_areas')
        cached = self._static_cache.get(unit_id)
        if cached is not None:
            return list(cached)
        payloads = await self.client.fetch_areas_static(unit_id)
        areas = [Area.from_static_payload(item) for item in payloads]
        self._static_cache[unit_id] = areas
        return list(areas)

    async def resolve(
        self,
        unit_id: Optional[str],
        day: Optional[date],
        time_slot: Optional[str],
        party_size: int,
        selected_area_id: Optional[str] = None,
    ) -> AreaResolution:
        t('monitoring.availability_resolver.AvailabilityResolver.resolve')

        ticket = self.invalidate()

        if not unit_id:
            return self._finish(ticket, AreaResolution())

        if not day or not time_slot:
            try:
                static = await self.static_areas(unit_id)
            except ApiError as exc:
                self.logger.warning("Failed to load areas for unit %s: %s", unit_id, exc.message)
                return self._finish(ticket, AreaResolution(error=messages.AREAS_LOAD_FAILED))

            keep = selected_area_id if any(a.id == selected_area_id for a in static) else None
            return self._finish(ticket, AreaResolution(areas=static, selected_area_id=keep))

        try:
            static = await self.static_areas(unit_id)
        except ApiError as exc:
            self.logger.debug("Area metadata unavailable for unit %s: %s", unit_id, exc.message)
            static = []

        try:
            payloads = await self.client.fetch_availability(unit_id, day, time_slot)
        except ApiError as exc:
            self.logger.warning(
                "Failed to load availability for %s on %s at %s: %s",
                unit_id,
                day.isoformat(),
                time_slot,
                exc.message,
            )
            return self._finish(
                ticket, AreaResolution(error=messages.AVAILABILITY_LOAD_FAILED, scoped=True)
            )

        areas = merge_areas([Area.from_availability_payload(p) for p in payloads], static)
        selected = reselect_area(areas, party_size, selected_area_id)
        self.logger.debug(
            "Resolved %s areas for %s %s %s (party %s) -> %s",
            len(areas),
            unit_id,
            day.isoformat(),
            time_slot,
            party_size,
            selected,
        )
        return self._finish(
            ticket, AreaResolution(areas=areas, selected_area_id=selected, scoped=True)
        )

    def _finish(self, ticket: int, resolution: AreaResolution) -> AreaResolution:
        if not self.is_current(ticket):
            resolution.stale = True
            self.logger.debug("Dropping stale area resolution (ticket %s)", ticket)
        return resolution


__all__ = [
    "AreaResolution",
    "AvailabilityResolver",
    "merge_areas",
    "reselect_area",
]
