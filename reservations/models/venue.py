"""Venue dataclasses: units and their seating areas."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from tracking import t


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


@dataclass(frozen=True)
class Unit:
    """A physical venue location."""

    id: str
    name: str
    slug: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Unit":
        t('reservations.models.venue.Unit.from_payload')
        identifier = _first(payload, "id", "_id", "slug", "name")
        name = _first(payload, "name", "title", "slug")
        slug = payload.get("slug")
        return cls(
            id=str(identifier),
            name=str(name or ""),
            slug=str(slug) if slug else None,
        )

    @property
    def label(self) -> str:
        return self.name or self.slug or self.id


@dataclass(frozen=True)
class Area:
    """A seating zone inside a unit.

    ``remaining`` is ``None`` until a date and time were chosen; before that
    only the static metadata (name, description, photo, icon) is known.
    """

    id: str
    name: str
    description: str = ""
    icon_glyph: Optional[str] = None
    photo_url: Optional[str] = None
    capacity: Optional[int] = None
    remaining: Optional[int] = None
    is_available: bool = False

    @classmethod
    def from_static_payload(cls, payload: Mapping[str, Any]) -> "Area":
        """Build an area from the per-unit metadata listing (no capacity)."""
        t('reservations.models.venue.Area.from_static_payload')
        return cls(
            id=str(_first(payload, "id", "_id")),
            name=str(_first(payload, "name", "title") or ""),
            description=str(_first(payload, "description", "desc") or ""),
            icon_glyph=_first(payload, "iconGlyph", "icon"),
            photo_url=_first(payload, "photoUrlAbsolute", "photoUrl", "photo") or None,
            capacity=_as_int(payload.get("capacity")),
            remaining=None,
            is_available=bool(payload.get("isActive", True)),
        )

    @classmethod
    def from_availability_payload(cls, payload: Mapping[str, Any]) -> "Area":
        """Build an area from the time-scoped availability listing."""
        t('reservations.models.venue.Area.from_availability_payload')
        remaining = _as_int(payload.get("available"))
        if remaining is None:
            remaining = _as_int(payload.get("remaining"))
        raw_flag = payload.get("isAvailable")
        is_available = bool(raw_flag) if raw_flag is not None else (remaining or 0) > 0
        return cls(
            id=str(_first(payload, "id", "_id")),
            name=str(_first(payload, "name", "title") or ""),
            description=str(_first(payload, "description", "desc") or ""),
            icon_glyph=_first(payload, "iconGlyph", "icon"),
            photo_url=_first(payload, "photoUrlAbsolute", "photoUrl", "photo") or None,
            capacity=_as_int(payload.get("capacity")),
            remaining=remaining,
            is_available=is_available,
        )

    def merged_with_metadata(self, static: Optional["Area"]) -> "Area":
        """Fill gaps from ``static``; values already on ``self`` take precedence."""
        t('reservations.models.venue.Area.merged_with_metadata')
        if static is None:
            return self
        return replace(
            self,
            name=self.name or static.name,
            description=self.description or static.description,
            icon_glyph=self.icon_glyph or static.icon_glyph,
            photo_url=self.photo_url or static.photo_url,
            capacity=self.capacity if self.capacity is not None else static.capacity,
        )

    def fits(self, party_size: int) -> bool:
        """True when the remaining capacity can seat ``party_size`` people."""
        return (self.remaining or 0) >= party_size
