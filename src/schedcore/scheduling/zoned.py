"""Scheduling – ZonedTime: converts UTC instants into an evaluation zone."""
from __future__ import annotations

from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from schedcore.scheduling.errors import InvalidTimeZoneError


class ZonedTime:
    """Time zone used when matching a schedule against the current instant."""

    __slots__ = ("_zone",)

    def __init__(self, zone: tzinfo | str) -> None:
        self._zone = self._to_tzinfo(zone)

    @classmethod
    def as_utc(cls) -> ZonedTime:
        return cls(UTC)

    @property
    def zone(self) -> tzinfo:
        return self._zone

    def convert(self, utc_now: datetime) -> datetime:
        """Return *utc_now* expressed in this zone.

        Naive datetimes are taken to already be UTC.
        """
        if utc_now.tzinfo is None:
            utc_now = utc_now.replace(tzinfo=UTC)
        return utc_now.astimezone(self._zone)

    def __repr__(self) -> str:
        return f"ZonedTime({self._zone!s})"

    @staticmethod
    def _to_tzinfo(zone: tzinfo | str) -> tzinfo:
        if isinstance(zone, tzinfo):
            return zone
        try:
            return ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidTimeZoneError(f"Unknown time zone {zone!r}", cause=exc) from exc


__all__ = ["ZonedTime"]
