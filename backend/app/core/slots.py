"""
Time-slot generation: slice a presence window (date + start/end time-of-day) into fixed-width slots.

- Times are entered in the event timezone (EVENT_TIMEZONE); every slot instant is normalised to UTC
  so storage keys and ordering do not depend on display conventions.
- SlotRange is an iterable object, not a generator: iterate it as many times as needed, it always
  yields the same instants.
- end <= start yields nothing. Validating that is the caller's job.
- Stepping is in wall-clock time, so DST days keep one slot per displayed quarter hour.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterator
from zoneinfo import ZoneInfo

from app.config import settings
from app.core.constants import SLOT_STEP


def event_zone() -> ZoneInfo:
    return ZoneInfo(settings.event_timezone)


def local_instant(day: date, at: time, tz: tzinfo) -> datetime:
    """Civil date + time-of-day in tz, as an aware UTC datetime. Repeated wall times resolve to the first."""
    return datetime.combine(day, at).replace(tzinfo=tz).astimezone(timezone.utc)


def _exists(wall: datetime, tz: tzinfo) -> bool:
    # wall times skipped by a DST jump do not survive a round trip through UTC
    instant = local_instant(wall.date(), wall.time(), tz)
    return instant.astimezone(tz).replace(tzinfo=None) == wall


@dataclass(frozen=True)
class SlotRange:
    """
    Slots step through the window in wall-clock time: on a DST fall-back day the repeated hour
    is offered once, on a spring-forward day the skipped wall times have no slot.
    """

    day: date
    start: time
    end: time
    tz: tzinfo = timezone.utc
    step: timedelta = SLOT_STEP

    def __iter__(self) -> Iterator[datetime]:
        wall = datetime.combine(self.day, self.start)
        stop = datetime.combine(self.day, self.end)
        while wall < stop:
            if _exists(wall, self.tz):
                yield local_instant(self.day, wall.time(), self.tz)
            wall += self.step

    def __len__(self) -> int:
        return sum(1 for _ in self)


def generate_slot_starts(day: date, start: time, end: time, tz: tzinfo | None = None) -> SlotRange:
    """Slot instants (UTC) for a window on day, with times read in tz (default: event timezone)."""
    return SlotRange(day=day, start=start, end=end, tz=tz or event_zone())


def to_event_time(instant: datetime, tz: tzinfo | None = None) -> datetime:
    """UTC instant -> event-local datetime for display."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(tz or event_zone())
