"""
Time interval primitives shared by the overlap detector, the slot generator
and the occupancy aggregator.

Two semantics live here on purpose and carry different names:

* ``Interval.overlaps`` is the half-open ``[start, end)`` intersection test
  used for conflicts and availability. Back-to-back intervals are disjoint.
* ``Interval.covers`` is the closed ``start <= instant <= end`` test used for
  "is this booking in progress right now" statistics.
"""
from dataclasses import dataclass
from datetime import datetime, timezone

from errors import ValidationError


def to_utc(dt: datetime) -> datetime:
    """Aware UTC datetime; naive input is taken to already be UTC."""
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    Half-open interval overlap: [start, end)
    Overlap iff a_start < b_end AND a_end > b_start.
    """
    return a_start < b_end and a_end > b_start


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", to_utc(self.start))
        object.__setattr__(self, "end", to_utc(self.end))
        if not self.start < self.end:
            raise ValidationError("start_time must be before end_time")

    @classmethod
    def of(cls, obj) -> "Interval":
        """Build from anything carrying start_time/end_time (bookings, payloads)."""
        return cls(obj.start_time, obj.end_time)

    def overlaps(self, other: "Interval") -> bool:
        return intervals_overlap(self.start, self.end, other.start, other.end)

    def covers(self, instant: datetime) -> bool:
        instant = to_utc(instant)
        return self.start <= instant <= self.end
