import math
from datetime import datetime, timedelta
from typing import Iterator, List

from pydantic import BaseModel

from errors import ValidationError
from intervals import Interval, to_utc


class TimeSlot(BaseModel):
    available_start_time: datetime
    available_end_time: datetime

    @property
    def interval(self) -> Interval:
        return Interval(self.available_start_time, self.available_end_time)


def align_to_grid(moment: datetime, interval_minutes: int) -> datetime:
    """Round up to the next multiple of ``interval_minutes`` past the top of the hour.

    Seconds and microseconds are dropped first; a moment already sitting on a
    grid minute stays on that minute.
    """
    moment = to_utc(moment).replace(second=0, microsecond=0)
    if moment.minute % interval_minutes == 0:
        return moment
    top_of_hour = moment.replace(minute=0)
    minutes = math.ceil(moment.minute / interval_minutes) * interval_minutes
    return top_of_hour + timedelta(minutes=minutes)


def iter_slots(range_start: datetime, range_end: datetime, interval_minutes: int) -> Iterator[TimeSlot]:
    if interval_minutes < 1:
        raise ValidationError("interval must be a positive number of minutes")

    width = timedelta(minutes=interval_minutes)
    range_end = to_utc(range_end)
    current = align_to_grid(range_start, interval_minutes)
    # Only whole slots: one starting at range_end, or spilling past it, is dropped
    while current < range_end and current + width <= range_end:
        yield TimeSlot(available_start_time=current, available_end_time=current + width)
        current += width


def generate_slots(range_start: datetime, range_end: datetime, interval_minutes: int) -> List[TimeSlot]:
    return list(iter_slots(range_start, range_end, interval_minutes))
