"""
Time-of-day intervals with midnight wraparound.

A `TimeInterval` is the half-open range `[start, end)` of a day. When `end`
is earlier than `start` the interval crosses midnight and covers
`[start, 24:00) + [00:00, end)`. Intervals that only touch at an endpoint
do not overlap, ex:- 08:00-12:00 and 12:00-14:00.
"""

from datetime import time
from typing import Optional
from pydantic import BaseModel, ConfigDict


class TimeInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: time
    end: time

    @classmethod
    def of(cls, entity) -> "TimeInterval":
        """Build the interval of any object exposing `start_time` and `end_time`."""
        return cls(start=entity.start_time, end=entity.end_time)

    def crossesMidnight(self) -> bool:
        return self.end < self.start

    def isEmpty(self) -> bool:
        return self.start == self.end

    def overlaps(self, other: "TimeInterval") -> bool:
        """
        Check whether two intervals share at least one instant.

        Cases:
            - Neither crosses midnight: they are disjoint only when one ends
              at or before the other starts.
            - Exactly one crosses midnight: they are disjoint only when the
              plain interval fits in the gap `[end, start)` of the other.
            - Both cross midnight: both contain midnight, so they overlap.

        The result does not depend on the order of the operands.

        Example:
            >>> TimeInterval(start=time(22), end=time(2)).overlaps(
            ...     TimeInterval(start=time(1), end=time(3))
            ... )
            True
            >>> TimeInterval(start=time(23), end=time(1)).overlaps(
            ...     TimeInterval(start=time(2), end=time(4))
            ... )
            False
        """
        selfWraps = self.crossesMidnight()
        otherWraps = other.crossesMidnight()

        if not selfWraps and not otherWraps:
            return not (self.end <= other.start or other.end <= self.start)
        if selfWraps and not otherWraps:
            return not (self.end <= other.start and other.end <= self.start)
        if otherWraps and not selfWraps:
            return not (other.end <= self.start and self.end <= other.start)
        return True

    def contains(self, moment: time) -> bool:
        """Check whether a time of day falls inside the interval (start inclusive, end exclusive)."""
        if self.crossesMidnight():
            return moment >= self.start or moment < self.end
        return self.start <= moment < self.end

    def __str__(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"


def hasTimeOverlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Check two intervals given as bare start and end times for overlap."""
    interval1 = TimeInterval(start=start1, end=end1)
    return interval1.overlaps(TimeInterval(start=start2, end=end2))


def firstOverlapping(interval: TimeInterval, entities, excludeId: Optional[int] = None):
    """
    Return the first entity whose interval overlaps with `interval`.

    Args:
        interval (TimeInterval): Candidate interval.
        entities (Iterable): Objects with `id`, `start_time` and `end_time`.
        excludeId (Optional[int]): Identity to skip, used when an entity is
            compared against the set that already contains it.

    Returns:
        The first overlapping entity in iteration order, or None.
    """
    for entity in entities:
        if excludeId is not None and entity.id == excludeId:
            continue
        if interval.overlaps(TimeInterval.of(entity)):
            return entity
    return None
