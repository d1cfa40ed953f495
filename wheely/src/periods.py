"""
Period registration and resolution.

Periods partition the day into named, non-overlapping, half-open
time-of-day intervals. `PeriodRegistry` is the only writer of periods and
keeps that invariant: every create and update is validated, checked for a
unique name and scanned against all stored periods before it is persisted.

Concurrent registrations must be serialized by the caller (the API holds a
table lock), the overlap scan itself cannot be enforced by the database.
"""

from datetime import datetime, time
from logging import getLogger
from typing import Iterable, Optional

from wheely.src import exceptions, validators
from wheely.src.constants import TMZ_LOCAL
from wheely.src.db import Period
from wheely.src.functions import mergeWithRecord, updateIfChanged
from wheely.src.guards import UniquenessGuard
from wheely.src.interval import TimeInterval, firstOverlapping
from wheely.src.repository import Storage
from wheely.src.schemas import PeriodData

logger = getLogger("uvicorn.error")


def currentPeriod(now: time, periods: Iterable[Period]) -> Optional[Period]:
    """
    Resolve the period containing the time of day `now`.

    Args:
        now (time): Wall-clock time of day, in the local timezone.
        periods (Iterable[Period]): Candidate periods.

    Returns:
        Optional[Period]: The first period containing `now`, or None when
        the periods leave `now` uncovered. Stored periods never overlap, if
        several match anyway the first one wins and a warning is logged.
    """
    matches = [period for period in periods if TimeInterval.of(period).contains(now)]
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            "Time %s matches %d periods (%s), using %s",
            now.strftime("%H:%M"),
            len(matches),
            ", ".join(period.name for period in matches),
            matches[0].name,
        )
    return matches[0]


class PeriodRegistry:
    def __init__(self, storage: Storage):
        self.storage = storage
        self.uniqueness = UniquenessGuard(storage)

    # ---------------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------------
    def listAll(self) -> list[Period]:
        return self.storage.findAll(Period, orderBy=Period.start_time)

    def byId(self, period_id: int) -> Period:
        period = self.storage.findById(Period, period_id)
        if period is None:
            raise exceptions.InvalidIdentifier()
        return period

    def byName(self, name: str) -> Optional[Period]:
        name = validators.requiredText(name, "period name")
        return self.storage.findOne(Period, name=name)

    def current(self, now: Optional[datetime] = None) -> Optional[Period]:
        """Resolve the active period for `now`, defaulting to the current local time."""
        if now is None:
            now = datetime.now(TMZ_LOCAL)
        return currentPeriod(now.time(), self.listAll())

    # ---------------------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------------------
    def validate(self, data: PeriodData, excludeId: Optional[int] = None) -> PeriodData:
        """
        Run every period check in order: field validation, unique name,
        overlap with the stored periods.

        Args:
            data (PeriodData): Candidate values.
            excludeId (Optional[int]): The period being updated, skipped by
                the uniqueness and overlap checks.

        Returns:
            PeriodData: The normalized candidate values.

        Raises:
            exceptions.InvalidInput: A field rule is violated.
            exceptions.Conflict: The name is taken.
            exceptions.OverlappingPeriod: The interval overlaps a stored period,
                the message names the first one found.
        """
        data = validators.periodData(data)
        self.uniqueness.require(
            Period,
            f"A period with the name {data.name} already exists",
            excludeId=excludeId,
            name=data.name,
        )
        interval = TimeInterval(start=data.start_time, end=data.end_time)
        collision = firstOverlapping(
            interval, self.storage.findAll(Period), excludeId=excludeId
        )
        if collision is not None:
            raise exceptions.OverlappingPeriod(collision.name)
        return data

    # ---------------------------------------------------------------------------
    # Writes
    # ---------------------------------------------------------------------------
    def create(self, data: PeriodData) -> Period:
        data = self.validate(data)
        period = Period(
            name=data.name,
            start_time=data.start_time,
            end_time=data.end_time,
            description=data.description,
        )
        return self.storage.save(period)

    def update(self, period_id: int, data: PeriodData) -> Period:
        """
        Apply a partial update, unset fields keep their stored value.
        A blank description clears it.
        """
        period = self.byId(period_id)
        data = self.validate(mergeWithRecord(period, data), excludeId=period.id)
        updateIfChanged(
            period,
            data,
            [
                Period.name.key,
                Period.start_time.key,
                Period.end_time.key,
            ],
        )
        # None clears the description
        period.description = data.description
        return self.storage.update(period)

    def delete(self, period_id: int) -> Period:
        period = self.byId(period_id)
        self.storage.delete(period)
        return period
