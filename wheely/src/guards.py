"""
Integrity guards run by the services before every write.

- `UniquenessGuard`: is a candidate key free, optionally ignoring one record.
- `ReferenceGuard`: does every referenced record exist.
- `OwnershipGuard`: may the acting user modify a record.

Guards only read storage. The first failure found is raised, nothing is
written unless every guard passes.
"""

from typing import Optional
from sqlalchemy import Column

from wheely.src import exceptions
from wheely.src.repository import Storage


class UniquenessGuard:
    def __init__(self, storage: Storage):
        self.storage = storage

    def isUnique(self, model, excludeId: Optional[int] = None, **key) -> bool:
        """
        Check that no record other than `excludeId` holds the candidate key.

        Example:
            >>> guard.isUnique(Route, name="Ruta 1")
            >>> guard.isUnique(RouteTimeByPeriod, excludeId=7, route_id=5, period_id=2)
        """
        return not self.storage.exists(model, excludeId=excludeId, **key)

    def require(self, model, message: str, excludeId: Optional[int] = None, **key):
        if not self.isUnique(model, excludeId=excludeId, **key):
            raise exceptions.Conflict(message)


class ReferenceGuard:
    def __init__(self, storage: Storage):
        self.storage = storage

    def exists(self, model, id: Optional[int]) -> bool:
        if id is None:
            return False
        return self.storage.findById(model, id) is not None

    def require(self, model, id: Optional[int], column: Column):
        """
        Return the referenced record.

        Raises:
            exceptions.UnknownValue: Naming `column` when the record does not exist.
        """
        record = self.storage.findById(model, id) if id is not None else None
        if record is None:
            raise exceptions.UnknownValue(column)
        return record


class OwnershipGuard:
    """
    Author-only mutation rule.

    Updates are reserved to the author. Deletes are also allowed for the
    configured override user, when one is configured.
    """

    def __init__(self, adminOverrideUserId: Optional[int] = None):
        self.adminOverrideUserId = adminOverrideUserId

    def canUpdate(self, record, actingUserId: int) -> bool:
        return record.user_id == actingUserId

    def canDelete(self, record, actingUserId: int) -> bool:
        if record.user_id == actingUserId:
            return True
        return (
            self.adminOverrideUserId is not None
            and actingUserId == self.adminOverrideUserId
        )

    def requireUpdate(self, record, actingUserId: int) -> None:
        if not self.canUpdate(record, actingUserId):
            raise exceptions.NotAuthor(type(record))

    def requireDelete(self, record, actingUserId: int) -> None:
        if not self.canDelete(record, actingUserId):
            raise exceptions.NotAuthor(type(record))
